"""
Result and view models returned by the service layer.

Business operations that can fail in an expected way return OperationResult
instead of raising, so callers can branch on the outcome and show the message
verbatim.
"""
import enum
import math
from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class ErrorCode(str, enum.Enum):
    """Specific business rule an operation was rejected by"""

    NOT_FOUND = "not_found"
    DUPLICATE_ENROLLMENT = "duplicate_enrollment"
    NOT_ENROLLED = "not_enrolled"
    GRADE_OUT_OF_RANGE = "grade_out_of_range"
    INVALID_STATE = "invalid_state"
    ALREADY_ACTIVE = "already_active"
    INTERNAL_ERROR = "internal_error"


class OperationResult(BaseModel):
    """Outcome of a business operation: success flag, message, optional entity id"""

    success: bool
    message: str
    error: Optional[ErrorCode] = None
    entity_id: Optional[int] = None

    def __bool__(self) -> bool:
        return self.success

    @classmethod
    def ok(cls, message: str, entity_id: Optional[int] = None) -> "OperationResult":
        return cls(success=True, message=message, entity_id=entity_id)

    @classmethod
    def fail(
        cls,
        error: ErrorCode,
        message: str,
        entity_id: Optional[int] = None,
    ) -> "OperationResult":
        return cls(success=False, message=message, error=error, entity_id=entity_id)


class Page(BaseModel):
    """One page of an offset/limit query"""

    data: List[Any]
    total: int
    page: int
    page_size: int
    total_pages: int

    @classmethod
    def build(cls, data: List[Any], total: int, page: int, page_size: int) -> "Page":
        return cls(
            data=data,
            total=total,
            page=page,
            page_size=page_size,
            total_pages=math.ceil(total / page_size),
        )


class ResourceStats(BaseModel):
    total: int
    available: int
    in_use: int
    maintenance: int


class CourseGradeEntry(BaseModel):
    course_id: int
    course_name: str
    grade: Optional[float] = None


class StudentGradeEntry(BaseModel):
    student_id: int
    student_name: str
    grade: Optional[float] = None


class StudentGradeReport(BaseModel):
    """Grades of one student across all their enrollments"""

    student_id: int
    student_name: str
    grades: List[CourseGradeEntry] = Field(default_factory=list)
    average_grade: Optional[float] = None


class CourseGradeReport(BaseModel):
    """Grades of every student enrolled in one course"""

    course_id: int
    course_name: str
    students: List[StudentGradeEntry] = Field(default_factory=list)
    average_grade: Optional[float] = None


class StudentServicesOverview(BaseModel):
    """A student's subscriptions split into active and historical"""

    active: List[Any] = Field(default_factory=list)
    historical: List[Any] = Field(default_factory=list)


class ServiceContribution(BaseModel):
    """One additive fragment of a composed student view"""

    description: str
    cost: float = 0.0


class ComposedStudentView(BaseModel):
    """
    Student record extended with the contributions of its active services.

    The first contribution is always the base student description with zero
    cost; each active service appends one more, in subscription order.
    """

    student_id: int
    name: str
    email: str
    grade: str
    contributions: List[ServiceContribution] = Field(default_factory=list)

    def get_description(self) -> str:
        return ", ".join(c.description for c in self.contributions)

    def get_cost(self) -> float:
        return sum(c.cost for c in self.contributions)


class ServiceCostLine(BaseModel):
    name: str
    cost: float
    start_date: datetime
    end_date: Optional[datetime] = None


class ServiceCostSummary(BaseModel):
    """Catalog cost of every active service of a student"""

    student_id: int
    student_name: str
    services: List[ServiceCostLine] = Field(default_factory=list)
    total_cost: float = 0.0


class CourseDetails(BaseModel):
    """Stored course together with the profile derived from its variant"""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    course: Any
    category: str
    language: Optional[str] = None
    materials: List[str]
    equipment: List[str]
    difficulty: str


class TeacherCourseCount(BaseModel):
    teacher: Any
    courses_count: int
