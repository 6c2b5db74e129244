"""Course model - Courses taught by a teacher over a date range"""
from datetime import datetime
from typing import List, Optional

from sqlalchemy import CheckConstraint, Column, DateTime, Index, Integer, String, Text

from school_core.database import Base
from school_core.timeutils import utcnow


class Course(Base):
    """
    Course of one variant (math, science, history or a language).

    course_type holds the normalized type tag the course was created from, so
    the variant can be re-derived from the stored row. Build instances through
    school_core.services.course_factory.create_course.
    """

    __tablename__ = "courses"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=False, default="")
    course_type = Column(String(50), nullable=False)
    start_date = Column(DateTime, nullable=False)
    end_date = Column(DateTime, nullable=False)
    # No FK constraint: deleting a teacher may leave courses pointing at it
    teacher_id = Column(Integer, nullable=True)

    __table_args__ = (
        CheckConstraint("end_date > start_date", name="ck_courses_date_range"),
        Index("idx_courses_teacher", "teacher_id"),
        Index("idx_courses_type", "course_type"),
    )

    def is_active(self, now: Optional[datetime] = None) -> bool:
        """Course has started and not yet ended."""
        now = now or utcnow()
        return self.start_date <= now <= self.end_date

    def is_upcoming(self, now: Optional[datetime] = None) -> bool:
        now = now or utcnow()
        return self.start_date > now

    def _profile(self):
        from school_core.services.course_factory import course_profile, parse_course_kind

        return course_profile(parse_course_kind(self.course_type))

    @property
    def materials(self) -> List[str]:
        return list(self._profile().materials)

    @property
    def equipment(self) -> List[str]:
        return list(self._profile().equipment)

    @property
    def difficulty(self) -> str:
        return self._profile().difficulty.value

    def __repr__(self):
        return f"<Course(id={self.id}, name={self.name}, type={self.course_type})>"
