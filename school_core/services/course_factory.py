"""
Course Factory

Builds courses of one of a fixed set of variants from a type tag. Each variant
is a CourseKind value; its materials, equipment and difficulty come from the
pure course_profile() function, so a stored course only needs its type tag to
be rebuilt.

Supported tags (case-insensitive): math, science, history, french, english,
spanish. The three language tags share the language variant.
"""
import enum
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, List, Optional, Tuple

from school_core.exceptions import InvalidCourseDatesError, UnsupportedCourseTypeError
from school_core.models import Course
from school_core.schemas import CourseDetails

logger = logging.getLogger(__name__)


class CourseCategory(str, enum.Enum):
    MATH = "math"
    SCIENCE = "science"
    HISTORY = "history"
    LANGUAGE = "language"


class Difficulty(str, enum.Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


@dataclass(frozen=True)
class CourseKind:
    """Course variant; language is set only for the language category"""

    category: CourseCategory
    language: Optional[str] = None


@dataclass(frozen=True)
class CourseProfile:
    materials: Tuple[str, ...]
    equipment: Tuple[str, ...]
    difficulty: Difficulty


# Type tag -> variant
COURSE_KINDS: Dict[str, CourseKind] = {
    "math": CourseKind(CourseCategory.MATH),
    "science": CourseKind(CourseCategory.SCIENCE),
    "history": CourseKind(CourseCategory.HISTORY),
    "french": CourseKind(CourseCategory.LANGUAGE, "French"),
    "english": CourseKind(CourseCategory.LANGUAGE, "English"),
    "spanish": CourseKind(CourseCategory.LANGUAGE, "Spanish"),
}

SUPPORTED_COURSE_TYPES: List[str] = list(COURSE_KINDS)


def normalize_type_tag(type_tag: str) -> str:
    return (type_tag or "").strip().lower()


def parse_course_kind(type_tag: str) -> CourseKind:
    """
    Map a type tag to its course variant.

    Raises:
        UnsupportedCourseTypeError: If the tag names no known variant
    """
    kind = COURSE_KINDS.get(normalize_type_tag(type_tag))
    if kind is None:
        raise UnsupportedCourseTypeError(type_tag)
    return kind


def course_profile(kind: CourseKind) -> CourseProfile:
    """Materials, equipment and difficulty of a course variant."""
    if kind.category is CourseCategory.MATH:
        return CourseProfile(
            materials=("Mathematics textbook", "Calculator", "Exercise book"),
            equipment=("Scientific calculator",),
            difficulty=Difficulty.MEDIUM,
        )
    elif kind.category is CourseCategory.SCIENCE:
        return CourseProfile(
            materials=("Science textbook", "Lab guide", "Experiment journal"),
            equipment=("Lab equipment", "Lab coat", "Safety goggles"),
            difficulty=Difficulty.HARD,
        )
    elif kind.category is CourseCategory.HISTORY:
        return CourseProfile(
            materials=("History textbook", "Historical atlas", "Archive documents"),
            equipment=(),
            difficulty=Difficulty.EASY,
        )
    elif kind.category is CourseCategory.LANGUAGE:
        return CourseProfile(
            materials=(f"{kind.language} textbook", "Dictionary", "Exercise book"),
            equipment=("Headphones for listening exercises",),
            difficulty=Difficulty.MEDIUM,
        )
    raise UnsupportedCourseTypeError(str(kind.category))


def create_course(
    type_tag: str,
    name: str,
    start_date: datetime,
    end_date: datetime,
    teacher_id: Optional[int] = None,
    description: str = "",
    id: Optional[int] = None,
) -> Course:
    """
    Build an unsaved Course of the variant named by ``type_tag``.

    The stored course_type is the normalized tag, fixed for the life of the
    course.

    Raises:
        UnsupportedCourseTypeError: If the tag names no known variant
        InvalidCourseDatesError: If end_date is not after start_date
    """
    parse_course_kind(type_tag)

    if end_date <= start_date:
        raise InvalidCourseDatesError(
            f"Course end date {end_date.isoformat()} must be after start date "
            f"{start_date.isoformat()}"
        )

    course = Course(
        name=name,
        description=description,
        course_type=normalize_type_tag(type_tag),
        start_date=start_date,
        end_date=end_date,
        teacher_id=teacher_id,
    )
    if id is not None:
        course.id = id
    return course


def from_record(course: Course) -> CourseDetails:
    """
    Rebuild the variant of a stored course from its course_type.

    Raises:
        UnsupportedCourseTypeError: If the stored course_type is unknown
    """
    kind = parse_course_kind(course.course_type)
    profile = course_profile(kind)
    return CourseDetails(
        course=course,
        category=kind.category.value,
        language=kind.language,
        materials=list(profile.materials),
        equipment=list(profile.equipment),
        difficulty=profile.difficulty.value,
    )
