"""Domain services enforcing the school business rules"""
from school_core.services.course_factory import (
    CourseCategory,
    CourseKind,
    CourseProfile,
    Difficulty,
    course_profile,
    create_course,
    from_record,
    parse_course_kind,
)
from school_core.services.enrollment_service import EnrollmentService
from school_core.services.resource_manager import ResourceManager
from school_core.services.student_service_manager import StudentServiceManager

__all__ = [
    "CourseCategory",
    "CourseKind",
    "CourseProfile",
    "Difficulty",
    "EnrollmentService",
    "ResourceManager",
    "StudentServiceManager",
    "course_profile",
    "create_course",
    "from_record",
    "parse_course_kind",
]
