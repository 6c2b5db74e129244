"""Typed repositories over the school tables"""
from school_core.repositories.base import BaseRepository
from school_core.repositories.courses import CourseRepository
from school_core.repositories.enrollments import EnrollmentRepository
from school_core.repositories.resources import ResourceRepository
from school_core.repositories.services import ServiceRepository, StudentServiceRepository
from school_core.repositories.students import StudentRepository
from school_core.repositories.teachers import TeacherRepository

__all__ = [
    "BaseRepository",
    "CourseRepository",
    "EnrollmentRepository",
    "ResourceRepository",
    "ServiceRepository",
    "StudentRepository",
    "StudentServiceRepository",
    "TeacherRepository",
]
