"""SQLAlchemy ORM Models for the school database schema"""
from school_core.models.student import Student
from school_core.models.teacher import QualifiedTeacher, Teacher
from school_core.models.course import Course
from school_core.models.enrollment import Enrollment
from school_core.models.resource import Resource, ResourceStatus
from school_core.models.service import Service, StudentService

__all__ = [
    "Student",
    "Teacher",
    "QualifiedTeacher",
    "Course",
    "Enrollment",
    "Resource",
    "ResourceStatus",
    "Service",
    "StudentService",
]
