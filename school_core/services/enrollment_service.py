"""
Enrollment Service

Sole authority for Enrollment rows and their grades.

Rules:
- at most one enrollment per (student, course) pair
- grades lie in [0, 20]; reassigning a grade replaces the previous one
- grade averages only count enrollments that carry a grade
"""
import logging
import numbers
from datetime import datetime
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import async_sessionmaker

from school_core.exceptions import EntityNotFoundError
from school_core.models import Enrollment
from school_core.models.enrollment import MAX_GRADE, MIN_GRADE
from school_core.repositories import CourseRepository, EnrollmentRepository, StudentRepository
from school_core.schemas import (
    CourseGradeEntry,
    CourseGradeReport,
    ErrorCode,
    OperationResult,
    StudentGradeEntry,
    StudentGradeReport,
)
from school_core.services.locks import KeyedLocks
from school_core.timeutils import utcnow

logger = logging.getLogger(__name__)

UNKNOWN_COURSE = "Unknown course"
UNKNOWN_STUDENT = "Unknown student"


def average_grade(grades: List[Optional[float]]) -> Optional[float]:
    """Mean of the grades that are set, or None when none are."""
    graded = [g for g in grades if g is not None]
    if not graded:
        return None
    return sum(graded) / len(graded)


class EnrollmentService:
    """Enroll students in courses and record their grades"""

    def __init__(self, session_factory: async_sessionmaker, locks: Optional[KeyedLocks] = None):
        self._session_factory = session_factory
        self._locks = locks or KeyedLocks()

    async def enroll_student(self, student_id: int, course_id: int) -> OperationResult:
        """
        Enroll a student in a course.

        Returns:
            OperationResult with the new enrollment id, or a failure carrying
            NOT_FOUND or DUPLICATE_ENROLLMENT (with the existing id)
        """
        try:
            async with self._locks.hold(("enrollment", student_id, course_id)):
                async with self._session_factory() as session:
                    if await StudentRepository(session).get_by_id(student_id) is None:
                        return OperationResult.fail(
                            ErrorCode.NOT_FOUND, f"Student {student_id} does not exist"
                        )
                    if await CourseRepository(session).get_by_id(course_id) is None:
                        return OperationResult.fail(
                            ErrorCode.NOT_FOUND, f"Course {course_id} does not exist"
                        )

                    repo = EnrollmentRepository(session)
                    existing = await repo.get_for_pair(student_id, course_id)
                    if existing is not None:
                        logger.warning(
                            f"Duplicate enrollment rejected: student {student_id}, course {course_id}"
                        )
                        return OperationResult.fail(
                            ErrorCode.DUPLICATE_ENROLLMENT,
                            "The student is already enrolled in this course",
                            entity_id=existing.id,
                        )

                    try:
                        enrollment_id = await repo.add(
                            Enrollment(
                                student_id=student_id,
                                course_id=course_id,
                                enrollment_date=utcnow(),
                            )
                        )
                    except IntegrityError:
                        # Another writer inserted the pair after our check
                        logger.warning(
                            f"Enrollment for student {student_id}, course {course_id} "
                            f"rejected by unique constraint"
                        )
                        return OperationResult.fail(
                            ErrorCode.DUPLICATE_ENROLLMENT,
                            "The student is already enrolled in this course",
                        )

        except Exception as e:
            logger.error(f"Error enrolling student {student_id} in course {course_id}: {e}", exc_info=True)
            return OperationResult.fail(
                ErrorCode.INTERNAL_ERROR, "An error occurred during enrollment"
            )

        logger.info(f"Enrolled student {student_id} in course {course_id} (enrollment {enrollment_id})")
        return OperationResult.ok("Enrollment successful", entity_id=enrollment_id)

    async def unenroll_student(self, student_id: int, course_id: int) -> OperationResult:
        try:
            async with self._locks.hold(("enrollment", student_id, course_id)):
                async with self._session_factory() as session:
                    repo = EnrollmentRepository(session)
                    enrollment = await repo.get_for_pair(student_id, course_id)
                    if enrollment is None:
                        return OperationResult.fail(
                            ErrorCode.NOT_ENROLLED, "The student is not enrolled in this course"
                        )
                    enrollment_id = enrollment.id
                    await repo.delete(enrollment_id)

        except Exception as e:
            logger.error(f"Error unenrolling student {student_id} from course {course_id}: {e}", exc_info=True)
            return OperationResult.fail(
                ErrorCode.INTERNAL_ERROR, "An error occurred during unenrollment"
            )

        logger.info(f"Unenrolled student {student_id} from course {course_id}")
        return OperationResult.ok("Unenrollment successful", entity_id=enrollment_id)

    async def assign_grade(self, student_id: int, course_id: int, grade: float) -> OperationResult:
        """Set or overwrite the grade of an existing enrollment."""
        if (
            isinstance(grade, bool)
            or not isinstance(grade, numbers.Real)
            or not MIN_GRADE <= grade <= MAX_GRADE
        ):
            return OperationResult.fail(
                ErrorCode.GRADE_OUT_OF_RANGE,
                f"The grade must be between {MIN_GRADE} and {MAX_GRADE}",
            )

        try:
            async with self._locks.hold(("enrollment", student_id, course_id)):
                async with self._session_factory() as session:
                    repo = EnrollmentRepository(session)
                    enrollment = await repo.get_for_pair(student_id, course_id)
                    if enrollment is None:
                        return OperationResult.fail(
                            ErrorCode.NOT_ENROLLED, "The student is not enrolled in this course"
                        )
                    await repo.update(enrollment.id, grade=grade)

        except Exception as e:
            logger.error(f"Error assigning grade for student {student_id}, course {course_id}: {e}", exc_info=True)
            return OperationResult.fail(
                ErrorCode.INTERNAL_ERROR, "An error occurred while assigning the grade"
            )

        logger.info(f"Assigned grade {grade} to student {student_id} in course {course_id}")
        return OperationResult.ok("Grade assigned", entity_id=enrollment.id)

    async def get_student_grades(self, student_id: int) -> StudentGradeReport:
        """
        Grades of a student in every course they are enrolled in.

        Raises:
            EntityNotFoundError: If the student does not exist
        """
        async with self._session_factory() as session:
            student = await StudentRepository(session).get_by_id(student_id)
            if student is None:
                raise EntityNotFoundError("Student", student_id)

            enrollments = await EnrollmentRepository(session).get_by_student(student_id)
            courses = await CourseRepository(session).get_by_ids(
                [e.course_id for e in enrollments]
            )

        names = {course.id: course.name for course in courses}
        grades = [
            CourseGradeEntry(
                course_id=e.course_id,
                course_name=names.get(e.course_id, UNKNOWN_COURSE),
                grade=e.grade,
            )
            for e in enrollments
        ]
        return StudentGradeReport(
            student_id=student.id,
            student_name=student.name,
            grades=grades,
            average_grade=average_grade([g.grade for g in grades]),
        )

    async def get_course_students_with_grades(self, course_id: int) -> CourseGradeReport:
        """
        Students enrolled in a course with their grades.

        Raises:
            EntityNotFoundError: If the course does not exist
        """
        async with self._session_factory() as session:
            course = await CourseRepository(session).get_by_id(course_id)
            if course is None:
                raise EntityNotFoundError("Course", course_id)

            enrollments = await EnrollmentRepository(session).get_by_course(course_id)
            students = await StudentRepository(session).get_by_ids(
                [e.student_id for e in enrollments]
            )

        names = {student.id: student.name for student in students}
        entries = [
            StudentGradeEntry(
                student_id=e.student_id,
                student_name=names.get(e.student_id, UNKNOWN_STUDENT),
                grade=e.grade,
            )
            for e in enrollments
        ]
        return CourseGradeReport(
            course_id=course.id,
            course_name=course.name,
            students=entries,
            average_grade=average_grade([s.grade for s in entries]),
        )

    async def get_active_enrollments(
        self,
        student_id: int,
        now: Optional[datetime] = None,
    ) -> List[Enrollment]:
        """Enrollments of a student whose course has not ended yet."""
        now = now or utcnow()
        async with self._session_factory() as session:
            enrollments = await EnrollmentRepository(session).get_by_student(student_id)
            courses = await CourseRepository(session).get_by_ids(
                [e.course_id for e in enrollments]
            )

        open_courses = {course.id for course in courses if course.end_date >= now}
        return [e for e in enrollments if e.course_id in open_courses]
