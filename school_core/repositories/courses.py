"""Course repository with type, teacher, schedule and student lookups"""
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import func, select

from school_core.exceptions import ImmutableFieldError, InvalidCourseDatesError
from school_core.models import Course, Enrollment
from school_core.repositories.base import BaseRepository
from school_core.timeutils import utcnow


class CourseRepository(BaseRepository[Course]):
    model_class = Course

    async def _check_changes(self, id: int, changes: Dict[str, Any]) -> Dict[str, Any]:
        """
        Reject a changed course_type and an end date not after the start date.

        The course variant is fixed when the course is built; only writing the
        stored tag back unchanged is accepted.
        """
        course = await self.get_by_id(id)
        if course is None:
            return changes

        if "course_type" in changes:
            new_type = (changes["course_type"] or "").strip().lower()
            if new_type != course.course_type:
                raise ImmutableFieldError("Course", "course_type")
            changes["course_type"] = new_type

        if "start_date" in changes or "end_date" in changes:
            start_date = changes.get("start_date", course.start_date)
            end_date = changes.get("end_date", course.end_date)
            if end_date <= start_date:
                raise InvalidCourseDatesError(
                    f"Course end date {end_date} must be after start date {start_date}"
                )
        return changes

    async def search_by_name(self, name: str) -> List[Course]:
        stmt = (
            select(Course)
            .where(func.lower(Course.name).contains(name.lower()))
            .order_by(Course.id)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_by_type(self, course_type: str) -> List[Course]:
        return await self.find_by(course_type=course_type.strip().lower())

    async def get_courses_by_teacher(self, teacher_id: int) -> List[Course]:
        return await self.find_by(teacher_id=teacher_id)

    async def get_active_courses(self, now: Optional[datetime] = None) -> List[Course]:
        """Courses with start_date <= now <= end_date."""
        now = now or utcnow()
        stmt = (
            select(Course)
            .where(Course.start_date <= now, Course.end_date >= now)
            .order_by(Course.id)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_upcoming_courses(self, now: Optional[datetime] = None) -> List[Course]:
        now = now or utcnow()
        stmt = select(Course).where(Course.start_date > now).order_by(Course.id)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_courses_by_student(self, student_id: int) -> List[Course]:
        """Courses the student holds an enrollment in."""
        result = await self.session.execute(
            select(Enrollment.course_id).where(Enrollment.student_id == student_id)
        )
        course_ids = list(result.scalars().all())
        return await self.get_by_ids(course_ids)
