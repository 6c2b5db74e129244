"""Teacher repository with specialization and course-count lookups"""
from typing import Any, Dict, List

from sqlalchemy import func, select

from school_core.models import Course, Teacher
from school_core.models.student import validate_email_address
from school_core.repositories.base import BaseRepository
from school_core.schemas import TeacherCourseCount


class TeacherRepository(BaseRepository[Teacher]):
    model_class = Teacher

    async def _check_changes(self, id: int, changes: Dict[str, Any]) -> Dict[str, Any]:
        if "email" in changes:
            changes["email"] = validate_email_address(changes["email"])
        return changes

    async def search_by_name(self, name: str) -> List[Teacher]:
        stmt = (
            select(Teacher)
            .where(func.lower(Teacher.name).contains(name.lower()))
            .order_by(Teacher.id)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_by_specialization(self, specialization: str) -> List[Teacher]:
        return await self.find_by(specialization=specialization)

    async def get_teachers_with_course_counts(self) -> List[TeacherCourseCount]:
        """Every teacher with the number of courses referencing it."""
        counts_stmt = (
            select(Course.teacher_id, func.count(Course.id))
            .where(Course.teacher_id.is_not(None))
            .group_by(Course.teacher_id)
        )
        result = await self.session.execute(counts_stmt)
        counts = {teacher_id: count for teacher_id, count in result.all()}

        teachers = await self.get_all()
        return [
            TeacherCourseCount(teacher=teacher, courses_count=counts.get(teacher.id, 0))
            for teacher in teachers
        ]
