"""Student repository with name, grade-level and course lookups"""
from typing import Any, Dict, List

from sqlalchemy import func, select

from school_core.models import Enrollment, Student
from school_core.models.student import validate_email_address
from school_core.repositories.base import BaseRepository


class StudentRepository(BaseRepository[Student]):
    model_class = Student

    async def _check_changes(self, id: int, changes: Dict[str, Any]) -> Dict[str, Any]:
        if "email" in changes:
            changes["email"] = validate_email_address(changes["email"])
        return changes

    async def search_by_name(self, name: str) -> List[Student]:
        """Case-insensitive substring match on the student name."""
        stmt = (
            select(Student)
            .where(func.lower(Student.name).contains(name.lower()))
            .order_by(Student.id)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_by_grade(self, grade: str) -> List[Student]:
        return await self.find_by(grade=grade)

    async def get_students_by_course(self, course_id: int) -> List[Student]:
        """Students holding an enrollment in the course."""
        result = await self.session.execute(
            select(Enrollment.student_id).where(Enrollment.course_id == course_id)
        )
        student_ids = list(result.scalars().all())
        return await self.get_by_ids(student_ids)
