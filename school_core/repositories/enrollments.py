"""Enrollment repository keyed by the (student, course) pair"""
from typing import List, Optional

from school_core.models import Enrollment
from school_core.repositories.base import BaseRepository


class EnrollmentRepository(BaseRepository[Enrollment]):
    model_class = Enrollment

    async def get_for_pair(self, student_id: int, course_id: int) -> Optional[Enrollment]:
        return await self.first_by(student_id=student_id, course_id=course_id)

    async def get_by_student(self, student_id: int) -> List[Enrollment]:
        return await self.find_by(student_id=student_id)

    async def get_by_course(self, course_id: int) -> List[Enrollment]:
        return await self.find_by(course_id=course_id)
