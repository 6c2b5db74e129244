"""Service catalog and student subscription repositories"""
from datetime import datetime
from typing import List, Optional

from sqlalchemy import or_, select

from school_core.models import Service, StudentService
from school_core.repositories.base import BaseRepository
from school_core.timeutils import utcnow


def _active_clause(now: datetime):
    return or_(StudentService.end_date.is_(None), StudentService.end_date >= now)


class ServiceRepository(BaseRepository[Service]):
    model_class = Service


class StudentServiceRepository(BaseRepository[StudentService]):
    model_class = StudentService

    async def get_by_student(self, student_id: int) -> List[StudentService]:
        return await self.find_by(student_id=student_id)

    async def get_active_by_student(
        self,
        student_id: int,
        now: Optional[datetime] = None,
    ) -> List[StudentService]:
        """Subscriptions with no end date or an end date not yet passed."""
        now = now or utcnow()
        stmt = (
            select(StudentService)
            .where(StudentService.student_id == student_id, _active_clause(now))
            .order_by(StudentService.id)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_active_for_pair(
        self,
        student_id: int,
        service_id: int,
        now: Optional[datetime] = None,
    ) -> Optional[StudentService]:
        now = now or utcnow()
        stmt = (
            select(StudentService)
            .where(
                StudentService.student_id == student_id,
                StudentService.service_id == service_id,
                _active_clause(now),
            )
            .order_by(StudentService.id)
            .limit(1)
        )
        result = await self.session.execute(stmt)
        return result.scalars().first()
