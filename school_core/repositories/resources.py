"""Resource repository with a compare-and-set status transition"""
from typing import Any, List

from sqlalchemy import update

from school_core.models import Resource, ResourceStatus
from school_core.repositories.base import BaseRepository


class ResourceRepository(BaseRepository[Resource]):
    model_class = Resource

    async def get_by_status(self, status: ResourceStatus) -> List[Resource]:
        return await self.find_by(status=status)

    async def transition(
        self,
        id: int,
        expected: ResourceStatus,
        target: ResourceStatus,
        **changes: Any,
    ) -> bool:
        """
        Move a resource from ``expected`` to ``target`` in one statement.

        Returns False, without writing, when the resource is missing or no
        longer in the expected status.
        """
        stmt = (
            update(Resource)
            .where(Resource.id == id, Resource.status == expected)
            .values(status=target, **changes)
        )
        try:
            result = await self.session.execute(stmt)
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise
        return result.rowcount == 1
