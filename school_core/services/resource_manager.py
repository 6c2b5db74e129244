"""
Resource Manager

Sole authority for Resource.status. Enforces the reservation state machine:

    available --reserve--> inUse        (records last_reservation_date)
    inUse     --release--> available
    any       --set_resource_maintenance--> maintenance

There is no managed transition out of maintenance; an administrator can only
leave it through an explicit update_resource(id, status=...) write.

Construct one manager per store and pass it to its callers. Nothing is cached:
every call re-reads the store.
"""
import logging
from typing import Any, List, Optional

from sqlalchemy.ext.asyncio import async_sessionmaker

from school_core.models import Resource, ResourceStatus
from school_core.repositories import ResourceRepository
from school_core.schemas import ErrorCode, OperationResult, ResourceStats
from school_core.services.locks import KeyedLocks
from school_core.timeutils import utcnow

logger = logging.getLogger(__name__)


class ResourceManager:
    """Reserve, release and maintain shared resources"""

    def __init__(self, session_factory: async_sessionmaker, locks: Optional[KeyedLocks] = None):
        self._session_factory = session_factory
        self._locks = locks or KeyedLocks()

    async def get_all_resources(self) -> List[Resource]:
        async with self._session_factory() as session:
            return await ResourceRepository(session).get_all()

    async def get_resource(self, id: int) -> Optional[Resource]:
        async with self._session_factory() as session:
            return await ResourceRepository(session).get_by_id(id)

    async def get_available_resources(self) -> List[Resource]:
        async with self._session_factory() as session:
            return await ResourceRepository(session).get_by_status(ResourceStatus.AVAILABLE)

    async def add_resource(
        self,
        name: str,
        type: str,
        status: ResourceStatus = ResourceStatus.AVAILABLE,
    ) -> int:
        async with self._session_factory() as session:
            resource_id = await ResourceRepository(session).add(
                Resource(name=name, type=type, status=ResourceStatus(status))
            )
        logger.info(f"Added resource {resource_id} ({name}, {type})")
        return resource_id

    async def update_resource(self, id: int, **changes: Any) -> int:
        """
        Administrative write that bypasses the state machine.

        Returns:
            Number of resources updated (0 or 1)
        """
        if "status" in changes:
            changes["status"] = ResourceStatus(changes["status"])
        async with self._locks.hold(("resource", id)):
            async with self._session_factory() as session:
                return await ResourceRepository(session).update(id, **changes)

    async def delete_resource(self, id: int) -> None:
        async with self._locks.hold(("resource", id)):
            async with self._session_factory() as session:
                await ResourceRepository(session).delete(id)
        logger.info(f"Deleted resource {id}")

    async def reserve_resource(self, id: int) -> OperationResult:
        """Move an available resource to inUse and stamp the reservation date."""
        return await self._transition(
            id,
            expected=ResourceStatus.AVAILABLE,
            target=ResourceStatus.IN_USE,
            verb="reserved",
            last_reservation_date=utcnow(),
        )

    async def release_resource(self, id: int) -> OperationResult:
        """Return an inUse resource to available."""
        return await self._transition(
            id,
            expected=ResourceStatus.IN_USE,
            target=ResourceStatus.AVAILABLE,
            verb="released",
        )

    async def set_resource_maintenance(self, id: int) -> OperationResult:
        """Put a resource in maintenance from any state, including maintenance."""
        try:
            async with self._locks.hold(("resource", id)):
                async with self._session_factory() as session:
                    updated = await ResourceRepository(session).update(
                        id, status=ResourceStatus.MAINTENANCE
                    )
        except Exception as e:
            logger.error(f"Error setting resource {id} to maintenance: {e}", exc_info=True)
            return OperationResult.fail(
                ErrorCode.INTERNAL_ERROR,
                "An error occurred while setting the resource to maintenance",
            )

        if not updated:
            return OperationResult.fail(ErrorCode.NOT_FOUND, f"Resource {id} does not exist")

        logger.info(f"Resource {id} set to maintenance")
        return OperationResult.ok("Resource set to maintenance", entity_id=id)

    async def get_resource_stats(self) -> ResourceStats:
        """Counts per status, from a full scan of the resources table."""
        resources = await self.get_all_resources()
        return ResourceStats(
            total=len(resources),
            available=len([r for r in resources if r.status == ResourceStatus.AVAILABLE]),
            in_use=len([r for r in resources if r.status == ResourceStatus.IN_USE]),
            maintenance=len([r for r in resources if r.status == ResourceStatus.MAINTENANCE]),
        )

    async def _transition(
        self,
        id: int,
        expected: ResourceStatus,
        target: ResourceStatus,
        verb: str,
        **changes: Any,
    ) -> OperationResult:
        try:
            async with self._locks.hold(("resource", id)):
                async with self._session_factory() as session:
                    repo = ResourceRepository(session)
                    resource = await repo.get_by_id(id)
                    if resource is None:
                        return OperationResult.fail(
                            ErrorCode.NOT_FOUND, f"Resource {id} does not exist"
                        )

                    if resource.status != expected:
                        logger.warning(
                            f"Resource {id} cannot be {verb}: status is "
                            f"{resource.status.value}, expected {expected.value}"
                        )
                        return OperationResult.fail(
                            ErrorCode.INVALID_STATE,
                            f"Resource '{resource.name}' cannot be {verb}: it is "
                            f"{resource.status.value}, not {expected.value}",
                            entity_id=id,
                        )

                    # Conditional update guards against writers outside this process
                    if not await repo.transition(id, expected, target, **changes):
                        return OperationResult.fail(
                            ErrorCode.INVALID_STATE,
                            f"Resource '{resource.name}' changed status before it could be {verb}",
                            entity_id=id,
                        )

        except Exception as e:
            logger.error(f"Error while resource {id} was being {verb}: {e}", exc_info=True)
            return OperationResult.fail(
                ErrorCode.INTERNAL_ERROR,
                f"An error occurred while the resource was being {verb}",
            )

        logger.info(f"Resource {id} {verb}: {expected.value} -> {target.value}")
        return OperationResult.ok(f"Resource {verb}", entity_id=id)
