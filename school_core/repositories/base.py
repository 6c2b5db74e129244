"""
Base repository class with common CRUD operations.
"""
import logging
from typing import Any, Dict, Generic, Iterable, List, Optional, TypeVar

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from school_core.schemas import Page

logger = logging.getLogger(__name__)

ModelType = TypeVar("ModelType")


class BaseRepository(Generic[ModelType]):
    """
    Generic typed accessor over one table.

    Holds only the session and the model class. Every mutating call commits
    on its own, so each call is atomic with respect to the rows it touches
    but several calls are not grouped in one transaction.
    """

    model_class: type = None

    def __init__(self, session: AsyncSession, model_class: Optional[type] = None) -> None:
        """
        Initialize repository with database session and model class.

        Args:
            session: Async SQLAlchemy session
            model_class: ORM model class; subclasses may set it as a class attribute
        """
        self.session = session
        if model_class is not None:
            self.model_class = model_class
        if self.model_class is None:
            raise TypeError(f"{type(self).__name__} requires a model class")
        self.model_name = self.model_class.__name__

    async def get_all(self) -> List[ModelType]:
        try:
            stmt = select(self.model_class).order_by(self.model_class.id)
            result = await self.session.execute(stmt)
            instances = list(result.scalars().all())

            logger.debug(f"Retrieved {len(instances)} {self.model_name} instances")
            return instances

        except Exception as e:
            logger.error(f"Failed to get all {self.model_name}: {e}")
            raise

    async def get_by_id(self, id: int) -> Optional[ModelType]:
        """
        Get model instance by ID.

        Returns:
            Model instance or None if not found
        """
        try:
            return await self.session.get(self.model_class, id)

        except Exception as e:
            logger.error(f"Failed to get {self.model_name} by id {id}: {e}")
            raise

    async def get_by_ids(self, ids: Iterable[int]) -> List[ModelType]:
        """
        Get several instances by ID.

        Unknown ids are dropped; the result follows the order of ``ids``.
        """
        ids = list(ids)
        if not ids:
            return []

        try:
            stmt = select(self.model_class).where(self.model_class.id.in_(set(ids)))
            result = await self.session.execute(stmt)
            by_id = {instance.id: instance for instance in result.scalars().all()}
            return [by_id[i] for i in ids if i in by_id]

        except Exception as e:
            logger.error(f"Failed to get {self.model_name} by ids: {e}")
            raise

    async def add(self, item: ModelType) -> int:
        """
        Persist a new instance.

        Returns:
            The id assigned by the store
        """
        try:
            self.session.add(item)
            await self.session.commit()

            logger.debug(f"Created {self.model_name}: {item.id}")
            return item.id

        except Exception as e:
            await self.session.rollback()
            logger.error(f"Failed to create {self.model_name}: {e}")
            raise

    async def bulk_add(self, items: Iterable[ModelType]) -> List[int]:
        items = list(items)
        try:
            self.session.add_all(items)
            await self.session.commit()

            logger.debug(f"Created {len(items)} {self.model_name} instances")
            return [item.id for item in items]

        except Exception as e:
            await self.session.rollback()
            logger.error(f"Failed to bulk create {self.model_name}: {e}")
            raise

    async def update(self, id: int, **changes: Any) -> int:
        """
        Apply a partial update to one instance.

        Returns:
            Number of rows updated (0 when the id is unknown)
        """
        if not changes:
            return 1 if await self.get_by_id(id) is not None else 0

        changes = await self._check_changes(id, changes)

        try:
            stmt = (
                update(self.model_class)
                .where(self.model_class.id == id)
                .values(**changes)
            )
            result = await self.session.execute(stmt)
            await self.session.commit()

            logger.debug(f"Updated {self.model_name} {id}: {result.rowcount} row(s)")
            return result.rowcount

        except Exception as e:
            await self.session.rollback()
            logger.error(f"Failed to update {self.model_name} {id}: {e}")
            raise

    async def _check_changes(self, id: int, changes: Dict[str, Any]) -> Dict[str, Any]:
        """
        Validate a partial update before it is written.

        UPDATE statements skip ORM validators; subclasses re-apply column rules
        here. Returns the values to write.
        """
        return changes

    async def delete(self, id: int) -> None:
        try:
            stmt = delete(self.model_class).where(self.model_class.id == id)
            await self.session.execute(stmt)
            await self.session.commit()

            logger.debug(f"Deleted {self.model_name}: {id}")

        except Exception as e:
            await self.session.rollback()
            logger.error(f"Failed to delete {self.model_name} {id}: {e}")
            raise

    async def bulk_delete(self, ids: Iterable[int]) -> None:
        ids = list(ids)
        if not ids:
            return

        try:
            stmt = delete(self.model_class).where(self.model_class.id.in_(ids))
            await self.session.execute(stmt)
            await self.session.commit()

            logger.debug(f"Deleted {len(ids)} {self.model_name} instances")

        except Exception as e:
            await self.session.rollback()
            logger.error(f"Failed to bulk delete {self.model_name}: {e}")
            raise

    async def count(self) -> int:
        try:
            stmt = select(func.count()).select_from(self.model_class)
            result = await self.session.execute(stmt)
            return result.scalar() or 0

        except Exception as e:
            logger.error(f"Failed to count {self.model_name}: {e}")
            raise

    async def find_by(self, **equals: Any) -> List[ModelType]:
        """Instances whose columns equal every given value."""
        try:
            stmt = select(self.model_class).filter_by(**equals).order_by(self.model_class.id)
            result = await self.session.execute(stmt)
            return list(result.scalars().all())

        except Exception as e:
            logger.error(f"Failed to query {self.model_name} by {equals}: {e}")
            raise

    async def first_by(self, **equals: Any) -> Optional[ModelType]:
        try:
            stmt = (
                select(self.model_class)
                .filter_by(**equals)
                .order_by(self.model_class.id)
                .limit(1)
            )
            result = await self.session.execute(stmt)
            return result.scalars().first()

        except Exception as e:
            logger.error(f"Failed to query {self.model_name} by {equals}: {e}")
            raise

    async def get_paginated(self, page: int = 1, page_size: int = 10) -> Page:
        """
        Offset/limit page of instances ordered by id.

        Args:
            page: 1-based page number
            page_size: Items per page

        Returns:
            Page with data, total, page, page_size and total_pages

        Raises:
            ValueError: If page or page_size is below 1
        """
        if page < 1 or page_size < 1:
            raise ValueError(f"page and page_size must be >= 1 (got {page}, {page_size})")

        offset = (page - 1) * page_size
        total = await self.count()

        try:
            stmt = (
                select(self.model_class)
                .order_by(self.model_class.id)
                .offset(offset)
                .limit(page_size)
            )
            result = await self.session.execute(stmt)
            data = list(result.scalars().all())

        except Exception as e:
            logger.error(f"Failed to paginate {self.model_name}: {e}")
            raise

        return Page.build(data=data, total=total, page=page, page_size=page_size)
