"""
Base repository with common CRUD operations.

Provides generic database operations for all feature repositories.
Uses SQLAlchemy async session for non-blocking database access.

Repositories only flush; committing is left to the service that owns
the unit of work so a failed commit can be reported as one failure.

Usage:
    class WaypointRepository(BaseRepository[Waypoint]):
        def __init__(self, db: AsyncSession):
            super().__init__(db, Waypoint)
"""

import logging
from typing import Any, TypeVar, Generic, Type
from sqlalchemy import delete, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from trail_tracker.shared.errors import PersistenceFailure

logger = logging.getLogger(__name__)

T = TypeVar("T")


class BaseRepository(Generic[T]):
    """
    Base repository for database operations.

    Provides common CRUD methods that can be inherited by feature repositories.
    All methods are async for use with AsyncSession.
    """

    def __init__(self, db: AsyncSession, model: Type[T]):
        """
        Initialize repository.

        Args:
            db: Async database session
            model: SQLAlchemy model class
        """
        self.db = db
        self.model = model

    async def get_by_id(self, id: str | int) -> T | None:
        """
        Get entity by primary key.

        Uses session.get so objects already in the identity map are
        returned without a query.
        """
        return await self.db.get(self.model, id)

    async def get_all(self, order_by: Any = None, **kwargs) -> list[T]:
        """
        Get all entities matching criteria.

        Args:
            order_by: Optional column (or expression) to sort by
            **kwargs: Field name-value pairs to filter by

        Returns:
            List of matching entities
        """
        query = select(self.model)
        for key, value in kwargs.items():
            query = query.where(getattr(self.model, key) == value)
        if order_by is not None:
            query = query.order_by(order_by)
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def create(self, **kwargs) -> T:
        """
        Create new entity.

        Args:
            **kwargs: Field values for new entity

        Returns:
            Created entity with generated ID
        """
        entity = self.model(**kwargs)
        self.db.add(entity)
        await self.db.flush()
        await self.db.refresh(entity)
        return entity

    async def update(self, entity: T, **kwargs) -> T:
        """
        Update entity fields.

        Args:
            entity: Entity to update
            **kwargs: Field values to update

        Returns:
            Updated entity
        """
        for key, value in kwargs.items():
            setattr(entity, key, value)
        await self.db.flush()
        await self.db.refresh(entity)
        return entity

    async def delete(self, entity: T) -> None:
        """Delete entity."""
        await self.db.delete(entity)
        await self.db.flush()

    async def delete_all(self) -> int:
        """
        Delete every row of the model's table.

        Returns:
            Number of deleted rows
        """
        result = await self.db.execute(delete(self.model))
        await self.db.flush()
        return result.rowcount or 0

    async def count(self, **kwargs) -> int:
        """
        Count entities matching criteria.

        Args:
            **kwargs: Field name-value pairs to filter by

        Returns:
            Number of matching entities
        """
        query = select(func.count()).select_from(self.model)
        for key, value in kwargs.items():
            query = query.where(getattr(self.model, key) == value)
        result = await self.db.execute(query)
        return result.scalar() or 0


async def commit_or_raise(db: AsyncSession, action: str, result: Any = None) -> None:
    """
    Commit the session, turning database errors into PersistenceFailure.

    Args:
        db: Session holding the unit of work
        action: Short description used in the error message
        result: Computed value to attach to the failure

    Raises:
        PersistenceFailure: If the commit fails (the session is rolled back)
    """
    try:
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(f"Failed to persist {action}: {e}")
        raise PersistenceFailure(f"Failed to persist {action}", result=result) from e
