"""
Tracking repositories.

Data access for location fixes and the stored progress row.
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from trail_tracker.shared.constants import SINGLETON_ROW_ID
from trail_tracker.shared.repository import BaseRepository
from .models import LocationFix, TrailProgressRecord


class LocationRepository(BaseRepository[LocationFix]):
    """Repository for location fixes (insert-only)."""

    def __init__(self, db: AsyncSession):
        super().__init__(db, LocationFix)

    async def get_latest(self) -> LocationFix | None:
        """
        Get the fix with the greatest timestamp.

        Ties are broken by insertion time so a late duplicate does not
        shadow the original.
        """
        result = await self.db.execute(
            select(LocationFix)
            .order_by(LocationFix.timestamp.desc(), LocationFix.created_at.asc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def list_recent(self, limit: int = 100) -> list[LocationFix]:
        """Newest fixes first."""
        result = await self.db.execute(
            select(LocationFix)
            .order_by(LocationFix.timestamp.desc())
            .limit(limit)
        )
        return list(result.scalars().all())

    async def list_between(self, start_ms: int, finish_ms: int) -> list[LocationFix]:
        """Fixes inside [start_ms, finish_ms], oldest first."""
        result = await self.db.execute(
            select(LocationFix)
            .where(LocationFix.timestamp >= start_ms)
            .where(LocationFix.timestamp <= finish_ms)
            .order_by(LocationFix.timestamp.asc())
        )
        return list(result.scalars().all())


class TrailProgressRepository(BaseRepository[TrailProgressRecord]):
    """Repository for the single stored progress row."""

    def __init__(self, db: AsyncSession):
        super().__init__(db, TrailProgressRecord)

    async def get_current(self) -> TrailProgressRecord | None:
        return await self.get_by_id(SINGLETON_ROW_ID)

    async def save(self, **fields) -> TrailProgressRecord:
        """Create or overwrite the stored progress."""
        record = await self.get_current()
        if record:
            return await self.update(record, **fields)
        return await self.create(id=SINGLETON_ROW_ID, **fields)
