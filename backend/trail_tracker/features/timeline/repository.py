"""
Run timeline repository.

Data access layer for the single timeline row.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from trail_tracker.shared.constants import SINGLETON_ROW_ID
from trail_tracker.shared.repository import BaseRepository
from .models import RunTimelineRecord


class RunTimelineRepository(BaseRepository[RunTimelineRecord]):
    """Repository for the run timeline."""

    def __init__(self, db: AsyncSession):
        super().__init__(db, RunTimelineRecord)

    async def get_current(self) -> RunTimelineRecord | None:
        """Get the live timeline row, if any."""
        return await self.get_by_id(SINGLETON_ROW_ID)

    async def save(
        self,
        start_date: str,
        start_time: str,
        finish_date: str,
        finish_time: str,
    ) -> RunTimelineRecord:
        """Create or overwrite the live timeline."""
        fields = {
            "start_date": start_date,
            "start_time": start_time,
            "finish_date": finish_date,
            "finish_time": finish_time,
        }
        record = await self.get_current()
        if record:
            return await self.update(record, **fields)
        return await self.create(id=SINGLETON_ROW_ID, **fields)

    async def clear(self) -> bool:
        """
        Delete the live timeline.

        Returns:
            True if a timeline existed
        """
        record = await self.get_current()
        if not record:
            return False
        await self.delete(record)
        return True
