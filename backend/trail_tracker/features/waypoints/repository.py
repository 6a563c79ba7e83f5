"""
Waypoint repositories.

Data access for waypoints and their completion audit trail.
"""

from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from trail_tracker.shared.repository import BaseRepository
from .models import Waypoint, WaypointCompletion


class WaypointRepository(BaseRepository[Waypoint]):
    """Repository for waypoint operations."""

    def __init__(self, db: AsyncSession):
        super().__init__(db, Waypoint)

    async def list_all(self) -> list[Waypoint]:
        """
        All waypoints in creation order (not trail order).

        Always re-reads the rows so completion flags changed by a
        compare-and-set in this session are current.
        """
        result = await self.db.execute(
            select(Waypoint)
            .order_by(Waypoint.created_at, Waypoint.id)
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all())

    async def get_fresh(self, waypoint_id: str) -> Waypoint | None:
        """Get a waypoint, overwriting any stale copy in the session."""
        return await self.db.get(Waypoint, waypoint_id, populate_existing=True)

    async def set_completion(
        self,
        waypoint_id: str,
        completed: bool,
        completed_at: Optional[int],
        completed_by: Optional[str],
    ) -> bool:
        """
        Compare-and-set the completion flag.

        The row changes only if it is currently in the opposite state,
        so of two racing writers exactly one wins.

        Returns:
            True if this call performed the transition
        """
        result = await self.db.execute(
            update(Waypoint)
            .where(Waypoint.id == waypoint_id)
            .where(Waypoint.is_completed == (not completed))
            .values(
                is_completed=completed,
                completed_at=completed_at,
                completed_by=completed_by,
            )
        )
        return result.rowcount == 1


class WaypointCompletionRepository(BaseRepository[WaypointCompletion]):
    """Repository for the append-only completion audit."""

    def __init__(self, db: AsyncSession):
        super().__init__(db, WaypointCompletion)

    async def append(
        self,
        waypoint_id: str,
        completed: bool,
        completed_at: int,
        completed_by: str,
        run_period: Optional[str],
    ) -> WaypointCompletion:
        return await self.create(
            waypoint_id=waypoint_id,
            is_completed=completed,
            completed_at=completed_at,
            completed_by=completed_by,
            run_period=run_period,
        )

    async def list_for_waypoint(self, waypoint_id: str) -> list[WaypointCompletion]:
        result = await self.db.execute(
            select(WaypointCompletion)
            .where(WaypointCompletion.waypoint_id == waypoint_id)
            .order_by(WaypointCompletion.id)
        )
        return list(result.scalars().all())
