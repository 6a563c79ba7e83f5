"""
Waypoint Service

Waypoint administration. Every mutation drops the cached tables that
depend on the waypoint set.
"""

import logging
from typing import TYPE_CHECKING, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from trail_tracker.features.trail import Trail
from trail_tracker.shared.constants import WAYPOINT_DEPENDENT_KEYS
from trail_tracker.shared.errors import NotFoundError
from trail_tracker.shared.repository import commit_or_raise
from .models import Waypoint
from .ordering import OrderedWaypoint, order_waypoints
from .repository import WaypointRepository
from .schemas import WaypointCreate, WaypointUpdate

if TYPE_CHECKING:
    from trail_tracker.features.precompute import PrecomputeService

logger = logging.getLogger(__name__)


class WaypointService:
    """CRUD for waypoints plus trail ordering."""

    def __init__(self, db: AsyncSession, precompute: Optional["PrecomputeService"] = None):
        self.db = db
        self.repo = WaypointRepository(db)
        self.precompute = precompute

    async def _commit_changed(self, what: str) -> None:
        if self.precompute is not None:
            await self.precompute.commit_invalidating(WAYPOINT_DEPENDENT_KEYS, what)
        else:
            await commit_or_raise(self.db, what)

    async def list_waypoints(self) -> list[Waypoint]:
        return await self.repo.list_all()

    async def list_ordered(self, trail: Trail) -> list[OrderedWaypoint]:
        """Waypoints sorted along the trail."""
        return order_waypoints(await self.repo.list_all(), trail)

    async def get_waypoint(self, waypoint_id: str) -> Waypoint:
        """
        Raises:
            NotFoundError: Unknown waypoint
        """
        waypoint = await self.repo.get_fresh(waypoint_id)
        if waypoint is None:
            raise NotFoundError(f"Waypoint {waypoint_id} not found")
        return waypoint

    async def create_waypoint(self, request: WaypointCreate) -> Waypoint:
        waypoint = await self.repo.create(
            name=request.name,
            type=request.type.value,
            details=request.details,
            lat=request.coordinates.lat,
            lng=request.coordinates.lng,
            created_by=request.created_by,
        )
        await self._commit_changed("new waypoint")
        logger.info(f"Waypoint created: {waypoint.id} ({waypoint.name})")
        return waypoint

    async def update_waypoint(self, waypoint_id: str, request: WaypointUpdate) -> Waypoint:
        """
        Apply a partial update.

        Completion state is not editable here; use the completion
        service so the transition is audited.
        """
        waypoint = await self.get_waypoint(waypoint_id)

        fields = {}
        if request.name is not None:
            fields["name"] = request.name
        if request.type is not None:
            fields["type"] = request.type.value
        if "details" in request.model_fields_set:
            fields["details"] = request.details
        if request.coordinates is not None:
            fields["lat"] = request.coordinates.lat
            fields["lng"] = request.coordinates.lng

        waypoint = await self.repo.update(waypoint, **fields)
        await self._commit_changed(f"waypoint {waypoint_id}")
        logger.info(f"Waypoint updated: {waypoint_id} ({', '.join(fields)})")
        return waypoint

    async def delete_waypoint(self, waypoint_id: str) -> None:
        """Delete a waypoint. Its audit rows are kept."""
        waypoint = await self.get_waypoint(waypoint_id)
        await self.repo.delete(waypoint)
        await self._commit_changed(f"removal of waypoint {waypoint_id}")
        logger.info(f"Waypoint deleted: {waypoint_id}")
