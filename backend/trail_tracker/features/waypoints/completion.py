"""
Waypoint Completion Engine

Per-waypoint state machine: Pending -> Completed.

Automatic transition:
    fires when the fix projects strictly beyond the waypoint's index,
    only while the run timeline is active at the fix timestamp and the
    fix is on-trail.

Admin transitions:
    mark_completed / mark_incomplete go through the same compare-and-set
    and audit path, with no timeline requirement.

Every transition appends exactly one WaypointCompletion row. Repeating
a transition is a no-op.
"""

import logging
from typing import TYPE_CHECKING, Iterable, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from trail_tracker.config import settings
from trail_tracker.features.timeline import RunTimeline, RunTimelineGate, RunTimelineService
from trail_tracker.features.trail import Trail
from trail_tracker.shared.clock import Clock, now_ms
from trail_tracker.shared.constants import CompletedBy, ComputationKey
from trail_tracker.shared.errors import NotFoundError
from trail_tracker.shared.geo import nearest_index
from trail_tracker.shared.repository import commit_or_raise
from .models import Waypoint
from .ordering import order_waypoints
from .repository import WaypointCompletionRepository, WaypointRepository
from .schemas import CompletionState

if TYPE_CHECKING:
    from trail_tracker.features.precompute import PrecomputeService

logger = logging.getLogger(__name__)


class WaypointCompletionService:
    """
    Evaluates fixes against waypoints and applies admin overrides.

    evaluate_fix / evaluate_history only flush: they run inside the
    caller's unit of work. The admin operations commit themselves.
    """

    def __init__(
        self,
        db: AsyncSession,
        gate: Optional[RunTimelineGate] = None,
        clock: Clock = now_ms,
        max_offset_km: Optional[float] = None,
        precompute: Optional["PrecomputeService"] = None,
    ):
        self.db = db
        self.precompute = precompute
        self.gate = gate or RunTimelineGate.from_settings()
        self.clock = clock
        self.max_offset_km = (
            max_offset_km if max_offset_km is not None else settings.off_trail_threshold_km
        )
        self.waypoints = WaypointRepository(db)
        self.audit = WaypointCompletionRepository(db)
        self.timelines = RunTimelineService(db, self.gate)

    async def _transition(
        self,
        waypoint_id: str,
        completed: bool,
        by: CompletedBy,
        at: int,
        run_period: Optional[str],
    ) -> bool:
        """Apply one transition; append the audit row only if it happened."""
        changed = await self.waypoints.set_completion(
            waypoint_id,
            completed,
            completed_at=at if completed else None,
            completed_by=by.value if completed else None,
        )
        if not changed:
            logger.debug(f"Waypoint {waypoint_id} already {'completed' if completed else 'pending'}")
            return False

        await self.audit.append(
            waypoint_id=waypoint_id,
            completed=completed,
            completed_at=at,
            completed_by=by.value,
            run_period=run_period,
        )
        logger.info(
            f"Waypoint {waypoint_id} -> {'completed' if completed else 'pending'} "
            f"by {by.value} (period {run_period})"
        )
        return True

    async def _commit(self, what: str, changed: bool) -> None:
        """Commit, dropping cached tables that embed completion flags if anything changed."""
        if changed and self.precompute is not None:
            await self.precompute.commit_invalidating([ComputationKey.ALL_WAYPOINT_DATA], what)
        else:
            await commit_or_raise(self.db, what)

    async def _active_run_period(self, at_ms: int) -> Optional[str]:
        timeline = await self.timelines.get_timeline()
        if self.gate.is_active_at_ms(timeline, at_ms):
            return timeline.run_period
        return None

    async def _pending(self, trail: Trail) -> list[tuple[str, int]]:
        """
        Pending waypoints as (id, track index), ascending by index.

        Indices come from the cached waypoint positions when a
        PrecomputeService is wired in; otherwise each waypoint is
        projected once here.
        """
        pending = [w for w in await self.waypoints.list_all() if not w.is_completed]
        if not pending:
            return []

        indices: dict[str, int] = {}
        if self.precompute is not None:
            positions = await self.precompute.waypoint_positions(trail, in_transaction=True)
            indices = {wid: p["trackIndex"] for wid, p in positions.items()}
        unknown = [w for w in pending if w.id not in indices]
        for o in order_waypoints(unknown, trail):
            indices[o.id] = o.track_index

        return sorted(((w.id, indices[w.id]) for w in pending), key=lambda p: p[1])

    async def _complete_passed(
        self,
        pending: list[tuple[str, int]],
        fix_index: int,
        at: int,
        run_period: str,
    ) -> list[str]:
        completed = []
        for waypoint_id, track_index in pending:
            if fix_index <= track_index:
                break
            if await self._transition(waypoint_id, True, CompletedBy.AUTO, at, run_period):
                completed.append(waypoint_id)
        return completed

    # === Automatic transitions ===

    async def evaluate_fix(
        self,
        fix,
        trail: Trail,
        timeline: Optional[RunTimeline],
        projection: Optional[tuple[int, float]] = None,
    ) -> list[str]:
        """
        Complete every pending waypoint the fix has passed.

        Args:
            fix: Object with lat, lng and timestamp (epoch ms)
            trail: Current trail
            timeline: Live timeline (None means inert)
            projection: (index, offset_km) of the fix when the caller
                already projected it

        Returns:
            IDs of waypoints completed by this call
        """
        if not self.gate.is_active_at_ms(timeline, fix.timestamp):
            return []

        fix_index, offset_km = projection or nearest_index((fix.lat, fix.lng), trail.points)
        if offset_km > self.max_offset_km:
            logger.debug(f"Fix {getattr(fix, 'id', None)} off-trail, skipping waypoint evaluation")
            return []

        pending = await self._pending(trail)
        return await self._complete_passed(pending, fix_index, fix.timestamp, timeline.run_period)

    async def evaluate_history(
        self,
        fixes: Iterable,
        trail: Trail,
        timeline: Optional[RunTimeline],
    ) -> list[str]:
        """
        Replay a location history in timestamp order.

        Waypoints are ordered once for the whole replay and every fix is
        projected once. Fixes outside the active window are ignored.
        """
        if timeline is None:
            return []
        pending = await self._pending(trail)

        completed = []
        for fix in sorted(fixes, key=lambda f: f.timestamp):
            if not pending:
                break
            if not self.gate.is_active_at_ms(timeline, fix.timestamp):
                continue
            fix_index, offset_km = nearest_index((fix.lat, fix.lng), trail.points)
            if offset_km > self.max_offset_km:
                continue
            completed.extend(
                await self._complete_passed(pending, fix_index, fix.timestamp, timeline.run_period)
            )
            pending = [p for p in pending if p[1] >= fix_index]
        return completed

    # === Admin transitions ===

    async def _require_waypoint(self, waypoint_id: str) -> Waypoint:
        waypoint = await self.waypoints.get_by_id(waypoint_id)
        if waypoint is None:
            raise NotFoundError(f"Waypoint {waypoint_id} not found")
        return waypoint

    async def mark_completed(
        self,
        waypoint_id: str,
        by: CompletedBy = CompletedBy.ADMIN,
    ) -> tuple[Waypoint, bool]:
        """
        Force Pending -> Completed.

        Returns:
            Tuple of (waypoint, changed)

        Raises:
            NotFoundError: Unknown waypoint
            PersistenceFailure: If the write fails
        """
        await self._require_waypoint(waypoint_id)
        now = self.clock()
        changed = await self._transition(
            waypoint_id, True, by, now, await self._active_run_period(now)
        )
        await self._commit(f"completion of waypoint {waypoint_id}", changed)
        return await self.waypoints.get_fresh(waypoint_id), changed

    async def mark_incomplete(self, waypoint_id: str) -> tuple[Waypoint, bool]:
        """
        Force Completed -> Pending (admin only).

        Returns:
            Tuple of (waypoint, changed)
        """
        await self._require_waypoint(waypoint_id)
        now = self.clock()
        changed = await self._transition(
            waypoint_id, False, CompletedBy.ADMIN, now, await self._active_run_period(now)
        )
        await self._commit(f"reset of waypoint {waypoint_id}", changed)
        return await self.waypoints.get_fresh(waypoint_id), changed

    async def clear_all_completions(self) -> int:
        """
        Reset every completed waypoint to pending.

        This is the only bulk reset; setting a new timeline never
        triggers it.

        Returns:
            Number of waypoints reset
        """
        now = self.clock()
        run_period = await self._active_run_period(now)

        cleared = 0
        for waypoint in await self.waypoints.list_all():
            if not waypoint.is_completed:
                continue
            if await self._transition(waypoint.id, False, CompletedBy.ADMIN, now, run_period):
                cleared += 1

        await self._commit("completion reset", cleared > 0)
        logger.info(f"Cleared {cleared} waypoint completions")
        return cleared

    # === Queries ===

    async def get_completions(self) -> list[CompletionState]:
        """Current completion state of every waypoint."""
        return [
            CompletionState(
                waypoint_id=w.id,
                is_completed=w.is_completed,
                completed_at=w.completed_at,
                completed_by=w.completed_by,
            )
            for w in await self.waypoints.list_all()
        ]

    async def get_audit(self, waypoint_id: str) -> list[dict]:
        """Audit rows of one waypoint, oldest first."""
        await self._require_waypoint(waypoint_id)
        return [row.to_dict() for row in await self.audit.list_for_waypoint(waypoint_id)]
