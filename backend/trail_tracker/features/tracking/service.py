"""
Tracking Service

Location ingestion and progress queries.

Ingest flow:
1. Store the fix (a retried fix with the same id and position is not
   stored twice; a different position under a known id is rejected)
2. Check the run timeline gate at "now"
3. Compute progress from the latest fix by timestamp
4. Evaluate waypoint completion for the ingested fix
5. Persist progress
6. Commit once, dropping the location-dependent cached tables; a
   failed commit raises PersistenceFailure carrying the computed response
"""

import logging
from typing import TYPE_CHECKING, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from trail_tracker.config import settings
from trail_tracker.features.timeline import RunTimeline, RunTimelineGate, RunTimelineService
from trail_tracker.features.trail import Trail, TrailStore
from trail_tracker.features.waypoints import WaypointCompletionService, order_waypoints
from trail_tracker.features.waypoints.repository import WaypointRepository
from trail_tracker.shared.clock import Clock, datetime_to_ms, now_ms
from trail_tracker.shared.constants import LOCATION_DEPENDENT_KEYS
from trail_tracker.shared.errors import InputError
from trail_tracker.shared.repository import commit_or_raise
from .calculator import (
    ProgressResult,
    calculate_progress,
    completed_segments,
    estimate_completion,
    inert_progress,
    sample_segments,
)
from .models import LocationFix, TrailProgressRecord
from .repository import LocationRepository, TrailProgressRepository
from .schemas import IngestResponse, LocationFixIn, LocationFixOut, TrailProgress

if TYPE_CHECKING:
    from trail_tracker.features.precompute import PrecomputeService

logger = logging.getLogger(__name__)


def derive_fix_id(source: str, timestamp: int, lat: float, lng: float) -> str:
    """Id for a fix that arrived without one."""
    return f"{source}_{timestamp}_{lat:.6f}_{lng:.6f}"


def _same_position(fix: LocationFix, lat: float, lng: float) -> bool:
    return round(fix.lat, 6) == round(lat, 6) and round(fix.lng, 6) == round(lng, 6)


class TrackingService:
    """Ingests location fixes and answers progress queries."""

    def __init__(
        self,
        db: AsyncSession,
        trail_store: TrailStore,
        precompute: Optional["PrecomputeService"] = None,
        gate: Optional[RunTimelineGate] = None,
        clock: Clock = now_ms,
        max_offset_km: Optional[float] = None,
        segment_sample_size: Optional[int] = None,
    ):
        self.db = db
        self.trail_store = trail_store
        self.precompute = precompute
        self.gate = gate or RunTimelineGate.from_settings()
        self.clock = clock
        self.max_offset_km = (
            max_offset_km if max_offset_km is not None else settings.off_trail_threshold_km
        )
        self.segment_sample_size = segment_sample_size or settings.progress_segment_sample_size

        self.locations = LocationRepository(db)
        self.progress = TrailProgressRepository(db)
        self.waypoints = WaypointRepository(db)
        self.timelines = RunTimelineService(db, self.gate)
        self.completions = WaypointCompletionService(
            db, self.gate, clock, self.max_offset_km, precompute
        )

    # === Ingest ===

    async def _commit(self, what: str, location_changed: bool, result=None) -> None:
        if location_changed and self.precompute is not None:
            await self.precompute.commit_invalidating(LOCATION_DEPENDENT_KEYS, what, result=result)
        else:
            await commit_or_raise(self.db, what, result=result)

    async def _store_fix(self, fix_in: LocationFixIn, now: int) -> LocationFix:
        timestamp = fix_in.timestamp if fix_in.timestamp is not None else now
        fix_id = fix_in.id or derive_fix_id(fix_in.source, timestamp, fix_in.lat, fix_in.lng)

        existing = await self.locations.get_by_id(fix_id)
        if existing is not None:
            if not _same_position(existing, fix_in.lat, fix_in.lng):
                raise InputError(
                    f"Fix {fix_id} already stored at a different position "
                    f"({existing.lat:.6f}, {existing.lng:.6f})"
                )
            logger.info(f"Fix {fix_id} already stored, recomputing only")
            return existing

        return await self.locations.create(
            id=fix_id,
            lat=fix_in.lat,
            lng=fix_in.lng,
            timestamp=timestamp,
            accuracy=fix_in.accuracy,
            elevation=fix_in.elevation,
            source=fix_in.source,
        )

    def _build_progress(
        self,
        result: ProgressResult,
        fix: LocationFix,
        trail: Trail,
        timeline: Optional[RunTimeline],
        now: int,
    ) -> TrailProgress:
        segments = []
        if result.is_active and not result.off_trail:
            segments = sample_segments(
                completed_segments(trail.points, result.nearest_index, now),
                self.segment_sample_size,
            )

        estimated = None
        if result.is_active and timeline is not None:
            start_ms = datetime_to_ms(timeline.start_instant(self.gate.tz))
            estimated = estimate_completion(
                result.completed_distance, result.total_distance, start_ms, now
            )

        return TrailProgress(
            completed_distance=round(result.completed_distance, 2),
            completed_elevation_gain=round(result.completed_elevation_gain),
            progress_percentage=result.progress_percentage,
            last_location=LocationFixOut.model_validate(fix),
            completed_segments=[s.to_dict() for s in segments],
            estimated_completion=estimated,
            last_updated=now,
            is_active=result.is_active,
        )

    async def ingest(self, fix_in: LocationFixIn) -> IngestResponse:
        """
        Ingest one fix and update progress.

        Outside the active window the fix is stored but the stored
        progress is left frozen and an inert result is returned.

        Raises:
            InputError: If the trail cannot be measured, or the fix id is
                already stored with a different position
            PersistenceFailure: If the unit of work cannot be committed
        """
        now = self.clock()
        trail = self.trail_store.get()
        trail.require_distance_ready()

        fix = await self._store_fix(fix_in, now)
        latest = await self.locations.get_latest()
        timeline = await self.timelines.get_timeline()
        active = self.gate.is_active_at_ms(timeline, now)

        result = calculate_progress((latest.lat, latest.lng), trail, active, self.max_offset_km)
        progress = self._build_progress(result, latest, trail, timeline, now)

        if active:
            await self.progress.save(
                completed_distance=progress.completed_distance,
                completed_elevation_gain=progress.completed_elevation_gain,
                progress_percentage=progress.progress_percentage,
                last_location=latest.to_dict(),
                completed_segments=[s.model_dump(by_alias=True) for s in progress.completed_segments],
                estimated_completion=progress.estimated_completion,
                last_updated=now,
            )

        projection = None
        if latest.id == fix.id and result.nearest_index is not None:
            projection = (result.nearest_index, result.distance_from_trail_km)
        completed_ids = await self.completions.evaluate_fix(fix, trail, timeline, projection)

        response = IngestResponse(
            location=LocationFixOut.model_validate(fix),
            progress=progress,
            completed_waypoints=completed_ids,
            off_trail=result.off_trail,
            distance_from_trail=(
                round(result.distance_from_trail_km, 2)
                if result.distance_from_trail_km is not None else None
            ),
        )
        await self._commit(f"location fix {fix.id}", True, result=response)

        logger.info(
            f"Fix {fix.id} from {fix.source}: "
            f"{progress.completed_distance:.2f} km ({progress.progress_percentage:.1f}%), "
            f"active={active}, completed waypoints={completed_ids or 'none'}"
        )
        return response

    async def reevaluate_waypoints(self) -> list[str]:
        """
        Replay the stored location history of the live run window.

        Used after waypoints are added or a timeline is set while fixes
        were already recorded.
        """
        timeline = await self.timelines.get_timeline()
        if timeline is None:
            return []

        trail = self.trail_store.get()
        trail.require_distance_ready()
        fixes = await self.locations.list_between(
            datetime_to_ms(timeline.start_instant(self.gate.tz)),
            datetime_to_ms(timeline.finish_instant(self.gate.tz)),
        )
        completed = await self.completions.evaluate_history(fixes, trail, timeline)
        await self._commit("waypoint re-evaluation", bool(completed))
        logger.info(f"Re-evaluated {len(fixes)} fixes, completed {len(completed)} waypoints")
        return completed

    # === Queries ===

    def _from_record(self, record: TrailProgressRecord, active: bool) -> TrailProgress:
        if not active:
            return TrailProgress(
                last_location=record.last_location,
                last_updated=record.last_updated,
                is_active=False,
            )
        return TrailProgress(
            completed_distance=record.completed_distance,
            completed_elevation_gain=record.completed_elevation_gain,
            progress_percentage=record.progress_percentage,
            last_location=record.last_location,
            completed_segments=record.completed_segments or [],
            estimated_completion=record.estimated_completion,
            last_updated=record.last_updated,
        )

    async def get_progress(self) -> Optional[TrailProgress]:
        """
        Stored progress, or None if nothing was ever recorded.

        Outside the active window the result is inert (zero) with the
        last known location.
        """
        record = await self.progress.get_current()
        if record is None:
            return None
        timeline = await self.timelines.get_timeline()
        return self._from_record(record, self.gate.is_active_at_ms(timeline, self.clock()))

    async def get_live_progress(self) -> dict:
        """Completed/remaining split for the latest fix plus sorted waypoints."""
        trail = self.trail_store.get()
        trail.require_distance_ready()

        latest = await self.locations.get_latest()
        timeline = await self.timelines.get_timeline()
        active = self.gate.is_active_at_ms(timeline, self.clock())

        if latest is None:
            result = inert_progress(trail)
            result.is_active = active
        else:
            result = calculate_progress((latest.lat, latest.lng), trail, active, self.max_offset_km)

        result.sorted_waypoints = [
            {
                "id": o.id,
                "name": o.waypoint.name,
                "type": o.waypoint.type,
                "coordinates": {"lat": o.waypoint.lat, "lng": o.waypoint.lng},
                "trackIndex": o.track_index,
                "isCompleted": o.waypoint.is_completed,
            }
            for o in order_waypoints(await self.waypoints.list_all(), trail)
        ]
        return result.to_dict()

    async def get_latest_location(self) -> Optional[LocationFix]:
        return await self.locations.get_latest()

    async def list_locations(self, limit: int = 100) -> list[LocationFix]:
        return await self.locations.list_recent(limit)

    async def clear_progress(self) -> bool:
        """Delete the stored progress row (admin only)."""
        record = await self.progress.get_current()
        if record is None:
            return False
        await self.progress.delete(record)
        await commit_or_raise(self.db, "progress reset")
        logger.info("Stored trail progress cleared")
        return True
