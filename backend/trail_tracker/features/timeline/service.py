"""
Run Timeline Service

The run timeline gate decides whether progress and completion logic
is live. Outside the window (or with no timeline) everything that
depends on it returns inert results.
"""

import logging
import math
from datetime import datetime, timezone, tzinfo
from typing import Optional
from zoneinfo import ZoneInfo

from sqlalchemy.ext.asyncio import AsyncSession

from trail_tracker.config import settings
from trail_tracker.shared.clock import ms_to_datetime
from trail_tracker.shared.errors import InputError
from trail_tracker.shared.repository import commit_or_raise
from .repository import RunTimelineRepository
from .schemas import RunTimeline, RunTimelineRequest, RunTimelineResponse

logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 24 * 60 * 60


def _as_aware(value: datetime) -> datetime:
    """Treat naive datetimes as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _plural_days(days: int) -> str:
    return f"{days} day{'s' if days != 1 else ''}"


class RunTimelineGate:
    """
    Pure timeline checks.

    isActive(timeline, now) = start <= now <= finish
    """

    def __init__(self, tz: tzinfo = timezone.utc):
        self.tz = tz

    @classmethod
    def from_settings(cls) -> "RunTimelineGate":
        return cls(ZoneInfo(settings.timeline_timezone))

    def validate(self, timeline: RunTimeline) -> None:
        """
        Check the bounds of a timeline.

        Raises:
            InputError: If a bound is unparseable or finish is not after start
        """
        start = timeline.start_instant(self.tz)
        finish = timeline.finish_instant(self.tz)
        if finish <= start:
            raise InputError("Run finish must be after run start")

    def is_active(self, timeline: Optional[RunTimeline], now: datetime) -> bool:
        """
        Check whether the run is live at the given instant.

        A stored timeline that no longer parses is treated as inactive.
        """
        if timeline is None:
            return False
        try:
            start = timeline.start_instant(self.tz)
            finish = timeline.finish_instant(self.tz)
        except InputError as e:
            logger.error(f"Stored run timeline is invalid: {e}")
            return False
        return start <= _as_aware(now) <= finish

    def is_active_at_ms(self, timeline: Optional[RunTimeline], timestamp_ms: int) -> bool:
        """is_active for an epoch-millisecond timestamp (e.g. a fix)."""
        return self.is_active(timeline, ms_to_datetime(timestamp_ms))

    def is_date_in_run_period(self, timeline: Optional[RunTimeline], when: datetime) -> bool:
        """Alias of is_active kept for callers checking historical dates."""
        return self.is_active(timeline, when)

    def get_status(self, timeline: Optional[RunTimeline], now: datetime) -> str:
        """
        Human-readable run status.

        Returns one of: 'No run scheduled', 'Run starts in N days',
        'Run active - N days remaining', 'Run completed'.
        """
        if timeline is None:
            return "No run scheduled"

        now = _as_aware(now)
        try:
            start = timeline.start_instant(self.tz)
            finish = timeline.finish_instant(self.tz)
        except InputError:
            return "Invalid run schedule"

        if now < start:
            days = math.ceil((start - now).total_seconds() / SECONDS_PER_DAY)
            return f"Run starts in {_plural_days(days)}"
        if now > finish:
            return "Run completed"
        days = math.ceil((finish - now).total_seconds() / SECONDS_PER_DAY)
        return f"Run active - {_plural_days(days)} remaining"


class RunTimelineService:
    """Reads and mutates the live run timeline."""

    def __init__(self, db: AsyncSession, gate: Optional[RunTimelineGate] = None):
        self.db = db
        self.repo = RunTimelineRepository(db)
        self.gate = gate or RunTimelineGate.from_settings()

    async def get_timeline(self) -> Optional[RunTimeline]:
        """Get the live timeline, or None when none is set."""
        record = await self.repo.get_current()
        if record is None:
            return None
        return RunTimeline(
            start_date=record.start_date,
            start_time=record.start_time,
            finish_date=record.finish_date,
            finish_time=record.finish_time,
            updated_at=record.updated_at,
        )

    async def is_run_active(self, now: Optional[datetime] = None) -> bool:
        timeline = await self.get_timeline()
        return self.gate.is_active(timeline, now or datetime.now(timezone.utc))

    async def set_timeline(self, request: RunTimelineRequest) -> RunTimeline:
        """
        Replace the live timeline (admin only).

        Prior waypoint completions are left untouched; clearing them is
        a separate, explicit admin action.

        Raises:
            InputError: If the bounds are malformed
            PersistenceFailure: If the write fails
        """
        timeline = RunTimeline(
            start_date=request.start_date,
            start_time=request.start_time,
            finish_date=request.finish_date,
            finish_time=request.finish_time,
        )
        self.gate.validate(timeline)

        await self.repo.save(
            start_date=timeline.start_date,
            start_time=timeline.start_time,
            finish_date=timeline.finish_date,
            finish_time=timeline.finish_time,
        )
        await commit_or_raise(self.db, "run timeline", result=timeline)
        logger.info(f"Run timeline set: {timeline.run_period}")
        return await self.get_timeline()

    async def clear_timeline(self) -> bool:
        """Remove the gate entirely (admin only)."""
        existed = await self.repo.clear()
        await commit_or_raise(self.db, "run timeline removal")
        if existed:
            logger.info("Run timeline cleared")
        return existed

    async def describe(self, now: Optional[datetime] = None) -> RunTimelineResponse:
        """Timeline plus activity flag and status text."""
        now = now or datetime.now(timezone.utc)
        timeline = await self.get_timeline()
        status = self.gate.get_status(timeline, now)

        if timeline is None:
            return RunTimelineResponse(status=status)

        return RunTimelineResponse(
            start_date=timeline.start_date,
            start_time=timeline.start_time,
            finish_date=timeline.finish_date,
            finish_time=timeline.finish_time,
            updated_at=timeline.updated_at,
            run_period=timeline.run_period,
            is_active=self.gate.is_active(timeline, now),
            status=status,
        )
