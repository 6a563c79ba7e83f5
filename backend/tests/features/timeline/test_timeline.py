"""
Tests for the run timeline gate and service.
"""

from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo

import pytest

from trail_tracker.features.timeline import (
    RunTimeline,
    RunTimelineGate,
    RunTimelineRequest,
    RunTimelineService,
)
from trail_tracker.shared.clock import datetime_to_ms
from trail_tracker.shared.errors import InputError


# =============================================================================
# Test Data
# =============================================================================

TIMELINE = RunTimeline(
    start_date="2024-06-01",
    start_time="08:00",
    finish_date="2024-06-10",
    finish_time="20:00",
)

START = datetime(2024, 6, 1, 8, 0, tzinfo=timezone.utc)
FINISH = datetime(2024, 6, 10, 20, 0, tzinfo=timezone.utc)


# =============================================================================
# Test Gate
# =============================================================================

class TestRunTimelineGate:
    """Tests for RunTimelineGate."""

    def test_no_timeline_is_inactive(self, gate):
        assert gate.is_active(None, START) is False

    def test_bounds_are_inclusive(self, gate):
        assert gate.is_active(TIMELINE, START)
        assert gate.is_active(TIMELINE, FINISH)

    def test_outside_window(self, gate):
        assert not gate.is_active(TIMELINE, START - timedelta(seconds=1))
        assert not gate.is_active(TIMELINE, FINISH + timedelta(seconds=1))

    def test_naive_now_is_utc(self, gate):
        assert gate.is_active(TIMELINE, datetime(2024, 6, 5, 12, 0))

    def test_epoch_ms(self, gate):
        assert gate.is_active_at_ms(TIMELINE, datetime_to_ms(START))
        assert not gate.is_active_at_ms(TIMELINE, datetime_to_ms(START) - 1)

    def test_historical_date(self, gate):
        assert gate.is_date_in_run_period(TIMELINE, datetime(2024, 6, 3, tzinfo=timezone.utc))

    def test_timezone_shifts_window(self):
        """Wall-clock bounds are read in the configured timezone."""
        gate = RunTimelineGate(ZoneInfo("Europe/Bucharest"))  # UTC+3 in June
        assert not gate.is_active(TIMELINE, datetime(2024, 6, 1, 4, 59, tzinfo=timezone.utc))
        assert gate.is_active(TIMELINE, datetime(2024, 6, 1, 5, 0, tzinfo=timezone.utc))

    def test_offset_in_value_wins(self, gate):
        timeline = RunTimeline("2024-06-01", "08:00+02:00", "2024-06-10", "20:00")
        assert gate.is_active(timeline, datetime(2024, 6, 1, 6, 0, tzinfo=timezone.utc))

    def test_corrupt_timeline_is_inactive(self, gate):
        timeline = RunTimeline("not-a-date", "08:00", "2024-06-10", "20:00")
        assert not gate.is_active(timeline, START)

    def test_validate_rejects_reversed_window(self, gate):
        with pytest.raises(InputError):
            gate.validate(RunTimeline("2024-06-10", "20:00", "2024-06-01", "08:00"))

    def test_validate_rejects_empty_window(self, gate):
        with pytest.raises(InputError):
            gate.validate(RunTimeline("2024-06-01", "08:00", "2024-06-01", "08:00"))

    def test_validate_rejects_garbage(self, gate):
        with pytest.raises(InputError):
            gate.validate(RunTimeline("2024-06-01", "25:99", "2024-06-10", "20:00"))

    def test_run_period(self):
        assert TIMELINE.run_period == "2024-06-01_2024-06-10"


class TestStatus:
    """Tests for get_status text."""

    def test_no_timeline(self, gate):
        assert gate.get_status(None, START) == "No run scheduled"

    def test_upcoming(self, gate):
        assert gate.get_status(TIMELINE, START - timedelta(days=2)) == "Run starts in 2 days"

    def test_upcoming_rounds_up(self, gate):
        assert gate.get_status(TIMELINE, START - timedelta(hours=1)) == "Run starts in 1 day"

    def test_active(self, gate):
        now = FINISH - timedelta(days=3)
        assert gate.get_status(TIMELINE, now) == "Run active - 3 days remaining"

    def test_completed(self, gate):
        assert gate.get_status(TIMELINE, FINISH + timedelta(minutes=1)) == "Run completed"


# =============================================================================
# Test Request Schema
# =============================================================================

class TestRunTimelineRequest:
    """Tests for request normalization."""

    def test_iso_strings_are_split(self):
        request = RunTimelineRequest(
            startDate="2024-06-01T08:00",
            startTime="2024-06-01T08:00",
            finishDate="2024-06-10T20:00",
            finishTime="2024-06-10T20:00",
        )
        assert request.start_date == "2024-06-01"
        assert request.start_time == "08:00"
        assert request.finish_date == "2024-06-10"
        assert request.finish_time == "20:00"


# =============================================================================
# Test Service
# =============================================================================

class TestRunTimelineService:
    """Tests for RunTimelineService against a real database."""

    def test_empty(self, run_db, gate):
        async def body(db):
            service = RunTimelineService(db, gate)
            assert await service.get_timeline() is None
            assert await service.is_run_active(START) is False
            response = await service.describe(START)
            assert response.status == "No run scheduled"
            assert response.is_active is False

        run_db(body)

    def test_set_and_replace(self, run_db, gate, run_window):
        async def body(db):
            service = RunTimelineService(db, gate)
            timeline = await service.set_timeline(run_window)
            assert timeline.run_period == "2024-06-01_2024-06-10"
            assert await service.is_run_active(START + timedelta(days=1))

            await service.set_timeline(RunTimelineRequest(
                start_date="2025-01-01",
                start_time="00:00",
                finish_date="2025-01-02",
                finish_time="00:00",
            ))
            replaced = await service.get_timeline()
            assert replaced.start_date == "2025-01-01"
            assert not await service.is_run_active(START + timedelta(days=1))

        run_db(body)

    def test_invalid_timeline_is_not_stored(self, run_db, gate):
        async def body(db):
            service = RunTimelineService(db, gate)
            with pytest.raises(InputError):
                await service.set_timeline(RunTimelineRequest(
                    start_date="2024-06-10",
                    start_time="08:00",
                    finish_date="2024-06-01",
                    finish_time="08:00",
                ))
            assert await service.get_timeline() is None

        run_db(body)

    def test_clear(self, run_db, gate, run_window):
        async def body(db):
            service = RunTimelineService(db, gate)
            await service.set_timeline(run_window)
            assert await service.clear_timeline() is True
            assert await service.get_timeline() is None
            assert await service.clear_timeline() is False

        run_db(body)

    def test_describe_active(self, run_db, gate, run_window):
        async def body(db):
            service = RunTimelineService(db, gate)
            await service.set_timeline(run_window)
            response = await service.describe(START + timedelta(days=1))
            assert response.is_active is True
            assert response.run_period == "2024-06-01_2024-06-10"
            assert response.model_dump(by_alias=True)["startDate"] == "2024-06-01"

        run_db(body)
