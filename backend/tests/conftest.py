"""
Shared test setup.

The environment is pinned before any trail_tracker import so settings
pick up an in-memory database and a known admin key.
"""

import os

os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("ADMIN_API_KEY", "test-admin-key")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import asyncio
from datetime import datetime, timezone

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from trail_tracker.db.session import create_engine_for_url, init_db
from trail_tracker.features.trail import Trail
from trail_tracker.features.timeline import RunTimelineGate, RunTimelineRequest
from trail_tracker.shared.clock import FakeClock, datetime_to_ms


# =============================================================================
# Test Data
# =============================================================================

# 10 points heading north-east, ~1.4 km apart, climbing then dipping
STRAIGHT_POINTS = [[44.0 + i * 0.01, 26.0 + i * 0.01] for i in range(10)]
STRAIGHT_ELEVATIONS = [100, 120, 140, 130, 160, 180, 170, 200, 210, 205]

# Run window used by the DB tests
RUN_WINDOW = RunTimelineRequest(
    start_date="2024-06-01",
    start_time="08:00",
    finish_date="2024-06-10",
    finish_time="20:00",
)
DURING_RUN = datetime(2024, 6, 5, 12, 0, tzinfo=timezone.utc)


def make_trail(points=None, elevations=None) -> Trail:
    """Trail from [lat, lng] pairs, defaulting to the straight test trail."""
    return Trail.from_points(
        points if points is not None else STRAIGHT_POINTS,
        elevations if elevations is not None else STRAIGHT_ELEVATIONS,
        name="Test Trail",
    )


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def trail() -> Trail:
    return make_trail()


@pytest.fixture
def run_window() -> RunTimelineRequest:
    """2024-06-01 08:00 .. 2024-06-10 20:00 UTC."""
    return RUN_WINDOW


@pytest.fixture
def gate() -> RunTimelineGate:
    return RunTimelineGate(timezone.utc)


@pytest.fixture
def clock() -> FakeClock:
    """Clock parked in the middle of RUN_WINDOW."""
    return FakeClock(datetime_to_ms(DURING_RUN))


@pytest.fixture
def run_db():
    """
    Run an async test body against a fresh in-memory database.

    Usage:
        def test_x(run_db):
            async def body(db): ...
            run_db(body)
    """
    def runner(body):
        async def main():
            engine = create_engine_for_url("sqlite:///:memory:")
            await init_db(engine)
            session_factory = async_sessionmaker(
                engine, class_=AsyncSession, expire_on_commit=False
            )
            try:
                async with session_factory() as db:
                    return await body(db)
            finally:
                await engine.dispose()

        return asyncio.run(main())

    return runner


class CountingScan:
    """Wraps nearest_index and counts trail scans."""

    def __init__(self, scan):
        self.scan = scan
        self.calls = 0

    def __call__(self, *args, **kwargs):
        self.calls += 1
        return self.scan(*args, **kwargs)


@pytest.fixture
def trail_scans(monkeypatch) -> CountingScan:
    """Counts nearest_index calls made by the calculator, ordering and completion."""
    from trail_tracker.features.tracking import calculator
    from trail_tracker.features.waypoints import completion, ordering
    from trail_tracker.shared import geo

    counter = CountingScan(geo.nearest_index)
    for module in (calculator, completion, ordering):
        monkeypatch.setattr(module, "nearest_index", counter)
    return counter
