"""
Tests for TrackingService against an in-memory database.
"""

from datetime import datetime, timezone

import pytest

from trail_tracker.features.precompute import PrecomputationCache, PrecomputeService
from trail_tracker.features.timeline import RunTimelineService
from trail_tracker.features.tracking import LocationFixIn, TrackingService
from trail_tracker.features.trail import TrailStore
from trail_tracker.features.waypoints import Coordinates, WaypointCreate, WaypointService
from trail_tracker.shared.clock import datetime_to_ms
from trail_tracker.shared.constants import ComputationKey
from trail_tracker.shared.errors import InputError
from trail_tracker.shared.geo import polyline_length


AFTER_RUN = datetime(2024, 6, 20, 12, 0, tzinfo=timezone.utc)


def fix_at(trail, index: int, **kwargs) -> LocationFixIn:
    """Fix placed exactly on a trail point."""
    point = trail.points[index]
    return LocationFixIn(lat=point.lat, lng=point.lng, **kwargs)


@pytest.fixture
def make_service(trail, gate, clock):
    def factory(db) -> TrackingService:
        return TrackingService(db, TrailStore.from_trail(trail), gate=gate, clock=clock)
    return factory


# =============================================================================
# Test Ingest
# =============================================================================

class TestIngest:
    """Tests for TrackingService.ingest."""

    def test_active_run_stores_progress(self, run_db, trail, gate, run_window, make_service):
        async def body(db):
            await RunTimelineService(db, gate).set_timeline(run_window)
            service = make_service(db)

            response = await service.ingest(fix_at(trail, 4, source="garmin-inreach"))

            expected_km = polyline_length(trail.points[:5])
            assert response.success is True
            assert response.off_trail is False
            assert response.progress.is_active is True
            assert response.progress.completed_distance == pytest.approx(round(expected_km, 2))
            assert len(response.progress.completed_segments) == 4
            assert response.progress.estimated_completion is not None

            stored = await service.get_progress()
            assert stored.completed_distance == response.progress.completed_distance
            assert stored.last_location.source == "garmin-inreach"
            assert stored.completed_segments[0].id == "segment_0_1"

        run_db(body)

    def test_default_fix_id(self, run_db, trail, clock, make_service):
        async def body(db):
            point = trail.points[1]
            response = await make_service(db).ingest(fix_at(trail, 1))
            assert response.location.id == (
                f"manual-test_{clock()}_{point.lat:.6f}_{point.lng:.6f}"
            )
            assert response.location.timestamp == clock()

        run_db(body)

    def test_no_timeline_is_inert(self, run_db, trail, make_service):
        """Fixes are stored but no progress is recorded."""
        async def body(db):
            service = make_service(db)
            response = await service.ingest(fix_at(trail, 8))

            assert response.progress.is_active is False
            assert response.progress.completed_distance == 0
            assert response.completed_waypoints == []
            assert await service.get_progress() is None
            assert len(await service.list_locations()) == 1

        run_db(body)

    def test_duplicate_fix_is_stored_once(self, run_db, trail, make_service):
        async def body(db):
            service = make_service(db)
            await service.ingest(fix_at(trail, 2, id="msg-1"))
            await service.ingest(fix_at(trail, 2, id="msg-1"))

            locations = await service.list_locations()
            assert [f.id for f in locations] == ["msg-1"]

        run_db(body)

    def test_same_timestamp_different_position_is_kept(
        self, run_db, trail, clock, make_service
    ):
        """Two fixes without ids in the same millisecond are both stored."""
        async def body(db):
            service = make_service(db)
            first = await service.ingest(fix_at(trail, 3, timestamp=clock()))
            second = await service.ingest(fix_at(trail, 7, timestamp=clock()))

            assert first.location.id != second.location.id
            assert second.location.lat == trail.points[7].lat
            assert len(await service.list_locations()) == 2

        run_db(body)

    def test_known_id_with_other_position_is_rejected(self, run_db, trail, make_service):
        async def body(db):
            service = make_service(db)
            await service.ingest(fix_at(trail, 2, id="msg-1"))

            with pytest.raises(InputError, match="different position"):
                await service.ingest(fix_at(trail, 7, id="msg-1"))

        run_db(body)

    def test_progress_follows_latest_timestamp(
        self, run_db, trail, gate, clock, run_window, make_service
    ):
        """A late-arriving older fix does not move the runner backwards."""
        async def body(db):
            await RunTimelineService(db, gate).set_timeline(run_window)
            service = make_service(db)

            first = await service.ingest(fix_at(trail, 6, timestamp=clock()))
            late = await service.ingest(fix_at(trail, 2, timestamp=clock() - 60_000))

            assert late.progress.completed_distance == first.progress.completed_distance
            assert (await service.get_latest_location()).timestamp == clock()

        run_db(body)

    def test_off_trail_fix(self, run_db, gate, run_window, make_service):
        async def body(db):
            await RunTimelineService(db, gate).set_timeline(run_window)
            response = await make_service(db).ingest(LocationFixIn(lat=50.0, lng=30.0))

            assert response.off_trail is True
            assert response.distance_from_trail > 5
            assert response.progress.completed_distance == 0

        run_db(body)

    def test_passing_waypoint_completes_it(
        self, run_db, trail, gate, clock, run_window, make_service
    ):
        async def body(db):
            await RunTimelineService(db, gate).set_timeline(run_window)
            point = trail.points[5]
            waypoint = await WaypointService(db).create_waypoint(WaypointCreate(
                name="Aid Station",
                coordinates=Coordinates(lat=point.lat, lng=point.lng),
            ))
            service = make_service(db)

            before = await service.ingest(fix_at(trail, 3, timestamp=clock() - 60_000))
            after = await service.ingest(fix_at(trail, 7, timestamp=clock()))
            assert before.completed_waypoints == []
            assert after.completed_waypoints == [waypoint.id]

            live = await service.get_live_progress()
            assert live["sortedWaypoints"][0]["id"] == waypoint.id
            assert live["sortedWaypoints"][0]["trackIndex"] == 5
            assert live["sortedWaypoints"][0]["isCompleted"] is True

        run_db(body)


# =============================================================================
# Test Queries
# =============================================================================

class TestProgressQueries:
    """Tests for progress reads."""

    def test_nothing_recorded(self, run_db, make_service):
        async def body(db):
            assert await make_service(db).get_progress() is None

        run_db(body)

    def test_outside_window_is_inert(self, run_db, trail, gate, clock, run_window, make_service):
        """After the run, progress reads as zero but keeps the last location."""
        async def body(db):
            await RunTimelineService(db, gate).set_timeline(run_window)
            service = make_service(db)
            await service.ingest(fix_at(trail, 5, id="last"))

            clock.current_ms = datetime_to_ms(AFTER_RUN)
            progress = await service.get_progress()

            assert progress.is_active is False
            assert progress.completed_distance == 0
            assert progress.last_location.id == "last"

        run_db(body)

    def test_inactive_ingest_keeps_stored_progress(
        self, run_db, trail, gate, clock, run_window, make_service
    ):
        async def body(db):
            await RunTimelineService(db, gate).set_timeline(run_window)
            service = make_service(db)
            before = await service.ingest(fix_at(trail, 5))

            clock.current_ms = datetime_to_ms(AFTER_RUN)
            await service.ingest(fix_at(trail, 9))
            record = await service.progress.get_current()

            assert record.completed_distance == before.progress.completed_distance

        run_db(body)

    def test_live_progress_without_fixes(self, run_db, make_service):
        async def body(db):
            live = await make_service(db).get_live_progress()
            assert live["completedPoints"] == []
            assert live["progressPercentage"] == 0
            assert live["sortedWaypoints"] == []

        run_db(body)

    def test_clear_progress(self, run_db, trail, gate, run_window, make_service):
        async def body(db):
            await RunTimelineService(db, gate).set_timeline(run_window)
            service = make_service(db)
            await service.ingest(fix_at(trail, 5))

            assert await service.clear_progress() is True
            assert await service.get_progress() is None
            assert await service.clear_progress() is False

        run_db(body)


# =============================================================================
# Test Re-evaluation
# =============================================================================

class TestReevaluate:
    """Tests for replaying stored fixes."""

    def test_replay_after_timeline_is_set(self, run_db, trail, gate, run_window, make_service):
        async def body(db):
            service = make_service(db)
            point = trail.points[2]
            waypoint = await WaypointService(db).create_waypoint(WaypointCreate(
                name="Summit",
                coordinates=Coordinates(lat=point.lat, lng=point.lng),
            ))

            # No timeline yet: nothing completes
            await service.ingest(fix_at(trail, 4))
            assert (await service.ingest(fix_at(trail, 4))).completed_waypoints == []

            await RunTimelineService(db, gate).set_timeline(run_window)
            assert await service.reevaluate_waypoints() == [waypoint.id]
            assert await service.reevaluate_waypoints() == []

        run_db(body)

    def test_no_timeline(self, run_db, make_service):
        async def body(db):
            assert await make_service(db).reevaluate_waypoints() == []

        run_db(body)


# =============================================================================
# Test Cached Tables
# =============================================================================

class TestIngestWithPrecompute:
    """Ingest wired to a PrecomputeService."""

    @pytest.fixture
    def cache(self, clock) -> PrecomputationCache:
        return PrecomputationCache(ttl_seconds=900, clock=clock)

    @pytest.fixture
    def make_wired(self, trail, gate, clock, cache):
        def factory(db) -> TrackingService:
            store = TrailStore.from_trail(trail)
            precompute = PrecomputeService(db, cache, store)
            return TrackingService(db, store, precompute, gate=gate, clock=clock)
        return factory

    async def add_waypoints(self, db, trail, *indices):
        for index in indices:
            point = trail.points[index]
            await WaypointService(db).create_waypoint(WaypointCreate(
                name=f"Waypoint {index}",
                coordinates=Coordinates(lat=point.lat, lng=point.lng),
            ))

    def test_one_scan_per_fix_once_positions_are_cached(
        self, run_db, trail, gate, clock, run_window, make_wired, trail_scans
    ):
        async def body(db):
            await RunTimelineService(db, gate).set_timeline(run_window)
            await self.add_waypoints(db, trail, 2, 5, 8)
            service = make_wired(db)

            await service.ingest(fix_at(trail, 1, timestamp=clock() - 2000))
            # progress projection + one projection per waypoint
            assert trail_scans.calls == 1 + 3

            trail_scans.calls = 0
            response = await service.ingest(fix_at(trail, 6, timestamp=clock() - 1000))
            assert len(response.completed_waypoints) == 2
            assert trail_scans.calls == 1

        run_db(body)

    def test_location_tables_dropped_after_ingest(
        self, run_db, trail, gate, clock, cache, run_window, make_wired
    ):
        async def body(db):
            await RunTimelineService(db, gate).set_timeline(run_window)
            await self.add_waypoints(db, trail, 5)
            service = make_wired(db)

            await service.ingest(fix_at(trail, 1, timestamp=clock() - 1000))
            here = tuple(trail.points[1])
            await service.precompute.popup_data(here)
            assert ComputationKey.POPUP_DATA in cache

            await service.ingest(fix_at(trail, 4, timestamp=clock()))
            assert ComputationKey.POPUP_DATA not in cache
            assert await service.precompute.rows.get("popupData") is None

            latest = await service.get_latest_location()
            popups = await service.precompute.popup_data((latest.lat, latest.lng))
            assert next(iter(popups.values()))["currentLocationIndex"] == 4

        run_db(body)
