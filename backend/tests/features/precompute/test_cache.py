"""
Tests for the in-process precomputation cache.
"""

import json

from trail_tracker.features.precompute import PrecomputationCache, build_track_distances
from trail_tracker.shared.clock import FakeClock
from trail_tracker.shared.constants import ComputationKey


class TestPrecomputationCache:
    """Tests for PrecomputationCache."""

    def test_miss(self):
        cache = PrecomputationCache(clock=FakeClock(0))
        assert cache.get(ComputationKey.TRACK_DISTANCES) is None
        assert ComputationKey.TRACK_DISTANCES not in cache

    def test_put_and_get(self):
        cache = PrecomputationCache(clock=FakeClock(5000))
        cache.put(ComputationKey.TRACK_DISTANCES, {"a": 1})

        entry = cache.get("trackDistances")
        assert entry.payload == {"a": 1}
        assert entry.computed_at == 5000
        assert entry.key == "trackDistances"

    def test_expires_after_ttl(self):
        clock = FakeClock(0)
        cache = PrecomputationCache(ttl_seconds=900, clock=clock)
        cache.put(ComputationKey.POPUP_DATA, {})

        clock.advance(899)
        assert ComputationKey.POPUP_DATA in cache
        clock.advance(1)
        assert cache.get(ComputationKey.POPUP_DATA) is None

    def test_get_or_compute(self):
        clock = FakeClock(0)
        cache = PrecomputationCache(ttl_seconds=60, clock=clock)
        calls = []

        def compute():
            calls.append(clock())
            return len(calls)

        assert cache.get_or_compute("x", compute).payload == 1
        assert cache.get_or_compute("x", compute).payload == 1
        clock.advance(60)
        assert cache.get_or_compute("x", compute).payload == 2
        assert calls == [0, 60_000]

    def test_invalidate(self):
        cache = PrecomputationCache(clock=FakeClock(0))
        cache.put(ComputationKey.POPUP_DATA, 1)
        cache.put(ComputationKey.TRACK_DISTANCES, 2)

        cache.invalidate([ComputationKey.POPUP_DATA, "missing"])
        assert ComputationKey.POPUP_DATA not in cache
        assert ComputationKey.TRACK_DISTANCES in cache

    def test_clear(self):
        cache = PrecomputationCache(clock=FakeClock(0))
        cache.put("a", 1)
        cache.put("b", 2)
        cache.clear()
        assert len(cache) == 0

    def test_other_scope_is_a_miss(self):
        cache = PrecomputationCache(clock=FakeClock(0))
        cache.put(ComputationKey.POPUP_DATA, {"idx": 1}, scope="trail@44.010000,26.010000")

        assert cache.get(ComputationKey.POPUP_DATA, "trail@44.070000,26.070000") is None
        assert cache.get(ComputationKey.POPUP_DATA) is None
        entry = cache.get(ComputationKey.POPUP_DATA, "trail@44.010000,26.010000")
        assert entry.payload == {"idx": 1}
        assert entry.scope == "trail@44.010000,26.010000"
        # present for some scope
        assert ComputationKey.POPUP_DATA in cache

    def test_get_or_compute_per_scope(self):
        cache = PrecomputationCache(clock=FakeClock(0))

        assert cache.get_or_compute("x", lambda: "a", scope="one").payload == "a"
        assert cache.get_or_compute("x", lambda: "b", scope="one").payload == "a"
        assert cache.get_or_compute("x", lambda: "c", scope="two").payload == "c"


class TestTrackDistances:
    """Tests for build_track_distances payload."""

    def test_shape(self, trail):
        data = build_track_distances(trail, 1000)

        assert data["pointCount"] == 10
        assert len(data["segmentDistances"]) == 9
        assert len(data["cumulativeDistances"]) == 10
        assert len(data["segmentElevations"]) == 9
        assert data["totalDistance"] == round(data["cumulativeDistances"][-1], 2)
        # 20 + 20 + 30 + 20 + 30 + 10
        assert data["totalElevationGain"] == 130
        assert data["calculatedAt"] == 1000

    def test_serialized_payload_is_stable(self, trail):
        """Two builds of the same trail serialize byte-identically."""
        first = json.dumps(build_track_distances(trail, 1000), sort_keys=True)
        second = json.dumps(json.loads(first), sort_keys=True)
        assert first == second
        assert first == json.dumps(build_track_distances(trail, 1000), sort_keys=True)
