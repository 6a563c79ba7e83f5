"""
Tests for TrailStore TTL reloading.
"""

import logging

import pytest

from trail_tracker.features.trail import Trail, TrailStore
from trail_tracker.shared.clock import FakeClock
from trail_tracker.shared.errors import InputError


TRAIL_A = Trail.from_points([[44.0, 26.0], [44.1, 26.1]], name="A")
TRAIL_B = Trail.from_points([[45.0, 27.0], [45.1, 27.1]], name="B")


class CountingLoader:
    """Loader that serves a scripted sequence of trails or errors."""

    def __init__(self, *results):
        self.results = list(results)
        self.calls = 0

    def __call__(self) -> Trail:
        result = self.results[min(self.calls, len(self.results) - 1)]
        self.calls += 1
        if isinstance(result, Exception):
            raise result
        return result


class TestTrailStore:
    """Tests for TrailStore."""

    def test_loads_lazily_once(self):
        loader = CountingLoader(TRAIL_A)
        store = TrailStore(loader, ttl_seconds=300, clock=FakeClock(0))

        assert store.peek() is None
        assert store.get() is TRAIL_A
        assert store.get() is TRAIL_A
        assert loader.calls == 1

    def test_reloads_after_ttl(self):
        clock = FakeClock(0)
        loader = CountingLoader(TRAIL_A, TRAIL_B)
        store = TrailStore(loader, ttl_seconds=300, clock=clock)

        store.get()
        clock.advance(299)
        assert store.get() is TRAIL_A
        clock.advance(1)
        assert store.get() is TRAIL_B
        assert loader.calls == 2

    def test_changed_content_is_logged(self, caplog):
        clock = FakeClock(0)
        store = TrailStore(CountingLoader(TRAIL_A, TRAIL_B), ttl_seconds=60, clock=clock)

        store.get()
        clock.advance(61)
        with caplog.at_level(logging.INFO, logger="trail_tracker.features.trail.store"):
            store.get()
        assert "Trail content changed on reload" in caplog.text

    def test_failed_reload_keeps_previous_trail(self):
        clock = FakeClock(0)
        loader = CountingLoader(TRAIL_A, InputError("file gone"))
        store = TrailStore(loader, ttl_seconds=60, clock=clock)

        store.get()
        clock.advance(61)
        assert store.get() is TRAIL_A

    def test_first_load_failure_raises(self):
        store = TrailStore(CountingLoader(InputError("file gone")), clock=FakeClock(0))
        with pytest.raises(InputError):
            store.get()

    def test_invalidate_forces_reload(self):
        loader = CountingLoader(TRAIL_A, TRAIL_B)
        store = TrailStore(loader, ttl_seconds=300, clock=FakeClock(0))

        store.get()
        store.invalidate()
        assert store.get() is TRAIL_B

    def test_from_trail_never_expires(self):
        clock = FakeClock(0)
        store = TrailStore.from_trail(TRAIL_A, clock=clock)
        clock.advance(10_000)
        assert store.get() is TRAIL_A

    def test_from_missing_gpx_file(self, tmp_path):
        store = TrailStore.from_gpx_file(tmp_path / "none.gpx")
        with pytest.raises(InputError):
            store.get()
