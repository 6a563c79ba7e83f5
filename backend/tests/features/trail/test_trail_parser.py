"""
Tests for GPX parsing and the Trail value type.
"""

import pytest

from trail_tracker.config import CONTENT_DIR
from trail_tracker.features.trail import GPXTrailParser, Trail, TrailPoint
from trail_tracker.shared.errors import InputError


# =============================================================================
# Test Data
# =============================================================================

GPX_TRACK = """<?xml version="1.0" encoding="UTF-8"?>
<gpx version="1.1" creator="test" xmlns="http://www.topografix.com/GPX/1/1">
  <trk>
    <name>Ridge Loop</name>
    <trkseg>
      <trkpt lat="44.0" lon="26.0"><ele>100</ele></trkpt>
      <trkpt lat="44.1" lon="26.1"><ele>120</ele></trkpt>
      <trkpt lat="0" lon="0"><ele>0</ele></trkpt>
    </trkseg>
    <trkseg>
      <trkpt lat="44.2" lon="26.2"></trkpt>
    </trkseg>
  </trk>
</gpx>
"""

GPX_ROUTE = """<?xml version="1.0" encoding="UTF-8"?>
<gpx version="1.1" creator="test" xmlns="http://www.topografix.com/GPX/1/1">
  <rte>
    <rtept lat="44.0" lon="26.0"/>
    <rtept lat="44.1" lon="26.1"/>
  </rte>
</gpx>
"""

GPX_EMPTY = """<?xml version="1.0" encoding="UTF-8"?>
<gpx version="1.1" creator="test" xmlns="http://www.topografix.com/GPX/1/1">
</gpx>
"""


# =============================================================================
# Test Parser
# =============================================================================

class TestGPXTrailParser:
    """Tests for GPXTrailParser."""

    def test_flattens_segments(self):
        trail = GPXTrailParser.parse(GPX_TRACK)
        assert trail.points == (
            TrailPoint(44.0, 26.0),
            TrailPoint(44.1, 26.1),
            TrailPoint(44.2, 26.2),
        )
        assert trail.name == "Ridge Loop"

    def test_elevations_stay_aligned(self):
        """Dropped points drop their elevation, missing ones become None."""
        trail = GPXTrailParser.parse(GPX_TRACK.encode("utf-8"))
        assert trail.elevations == (100, 120, None)

    def test_route_fallback(self):
        trail = GPXTrailParser.parse(GPX_ROUTE)
        assert len(trail) == 2
        assert not trail.has_elevation

    def test_no_points(self):
        with pytest.raises(InputError):
            GPXTrailParser.parse(GPX_EMPTY)

    def test_invalid_xml(self):
        with pytest.raises(InputError):
            GPXTrailParser.parse("<gpx><trk>")

    def test_load_file(self, tmp_path):
        path = tmp_path / "trail.gpx"
        path.write_text(GPX_TRACK, encoding="utf-8")
        assert len(GPXTrailParser.load_file(path)) == 3

    def test_bundled_sample_trail(self):
        trail = GPXTrailParser.load_file(CONTENT_DIR / "gpx" / "trail.gpx")
        assert len(trail) == 16
        assert trail.has_elevation
        trail.require_distance_ready()

    def test_load_missing_file(self, tmp_path):
        with pytest.raises(InputError):
            GPXTrailParser.load_file(tmp_path / "missing.gpx")

    def test_load_tiny_file(self, tmp_path):
        path = tmp_path / "tiny.gpx"
        path.write_text("<gpx/>", encoding="utf-8")
        with pytest.raises(InputError, match="too small"):
            GPXTrailParser.load_file(path)


# =============================================================================
# Test Trail
# =============================================================================

class TestTrail:
    """Tests for Trail construction."""

    def test_from_points(self):
        trail = Trail.from_points([[44.0, 26.0], [44.1, 26.1]], [100, "bad"])
        assert trail.points[1] == TrailPoint(44.1, 26.1)
        assert trail.elevations == (100.0, None)

    def test_rejects_malformed_point(self):
        with pytest.raises(InputError):
            Trail.from_points([[44.0, 26.0], [44.1]])

    def test_rejects_nan(self):
        with pytest.raises(InputError):
            Trail.from_points([[44.0, 26.0], [float("nan"), 26.1]])

    def test_require_distance_ready(self):
        Trail.from_points([[44.0, 26.0], [44.1, 26.1]]).require_distance_ready()
        with pytest.raises(InputError):
            Trail.from_points([[44.0, 26.0]]).require_distance_ready()

    def test_payload_round_trip(self):
        payload = {
            "tracks": [{
                "name": "Ridge Loop",
                "points": [[44.0, 26.0], [44.1, 26.1]],
                "elevation": [100.0, 120.0],
            }]
        }
        assert Trail.from_payload(payload).to_payload() == payload

    def test_payload_without_tracks(self):
        with pytest.raises(InputError):
            Trail.from_payload({"tracks": []})

    def test_fingerprint_follows_geometry(self):
        trail = Trail.from_points([[44.0, 26.0], [44.1, 26.1]], [100, 120], name="A")
        renamed = Trail.from_points([[44.0, 26.0], [44.1, 26.1]], [100, 120], name="B")
        moved = Trail.from_points([[44.0, 26.0], [44.1, 26.2]], [100, 120], name="A")

        assert trail.fingerprint == renamed.fingerprint
        assert trail.fingerprint != moved.fingerprint
        assert len(trail.fingerprint) == 16
