"""
Tests for shared geographic functions.

Tests haversine distance, polyline sums and trail projection.
"""

import pytest

from trail_tracker.shared.errors import InputError
from trail_tracker.shared.geo import (
    EARTH_RADIUS_KM,
    cumulative_distances,
    distance,
    haversine,
    nearest_index,
    polyline_length,
    segment_distances,
)


# =============================================================================
# Test Haversine Distance
# =============================================================================

class TestHaversine:
    """Tests for haversine function."""

    def test_same_point(self):
        """Distance between same point should be 0."""
        assert haversine(44.0, 26.0, 44.0, 26.0) == 0.0

    def test_known_distance_bucharest_brasov(self):
        """Bucharest to Brasov is ~140 km in a straight line."""
        dist = haversine(44.4268, 26.1025, 45.6427, 25.5887)
        assert 130 < dist < 150

    def test_small_distance(self):
        """0.001 degree latitude is ~111 meters."""
        dist = haversine(44.0, 26.0, 44.001, 26.0)
        assert 0.1 < dist < 0.12

    def test_symmetry(self):
        """Distance A->B should equal B->A."""
        assert haversine(44.0, 26.0, 45.0, 27.0) == pytest.approx(
            haversine(45.0, 27.0, 44.0, 26.0), rel=1e-9
        )

    def test_north_south_distance(self):
        """1 degree latitude is ~111 km everywhere."""
        dist = haversine(0.0, 0.0, 1.0, 0.0)
        assert 110 < dist < 112

    def test_earth_radius_constant(self):
        assert EARTH_RADIUS_KM == 6371.0

    def test_distance_accepts_pairs(self):
        """distance() takes any (lat, lng) sequence."""
        assert distance([44.0, 26.0], (44.1, 26.1)) == haversine(44.0, 26.0, 44.1, 26.1)


# =============================================================================
# Test Polyline Sums
# =============================================================================

POINTS = [[44.0, 26.0], [44.1, 26.1], [44.2, 26.2]]


class TestPolyline:
    """Tests for segment, total and cumulative distances."""

    def test_segment_distances(self):
        segments = segment_distances(POINTS)
        assert len(segments) == 2
        assert segments[0] == distance(POINTS[0], POINTS[1])

    def test_length_is_sum_of_segments(self):
        assert polyline_length(POINTS) == pytest.approx(sum(segment_distances(POINTS)))

    def test_length_short_inputs(self):
        """Fewer than 2 points have zero length."""
        assert polyline_length([]) == 0.0
        assert polyline_length([[44.0, 26.0]]) == 0.0

    def test_length_is_deterministic(self):
        """Same input gives the identical float."""
        assert polyline_length(POINTS) == polyline_length(list(POINTS))

    def test_cumulative(self):
        cumulative = cumulative_distances(POINTS)
        assert cumulative[0] == 0.0
        assert len(cumulative) == len(POINTS)
        assert cumulative[-1] == polyline_length(POINTS)
        assert cumulative == sorted(cumulative)

    def test_cumulative_empty(self):
        assert cumulative_distances([]) == []


# =============================================================================
# Test Trail Projection
# =============================================================================

class TestNearestIndex:
    """Tests for projecting a fix onto trail points."""

    def test_exact_match(self):
        index, offset = nearest_index([44.1, 26.1], POINTS)
        assert index == 1
        assert offset == 0.0

    def test_nearby_point(self):
        index, offset = nearest_index([44.19, 26.19], POINTS)
        assert index == 2
        assert 0 < offset < 2

    def test_tie_picks_lowest_index(self):
        """Equidistant points resolve to the first one."""
        points = [[44.0, 26.0], [44.0, 26.0], [44.1, 26.1]]
        index, _ = nearest_index([44.0, 26.0], points)
        assert index == 0

    def test_empty_trail_raises(self):
        with pytest.raises(InputError):
            nearest_index([44.0, 26.0], [])
