"""
Geographic utility functions.

This is the SINGLE SOURCE OF TRUTH for geographic calculations.
DO NOT duplicate these functions elsewhere.

Points are any (lat, lng) sequence, so TrailPoint tuples and plain
[lat, lng] lists from JSON payloads are both accepted.
"""
import math
from typing import Sequence, Tuple

from trail_tracker.shared.errors import InputError

# Earth radius in kilometers
EARTH_RADIUS_KM = 6371.0

LatLng = Sequence[float]


def haversine(
    lat1: float, lon1: float,
    lat2: float, lon2: float
) -> float:
    """
    Calculate great-circle distance between two points.

    Args:
        lat1, lon1: First point coordinates (degrees)
        lat2, lon2: Second point coordinates (degrees)

    Returns:
        Distance in kilometers
    """
    lat1_rad = math.radians(lat1)
    lat2_rad = math.radians(lat2)
    delta_lat = math.radians(lat2 - lat1)
    delta_lon = math.radians(lon2 - lon1)

    a = (
        math.sin(delta_lat / 2) ** 2 +
        math.cos(lat1_rad) * math.cos(lat2_rad) *
        math.sin(delta_lon / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))

    return EARTH_RADIUS_KM * c


def distance(a: LatLng, b: LatLng) -> float:
    """Great-circle distance in km between two (lat, lng) points."""
    return haversine(a[0], a[1], b[0], b[1])


def segment_distances(points: Sequence[LatLng]) -> list[float]:
    """Distance of every consecutive pair, in order."""
    return [distance(points[i - 1], points[i]) for i in range(1, len(points))]


def polyline_length(points: Sequence[LatLng]) -> float:
    """
    Calculate total length of a polyline.

    The sum runs left to right so identical inputs always give
    identical floats.

    Args:
        points: Ordered (lat, lng) points

    Returns:
        Total distance in kilometers (0 for fewer than 2 points)
    """
    total = 0.0

    for i in range(1, len(points)):
        total += distance(points[i - 1], points[i])

    return total


def cumulative_distances(points: Sequence[LatLng]) -> list[float]:
    """
    Running distance from the first point to every point.

    Returns:
        List the same length as points, starting with 0.0
    """
    if not points:
        return []

    result = [0.0]
    total = 0.0
    for i in range(1, len(points)):
        total += distance(points[i - 1], points[i])
        result.append(total)
    return result


def nearest_index(target: LatLng, points: Sequence[LatLng]) -> Tuple[int, float]:
    """
    Project a coordinate onto the closest trail point.

    Linear scan; on exact ties the lowest index wins.

    Args:
        target: (lat, lng) to project
        points: Trail points

    Returns:
        Tuple of (index, distance_km)

    Raises:
        InputError: If points is empty
    """
    if not points:
        raise InputError("Cannot project onto an empty trail")

    closest_index = 0
    min_distance = math.inf

    for i, point in enumerate(points):
        d = distance(target, point)
        if d < min_distance:
            min_distance = d
            closest_index = i

    return closest_index, min_distance
