"""
Shared utilities (NOT business logic).

Usage:
    from trail_tracker.shared import haversine, nearest_index, elevation_gain
    from trail_tracker.shared.formatters import round_distance_km
"""
from .geo import (
    haversine,
    distance,
    polyline_length,
    segment_distances,
    cumulative_distances,
    nearest_index,
    EARTH_RADIUS_KM,
)
from .elevation import (
    elevation_gain,
    segment_gains,
    calculate_elevation_changes,
)
from .formatters import (
    round_distance_km,
    round_elevation_m,
    format_distance_km,
)
from .constants import (
    WaypointType,
    CompletedBy,
    LocationSource,
    ComputationKey,
    LOCATION_DEPENDENT_KEYS,
    WAYPOINT_DEPENDENT_KEYS,
)
from .clock import Clock, FakeClock, now_ms
from .errors import InputError, NotFoundError, PersistenceFailure
from .repository import BaseRepository, commit_or_raise

__all__ = [
    # geo
    "haversine",
    "distance",
    "polyline_length",
    "segment_distances",
    "cumulative_distances",
    "nearest_index",
    "EARTH_RADIUS_KM",
    # elevation
    "elevation_gain",
    "segment_gains",
    "calculate_elevation_changes",
    # formatters
    "round_distance_km",
    "round_elevation_m",
    "format_distance_km",
    # constants
    "WaypointType",
    "CompletedBy",
    "LocationSource",
    "ComputationKey",
    "LOCATION_DEPENDENT_KEYS",
    "WAYPOINT_DEPENDENT_KEYS",
    # clock
    "Clock",
    "FakeClock",
    "now_ms",
    # errors
    "InputError",
    "NotFoundError",
    "PersistenceFailure",
    # repository
    "BaseRepository",
    "commit_or_raise",
]
