"""
Unified constants for waypoints, completions and cached computations.

This module provides a single source of truth for the string values
shared between the database, the API payloads and the engine.
"""

from enum import Enum


class WaypointType(str, Enum):
    """Kinds of administrator-defined waypoints."""
    INTERMEDIARY = "intermediary"
    FINISH_START = "finish-start"


class CompletedBy(str, Enum):
    """Who caused a waypoint transition."""
    AUTO = "auto"
    ADMIN = "admin"


class LocationSource(str, Enum):
    """Known ingestion paths for location fixes."""
    GARMIN_INREACH = "garmin-inreach"
    MANUAL_TEST = "manual-test"
    TEST_ENDPOINT = "test-endpoint"
    POLL = "poll"


class ComputationKey(str, Enum):
    """
    Names of cacheable computations.

    Values match the camelCase keys consumers already read.
    """
    TRACK_DISTANCES = "trackDistances"
    WAYPOINT_POSITIONS = "waypointPositions"
    WAYPOINT_DISTANCES = "waypointDistances"
    POPUP_DATA = "popupData"
    ALL_WAYPOINT_DATA = "allWaypointData"
    CURRENT_LOCATION_DISTANCES = "currentLocationDistances"


# Computations that depend on the latest location fix
LOCATION_DEPENDENT_KEYS: list[ComputationKey] = [
    ComputationKey.POPUP_DATA,
    ComputationKey.ALL_WAYPOINT_DATA,
    ComputationKey.CURRENT_LOCATION_DISTANCES,
]

# Computations that depend on the waypoint set
WAYPOINT_DEPENDENT_KEYS: list[ComputationKey] = [
    ComputationKey.WAYPOINT_POSITIONS,
    ComputationKey.WAYPOINT_DISTANCES,
    ComputationKey.POPUP_DATA,
    ComputationKey.ALL_WAYPOINT_DATA,
    ComputationKey.CURRENT_LOCATION_DISTANCES,
]

# Rounding used in every emitted payload
DISTANCE_DECIMALS = 2

# Single-row tables (trail progress, run timeline)
SINGLETON_ROW_ID = 1
