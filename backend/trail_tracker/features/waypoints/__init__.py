"""
Waypoints module.

Usage:
    from trail_tracker.features.waypoints import order_waypoints, WaypointCompletionService

Components:
- Waypoint / WaypointCompletion: SQLAlchemy models
- ordering: projection-based ordering and distance tables (pure)
- WaypointCompletionService: Pending/Completed state machine
- WaypointService: administration
"""

from .models import Waypoint, WaypointCompletion
from .schemas import (
    Coordinates,
    WaypointCreate,
    WaypointUpdate,
    WaypointResponse,
    CompletionState,
)
from .ordering import (
    OrderedWaypoint,
    order_waypoints,
    span_between,
    waypoint_positions,
    waypoint_distances,
    waypoint_legs,
    popup_data,
    current_location_distances,
    next_waypoint_progress,
    all_waypoint_data,
    straight_line_waypoints,
)
from .repository import WaypointRepository, WaypointCompletionRepository
from .completion import WaypointCompletionService
from .service import WaypointService

__all__ = [
    # Models
    "Waypoint",
    "WaypointCompletion",
    # Schemas
    "Coordinates",
    "WaypointCreate",
    "WaypointUpdate",
    "WaypointResponse",
    "CompletionState",
    # Ordering
    "OrderedWaypoint",
    "order_waypoints",
    "span_between",
    "waypoint_positions",
    "waypoint_distances",
    "waypoint_legs",
    "popup_data",
    "current_location_distances",
    "next_waypoint_progress",
    "all_waypoint_data",
    "straight_line_waypoints",
    # Data access
    "WaypointRepository",
    "WaypointCompletionRepository",
    # Services
    "WaypointCompletionService",
    "WaypointService",
]
