"""
Waypoint ordering along the trail.

Waypoints carry coordinates only. Their position along the trail is
derived here by projecting onto the trail, so the order is always
consistent with the currently loaded trail.

All functions are pure; payloads use the camelCase keys consumers read.
"""

from dataclasses import dataclass
from typing import Any, Iterable, Optional

from trail_tracker.features.trail import Trail
from trail_tracker.shared.elevation import elevation_gain
from trail_tracker.shared.formatters import round_distance_km, round_elevation_m
from trail_tracker.shared.geo import LatLng, distance, nearest_index, polyline_length


@dataclass(frozen=True)
class OrderedWaypoint:
    """A waypoint with its projected trail index."""
    waypoint: Any  # anything with id, lat, lng
    track_index: int
    offset_km: float

    @property
    def id(self) -> str:
        return self.waypoint.id

    @property
    def coordinates(self) -> tuple[float, float]:
        return (self.waypoint.lat, self.waypoint.lng)


def order_waypoints(waypoints: Iterable[Any], trail: Trail) -> list[OrderedWaypoint]:
    """
    Sort waypoints ascending by projected trail index.

    Stable: waypoints projecting to the same index keep input order.

    Raises:
        InputError: If the trail is empty
    """
    projected = []
    for wp in waypoints:
        index, offset = nearest_index((wp.lat, wp.lng), trail.points)
        projected.append(OrderedWaypoint(waypoint=wp, track_index=index, offset_km=offset))
    return sorted(projected, key=lambda o: o.track_index)


def span_between(trail: Trail, index_a: int, index_b: int) -> tuple[float, float]:
    """
    Distance and elevation gain along the trail between two indices.

    Order of the indices does not matter.

    Returns:
        Tuple of (distance_km, elevation_gain_m), unrounded
    """
    start, end = min(index_a, index_b), max(index_a, index_b)
    km = polyline_length(trail.points[start:end + 1])
    gain = elevation_gain(trail.elevations, start, end)
    return km, gain


def waypoint_positions(
    ordered: list[OrderedWaypoint],
    trail: Trail,
    calculated_at: int,
) -> dict[str, dict]:
    """Position of every waypoint measured from the trail start."""
    positions = {}
    for o in ordered:
        km, gain = span_between(trail, 0, o.track_index)
        point = trail.points[o.track_index]
        positions[o.id] = {
            "trackIndex": o.track_index,
            "distanceFromStart": round_distance_km(km),
            "elevationFromStart": round_elevation_m(gain),
            "closestTrackPoint": [point.lat, point.lng],
            "calculatedAt": calculated_at,
        }
    return positions


def _distance_entry(a: str, b: str, km: float, gain: float, calculated_at: int) -> dict:
    return {
        "waypoint1": a,
        "waypoint2": b,
        "distance": round_distance_km(km),
        "elevationGain": round_elevation_m(gain),
        "calculatedAt": calculated_at,
    }


def waypoint_distances(
    ordered: list[OrderedWaypoint],
    trail: Optional[Trail],
    calculated_at: int,
) -> dict[str, dict]:
    """
    Pairwise along-trail distances, stored under both "A-B" and "B-A".

    Without a usable trail, falls back to straight-line distance with
    zero elevation gain.
    """
    use_trail = trail is not None and len(trail) >= 2
    distances = {}

    for i in range(len(ordered)):
        for j in range(i + 1, len(ordered)):
            a, b = ordered[i], ordered[j]
            if use_trail:
                km, gain = span_between(trail, a.track_index, b.track_index)
            else:
                km, gain = distance(a.coordinates, b.coordinates), 0.0

            distances[f"{a.id}-{b.id}"] = _distance_entry(a.id, b.id, km, gain, calculated_at)
            distances[f"{b.id}-{a.id}"] = _distance_entry(b.id, a.id, km, gain, calculated_at)

    return distances


def straight_line_waypoints(waypoints: Iterable[Any]) -> list[OrderedWaypoint]:
    """Waypoints in input order with no trail projection (fallback only)."""
    return [OrderedWaypoint(waypoint=wp, track_index=0, offset_km=0.0) for wp in waypoints]


def waypoint_legs(ordered: list[OrderedWaypoint], trail: Trail) -> list[dict]:
    """
    Leg from the previous waypoint (or the trail start) to each waypoint.
    """
    legs = []
    previous_id = None
    previous_index = 0

    for o in ordered:
        km, gain = span_between(trail, previous_index, o.track_index)
        legs.append({
            "waypointId": o.id,
            "fromWaypointId": previous_id,
            "fromIndex": previous_index,
            "toIndex": o.track_index,
            "distance": round_distance_km(km),
            "elevationGain": round_elevation_m(gain),
        })
        previous_id = o.id
        previous_index = o.track_index

    return legs


def popup_data(
    ordered: list[OrderedWaypoint],
    trail: Trail,
    location: LatLng,
    calculated_at: int,
) -> dict[str, dict]:
    """Along-trail distance from the current position to every waypoint."""
    current_index, _ = nearest_index(location, trail.points)
    popups = {}
    for o in ordered:
        km, gain = span_between(trail, current_index, o.track_index)
        popups[o.id] = {
            "distanceFromCurrent": round_distance_km(km),
            "elevationGainFromCurrent": round_elevation_m(gain),
            "currentLocationIndex": current_index,
            "waypointIndex": o.track_index,
            "calculatedAt": calculated_at,
        }
    return popups


def current_location_distances(
    ordered: list[OrderedWaypoint],
    trail: Trail,
    location: LatLng,
    calculated_at: int,
) -> dict[str, dict]:
    """
    Distance to each waypoint with an ahead/behind flag.

    A waypoint at the runner's own index counts as behind.
    """
    current_index, offset = nearest_index(location, trail.points)
    result = {}
    for o in ordered:
        km, gain = span_between(trail, current_index, o.track_index)
        ahead = o.track_index > current_index
        result[o.id] = {
            "distance": round_distance_km(km),
            "elevationGain": round_elevation_m(gain) if ahead else 0,
            "isAhead": ahead,
            "currentLocationIndex": current_index,
            "waypointIndex": o.track_index,
            "distanceFromTrail": round_distance_km(offset),
            "calculatedAt": calculated_at,
        }
    return result


def next_waypoint_progress(
    ordered: list[OrderedWaypoint],
    trail: Trail,
    location: LatLng,
    calculated_at: int,
    next_waypoint_id: Optional[str] = None,
) -> dict:
    """
    Distance from the current position to the next waypoint.

    Without an explicit id the first waypoint beyond the current index
    is used. Distance is 0 once the waypoint has been passed.
    """
    current_index, _ = nearest_index(location, trail.points)

    target = None
    if next_waypoint_id is not None:
        target = next((o for o in ordered if o.id == next_waypoint_id), None)
    else:
        target = next((o for o in ordered if o.track_index > current_index), None)

    km = 0.0
    if target is not None and current_index < target.track_index:
        km = polyline_length(trail.points[current_index:target.track_index + 1])

    return {
        "currentLocationIndex": current_index,
        "distanceToNextWaypoint": round_distance_km(km),
        "nextWaypointId": target.id if target is not None else None,
        "calculatedAt": calculated_at,
    }


def all_waypoint_data(
    ordered: list[OrderedWaypoint],
    trail: Trail,
    location: Optional[LatLng],
    calculated_at: int,
) -> dict[str, dict]:
    """
    Everything a waypoint popup needs, keyed by waypoint id.

    Merges position, leg and (when a location is known) the
    distance from the current position.
    """
    positions = waypoint_positions(ordered, trail, calculated_at)
    legs = {leg["waypointId"]: leg for leg in waypoint_legs(ordered, trail)}
    popups = popup_data(ordered, trail, location, calculated_at) if location is not None else {}

    data = {}
    for order, o in enumerate(ordered):
        wp = o.waypoint
        leg = legs[o.id]
        entry = {
            "id": o.id,
            "name": getattr(wp, "name", None),
            "type": getattr(wp, "type", None),
            "isCompleted": bool(getattr(wp, "is_completed", False)),
            "order": order,
            **positions[o.id],
            "legDistance": leg["distance"],
            "legElevationGain": leg["elevationGain"],
            "fromWaypointId": leg["fromWaypointId"],
        }
        if o.id in popups:
            entry["distanceFromCurrent"] = popups[o.id]["distanceFromCurrent"]
            entry["elevationGainFromCurrent"] = popups[o.id]["elevationGainFromCurrent"]
        data[o.id] = entry
    return data
