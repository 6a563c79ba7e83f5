"""
Progress Calculator

Turns the current fix and the trail into a completed/remaining split.
Pure functions only; persistence lives in the tracking service.

Rules:
1. Run not active -> zero progress (frozen, not hidden)
2. Fix farther than the adherence threshold from the trail -> off-trail,
   zero completed distance, total still reported
3. Otherwise split the trail at the projected index
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from trail_tracker.features.trail import Trail, TrailPoint
from trail_tracker.shared.elevation import elevation_gain
from trail_tracker.shared.formatters import round_distance_km, round_elevation_m
from trail_tracker.shared.geo import LatLng, distance, nearest_index, polyline_length

logger = logging.getLogger(__name__)

# Default track-adherence threshold
DEFAULT_MAX_OFFSET_KM = 5.0

# Default max number of completed segments kept for rendering
DEFAULT_SEGMENT_SAMPLE_SIZE = 50


@dataclass
class TrailSegment:
    """One completed edge of the trail."""
    id: str
    start_point: TrailPoint
    end_point: TrailPoint
    distance: float  # km
    is_completed: bool = True
    completed_at: Optional[int] = None  # epoch ms

    def to_dict(self) -> dict:
        """Convert to dict for API response / storage."""
        return {
            "id": self.id,
            "startPoint": [self.start_point.lat, self.start_point.lng],
            "endPoint": [self.end_point.lat, self.end_point.lng],
            "distance": round_distance_km(self.distance),
            "isCompleted": self.is_completed,
            "completedAt": self.completed_at,
        }


@dataclass
class ProgressResult:
    """Completed/remaining split of the trail for one fix."""
    completed_points: List[TrailPoint]
    remaining_points: List[TrailPoint]
    completed_distance: float   # km
    total_distance: float       # km
    progress_percentage: float  # 0..100, unrounded
    completed_elevation_gain: float = 0.0  # m
    nearest_index: Optional[int] = None
    distance_from_trail_km: Optional[float] = None
    is_active: bool = True
    off_trail: bool = False
    sorted_waypoints: List[dict] = field(default_factory=list)

    def to_dict(self) -> dict:
        """Convert to dict for API response."""
        return {
            "completedPoints": [[p.lat, p.lng] for p in self.completed_points],
            "remainingPoints": [[p.lat, p.lng] for p in self.remaining_points],
            "completedDistance": round_distance_km(self.completed_distance),
            "totalDistance": round_distance_km(self.total_distance),
            "progressPercentage": self.progress_percentage,
            "completedElevationGain": round_elevation_m(self.completed_elevation_gain),
            "currentLocationIndex": self.nearest_index,
            "distanceFromTrail": (
                round_distance_km(self.distance_from_trail_km)
                if self.distance_from_trail_km is not None else None
            ),
            "isActive": self.is_active,
            "offTrail": self.off_trail,
            "sortedWaypoints": self.sorted_waypoints,
        }


def _zero_progress(trail: Trail, total_distance: float, **extra) -> ProgressResult:
    return ProgressResult(
        completed_points=[],
        remaining_points=list(trail.points),
        completed_distance=0.0,
        total_distance=total_distance,
        progress_percentage=0.0,
        **extra,
    )


def inert_progress(trail: Trail) -> ProgressResult:
    """Zero-progress result used while the run is not active."""
    trail.require_distance_ready()
    return _zero_progress(trail, polyline_length(trail.points), is_active=False)


def calculate_progress(
    location: LatLng,
    trail: Trail,
    is_active: bool,
    max_offset_km: float = DEFAULT_MAX_OFFSET_KM,
) -> ProgressResult:
    """
    Split the trail at the fix's projected position.

    Identical inputs always produce the identical split: the projection
    is a deterministic scan and the distances are left-to-right sums.

    Args:
        location: (lat, lng) of the current fix
        trail: Route to project onto
        is_active: Whether the run timeline is active now
        max_offset_km: Track-adherence threshold

    Returns:
        ProgressResult

    Raises:
        InputError: If the trail has fewer than 2 points
    """
    trail.require_distance_ready()

    if not is_active:
        return inert_progress(trail)

    points = trail.points
    total_distance = polyline_length(points)
    index, offset_km = nearest_index(location, points)

    if offset_km > max_offset_km:
        logger.info(
            f"Fix ({location[0]:.5f}, {location[1]:.5f}) is off-trail: "
            f"{offset_km:.2f} km from nearest point (limit {max_offset_km} km)"
        )
        return _zero_progress(
            trail,
            total_distance,
            nearest_index=index,
            distance_from_trail_km=offset_km,
            off_trail=True,
        )

    completed_points = list(points[:index + 1])
    remaining_points = list(points[index + 1:])
    completed_distance = polyline_length(completed_points)

    if total_distance > 0:
        percentage = min(100.0, completed_distance / total_distance * 100)
    else:
        percentage = 0.0

    return ProgressResult(
        completed_points=completed_points,
        remaining_points=remaining_points,
        completed_distance=completed_distance,
        total_distance=total_distance,
        progress_percentage=percentage,
        completed_elevation_gain=elevation_gain(trail.elevations, 0, index),
        nearest_index=index,
        distance_from_trail_km=offset_km,
    )


def completed_segments(
    points: Sequence[TrailPoint],
    index: int,
    completed_at: Optional[int] = None,
) -> List[TrailSegment]:
    """
    Every trail edge from the start up to the projected index.

    Args:
        points: Trail points
        index: Projected index of the current fix
        completed_at: Timestamp stamped on each segment

    Returns:
        Segments segment_0_1 .. segment_{index-1}_{index}
    """
    segments = []
    for i in range(min(index, len(points) - 1)):
        segments.append(TrailSegment(
            id=f"segment_{i}_{i + 1}",
            start_point=points[i],
            end_point=points[i + 1],
            distance=distance(points[i], points[i + 1]),
            completed_at=completed_at,
        ))
    return segments


def sample_segments(
    segments: Sequence[TrailSegment],
    limit: int = DEFAULT_SEGMENT_SAMPLE_SIZE,
) -> List[TrailSegment]:
    """
    Down-sample segments with an even stride across the full list.

    Returns:
        At most `limit` segments, first segment always included
    """
    total = len(segments)
    if total == 0 or limit <= 0:
        return []

    sample_size = min(limit, total)
    step = max(1, total // sample_size)

    sampled = []
    for i in range(0, total, step):
        if len(sampled) >= sample_size:
            break
        sampled.append(segments[i])
    return sampled


def estimate_completion(
    completed_km: float,
    total_km: float,
    start_ms: int,
    now_ms: int,
) -> Optional[int]:
    """
    Linear finish-time estimate from pace so far.

    Returns:
        Estimated finish as epoch ms, or None without usable progress
    """
    if completed_km <= 0 or total_km <= 0 or now_ms <= start_ms:
        return None

    elapsed = now_ms - start_ms
    progress_ratio = completed_km / total_km
    return int(start_ms + elapsed / progress_ratio)
