"""
Trail value types.

The trail is read-only once loaded and shared by every request, so
both types are immutable.
"""

import hashlib
import math
from dataclasses import dataclass, field
from functools import cached_property
from typing import Any, NamedTuple, Optional

from trail_tracker.shared.errors import InputError


class TrailPoint(NamedTuple):
    """Single point of the race route."""
    lat: float
    lng: float


def _coerce_elevation(value: Any) -> Optional[float]:
    """Parse one elevation sample, mapping junk to None."""
    if value is None:
        return None
    try:
        parsed = float(value)
    except (TypeError, ValueError):
        return None
    return None if math.isnan(parsed) else parsed


@dataclass(frozen=True)
class Trail:
    """
    Ordered polyline plus a parallel elevation series.

    Index 0 is the nominal start, the last index the nominal end.
    The elevation series may be shorter than points or contain gaps.
    """
    points: tuple[TrailPoint, ...]
    elevations: tuple[Optional[float], ...] = field(default_factory=tuple)
    name: Optional[str] = None

    def __len__(self) -> int:
        return len(self.points)

    @cached_property
    def fingerprint(self) -> str:
        """Stable digest of the geometry; equal trails share it across restarts."""
        digest = hashlib.sha1(repr((self.points, self.elevations)).encode("utf-8"))
        return digest.hexdigest()[:16]

    @property
    def has_elevation(self) -> bool:
        return any(e is not None for e in self.elevations)

    def require_distance_ready(self) -> None:
        """Raise InputError unless the trail can be measured."""
        if len(self.points) < 2:
            raise InputError(
                f"Trail must have at least 2 points, got {len(self.points)}"
            )

    @classmethod
    def from_points(
        cls,
        points: list,
        elevations: Optional[list] = None,
        name: Optional[str] = None,
    ) -> "Trail":
        """
        Build a trail from [lat, lng] pairs.

        Raises:
            InputError: If a point is not a numeric (lat, lng) pair
        """
        parsed: list[TrailPoint] = []
        for i, raw in enumerate(points):
            try:
                lat, lng = float(raw[0]), float(raw[1])
            except (TypeError, ValueError, IndexError):
                raise InputError(f"Trail point {i} is not a [lat, lng] pair: {raw!r}")
            if math.isnan(lat) or math.isnan(lng):
                raise InputError(f"Trail point {i} has NaN coordinates")
            parsed.append(TrailPoint(lat, lng))

        return cls(
            points=tuple(parsed),
            elevations=tuple(_coerce_elevation(e) for e in (elevations or [])),
            name=name,
        )

    @classmethod
    def from_payload(cls, payload: dict) -> "Trail":
        """
        Build a trail from the GPX-data JSON shape.

        Expected: {"tracks": [{"name": ..., "points": [[lat, lng], ...],
        "elevation": [...]}]}. Only the first track is used.

        Raises:
            InputError: If no track is present
        """
        tracks = (payload or {}).get("tracks") or []
        if not tracks:
            raise InputError("Invalid GPX data: no tracks")
        track = tracks[0]
        return cls.from_points(
            track.get("points") or [],
            track.get("elevation"),
            track.get("name"),
        )

    def to_payload(self) -> dict:
        """Inverse of from_payload."""
        return {
            "tracks": [{
                "name": self.name,
                "points": [[p.lat, p.lng] for p in self.points],
                "elevation": list(self.elevations),
            }]
        }
