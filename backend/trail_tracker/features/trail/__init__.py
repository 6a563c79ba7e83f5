"""
Trail module.

Usage:
    from trail_tracker.features.trail import Trail, TrailPoint, TrailStore

Components:
- Trail / TrailPoint: immutable route polyline with elevation series
- GPXTrailParser: GPX file -> Trail
- TrailStore: TTL-bounded process-wide trail holder
"""

from .schemas import Trail, TrailPoint
from .parser import GPXTrailParser
from .store import TrailStore, TrailLoader

__all__ = [
    "Trail",
    "TrailPoint",
    "GPXTrailParser",
    "TrailStore",
    "TrailLoader",
]
