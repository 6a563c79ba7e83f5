"""
Tracking module.

Usage:
    from trail_tracker.features.tracking import TrackingService, calculate_progress

Components:
- LocationFix / TrailProgressRecord: SQLAlchemy models
- calculator: pure progress split, segments, finish estimate
- TrackingService: ingest + progress queries
"""

from .models import LocationFix, TrailProgressRecord
from .schemas import (
    LocationFixIn,
    LocationFixOut,
    TrailSegmentOut,
    TrailProgress,
    IngestResponse,
)
from .calculator import (
    ProgressResult,
    TrailSegment,
    calculate_progress,
    inert_progress,
    completed_segments,
    sample_segments,
    estimate_completion,
)
from .repository import LocationRepository, TrailProgressRepository
from .service import TrackingService, derive_fix_id

__all__ = [
    # Models
    "LocationFix",
    "TrailProgressRecord",
    # Schemas
    "LocationFixIn",
    "LocationFixOut",
    "TrailSegmentOut",
    "TrailProgress",
    "IngestResponse",
    # Calculator
    "ProgressResult",
    "TrailSegment",
    "calculate_progress",
    "inert_progress",
    "completed_segments",
    "sample_segments",
    "estimate_completion",
    # Data access
    "LocationRepository",
    "TrailProgressRepository",
    # Service
    "TrackingService",
    "derive_fix_id",
]
