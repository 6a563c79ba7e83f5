"""
Run timeline module.

Usage:
    from trail_tracker.features.timeline import RunTimelineGate, RunTimelineService

Components:
- RunTimelineRecord: SQLAlchemy model (single row)
- RunTimeline: engine-side value with start/finish instants
- RunTimelineGate: pure isActive / status checks
- RunTimelineService: get / set / clear
"""

from .models import RunTimelineRecord
from .schemas import RunTimeline, RunTimelineRequest, RunTimelineResponse, parse_instant
from .repository import RunTimelineRepository
from .service import RunTimelineGate, RunTimelineService

__all__ = [
    "RunTimelineRecord",
    "RunTimeline",
    "RunTimelineRequest",
    "RunTimelineResponse",
    "parse_instant",
    "RunTimelineRepository",
    "RunTimelineGate",
    "RunTimelineService",
]
