"""
Tracking schemas.

Pydantic payloads for location ingestion and progress responses.
All wire names are camelCase.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from trail_tracker.shared.constants import LocationSource


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class LocationFixIn(CamelModel):
    """
    Incoming fix from the webhook, the poller or a manual test.

    Coordinates are range-checked; NaN and infinities are rejected.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        allow_inf_nan=False,
    )

    id: Optional[str] = Field(default=None, max_length=64)
    lat: float = Field(ge=-90, le=90)
    lng: float = Field(ge=-180, le=180)
    timestamp: Optional[int] = Field(default=None, ge=0)  # epoch ms, defaults to now
    accuracy: Optional[float] = Field(default=None, ge=0)
    elevation: Optional[float] = None
    source: str = Field(default=LocationSource.MANUAL_TEST.value, max_length=50)


class LocationFixOut(CamelModel):
    id: str
    lat: float
    lng: float
    timestamp: int
    accuracy: Optional[float] = None
    elevation: Optional[float] = None
    source: str


class TrailSegmentOut(CamelModel):
    id: str
    start_point: list[float]
    end_point: list[float]
    distance: float
    is_completed: bool = True
    completed_at: Optional[int] = None


class TrailProgress(CamelModel):
    """Persisted progress summary."""
    completed_distance: float = 0.0
    completed_elevation_gain: float = 0.0
    progress_percentage: float = 0.0
    last_location: Optional[LocationFixOut] = None
    completed_segments: list[TrailSegmentOut] = []
    estimated_completion: Optional[int] = None
    last_updated: int
    is_active: bool = True


class IngestResponse(CamelModel):
    """Result of ingesting one fix."""
    success: bool = True
    location: LocationFixOut
    progress: TrailProgress
    completed_waypoints: list[str] = []
    off_trail: bool = False
    distance_from_trail: Optional[float] = None
