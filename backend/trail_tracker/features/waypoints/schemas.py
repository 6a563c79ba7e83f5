"""
Waypoint schemas.

Request/response payloads for waypoint administration.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from trail_tracker.shared.constants import CompletedBy, WaypointType


class Coordinates(BaseModel):
    model_config = ConfigDict(allow_inf_nan=False)

    lat: float = Field(ge=-90, le=90)
    lng: float = Field(ge=-180, le=180)


class WaypointCreate(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    name: str = Field(min_length=1, max_length=255)
    type: WaypointType = WaypointType.INTERMEDIARY
    details: Optional[str] = None
    coordinates: Coordinates
    created_by: Optional[str] = Field(default=None, max_length=100)


class WaypointUpdate(BaseModel):
    """Partial update; omitted fields are left untouched."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    type: Optional[WaypointType] = None
    details: Optional[str] = None
    coordinates: Optional[Coordinates] = None

    @model_validator(mode='after')
    def check_not_empty(self) -> "WaypointUpdate":
        if not self.model_fields_set:
            raise ValueError("No fields to update")
        return self


class WaypointResponse(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    name: str
    type: str
    details: Optional[str] = None
    coordinates: Coordinates
    is_completed: bool = False
    completed_at: Optional[int] = None
    completed_by: Optional[CompletedBy] = None
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    track_index: Optional[int] = None

    @classmethod
    def from_model(cls, waypoint, track_index: Optional[int] = None) -> "WaypointResponse":
        return cls(
            id=waypoint.id,
            name=waypoint.name,
            type=waypoint.type,
            details=waypoint.details,
            coordinates=Coordinates(lat=waypoint.lat, lng=waypoint.lng),
            is_completed=waypoint.is_completed,
            completed_at=waypoint.completed_at,
            completed_by=waypoint.completed_by,
            created_by=waypoint.created_by,
            created_at=waypoint.created_at,
            updated_at=waypoint.updated_at,
            track_index=track_index,
        )


class CompletionState(BaseModel):
    """Current completion state of one waypoint."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    waypoint_id: str
    is_completed: bool
    completed_at: Optional[int] = None
    completed_by: Optional[CompletedBy] = None
