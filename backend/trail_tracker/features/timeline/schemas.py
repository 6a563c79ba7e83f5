"""
Run timeline schemas.

RunTimeline is the engine-side value; the Pydantic models are the
admin API payloads (camelCase on the wire).
"""

from dataclasses import dataclass
from datetime import datetime, tzinfo
from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel

from trail_tracker.shared.errors import InputError


def _clean_date(value: str) -> str:
    """Keep only the date part of an ISO timestamp."""
    value = value.strip()
    return value.split('T')[0] if 'T' in value else value


def _clean_time(value: str) -> str:
    """Keep only the time part of an ISO timestamp."""
    value = value.strip()
    return value.split('T')[1] if 'T' in value else value


def parse_instant(date_str: str, time_str: str, tz: tzinfo) -> datetime:
    """
    Combine a date and a wall-clock time into an aware datetime.

    Naive values are read in tz; values carrying an offset keep it.

    Raises:
        InputError: If either part cannot be parsed
    """
    date_part = _clean_date(date_str)
    time_part = _clean_time(time_str)
    try:
        instant = datetime.fromisoformat(f"{date_part}T{time_part}")
    except ValueError:
        raise InputError(f"Invalid date/time: {date_str!r} {time_str!r}")

    if instant.tzinfo is None:
        instant = instant.replace(tzinfo=tz)
    return instant


@dataclass(frozen=True)
class RunTimeline:
    """Scheduled active window of the run."""
    start_date: str
    start_time: str
    finish_date: str
    finish_time: str
    updated_at: Optional[datetime] = None

    @property
    def run_period(self) -> str:
        """Tag tying completions to this timeline."""
        return f"{self.start_date}_{self.finish_date}"

    def start_instant(self, tz: tzinfo) -> datetime:
        return parse_instant(self.start_date, self.start_time, tz)

    def finish_instant(self, tz: tzinfo) -> datetime:
        return parse_instant(self.finish_date, self.finish_time, tz)


class RunTimelineRequest(BaseModel):
    """Admin payload for SetRunTimeline."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    start_date: str
    start_time: str
    finish_date: str
    finish_time: str

    @field_validator('start_date', 'finish_date')
    @classmethod
    def normalize_date(cls, v: str) -> str:
        return _clean_date(v)

    @field_validator('start_time', 'finish_time')
    @classmethod
    def normalize_time(cls, v: str) -> str:
        return _clean_time(v)


class RunTimelineResponse(BaseModel):
    """Current timeline plus gate status."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    start_date: Optional[str] = None
    start_time: Optional[str] = None
    finish_date: Optional[str] = None
    finish_time: Optional[str] = None
    updated_at: Optional[datetime] = None
    run_period: Optional[str] = None
    is_active: bool = False
    status: str
