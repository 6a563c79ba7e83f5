"""
Time sources.

Caches and the timeline gate take a clock callable instead of reading
the system time directly, so tests can drive them with a fake clock.
"""

import time
from datetime import datetime, timezone
from typing import Callable

# Returns epoch milliseconds
Clock = Callable[[], int]


def now_ms() -> int:
    """Current time in epoch milliseconds."""
    return int(time.time() * 1000)


def ms_to_datetime(timestamp_ms: int) -> datetime:
    """Convert epoch milliseconds to an aware UTC datetime."""
    return datetime.fromtimestamp(timestamp_ms / 1000, tz=timezone.utc)


def datetime_to_ms(value: datetime) -> int:
    """Convert a datetime to epoch milliseconds (naive values are UTC)."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return int(value.timestamp() * 1000)


class FakeClock:
    """Manually advanced clock for tests and replays."""

    def __init__(self, start_ms: int = 0):
        self.current_ms = start_ms

    def __call__(self) -> int:
        return self.current_ms

    def advance(self, seconds: float) -> None:
        self.current_ms += int(seconds * 1000)
