"""Central error types used across the application."""

from __future__ import annotations

from typing import Any


class InputError(ValueError):
    """Raised when a fix, trail or timeline is malformed. Nothing is persisted."""


class NotFoundError(LookupError):
    """Raised when a waypoint or other addressed record does not exist."""


class PersistenceFailure(RuntimeError):
    """
    Raised when the durable store rejects a write.

    The computed result is kept on the exception so the caller can
    decide whether to retry.
    """

    def __init__(self, message: str, result: Any = None):
        super().__init__(message)
        self.result = result


__all__ = [
    "InputError",
    "NotFoundError",
    "PersistenceFailure",
]
