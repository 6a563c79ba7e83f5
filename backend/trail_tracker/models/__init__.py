"""
Database Models

Feature models live next to their feature (features/<name>/models.py).
They are imported lazily by register_models() to avoid circular imports.
"""

from trail_tracker.models.base import Base


def register_models() -> None:
    """Import every feature model so it is registered on Base.metadata."""
    from trail_tracker.features.timeline import models as _timeline  # noqa: F401
    from trail_tracker.features.tracking import models as _tracking  # noqa: F401
    from trail_tracker.features.waypoints import models as _waypoints  # noqa: F401
    from trail_tracker.features.precompute import models as _precompute  # noqa: F401


__all__ = ["Base", "register_models"]
