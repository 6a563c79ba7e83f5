"""
Precomputation module.

Usage:
    from trail_tracker.features.precompute import PrecomputationCache, PrecomputeService

Components:
- PrecomputationCache: in-process TTL cache with injected clock
- PrecalculatedData: durable mirror table
- PrecomputeService: read-through access and recalculate_all
"""

from .cache import CachedComputation, PrecomputationCache
from .models import PrecalculatedData
from .repository import PrecalculatedDataRepository
from .service import PrecomputeService, build_track_distances, table_scope

__all__ = [
    "CachedComputation",
    "PrecomputationCache",
    "PrecalculatedData",
    "PrecalculatedDataRepository",
    "PrecomputeService",
    "build_track_distances",
    "table_scope",
]
