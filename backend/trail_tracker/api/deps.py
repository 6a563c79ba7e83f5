"""
Shared API dependencies.

The trail store, the precomputation cache, the timeline gate and the
clock are built once in the app lifespan and kept on app.state.
"""

import logging
from typing import Optional

from fastapi import Depends, Header, HTTPException, Request
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from trail_tracker.config import settings
from trail_tracker.db.session import get_async_db
from trail_tracker.features.precompute import PrecomputationCache, PrecomputeService
from trail_tracker.features.timeline import RunTimelineGate, RunTimelineService
from trail_tracker.features.tracking import TrackingService
from trail_tracker.features.trail import TrailStore
from trail_tracker.features.waypoints import WaypointCompletionService, WaypointService
from trail_tracker.shared.clock import Clock, now_ms
from trail_tracker.shared.errors import InputError, NotFoundError, PersistenceFailure

logger = logging.getLogger(__name__)


# =============================================================================
# Errors
# =============================================================================

def http_error(error: Exception) -> HTTPException:
    """Map one of DOMAIN_ERRORS to its HTTP status."""
    if isinstance(error, InputError):
        return HTTPException(status_code=400, detail=str(error))
    if isinstance(error, NotFoundError):
        return HTTPException(status_code=404, detail=str(error))
    logger.error(f"Storage failure: {error}")
    return HTTPException(status_code=503, detail="Storage unavailable, retry later")


DOMAIN_ERRORS = (InputError, NotFoundError, PersistenceFailure, SQLAlchemyError)


# =============================================================================
# Admin Key
# =============================================================================

async def verify_admin_key(
    x_api_key: Optional[str] = Header(default=None, alias="X-API-Key"),
) -> str:
    """Verify the administrator API key."""
    if not settings.admin_api_key:
        raise HTTPException(status_code=503, detail="Admin API not configured")
    if x_api_key != settings.admin_api_key:
        raise HTTPException(status_code=401, detail="Invalid API key")
    return x_api_key


# =============================================================================
# Process-wide objects
# =============================================================================

def get_trail_store(request: Request) -> TrailStore:
    return request.app.state.trail_store


def get_cache(request: Request) -> PrecomputationCache:
    return request.app.state.precompute_cache


def get_gate(request: Request) -> RunTimelineGate:
    return request.app.state.timeline_gate


def get_clock(request: Request) -> Clock:
    return getattr(request.app.state, "clock", now_ms)


# =============================================================================
# Services
# =============================================================================

def get_precompute_service(
    db: AsyncSession = Depends(get_async_db),
    cache: PrecomputationCache = Depends(get_cache),
    trail_store: TrailStore = Depends(get_trail_store),
) -> PrecomputeService:
    return PrecomputeService(db, cache, trail_store)


def get_tracking_service(
    db: AsyncSession = Depends(get_async_db),
    trail_store: TrailStore = Depends(get_trail_store),
    precompute: PrecomputeService = Depends(get_precompute_service),
    gate: RunTimelineGate = Depends(get_gate),
    clock: Clock = Depends(get_clock),
) -> TrackingService:
    return TrackingService(db, trail_store, precompute, gate, clock)


def get_timeline_service(
    db: AsyncSession = Depends(get_async_db),
    gate: RunTimelineGate = Depends(get_gate),
) -> RunTimelineService:
    return RunTimelineService(db, gate)


def get_waypoint_service(
    db: AsyncSession = Depends(get_async_db),
    precompute: PrecomputeService = Depends(get_precompute_service),
) -> WaypointService:
    return WaypointService(db, precompute)


def get_completion_service(
    db: AsyncSession = Depends(get_async_db),
    precompute: PrecomputeService = Depends(get_precompute_service),
    gate: RunTimelineGate = Depends(get_gate),
    clock: Clock = Depends(get_clock),
) -> WaypointCompletionService:
    return WaypointCompletionService(db, gate, clock, precompute=precompute)
