"""
Progress Routes
"""

from typing import Optional

from fastapi import APIRouter, Depends

from trail_tracker.api.deps import (
    DOMAIN_ERRORS,
    get_tracking_service,
    http_error,
    verify_admin_key,
)
from trail_tracker.features.tracking import TrackingService, TrailProgress

router = APIRouter()


@router.get("", response_model=Optional[TrailProgress])
async def get_progress(service: TrackingService = Depends(get_tracking_service)):
    """
    Stored trail progress.

    null when nothing was ever recorded; zero progress outside the run
    window.
    """
    return await service.get_progress()


@router.get("/live")
async def get_live_progress(service: TrackingService = Depends(get_tracking_service)):
    """Completed/remaining trail split for the current position."""
    try:
        return await service.get_live_progress()
    except DOMAIN_ERRORS as e:
        raise http_error(e)


@router.delete("", dependencies=[Depends(verify_admin_key)])
async def clear_progress(service: TrackingService = Depends(get_tracking_service)):
    """Delete the stored progress (admin)."""
    try:
        cleared = await service.clear_progress()
    except DOMAIN_ERRORS as e:
        raise http_error(e)
    return {"success": True, "cleared": cleared}
