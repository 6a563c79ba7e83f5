"""
Location Routes

Ingestion of location fixes and location history.
"""

from fastapi import APIRouter, Depends, HTTPException, Query

from trail_tracker.api.deps import DOMAIN_ERRORS, get_tracking_service, http_error
from trail_tracker.features.tracking import (
    IngestResponse,
    LocationFixIn,
    LocationFixOut,
    TrackingService,
)

router = APIRouter()


@router.post("", response_model=IngestResponse)
async def ingest_location(
    fix: LocationFixIn,
    service: TrackingService = Depends(get_tracking_service),
):
    """
    Ingest a location fix from the device webhook, the poller or a test.

    Returns the updated progress. Outside the run window the fix is
    stored and an inert progress is returned.
    """
    try:
        return await service.ingest(fix)
    except DOMAIN_ERRORS as e:
        raise http_error(e)


@router.get("", response_model=list[LocationFixOut])
async def list_locations(
    limit: int = Query(default=100, ge=1, le=1000),
    service: TrackingService = Depends(get_tracking_service),
):
    """Location history, newest first."""
    return await service.list_locations(limit)


@router.get("/latest", response_model=LocationFixOut)
async def get_latest_location(service: TrackingService = Depends(get_tracking_service)):
    """Current position (latest fix by timestamp)."""
    fix = await service.get_latest_location()
    if fix is None:
        raise HTTPException(status_code=404, detail="No location recorded yet")
    return fix
