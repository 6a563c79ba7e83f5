"""
Run Timeline Routes

Reading is public; setting and clearing require the admin key.
"""

from fastapi import APIRouter, Depends

from trail_tracker.api.deps import (
    DOMAIN_ERRORS,
    get_timeline_service,
    http_error,
    verify_admin_key,
)
from trail_tracker.features.timeline import (
    RunTimelineRequest,
    RunTimelineResponse,
    RunTimelineService,
)

router = APIRouter()


@router.get("", response_model=RunTimelineResponse)
async def get_timeline(service: RunTimelineService = Depends(get_timeline_service)):
    """Live timeline with activity flag and status text."""
    return await service.describe()


@router.put("", response_model=RunTimelineResponse, dependencies=[Depends(verify_admin_key)])
async def set_timeline(
    request: RunTimelineRequest,
    service: RunTimelineService = Depends(get_timeline_service),
):
    """
    Set the run timeline.

    Existing waypoint completions are kept; clear them explicitly with
    POST /waypoints/completions/clear.
    """
    try:
        await service.set_timeline(request)
    except DOMAIN_ERRORS as e:
        raise http_error(e)
    return await service.describe()


@router.delete("", dependencies=[Depends(verify_admin_key)])
async def clear_timeline(service: RunTimelineService = Depends(get_timeline_service)):
    """Remove the timeline; progress and completion become inert."""
    try:
        cleared = await service.clear_timeline()
    except DOMAIN_ERRORS as e:
        raise http_error(e)
    return {"success": True, "cleared": cleared}
