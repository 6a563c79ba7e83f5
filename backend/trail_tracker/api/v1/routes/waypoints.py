"""
Waypoint Routes

Waypoint administration and completion overrides.
"""

from fastapi import APIRouter, Depends

from trail_tracker.api.deps import (
    DOMAIN_ERRORS,
    get_completion_service,
    get_trail_store,
    get_tracking_service,
    get_waypoint_service,
    http_error,
    verify_admin_key,
)
from trail_tracker.features.tracking import TrackingService
from trail_tracker.features.trail import TrailStore
from trail_tracker.features.waypoints import (
    CompletionState,
    WaypointCompletionService,
    WaypointCreate,
    WaypointResponse,
    WaypointService,
    WaypointUpdate,
)

router = APIRouter()


# === Waypoints ===

@router.get("", response_model=list[WaypointResponse])
async def list_waypoints(
    service: WaypointService = Depends(get_waypoint_service),
    trail_store: TrailStore = Depends(get_trail_store),
):
    """All waypoints in trail order, with their projected index."""
    try:
        ordered = await service.list_ordered(trail_store.get())
    except DOMAIN_ERRORS as e:
        raise http_error(e)
    return [WaypointResponse.from_model(o.waypoint, o.track_index) for o in ordered]


# Declared before /{waypoint_id} so the literal path wins
@router.get("/completions", response_model=list[CompletionState])
async def get_completions(service: WaypointCompletionService = Depends(get_completion_service)):
    """Current completion state of every waypoint."""
    return await service.get_completions()


@router.post("/completions/clear", dependencies=[Depends(verify_admin_key)])
async def clear_completions(service: WaypointCompletionService = Depends(get_completion_service)):
    """Reset every completed waypoint to pending (admin)."""
    try:
        cleared = await service.clear_all_completions()
    except DOMAIN_ERRORS as e:
        raise http_error(e)
    return {"success": True, "cleared": cleared}


@router.post("/reevaluate", dependencies=[Depends(verify_admin_key)])
async def reevaluate_waypoints(service: TrackingService = Depends(get_tracking_service)):
    """Replay the stored fixes of the live run window against all waypoints (admin)."""
    try:
        completed = await service.reevaluate_waypoints()
    except DOMAIN_ERRORS as e:
        raise http_error(e)
    return {"success": True, "completedWaypoints": completed}


@router.post("", response_model=WaypointResponse, status_code=201,
             dependencies=[Depends(verify_admin_key)])
async def create_waypoint(
    request: WaypointCreate,
    service: WaypointService = Depends(get_waypoint_service),
):
    try:
        waypoint = await service.create_waypoint(request)
    except DOMAIN_ERRORS as e:
        raise http_error(e)
    return WaypointResponse.from_model(waypoint)


@router.get("/{waypoint_id}", response_model=WaypointResponse)
async def get_waypoint(
    waypoint_id: str,
    service: WaypointService = Depends(get_waypoint_service),
):
    try:
        waypoint = await service.get_waypoint(waypoint_id)
    except DOMAIN_ERRORS as e:
        raise http_error(e)
    return WaypointResponse.from_model(waypoint)


@router.put("/{waypoint_id}", response_model=WaypointResponse,
            dependencies=[Depends(verify_admin_key)])
async def update_waypoint(
    waypoint_id: str,
    request: WaypointUpdate,
    service: WaypointService = Depends(get_waypoint_service),
):
    try:
        waypoint = await service.update_waypoint(waypoint_id, request)
    except DOMAIN_ERRORS as e:
        raise http_error(e)
    return WaypointResponse.from_model(waypoint)


@router.delete("/{waypoint_id}", dependencies=[Depends(verify_admin_key)])
async def delete_waypoint(
    waypoint_id: str,
    service: WaypointService = Depends(get_waypoint_service),
):
    try:
        await service.delete_waypoint(waypoint_id)
    except DOMAIN_ERRORS as e:
        raise http_error(e)
    return {"success": True}


# === Completion overrides ===

@router.post("/{waypoint_id}/complete", dependencies=[Depends(verify_admin_key)])
async def mark_completed(
    waypoint_id: str,
    service: WaypointCompletionService = Depends(get_completion_service),
):
    """Force a waypoint to Completed (admin). Repeating is a no-op."""
    try:
        waypoint, changed = await service.mark_completed(waypoint_id)
    except DOMAIN_ERRORS as e:
        raise http_error(e)
    return {
        "success": True,
        "changed": changed,
        "waypoint": WaypointResponse.from_model(waypoint).model_dump(by_alias=True, mode="json"),
    }


@router.post("/{waypoint_id}/incomplete", dependencies=[Depends(verify_admin_key)])
async def mark_incomplete(
    waypoint_id: str,
    service: WaypointCompletionService = Depends(get_completion_service),
):
    """Force a waypoint back to Pending (admin). Repeating is a no-op."""
    try:
        waypoint, changed = await service.mark_incomplete(waypoint_id)
    except DOMAIN_ERRORS as e:
        raise http_error(e)
    return {
        "success": True,
        "changed": changed,
        "waypoint": WaypointResponse.from_model(waypoint).model_dump(by_alias=True, mode="json"),
    }


@router.get("/{waypoint_id}/history")
async def get_completion_history(
    waypoint_id: str,
    service: WaypointCompletionService = Depends(get_completion_service),
):
    """Completion audit rows of one waypoint, oldest first."""
    try:
        return await service.get_audit(waypoint_id)
    except DOMAIN_ERRORS as e:
        raise http_error(e)
