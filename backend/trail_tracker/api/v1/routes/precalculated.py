"""
Precalculated Data Routes

Cached derived tables. Location-dependent tables use the latest fix.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from trail_tracker.api.deps import (
    DOMAIN_ERRORS,
    get_precompute_service,
    get_tracking_service,
    http_error,
    verify_admin_key,
)
from trail_tracker.features.precompute import PrecomputeService
from trail_tracker.features.tracking import TrackingService

router = APIRouter()


async def _current_location(tracking: TrackingService) -> Optional[tuple[float, float]]:
    fix = await tracking.get_latest_location()
    return (fix.lat, fix.lng) if fix is not None else None


@router.get("")
async def get_precalculated(
    type: str = Query(default="all"),
    service: PrecomputeService = Depends(get_precompute_service),
):
    """trackDistances, waypointPositions and waypointDistances (or one of them)."""
    try:
        return await service.get_precalculated(type)
    except DOMAIN_ERRORS as e:
        raise http_error(e)


@router.get("/track-distances")
async def get_track_distances(service: PrecomputeService = Depends(get_precompute_service)):
    try:
        return await service.track_distances()
    except DOMAIN_ERRORS as e:
        raise http_error(e)


@router.get("/waypoint-positions")
async def get_waypoint_positions(service: PrecomputeService = Depends(get_precompute_service)):
    """{waypointId: {trackIndex, distanceFromStart, elevationFromStart, closestTrackPoint, calculatedAt}}"""
    try:
        return await service.waypoint_positions()
    except DOMAIN_ERRORS as e:
        raise http_error(e)


@router.get("/waypoint-distances")
async def get_waypoint_distances(service: PrecomputeService = Depends(get_precompute_service)):
    """{"A-B": {distance, elevationGain, calculatedAt}} in both directions."""
    try:
        return await service.waypoint_distances()
    except DOMAIN_ERRORS as e:
        raise http_error(e)


@router.get("/waypoint-distances/{waypoint_a}/{waypoint_b}")
async def get_waypoint_distance(
    waypoint_a: str,
    waypoint_b: str,
    service: PrecomputeService = Depends(get_precompute_service),
):
    try:
        return await service.waypoint_distance(waypoint_a, waypoint_b)
    except DOMAIN_ERRORS as e:
        raise http_error(e)


@router.get("/popup")
async def get_popup_data(
    service: PrecomputeService = Depends(get_precompute_service),
    tracking: TrackingService = Depends(get_tracking_service),
):
    """Along-trail distance from the current position to every waypoint."""
    try:
        return await service.popup_data(await _current_location(tracking))
    except DOMAIN_ERRORS as e:
        raise http_error(e)


@router.get("/current-location-distances")
async def get_current_location_distances(
    service: PrecomputeService = Depends(get_precompute_service),
    tracking: TrackingService = Depends(get_tracking_service),
):
    try:
        return await service.current_location_distances(await _current_location(tracking))
    except DOMAIN_ERRORS as e:
        raise http_error(e)


@router.get("/all-waypoint-data")
async def get_all_waypoint_data(
    service: PrecomputeService = Depends(get_precompute_service),
    tracking: TrackingService = Depends(get_tracking_service),
):
    try:
        return await service.all_waypoint_data(await _current_location(tracking))
    except DOMAIN_ERRORS as e:
        raise http_error(e)


@router.get("/all-waypoint-data/{waypoint_id}")
async def get_waypoint_data(
    waypoint_id: str,
    service: PrecomputeService = Depends(get_precompute_service),
    tracking: TrackingService = Depends(get_tracking_service),
):
    try:
        return await service.waypoint_data(waypoint_id, await _current_location(tracking))
    except DOMAIN_ERRORS as e:
        raise http_error(e)


@router.get("/next-waypoint")
async def get_next_waypoint(
    waypoint_id: Optional[str] = Query(default=None, alias="waypointId"),
    service: PrecomputeService = Depends(get_precompute_service),
    tracking: TrackingService = Depends(get_tracking_service),
):
    """Distance from the current position to the next (or the given) waypoint."""
    try:
        return await service.next_waypoint(await _current_location(tracking), waypoint_id)
    except DOMAIN_ERRORS as e:
        raise http_error(e)


@router.post("/recalculate", dependencies=[Depends(verify_admin_key)])
async def recalculate_all(
    service: PrecomputeService = Depends(get_precompute_service),
    tracking: TrackingService = Depends(get_tracking_service),
):
    """Clear every cached table and recompute the full set (admin)."""
    try:
        data = await service.recalculate_all(location=await _current_location(tracking))
    except DOMAIN_ERRORS as e:
        raise http_error(e)
    return {"success": True, "data": data}
