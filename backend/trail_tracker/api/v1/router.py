"""
API Router v1

Combines all route modules.
"""

from fastapi import APIRouter

from trail_tracker.api.v1.routes import locations, progress, waypoints, timeline, precalculated

api_router = APIRouter()

api_router.include_router(locations.router, prefix="/locations", tags=["Locations"])
api_router.include_router(progress.router, prefix="/progress", tags=["Progress"])
api_router.include_router(waypoints.router, prefix="/waypoints", tags=["Waypoints"])
api_router.include_router(timeline.router, prefix="/timeline", tags=["Timeline"])
api_router.include_router(precalculated.router, prefix="/precalculated", tags=["Precalculated"])
