"""
Trail Tracker API

FastAPI application tracking a runner's progress along a fixed trail.
"""

from contextlib import asynccontextmanager
import logging
import sys

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from trail_tracker.config import settings
from trail_tracker.db.session import init_db, async_engine
from trail_tracker.api.v1.router import api_router
from trail_tracker.features.precompute import PrecomputationCache
from trail_tracker.features.timeline import RunTimelineGate
from trail_tracker.features.trail import TrailStore
from trail_tracker.shared.clock import now_ms


# === Logging Setup ===
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper()),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.StreamHandler(sys.stdout),
    ]
)
logger = logging.getLogger(__name__)


# === Lifespan ===
@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    # Startup
    logger.info("Starting Trail Tracker API...")
    await init_db()
    logger.info("Database initialized")

    clock = now_ms
    app.state.clock = clock
    app.state.trail_store = TrailStore.from_gpx_file(
        settings.trail_gpx_path,
        ttl_seconds=settings.trail_cache_ttl_seconds,
        clock=clock,
    )
    app.state.precompute_cache = PrecomputationCache(
        ttl_seconds=settings.precompute_ttl_seconds,
        clock=clock,
    )
    app.state.timeline_gate = RunTimelineGate.from_settings()
    logger.info(
        f"Trail source: {settings.trail_gpx_path} "
        f"(trail TTL {settings.trail_cache_ttl_seconds}s, "
        f"cache TTL {settings.precompute_ttl_seconds}s)"
    )

    yield

    # Shutdown
    await async_engine.dispose()
    logger.info("Shutting down...")


# === App Creation ===
app = FastAPI(
    title="Trail Tracker API",
    description="Live progress and waypoint tracking along a fixed GPS trail",
    version="0.1.0",
    lifespan=lifespan,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
)


# === Middleware ===
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# === Routes ===
app.include_router(api_router, prefix="/api/v1")


# === Health Check ===
@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "version": "0.1.0"}
