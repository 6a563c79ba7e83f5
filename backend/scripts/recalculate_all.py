#!/usr/bin/env python3
"""CLI script that rebuilds every precalculated table once.

Usage:
    # Use the configured trail file and database
    python backend/scripts/recalculate_all.py

    # Use another GPX file
    python backend/scripts/recalculate_all.py --gpx content/gpx/trail.gpx

    # Also replay stored fixes against the waypoints
    python backend/scripts/recalculate_all.py --reevaluate
"""

import argparse
import asyncio
import sys
from pathlib import Path

if sys.platform == "win32":
    sys.stdout.reconfigure(encoding="utf-8")

sys.path.insert(0, str(Path(__file__).parent.parent))

from trail_tracker.config import settings
from trail_tracker.db.session import AsyncSessionLocal, async_engine, init_db
from trail_tracker.features.precompute import PrecomputationCache, PrecomputeService
from trail_tracker.features.tracking import TrackingService
from trail_tracker.features.trail import TrailStore
from trail_tracker.shared.errors import InputError, PersistenceFailure


def print_summary(data: dict) -> None:
    """Print one line per rebuilt table."""
    track = data.get("trackDistances", {})
    print("=" * 60)
    print(f"Trail: {track.get('pointCount', 0)} points, "
          f"{track.get('totalDistance', 0):.2f} km, "
          f"+{track.get('totalElevationGain', 0)} m")
    print("=" * 60)
    for name, table in data.items():
        size = len(table) if isinstance(table, dict) else 0
        print(f"  {name:<28} {size:>6} entries")


async def run(gpx_path: Path, reevaluate: bool) -> int:
    await init_db()
    trail_store = TrailStore.from_gpx_file(gpx_path, ttl_seconds=0)
    cache = PrecomputationCache(ttl_seconds=settings.precompute_ttl_seconds)

    try:
        async with AsyncSessionLocal() as db:
            precompute = PrecomputeService(db, cache, trail_store)
            tracking = TrackingService(db, trail_store, precompute)

            if reevaluate:
                completed = await tracking.reevaluate_waypoints()
                print(f"Waypoints completed by replay: {completed or 'none'}")

            latest = await tracking.get_latest_location()
            location = (latest.lat, latest.lng) if latest is not None else None
            data = await precompute.recalculate_all(location=location)
    except InputError as e:
        print(f"Invalid input: {e}")
        return 1
    except PersistenceFailure as e:
        print(f"Database write failed: {e}")
        return 2
    finally:
        await async_engine.dispose()

    print_summary(data)
    return 0


def main() -> None:
    parser = argparse.ArgumentParser(description="Rebuild all precalculated trail data")
    parser.add_argument(
        "--gpx",
        type=Path,
        default=settings.trail_gpx_path,
        help=f"GPX file with the trail (default: {settings.trail_gpx_path})",
    )
    parser.add_argument(
        "--reevaluate",
        action="store_true",
        help="Replay stored fixes of the live run window against waypoints first",
    )
    args = parser.parse_args()

    sys.exit(asyncio.run(run(args.gpx, args.reevaluate)))


if __name__ == "__main__":
    main()
