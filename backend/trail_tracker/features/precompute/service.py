"""
Precompute Service

Read path for every derived table:
1. fresh in-memory entry for the same scope
2. fresh durable row for the same scope (copied back into memory)
3. recompute from the trail, waypoints and current location,
   then store in both

A failed mirror write during a read is logged and the computed payload
is still returned. recalculate_all is an admin operation and reports
persistence failures.

The scope of a table is the fingerprint of the trail it was computed
from, plus the current location for location-dependent tables, so a
reloaded trail or a new position never serves an old table.
"""

import logging
from typing import Any, Awaitable, Callable, Iterable, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from trail_tracker.features.trail import Trail, TrailStore
from trail_tracker.features.waypoints import ordering
from trail_tracker.features.waypoints.repository import WaypointRepository
from trail_tracker.shared.constants import LOCATION_DEPENDENT_KEYS, ComputationKey
from trail_tracker.shared.elevation import elevation_gain, segment_gains
from trail_tracker.shared.errors import InputError, NotFoundError
from trail_tracker.shared.formatters import round_distance_km, round_elevation_m
from trail_tracker.shared.geo import LatLng, cumulative_distances, segment_distances
from trail_tracker.shared.repository import commit_or_raise
from .cache import CacheKey, PrecomputationCache, cache_key
from .repository import PrecalculatedDataRepository

logger = logging.getLogger(__name__)


def table_scope(trail: Optional[Trail], location: Optional[LatLng] = None) -> str:
    """Scope tag for a derived table."""
    base = trail.fingerprint if trail is not None else "straight-line"
    if location is None:
        return base
    return f"{base}@{location[0]:.6f},{location[1]:.6f}"


def build_track_distances(trail: Trail, calculated_at: int) -> dict:
    """Per-segment and cumulative distance/elevation of the whole trail."""
    trail.require_distance_ready()
    cumulative = cumulative_distances(trail.points)
    return {
        "totalDistance": round_distance_km(cumulative[-1]),
        "totalElevationGain": round_elevation_m(
            elevation_gain(trail.elevations, 0, len(trail) - 1)
        ),
        "segmentDistances": segment_distances(trail.points),
        "cumulativeDistances": cumulative,
        "segmentElevations": segment_gains(trail.elevations, len(trail)),
        "pointCount": len(trail),
        "calculatedAt": calculated_at,
    }


class PrecomputeService:
    """
    Cached access to derived tables.

    Args:
        db: Session for the durable mirror and waypoint reads
        cache: Process-wide PrecomputationCache
        trail_store: Process-wide TrailStore
    """

    def __init__(self, db: AsyncSession, cache: PrecomputationCache, trail_store: TrailStore):
        self.db = db
        self.cache = cache
        self.trail_store = trail_store
        self.rows = PrecalculatedDataRepository(db)
        self.waypoints = WaypointRepository(db)

    @property
    def clock(self):
        return self.cache.clock

    async def _ordered(self, trail: Trail) -> list[ordering.OrderedWaypoint]:
        return ordering.order_waypoints(await self.waypoints.list_all(), trail)

    async def _store(self, key: CacheKey, payload: Any, computed_at: int, scope: str) -> None:
        """Write-through to the durable mirror; failures are not fatal."""
        try:
            await self.rows.upsert(cache_key(key), payload, computed_at, scope)
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.warning(f"Failed to mirror {cache_key(key)} to database: {e}")

    async def _read(
        self,
        key: CacheKey,
        compute: Callable[[int], Awaitable[Any]],
        scope: str,
        in_transaction: bool = False,
    ) -> Any:
        """
        Args:
            in_transaction: The caller owns the unit of work; the mirror
                row is only flushed and failures propagate
        """
        entry = self.cache.get(key, scope)
        if entry is not None:
            return entry.payload

        row = await self.rows.get(cache_key(key))
        if row is not None and row.scope == scope and self.cache.is_fresh(row.computed_at):
            self.cache.put(key, row.payload, row.computed_at, scope)
            return row.payload

        now = self.clock()
        payload = await compute(now)
        self.cache.put(key, payload, now, scope)
        if in_transaction:
            await self.rows.upsert(cache_key(key), payload, now, scope)
        else:
            await self._store(key, payload, now, scope)
        logger.debug(f"Recomputed {cache_key(key)} for {scope}")
        return payload

    async def invalidate(self, keys: Iterable[CacheKey]) -> None:
        """Drop entries from memory and the durable mirror (flush only)."""
        keys = [cache_key(k) for k in keys]
        self.cache.invalidate(keys)
        await self.rows.delete_keys(keys)

    async def commit_invalidating(
        self,
        keys: Iterable[CacheKey],
        what: str,
        result: Any = None,
    ) -> None:
        """
        Commit the caller's unit of work together with dropping `keys`.

        Mirror rows are deleted inside the transaction; memory entries
        only after the commit succeeded, so a concurrent reader cannot
        re-cache a table computed from the uncommitted state.

        Raises:
            PersistenceFailure: If the commit fails
        """
        keys = [cache_key(k) for k in keys]
        await self.rows.delete_keys(keys)
        await commit_or_raise(self.db, what, result=result)
        self.cache.invalidate(keys)

    # === Location-independent tables ===

    async def track_distances(self) -> dict:
        trail = self.trail_store.get()

        async def compute(now: int) -> dict:
            return build_track_distances(trail, now)
        return await self._read(ComputationKey.TRACK_DISTANCES, compute, table_scope(trail))

    async def waypoint_positions(
        self,
        trail: Optional[Trail] = None,
        in_transaction: bool = False,
    ) -> dict:
        """
        GetWaypointPositions: {waypointId: {trackIndex, distanceFromStart, ...}}

        Args:
            trail: Trail to project onto (defaults to the trail store)
            in_transaction: Called from inside another unit of work
        """
        if trail is None:
            trail = self.trail_store.get()

        async def compute(now: int) -> dict:
            return ordering.waypoint_positions(await self._ordered(trail), trail, now)
        return await self._read(
            ComputationKey.WAYPOINT_POSITIONS, compute, table_scope(trail), in_transaction
        )

    async def waypoint_distances(self) -> dict:
        """
        GetWaypointDistances: {"A-B": {...}, "B-A": {...}}

        Falls back to straight-line distances when the trail cannot be
        loaded.
        """
        try:
            trail = self.trail_store.get()
            trail.require_distance_ready()
        except InputError as e:
            logger.warning(f"Trail unavailable, using straight-line waypoint distances: {e}")
            trail = None

        async def compute(now: int) -> dict:
            if trail is None:
                waypoints = ordering.straight_line_waypoints(await self.waypoints.list_all())
                return ordering.waypoint_distances(waypoints, None, now)
            return ordering.waypoint_distances(await self._ordered(trail), trail, now)
        return await self._read(ComputationKey.WAYPOINT_DISTANCES, compute, table_scope(trail))

    async def waypoint_distance(self, waypoint_a: str, waypoint_b: str) -> dict:
        """
        Raises:
            NotFoundError: If no entry exists for the pair
        """
        entry = (await self.waypoint_distances()).get(f"{waypoint_a}-{waypoint_b}")
        if entry is None:
            raise NotFoundError(f"No distance between {waypoint_a} and {waypoint_b}")
        return entry

    # === Location-dependent tables ===

    async def popup_data(self, location: Optional[LatLng]) -> dict:
        if location is None:
            return {}
        trail = self.trail_store.get()

        async def compute(now: int) -> dict:
            return ordering.popup_data(await self._ordered(trail), trail, location, now)
        return await self._read(ComputationKey.POPUP_DATA, compute, table_scope(trail, location))

    async def current_location_distances(self, location: Optional[LatLng]) -> dict:
        if location is None:
            return {}
        trail = self.trail_store.get()

        async def compute(now: int) -> dict:
            return ordering.current_location_distances(
                await self._ordered(trail), trail, location, now
            )
        return await self._read(
            ComputationKey.CURRENT_LOCATION_DISTANCES, compute, table_scope(trail, location)
        )

    async def all_waypoint_data(self, location: Optional[LatLng]) -> dict:
        trail = self.trail_store.get()

        async def compute(now: int) -> dict:
            return ordering.all_waypoint_data(await self._ordered(trail), trail, location, now)
        return await self._read(
            ComputationKey.ALL_WAYPOINT_DATA, compute, table_scope(trail, location)
        )

    async def waypoint_data(self, waypoint_id: str, location: Optional[LatLng]) -> dict:
        """
        Raises:
            NotFoundError: Unknown waypoint
        """
        entry = (await self.all_waypoint_data(location)).get(waypoint_id)
        if entry is None:
            raise NotFoundError(f"Waypoint {waypoint_id} not found")
        return entry

    async def next_waypoint(
        self,
        location: Optional[LatLng],
        next_waypoint_id: Optional[str] = None,
    ) -> Optional[dict]:
        """Distance to the next waypoint (not cached; one projection)."""
        if location is None:
            return None
        trail = self.trail_store.get()
        ordered = await self._ordered(trail)
        if next_waypoint_id is not None and all(o.id != next_waypoint_id for o in ordered):
            raise NotFoundError(f"Waypoint {next_waypoint_id} not found")
        return ordering.next_waypoint_progress(
            ordered, trail, location, self.clock(), next_waypoint_id
        )

    # === Bulk ===

    async def get_precalculated(self, type: str = "all") -> dict:
        """
        Cached tables by name.

        Args:
            type: "all" or one of trackDistances, waypointPositions,
                waypointDistances

        Raises:
            InputError: Unknown type
        """
        readers = {
            ComputationKey.TRACK_DISTANCES.value: self.track_distances,
            ComputationKey.WAYPOINT_POSITIONS.value: self.waypoint_positions,
            ComputationKey.WAYPOINT_DISTANCES.value: self.waypoint_distances,
        }
        if type == "all":
            return {name: await read() for name, read in readers.items()}
        if type not in readers:
            raise InputError(f"Unknown precalculated data type: {type}")
        return {type: await readers[type]()}

    async def recalculate_all(
        self,
        trail: Optional[Trail] = None,
        waypoints: Optional[list] = None,
        location: Optional[LatLng] = None,
    ) -> dict:
        """
        Clear every entry and recompute the full set eagerly.

        Args:
            trail: Trail to use (defaults to the trail store)
            waypoints: Waypoints to use (defaults to the stored set)
            location: Current position for the location-dependent tables

        Raises:
            InputError: If the trail has fewer than 2 points
            PersistenceFailure: If the mirror cannot be written
        """
        if trail is None:
            trail = self.trail_store.get()
        trail.require_distance_ready()
        if waypoints is None:
            waypoints = await self.waypoints.list_all()
        ordered = ordering.order_waypoints(waypoints, trail)
        now = self.clock()

        tables = {
            ComputationKey.TRACK_DISTANCES: build_track_distances(trail, now),
            ComputationKey.WAYPOINT_POSITIONS: ordering.waypoint_positions(ordered, trail, now),
            ComputationKey.WAYPOINT_DISTANCES: ordering.waypoint_distances(ordered, trail, now),
            ComputationKey.ALL_WAYPOINT_DATA: ordering.all_waypoint_data(ordered, trail, location, now),
        }
        if location is not None:
            tables[ComputationKey.POPUP_DATA] = ordering.popup_data(ordered, trail, location, now)
            tables[ComputationKey.CURRENT_LOCATION_DISTANCES] = (
                ordering.current_location_distances(ordered, trail, location, now)
            )

        self.cache.clear()
        await self.rows.delete_all()
        for key, payload in tables.items():
            scope = table_scope(trail, location if key in LOCATION_DEPENDENT_KEYS else None)
            self.cache.put(key, payload, now, scope)
            await self.rows.upsert(key.value, payload, now, scope)

        result = {key.value: payload for key, payload in tables.items()}
        await commit_or_raise(self.db, "precalculated data", result=result)
        logger.info(
            f"Recalculated {len(tables)} tables for {len(ordered)} waypoints "
            f"on a {len(trail)}-point trail"
        )
        return result
