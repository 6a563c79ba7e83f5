"""
Precomputation Cache

In-process store of derived tables keyed by computation name.
Each entry carries the scope it was computed for (trail fingerprint,
plus the current location for location-dependent tables); a lookup
with a different scope is a miss.
Entries older than the TTL are never returned; staleness is a normal
result (None) and a debug log line, not an error.
"""

import logging
import threading
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Optional

from trail_tracker.shared.clock import Clock, now_ms
from trail_tracker.shared.constants import ComputationKey

logger = logging.getLogger(__name__)

CacheKey = ComputationKey | str


def cache_key(key: CacheKey) -> str:
    return key.value if isinstance(key, ComputationKey) else str(key)


@dataclass(frozen=True)
class CachedComputation:
    """One cached derived table."""
    key: str
    payload: Any
    computed_at: int  # epoch ms
    scope: Optional[str] = None


class PrecomputationCache:
    """
    TTL cache with an injected clock.

    Built once per process and shared by reference. Writes are
    last-writer-wins; payloads are deterministic for the same inputs.
    """

    DEFAULT_TTL_SECONDS = 15 * 60

    def __init__(self, ttl_seconds: int = DEFAULT_TTL_SECONDS, clock: Clock = now_ms):
        self.ttl_ms = ttl_seconds * 1000
        self.clock = clock
        self._entries: dict[str, CachedComputation] = {}
        self._lock = threading.Lock()

    def is_fresh(self, computed_at: int) -> bool:
        """Whether something computed at computed_at is still within TTL."""
        return self.clock() - computed_at < self.ttl_ms

    def _fresh(self, key: CacheKey) -> Optional[CachedComputation]:
        name = cache_key(key)
        entry = self._entries.get(name)
        if entry is None:
            return None
        if not self.is_fresh(entry.computed_at):
            logger.debug(
                f"Cache entry {name} is stale "
                f"({(self.clock() - entry.computed_at) / 1000:.0f}s old)"
            )
            return None
        return entry

    def get(self, key: CacheKey, scope: Optional[str] = None) -> Optional[CachedComputation]:
        """
        Get a fresh entry computed for the given scope.

        Returns:
            The entry, or None when missing, stale or computed for
            another scope
        """
        entry = self._fresh(key)
        if entry is None:
            return None
        if entry.scope != scope:
            logger.debug(f"Cache entry {entry.key} was computed for another scope")
            return None
        return entry

    def put(
        self,
        key: CacheKey,
        payload: Any,
        computed_at: Optional[int] = None,
        scope: Optional[str] = None,
    ) -> CachedComputation:
        entry = CachedComputation(
            key=cache_key(key),
            payload=payload,
            computed_at=self.clock() if computed_at is None else computed_at,
            scope=scope,
        )
        with self._lock:
            self._entries[entry.key] = entry
        return entry

    def get_or_compute(
        self,
        key: CacheKey,
        compute: Callable[[], Any],
        scope: Optional[str] = None,
    ) -> CachedComputation:
        """Return the fresh entry, or compute, store and return a new one."""
        entry = self.get(key, scope)
        if entry is not None:
            return entry
        return self.put(key, compute(), scope=scope)

    def invalidate(self, keys: Iterable[CacheKey]) -> None:
        with self._lock:
            for key in keys:
                self._entries.pop(cache_key(key), None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __contains__(self, key: CacheKey) -> bool:
        """Whether a fresh entry exists for any scope."""
        return self._fresh(key) is not None

    def __len__(self) -> int:
        return len(self._entries)
