"""
Trail Store

Process-wide holder of the loaded trail with a bounded TTL.
"""

import logging
import threading
from pathlib import Path
from typing import Callable, Optional

from trail_tracker.shared.clock import Clock, now_ms
from .parser import GPXTrailParser
from .schemas import Trail

logger = logging.getLogger(__name__)

TrailLoader = Callable[[], Trail]


class TrailStore:
    """
    Caches the trail and reloads it transparently on expiry.

    Features:
    - TTL reload (default 5 min) through an injected loader
    - A failed reload keeps serving the previous trail
    - Readers never see a half-loaded trail (Trail is immutable and
      swapped in one assignment)
    - A reload with different content is logged; cached tables keyed to
      the old Trail.fingerprint stop matching
    """

    DEFAULT_TTL_SECONDS = 5 * 60

    def __init__(
        self,
        loader: TrailLoader,
        ttl_seconds: int = DEFAULT_TTL_SECONDS,
        clock: Clock = now_ms,
    ):
        self._loader = loader
        self._ttl_ms = ttl_seconds * 1000
        self._clock = clock
        self._trail: Optional[Trail] = None
        self._loaded_at: Optional[int] = None
        self._lock = threading.Lock()

    @classmethod
    def from_gpx_file(
        cls,
        path: Path | str,
        ttl_seconds: int = DEFAULT_TTL_SECONDS,
        clock: Clock = now_ms,
    ) -> "TrailStore":
        """Store backed by a GPX file on disk."""
        return cls(lambda: GPXTrailParser.load_file(path), ttl_seconds, clock)

    @classmethod
    def from_trail(cls, trail: Trail, clock: Clock = now_ms) -> "TrailStore":
        """Store that always serves the given trail."""
        return cls(lambda: trail, ttl_seconds=0, clock=clock)

    def _is_fresh(self) -> bool:
        return (
            self._trail is not None
            and self._loaded_at is not None
            and (self._ttl_ms <= 0 or self._clock() - self._loaded_at < self._ttl_ms)
        )

    def get(self) -> Trail:
        """
        Return the current trail, reloading it if the TTL has passed.

        Raises:
            Whatever the loader raises, when no previous trail exists
        """
        if self._is_fresh():
            return self._trail

        with self._lock:
            # Another caller may have reloaded while we waited
            if self._is_fresh():
                return self._trail
            try:
                trail = self._loader()
            except Exception as e:
                if self._trail is not None:
                    logger.warning(f"Trail reload failed, using expired trail: {e}")
                    return self._trail
                raise
            previous = self._trail
            self._trail = trail
            self._loaded_at = self._clock()
            logger.debug(f"Trail loaded ({len(trail)} points)")
            if previous is not None and previous.fingerprint != trail.fingerprint:
                logger.info(
                    f"Trail content changed on reload ({len(previous)} -> {len(trail)} points)"
                )
            return trail

    def peek(self) -> Optional[Trail]:
        """Return the trail if one is loaded, without reloading."""
        return self._trail

    def invalidate(self) -> None:
        """Force a reload on the next get()."""
        with self._lock:
            self._loaded_at = None
