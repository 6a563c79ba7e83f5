"""
GPX Trail Parser

Parses the race route GPX file into a Trail.
"""

import logging
from pathlib import Path
from typing import List, Optional

import gpxpy
import gpxpy.gpx

from trail_tracker.shared.elevation import calculate_elevation_changes
from trail_tracker.shared.errors import InputError
from trail_tracker.shared.formatters import format_distance_km
from trail_tracker.shared.geo import polyline_length
from .schemas import Trail, TrailPoint

logger = logging.getLogger(__name__)

# Files smaller than this cannot hold a usable route
MIN_GPX_BYTES = 100


class GPXTrailParser:
    """Service for turning GPX content into a Trail."""

    @staticmethod
    def parse(content: bytes | str) -> Trail:
        """
        Parse GPX content and flatten every track segment into one trail.

        Points with invalid (NaN or 0/0) coordinates are dropped, as the
        device exports occasionally contain them. Missing elevations
        become None so the series stays index-aligned with the points.

        Args:
            content: GPX file content

        Returns:
            Trail in file order

        Raises:
            InputError: If GPX is invalid or holds no points
        """
        if isinstance(content, bytes):
            content = content.decode('utf-8')

        try:
            gpx = gpxpy.parse(content)
        except Exception as e:
            logger.error(f"Failed to parse GPX: {e}")
            raise InputError(f"Invalid GPX file: {e}")

        points: List[TrailPoint] = []
        elevations: List[Optional[float]] = []

        def _collect(gpx_points) -> None:
            for point in gpx_points:
                lat, lng = point.latitude, point.longitude
                if lat is None or lng is None or (lat == 0 and lng == 0):
                    continue
                points.append(TrailPoint(lat, lng))
                elevations.append(point.elevation)

        # From tracks
        for track in gpx.tracks:
            for segment in track.segments:
                _collect(segment.points)

        # From routes (if no tracks)
        if not points:
            for route in gpx.routes:
                _collect(route.points)

        if not points:
            raise InputError("GPX file contains no track or route points")

        name = gpx.name or (gpx.tracks[0].name if gpx.tracks else None)
        gain, loss = calculate_elevation_changes(elevations)
        logger.info(
            f"Parsed GPX trail '{name}': {len(points)} points, "
            f"{format_distance_km(polyline_length(points))}, +{gain:.0f}/-{loss:.0f} m"
        )

        return Trail(points=tuple(points), elevations=tuple(elevations), name=name)

    @classmethod
    def load_file(cls, path: Path | str) -> Trail:
        """
        Read and parse a GPX file from disk.

        Raises:
            InputError: If the file is missing, too small or invalid
        """
        path = Path(path)
        try:
            content = path.read_bytes()
        except OSError as e:
            raise InputError(f"Cannot read GPX file {path}: {e}")

        if len(content) < MIN_GPX_BYTES:
            raise InputError(f"GPX file {path} appears to be empty or too small")

        return cls.parse(content)
