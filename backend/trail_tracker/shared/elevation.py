"""
Elevation processing utilities.

This is the SINGLE SOURCE OF TRUTH for elevation calculations.

Elevation series come from GPX files and may be shorter than the
point list or contain gaps (None / NaN). Pairs touching a gap are
skipped instead of failing.
"""
import math
from typing import Optional, Sequence, Tuple


def _sample(elevations: Sequence[Optional[float]], index: int) -> Optional[float]:
    """Elevation at index, or None if missing, NaN or out of range."""
    if index < 0 or index >= len(elevations):
        return None
    value = elevations[index]
    if value is None or math.isnan(value):
        return None
    return value


def elevation_gain(
    elevations: Sequence[Optional[float]],
    from_index: int,
    to_index: int
) -> float:
    """
    Sum of positive elevation deltas over (from_index, to_index].

    Args:
        elevations: Elevation per trail index (meters)
        from_index: Start index (bounds are swapped if reversed)
        to_index: End index

    Returns:
        Elevation gain in meters
    """
    if from_index > to_index:
        from_index, to_index = to_index, from_index

    gain = 0.0
    for i in range(from_index + 1, to_index + 1):
        prev = _sample(elevations, i - 1)
        curr = _sample(elevations, i)
        if prev is None or curr is None:
            continue
        diff = curr - prev
        if diff > 0:
            gain += diff

    return gain


def segment_gains(elevations: Sequence[Optional[float]], point_count: int) -> list[float]:
    """
    Positive elevation delta for every edge of a trail.

    Edges without usable samples contribute 0.

    Returns:
        List of point_count - 1 gains
    """
    return [elevation_gain(elevations, i - 1, i) for i in range(1, point_count)]


def calculate_elevation_changes(
    elevations: Sequence[Optional[float]]
) -> Tuple[float, float]:
    """
    Calculate total elevation gain and loss.

    Args:
        elevations: List of elevation values

    Returns:
        Tuple of (gain_m, loss_m)
    """
    gain = 0.0
    loss = 0.0

    for i in range(1, len(elevations)):
        prev = _sample(elevations, i - 1)
        curr = _sample(elevations, i)
        if prev is None or curr is None:
            continue
        diff = curr - prev
        if diff > 0:
            gain += diff
        else:
            loss += abs(diff)

    return gain, loss
