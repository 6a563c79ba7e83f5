"""
Rounding helpers for emitted payloads.

Distances are reported in km with 2 decimals, elevation gains in
whole meters. Percentages are left untouched for the caller.
"""

from trail_tracker.shared.constants import DISTANCE_DECIMALS


def round_distance_km(km: float) -> float:
    """Round a distance to 2 decimal places."""
    return round(km, DISTANCE_DECIMALS)


def round_elevation_m(meters: float) -> int:
    """Round an elevation gain to the nearest meter."""
    return int(round(meters))


def format_distance_km(km: float) -> str:
    """
    Format distance.

    Args:
        km: Distance in kilometers

    Returns:
        Formatted string (e.g., '12.5 km' or '850 m')
    """
    if km < 1:
        return f"{int(round(km * 1000))} m"
    return f"{km:.1f} km"
