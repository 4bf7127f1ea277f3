"""
Geographic helpers.

Device coordinates arrive as integers scaled by 1e6; distances are
great-circle (haversine) on a sphere with the WGS84 semi-major axis as
radius, which is what existing consumers of these numbers expect.
"""

import numpy as np


EARTH_RADIUS_M = 6378137  # WGS84 semi-major axis, used as the sphere radius
GPS_COORDINATE_DIVISOR = 1_000_000.0
COORDINATE_DECIMALS = 6


def to_decimal_degrees(x: int, y: int) -> tuple[float, float]:
    """
    Convert device coordinates to decimal degrees.

    Args:
        x: Longitude scaled by 1e6
        y: Latitude scaled by 1e6

    Returns:
        Tuple of (latitude, longitude)
    """
    return (y / GPS_COORDINATE_DIVISOR, x / GPS_COORDINATE_DIVISOR)


def round_coordinate(value: float) -> float:
    return round(value, COORDINATE_DECIMALS)


def get_distance(lon1: float, lat1: float, lon2: float, lat2: float) -> int:
    """
    Great-circle distance between two points using the haversine formula.

    Total function: any numeric failure (NaN, out-of-domain arcsine,
    overflow) yields 0 instead of an exception.

    Args:
        lon1, lat1: First point in decimal degrees
        lon2, lat2: Second point in decimal degrees

    Returns:
        Distance in whole meters (truncated)
    """
    try:
        with np.errstate(invalid="raise", over="raise", divide="raise"):
            lat1_rad = np.radians(lat1)
            lon1_rad = np.radians(lon1)
            lat2_rad = np.radians(lat2)
            lon2_rad = np.radians(lon2)

            a = (
                np.sin((lat1_rad - lat2_rad) / 2) ** 2
                + np.cos(lat1_rad) * np.cos(lat2_rad) * np.sin((lon1_rad - lon2_rad) / 2) ** 2
            )
            meters = EARTH_RADIUS_M * (2 * np.arcsin(np.sqrt(a)))
            return int(meters)
    except (ArithmeticError, FloatingPointError, ValueError, TypeError):
        return 0
