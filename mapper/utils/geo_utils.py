"""
Geographic utility functions.

Coordinate coercion and validation for marker and geocoder input.
"""

from __future__ import annotations

import math
from typing import Any, Optional, Tuple

Coord = Tuple[float, float]  # (lat, lon)

LAT_RANGE = (-90.0, 90.0)
LON_RANGE = (-180.0, 180.0)


def to_float(value: Any) -> Optional[float]:
    """
    Coerce a number or numeric string to a finite float.

    Returns:
        The float value, or None for booleans, blanks, non-numeric input,
        NaN and infinities.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
    try:
        result = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(result):
        return None
    return result


def in_range(lat: float, lon: float) -> bool:
    """Check that (lat, lon) lies on the globe."""
    return LAT_RANGE[0] <= lat <= LAT_RANGE[1] and LON_RANGE[0] <= lon <= LON_RANGE[1]


def parse_coord(lat: Any, lon: Any) -> Optional[Coord]:
    """
    Parse a raw (lat, lon) pair.

    Args:
        lat: Latitude as number or numeric string.
        lon: Longitude as number or numeric string.

    Returns:
        (lat, lon) floats, or None if either value is unusable or off the globe.
    """
    flat = to_float(lat)
    flon = to_float(lon)
    if flat is None or flon is None:
        return None
    if not in_range(flat, flon):
        return None
    return (flat, flon)
