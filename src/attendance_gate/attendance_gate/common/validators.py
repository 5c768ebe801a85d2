from __future__ import annotations

import math

from ..core.exceptions import InputError


def require_coordinates(latitude, longitude) -> tuple[float, float]:
    """Return (lat, lon) as floats, or raise InputError when out of range."""
    try:
        lat = float(latitude)
        lon = float(longitude)
    except (TypeError, ValueError):
        raise InputError(f"Invalid coordinates: ({latitude!r}, {longitude!r})")

    if math.isnan(lat) or math.isnan(lon):
        raise InputError("Coordinates must be numbers")
    if not -90.0 <= lat <= 90.0:
        raise InputError(f"Latitude {lat} is outside [-90, 90]")
    if not -180.0 <= lon <= 180.0:
        raise InputError(f"Longitude {lon} is outside [-180, 180]")
    return lat, lon
