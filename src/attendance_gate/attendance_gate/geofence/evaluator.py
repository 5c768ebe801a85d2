"""
Geofence evaluation.
Uses the Haversine formula to calculate distance between a position and a site.
"""
from __future__ import annotations

import math
from dataclasses import dataclass

from ..common.validators import require_coordinates
from ..core.constants import EARTH_RADIUS_METERS
from ..sites.model import Site


@dataclass(frozen=True)
class Position:
    latitude: float
    longitude: float
    accuracy: float | None = None


@dataclass(frozen=True)
class GeoFenceResult:
    distance_meters: int
    radius_meters: float

    @property
    def within_radius(self) -> bool:
        return self.distance_meters <= self.radius_meters


def haversine_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """
    Calculate the great circle distance between two points on Earth.

    Args:
        lat1: Latitude of first point
        lon1: Longitude of first point
        lat2: Latitude of second point
        lon2: Longitude of second point

    Returns:
        Distance in meters

    Raises:
        InputError: if any coordinate is out of range
    """
    lat1, lon1 = require_coordinates(lat1, lon1)
    lat2, lon2 = require_coordinates(lat2, lon2)

    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    delta_phi = math.radians(lat2 - lat1)
    delta_lambda = math.radians(lon2 - lon1)

    a = (
        math.sin(delta_phi / 2) ** 2 +
        math.cos(phi1) * math.cos(phi2) * math.sin(delta_lambda / 2) ** 2
    )
    # Float error can push a just above 1 for antipodal points.
    a = min(1.0, a)
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))

    return EARTH_RADIUS_METERS * c


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def distance_meters(a: Position, b: Position) -> int:
    """Whole meters between two positions, rounded half-up."""
    return round_half_up(haversine_distance(a.latitude, a.longitude, b.latitude, b.longitude))


def evaluate(position: Position, site: Site) -> GeoFenceResult:
    """Measure how far ``position`` is from ``site`` and whether it is inside the fence."""
    center = Position(latitude=site.latitude, longitude=site.longitude)
    return GeoFenceResult(
        distance_meters=distance_meters(position, center),
        radius_meters=float(site.radius_meters),
    )


def format_distance(meters: float) -> str:
    if meters >= 1000:
        return f"{meters / 1000:.2f} km"
    return f"{round_half_up(meters)} m"
