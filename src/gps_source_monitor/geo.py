"""Great-circle distance on a spherical Earth."""

from __future__ import annotations

from math import atan2, cos, radians, sin, sqrt

EARTH_RADIUS_M = 6_371_000.0


def calculate_haversine_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Return the haversine distance in meters between two lat/lon pairs in degrees."""
    phi1 = radians(lat1)
    phi2 = radians(lat2)
    dphi = radians(lat2 - lat1)
    dlambda = radians(lon2 - lon1)

    h = sin(dphi / 2) ** 2 + cos(phi1) * cos(phi2) * sin(dlambda / 2) ** 2
    # Rounding can push h just outside [0, 1] for antipodal or identical points.
    h = min(1.0, max(0.0, h))
    return EARTH_RADIUS_M * 2 * atan2(sqrt(h), sqrt(1 - h))
