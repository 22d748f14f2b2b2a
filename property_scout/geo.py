"""
Great-circle distance and radius checks.
"""

import math
from typing import Optional

EARTH_RADIUS_KM = 6371.0


def distance_km(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Haversine distance in kilometers between two lat/lng points."""
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lng2 - lng1)

    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    # Rounding can push a just past 1 for antipodal points.
    a = min(1.0, max(0.0, a))
    return 2 * EARTH_RADIUS_KM * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def within_radius(
    lat1: float,
    lng1: float,
    lat2: Optional[float],
    lng2: Optional[float],
    radius_km: float
) -> bool:
    """
    Check whether the second point lies within ``radius_km`` of the first.

    A point without coordinates is always considered within radius.
    """
    if lat2 is None or lng2 is None:
        return True
    return distance_km(lat1, lng1, lat2, lng2) <= radius_km
