"""
Great-circle distance and radius filtering.

Pickup points are compared with the driver position using the Haversine
formula.  The proximity filter scans every open trip, so it is O(n) in the
number of open trips with no spatial index behind it.

Complexity: O(1) per distance call.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

EARTH_RADIUS_KM = 6_371.0


@dataclass(frozen=True)
class Location:
    latitude: float
    longitude: float


def haversine_km(
    lat1: float, lng1: float, lat2: float, lng2: float
) -> float:
    """Return the great-circle distance in **km** between two points."""
    lat1_r, lat2_r = math.radians(lat1), math.radians(lat2)
    dlat = math.radians(lat2 - lat1)
    dlng = math.radians(lng2 - lng1)

    a = (
        math.sin(dlat / 2) ** 2
        + math.cos(lat1_r) * math.cos(lat2_r) * math.sin(dlng / 2) ** 2
    )
    # clamp: rounding can push a just above 1.0 for antipodal points
    return 2 * EARTH_RADIUS_KM * math.asin(math.sqrt(min(1.0, a)))


def distance_between(a: Location, b: Location) -> float:
    return haversine_km(a.latitude, a.longitude, b.latitude, b.longitude)


def within_radius(origin: Location, point: Location, radius_km: float) -> bool:
    """Boundary inclusive: a point exactly *radius_km* away is inside."""
    return distance_between(origin, point) <= radius_km
