"""
Channel partitioning.

Realtime topics for driver presence and trip discovery are scoped by city
plus an H3 hexagon, so a driver only hears about requests in their own
cell.  Per-trip and per-user topics are addressed by id.
"""

from __future__ import annotations

import h3


def grid_cell(lat: float, lng: float, resolution: int = 7) -> str:
    """Map a geo-point to an H3 hexagonal cell index.  O(1)."""
    return h3.latlng_to_cell(lat, lng, resolution)


def city_slug(city: str | None) -> str:
    if not city:
        return "unknown"
    return "_".join(city.strip().lower().split())


def trip_requests_topic(city: str | None, cell: str) -> str:
    return f"ride:requests:{city_slug(city)}:{cell}"


def driver_presence_topic(city: str | None, cell: str) -> str:
    return f"presence:drivers:{city_slug(city)}:{cell}"


def trip_events_topic(trip_id: int) -> str:
    return f"ride:{trip_id}:events"


def user_topic(user_id: int) -> str:
    return f"user:{user_id}:notifications"
