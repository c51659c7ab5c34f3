"""
Proximity Filter
================

Lists open trips whose pickup lies within a driver's search radius.

Algorithm
---------
1. Fetch every open trip (PENDING or BIDDING).
2. Haversine distance from the driver to each pickup.
3. Keep ``distance <= radius`` (boundary inclusive).
4. Sort by distance, nearest first; ties by trip id.

Complexity: O(n) over all open trips, no spatial index.  Fine at city
scale; a geo-index would be needed beyond that.
"""

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from ridein.config import settings
from ridein.domain.distance import Location, distance_between
from ridein.domain.errors import AccessDenied, InputError
from ridein.infrastructure.models import TripModel, UserModel
from ridein.infrastructure.repositories import TripRepository


@dataclass
class NearbyTrip:
    trip: TripModel
    distance_km: float


class ProximityFilter:
    def __init__(self, session: AsyncSession):
        self.trips = TripRepository(session)

    async def list_available_trips(
        self,
        caller: UserModel,
        lat: float,
        lng: float,
        radius_km: float | None = None,
    ) -> list[NearbyTrip]:
        if not caller.is_approved_driver:
            raise AccessDenied("Only approved drivers can browse trips")
        radius = settings.default_search_radius_km if radius_km is None else radius_km
        if radius <= 0 or radius > settings.max_search_radius_km:
            raise InputError(
                f"Radius must be between 0 and {settings.max_search_radius_km} km"
            )

        origin = Location(lat, lng)
        nearby: list[NearbyTrip] = []
        for trip in await self.trips.get_open_trips():
            if trip.rider_id == caller.id:
                continue
            d = distance_between(origin, Location(trip.pickup_lat, trip.pickup_lng))
            if d <= radius:
                nearby.append(NearbyTrip(trip=trip, distance_km=d))

        nearby.sort(key=lambda n: (n.distance_km, n.trip.id))
        return nearby
