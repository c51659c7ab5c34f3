"""Plain-dict renderings of trips and bids for channel events."""

from __future__ import annotations

from typing import Optional

from ridein.infrastructure.models import BidModel, TripModel, UserModel


def _iso(value) -> Optional[str]:
    return value.isoformat() if value is not None else None


def _value(member):
    return getattr(member, "value", member)


def trip_payload(trip: TripModel) -> dict:
    return {
        "id": trip.id,
        "rider_id": trip.rider_id,
        "driver_id": trip.driver_id,
        "status": _value(trip.status),
        "vehicle_type": _value(trip.vehicle_type),
        "category": trip.category,
        "pickup": {
            "lat": trip.pickup_lat,
            "lng": trip.pickup_lng,
            "address": trip.pickup_address,
        },
        "dropoff": {
            "lat": trip.dropoff_lat,
            "lng": trip.dropoff_lng,
            "address": trip.dropoff_address,
        },
        "proposed_price": trip.proposed_price,
        "final_price": trip.final_price,
        "distance_km": trip.distance_km,
        "duration_mins": trip.duration_mins,
        "updated_at": _iso(trip.updated_at),
    }


def bid_payload(bid: BidModel, driver: Optional[UserModel] = None) -> dict:
    data = {
        "id": bid.id,
        "trip_id": bid.trip_id,
        "driver_id": bid.driver_id,
        "offer_price": bid.offer_price,
        "status": _value(bid.status),
    }
    if driver is not None:
        data["driver_name"] = driver.name
        data["driver_rating"] = driver.rating
        data["vehicle_info"] = driver.vehicle_category or "Standard"
    return data
