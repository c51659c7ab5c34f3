"""
Trip Lifecycle Engine
=====================

Owns the status graph of a trip and guards every transition::

    PENDING -> BIDDING -> ACCEPTED -> ARRIVED -> STARTED -> COMPLETED
       |          |           |          |
       +----------+-----------+----------+--> CANCELLED

Every mutation follows the same shape: load, check preconditions, write
with a compare-and-set on the status that was checked, commit, then
publish a best-effort event.  A failed precondition raises before any
write, and the request session rolls back.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from ridein.config import settings
from ridein.domain import lifecycle
from ridein.domain.enums import TripStatus, UserRole, VehicleType
from ridein.domain.errors import (
    AccessDenied,
    Conflict,
    InputError,
    InvalidTransition,
    NotFound,
)
from ridein.domain.grid import grid_cell
from ridein.domain.pricing import PricingEngine
from ridein.infrastructure.events import EventChannel
from ridein.infrastructure.models import BidModel, TripModel, UserModel, utcnow
from ridein.infrastructure.repositories import (
    BidRepository,
    TripRepository,
    UserRepository,
)
from ridein.services.payloads import trip_payload

logger = logging.getLogger(__name__)

CAS_ATTEMPTS = 3


@dataclass
class BidView:
    bid: BidModel
    driver: Optional[UserModel]


def ensure_participant(trip: TripModel, user: UserModel) -> None:
    if user.id not in (trip.rider_id, trip.driver_id):
        raise AccessDenied("You are not a participant in this trip")


class TripLifecycle:
    def __init__(
        self,
        session: AsyncSession,
        events: EventChannel,
        pricing: PricingEngine | None = None,
        clock: Callable = utcnow,
    ):
        self.session = session
        self.events = events
        self.pricing = pricing or PricingEngine()
        self.clock = clock
        self.trips = TripRepository(session)
        self.bids = BidRepository(session)
        self.users = UserRepository(session)

    async def _load(self, trip_id: int) -> TripModel:
        trip = await self.trips.get_by_id(trip_id)
        if trip is None:
            raise NotFound("Trip not found")
        return trip

    # ── Create ────────────────────────────────────────────────────────

    async def create_trip(self, rider: UserModel, **fields) -> TripModel:
        if rider.role != UserRole.RIDER:
            raise AccessDenied("Switch to rider mode to request a trip")
        if fields.get("proposed_price", 0) <= 0:
            raise InputError("Proposed price must be positive")

        vehicle_type = VehicleType(fields.pop("vehicle_type", VehicleType.PASSENGER))
        if vehicle_type == VehicleType.PASSENGER and fields.get("requires_assistance"):
            raise InputError("Loading assistance is only available for freight")
        if fields.get("is_guest_booking") and not (
            fields.get("guest_name") and fields.get("guest_phone")
        ):
            raise InputError("Guest bookings need a guest name and phone")

        now = self.clock()
        trip = TripModel(
            rider_id=rider.id,
            status=TripStatus.PENDING,
            vehicle_type=vehicle_type,
            city=rider.city,
            suggested_price=self.pricing.calculate_price(
                fields.get("distance_km", 0.0), fields["category"], vehicle_type
            ),
            created_at=now,
            updated_at=now,
            **fields,
        )
        await self.trips.create(trip)
        await self.session.commit()
        logger.info("Trip %d created by rider %d", trip.id, rider.id)

        cell = grid_cell(trip.pickup_lat, trip.pickup_lng, settings.h3_resolution)
        await self.events.new_trip(trip.city, cell, trip_payload(trip))
        return trip

    # ── Reads ─────────────────────────────────────────────────────────

    async def get_trip(self, trip_id: int, caller: UserModel) -> TripModel:
        trip = await self._load(trip_id)
        if caller.role != UserRole.ADMIN:
            ensure_participant(trip, caller)
        return trip

    async def get_active_trip(self, caller: UserModel) -> Optional[TripModel]:
        """Rider-side trip first; drivers fall back to the trip they drive."""
        trip = await self.trips.get_active_for_rider(caller.id)
        if trip is None and (
            caller.role == UserRole.DRIVER or caller.driver_profile_exists
        ):
            trip = await self.trips.get_active_for_driver(caller.id)
        return trip

    async def list_history(
        self, caller: UserModel, limit: int = 20, offset: int = 0
    ) -> list[TripModel]:
        return await self.trips.list_history(caller.id, limit=limit, offset=offset)

    async def bids_for(self, trip: TripModel) -> list[BidView]:
        bids = await self.bids.list_for_trip(trip.id)
        drivers = await self.users.get_many(b.driver_id for b in bids)
        return [BidView(bid=b, driver=drivers.get(b.driver_id)) for b in bids]

    # ── Mutations ─────────────────────────────────────────────────────

    async def cancel_trip(self, trip_id: int, caller: UserModel) -> TripModel:
        trip = await self._load(trip_id)
        ensure_participant(trip, caller)

        # A concurrent bid or accept may move the status under us; re-judge
        # the request against whatever state won.
        for _ in range(CAS_ATTEMPTS):
            current = TripStatus(trip.status)
            lifecycle.ensure_cancellable(current)
            if await self.trips.compare_and_set_status(
                trip.id, current, TripStatus.CANCELLED, self.clock()
            ):
                break
            trip = await self.trips.reload(trip)
        else:
            raise Conflict("Trip is changing too quickly; retry")

        rejected = await self.bids.reject_pending(trip.id)
        await self.session.commit()
        trip = await self.trips.reload(trip)
        logger.info(
            "Trip %d cancelled by user %d from %s (%d bids rejected)",
            trip.id, caller.id, current.value, rejected,
        )
        await self.events.trip_update(trip.id, trip_payload(trip))
        return trip

    async def update_status(
        self, trip_id: int, caller: UserModel, status: TripStatus | str
    ) -> TripModel:
        target = status if isinstance(status, TripStatus) else lifecycle.parse_status(status)
        trip = await self._load(trip_id)
        ensure_participant(trip, caller)
        current = TripStatus(trip.status)
        lifecycle.validate_manual_transition(current, target)

        now = self.clock()
        extra = {"completed_at": now} if target == TripStatus.COMPLETED else {}
        if not await self.trips.compare_and_set_status(
            trip.id, current, target, now, **extra
        ):
            trip = await self.trips.reload(trip)
            raise InvalidTransition(TripStatus(trip.status).value, target.value)

        if target == TripStatus.COMPLETED:
            await self.users.increment_trips_count([trip.rider_id, trip.driver_id])
        elif target == TripStatus.CANCELLED:
            await self.bids.reject_pending(trip.id)

        await self.session.commit()
        trip = await self.trips.reload(trip)
        logger.info(
            "Trip %d: %s -> %s by user %d",
            trip.id, current.value, target.value, caller.id,
        )
        await self.events.trip_update(trip.id, trip_payload(trip))
        return trip
