"""
Bid Arbitration
===============

Drivers make competing offers on an open trip; the rider picks one.

Acceptance protocol
-------------------
1. **Claim** -- one conditional UPDATE hands the trip to the winning driver
   (``status IN (PENDING, BIDDING) AND driver_id IS NULL``).  Only one
   caller can match that predicate, so two accepts can never both win.
   The winning bid is marked accepted in the same commit.
2. **Settle** -- every other pending bid is rejected in a second commit.
   This step is derived from the trip's authoritative state, so if it
   fails the bid reconciler worker repeats it later.

Uniqueness of ``(trip_id, driver_id)`` is enforced by a unique constraint;
the count query in front of it only produces a friendlier error.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ridein.domain import lifecycle
from ridein.domain.enums import BidStatus, TripStatus
from ridein.domain.errors import (
    AccessDenied,
    Conflict,
    DuplicateBid,
    InputError,
    InvalidBid,
    InvalidState,
    NotFound,
)
from ridein.infrastructure.events import EventChannel
from ridein.infrastructure.models import BidModel, TripModel, UserModel, utcnow
from ridein.infrastructure.repositories import BidRepository, TripRepository
from ridein.services.payloads import bid_payload, trip_payload

logger = logging.getLogger(__name__)


class BidArbitration:
    def __init__(
        self,
        session: AsyncSession,
        events: EventChannel,
        clock: Callable = utcnow,
    ):
        self.session = session
        self.events = events
        self.clock = clock
        self.trips = TripRepository(session)
        self.bids = BidRepository(session)

    async def submit_bid(
        self,
        trip_id: int,
        caller: UserModel,
        offer_price: float,
        driver_id: Optional[int] = None,
    ) -> BidModel:
        if driver_id is not None and driver_id != caller.id:
            raise AccessDenied("Drivers can only bid for themselves")
        if not caller.is_approved_driver:
            raise AccessDenied("Only approved drivers can bid")
        if offer_price <= 0:
            raise InputError("Offer price must be positive")

        trip = await self.trips.get_by_id(trip_id)
        if trip is None:
            raise NotFound("Trip not found")
        if trip.rider_id == caller.id:
            raise AccessDenied("You cannot bid on your own trip")
        lifecycle.ensure_open(TripStatus(trip.status))

        if await self.bids.count_for_driver(trip.id, caller.id):
            raise DuplicateBid("You have already bid on this trip")

        bid = BidModel(
            trip_id=trip.id,
            driver_id=caller.id,
            offer_price=offer_price,
            status=BidStatus.PENDING,
        )
        try:
            await self.bids.create(bid)
        except IntegrityError:
            await self.session.rollback()
            raise DuplicateBid("You have already bid on this trip") from None

        # First bid opens the auction; later bids find it already open.
        if not await self.trips.compare_and_set_status(
            trip.id, TripStatus.PENDING, TripStatus.BIDDING, self.clock()
        ):
            trip = await self.trips.reload(trip)
            status = TripStatus(trip.status)
            if status != TripStatus.BIDDING:
                # rollback expires the trip, so read status first
                await self.session.rollback()
                raise InvalidState(
                    f"Trip is not open for bids (status {status.value})"
                )

        await self.session.commit()
        logger.info(
            "Bid %d on trip %d by driver %d (%.2f)",
            bid.id, trip.id, caller.id, offer_price,
        )
        await self.events.new_bid(trip.id, bid_payload(bid, caller))
        return bid

    async def accept_bid(
        self, trip_id: int, bid_id: int, caller: UserModel
    ) -> TripModel:
        trip = await self.trips.get_by_id(trip_id)
        if trip is None:
            raise NotFound("Trip not found")
        if trip.rider_id != caller.id:
            raise AccessDenied("Only the rider can accept a bid")

        bid = await self.bids.get_by_id(bid_id)
        if bid is None:
            raise NotFound("Bid not found")
        if bid.trip_id != trip.id:
            raise InvalidBid("Bid does not belong to this trip")

        won = await self.trips.claim_for_bid(
            trip.id, bid.driver_id, bid.offer_price, self.clock()
        )
        if not won:
            trip = await self.trips.reload(trip)
            if trip.driver_id == bid.driver_id and TripStatus(trip.status) != TripStatus.CANCELLED:
                # Retry of an accept that already went through
                return trip
            if trip.driver_id is not None:
                raise Conflict("Another bid has already been accepted")
            raise InvalidState(
                f"Trip is not open for bids (status {TripStatus(trip.status).value})"
            )
        if bid.status == BidStatus.REJECTED:
            await self.session.rollback()
            raise InvalidBid("Bid is no longer available")

        # settle may roll back and expire every loaded object
        trip_id, winner_id = trip.id, bid.driver_id
        await self.bids.mark_accepted(trip_id, winner_id)
        await self.session.commit()
        logger.info(
            "Trip %d accepted bid %d (driver %d, %.2f)",
            trip_id, bid.id, winner_id, bid.offer_price,
        )

        await self.settle(trip_id, winner_id)

        trip = await self.trips.reload(trip)
        payload = trip_payload(trip)
        await self.events.bid_accepted(winner_id, payload)
        await self.events.trip_update(trip_id, payload)
        return trip

    async def settle(self, trip_id: int, winner_driver_id: Optional[int]) -> int:
        """Reject losing bids.  Safe to repeat; failures are left for the reconciler."""
        try:
            if winner_driver_id is not None:
                await self.bids.mark_accepted(trip_id, winner_driver_id)
            rejected = await self.bids.reject_pending(
                trip_id, except_driver_id=winner_driver_id
            )
            await self.session.commit()
        except SQLAlchemyError:
            await self.session.rollback()
            logger.exception("Settling bids for trip %d failed; reconciler will retry", trip_id)
            return 0
        if rejected:
            logger.info("Trip %d: %d losing bids rejected", trip_id, rejected)
        return rejected
