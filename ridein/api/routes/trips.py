"""
Trip endpoints
==============

POST /api/v1/trips                      -- request a trip
GET  /api/v1/trips/active               -- caller's current trip with bids
GET  /api/v1/trips/history              -- caller's finished trips
GET  /api/v1/trips/{trip_id}            -- one trip with bids
POST /api/v1/trips/{trip_id}/cancel     -- cancel
POST /api/v1/trips/{trip_id}/status     -- lifecycle transition
POST /api/v1/trips/{trip_id}/offers     -- driver bid
POST /api/v1/trips/{trip_id}/accept     -- rider accepts a bid
POST /api/v1/trips/{trip_id}/review     -- rider reviews a completed trip
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from ridein.api.dependencies import get_current_user, get_db, get_events
from ridein.api.middleware import limiter
from ridein.api.schemas import (
    AcceptBidRequest,
    AcceptBidResponse,
    BidCreateRequest,
    BidResponse,
    ErrorResponse,
    ReviewRequest,
    ReviewResponse,
    StatusUpdateRequest,
    TripCreateRequest,
    TripLocation,
    TripResponse,
    TripStatusResponse,
)
from ridein.config import settings
from ridein.domain.polling import poll_interval
from ridein.infrastructure.events import EventChannel
from ridein.infrastructure.models import TripModel, UserModel
from ridein.services.bids import BidArbitration
from ridein.services.reviews import ReviewService
from ridein.services.trips import BidView, TripLifecycle

router = APIRouter(prefix="/trips", tags=["trips"])

_errors = {
    400: {"model": ErrorResponse},
    401: {"model": ErrorResponse},
    403: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    409: {"model": ErrorResponse},
}


def bid_response(view: BidView) -> BidResponse:
    bid, driver = view.bid, view.driver
    return BidResponse(
        id=bid.id,
        trip_id=bid.trip_id,
        driver_id=bid.driver_id,
        offer_price=bid.offer_price,
        status=bid.status,
        created_at=bid.created_at,
        driver_name=driver.name if driver else None,
        driver_rating=driver.rating if driver else None,
        vehicle_info=(driver.vehicle_category or "Standard") if driver else None,
    )


def trip_response(trip: TripModel, bids: list[BidView] | None = None) -> TripResponse:
    return TripResponse(
        id=trip.id,
        rider_id=trip.rider_id,
        driver_id=trip.driver_id,
        status=trip.status,
        pickup=TripLocation(
            lat=trip.pickup_lat, lng=trip.pickup_lng, address=trip.pickup_address
        ),
        dropoff=TripLocation(
            lat=trip.dropoff_lat, lng=trip.dropoff_lng, address=trip.dropoff_address
        ),
        city=trip.city,
        vehicle_type=trip.vehicle_type,
        category=trip.category,
        proposed_price=trip.proposed_price,
        suggested_price=trip.suggested_price,
        final_price=trip.final_price,
        distance_km=trip.distance_km,
        duration_mins=trip.duration_mins,
        notes=trip.notes,
        is_guest_booking=trip.is_guest_booking,
        guest_name=trip.guest_name,
        guest_phone=trip.guest_phone,
        scheduled_time=trip.scheduled_time,
        item_description=trip.item_description,
        requires_assistance=trip.requires_assistance,
        cargo_photos=list(trip.cargo_photos or []),
        created_at=trip.created_at,
        updated_at=trip.updated_at,
        completed_at=trip.completed_at,
        bids=[bid_response(v) for v in bids or []],
    )


@router.post(
    "",
    status_code=201,
    response_model=TripResponse,
    summary="Request a trip",
    description="Creates a PENDING trip and announces it to drivers in the pickup cell.",
    responses=_errors,
)
@limiter.limit(settings.rate_limit)
async def create_trip(
    request: Request,
    body: TripCreateRequest,
    user: UserModel = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    events: EventChannel = Depends(get_events),
):
    trip = await TripLifecycle(db, events).create_trip(user, **body.to_fields())
    return trip_response(trip)


@router.get(
    "/active",
    response_model=Optional[TripResponse],
    summary="Caller's current non-terminal trip",
    description=(
        "Returns null when there is none.  The ``X-Poll-Interval`` header "
        "suggests how many seconds to wait before polling again."
    ),
    responses=_errors,
)
@limiter.limit(settings.rate_limit)
async def get_active_trip(
    request: Request,
    response: Response,
    user: UserModel = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    events: EventChannel = Depends(get_events),
):
    engine = TripLifecycle(db, events)
    trip = await engine.get_active_trip(user)
    response.headers["X-Poll-Interval"] = str(
        poll_interval(
            trip.updated_at if trip else None,
            min_seconds=settings.poll_min_seconds,
            max_seconds=settings.poll_max_seconds,
        )
    )
    if trip is None:
        return None
    return trip_response(trip, await engine.bids_for(trip))


@router.get(
    "/history",
    response_model=list[TripResponse],
    summary="Caller's completed and cancelled trips",
    responses=_errors,
)
@limiter.limit(settings.rate_limit)
async def list_trip_history(
    request: Request,
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    user: UserModel = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    events: EventChannel = Depends(get_events),
):
    trips = await TripLifecycle(db, events).list_history(user, limit=limit, offset=offset)
    return [trip_response(t) for t in trips]


@router.get(
    "/{trip_id}",
    response_model=TripResponse,
    summary="Get a trip with its bids",
    responses=_errors,
)
@limiter.limit(settings.rate_limit)
async def get_trip(
    request: Request,
    trip_id: int,
    user: UserModel = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    events: EventChannel = Depends(get_events),
):
    engine = TripLifecycle(db, events)
    trip = await engine.get_trip(trip_id, user)
    return trip_response(trip, await engine.bids_for(trip))


@router.post(
    "/{trip_id}/cancel",
    response_model=TripStatusResponse,
    summary="Cancel a trip",
    description=(
        "Rider or driver may cancel while the trip is PENDING, BIDDING, "
        "ACCEPTED or ARRIVED.  Pending bids are rejected."
    ),
    responses=_errors,
)
@limiter.limit(settings.rate_limit)
async def cancel_trip(
    request: Request,
    trip_id: int,
    user: UserModel = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    events: EventChannel = Depends(get_events),
):
    trip = await TripLifecycle(db, events).cancel_trip(trip_id, user)
    return TripStatusResponse(id=trip.id, status=trip.status)


@router.post(
    "/{trip_id}/status",
    response_model=TripResponse,
    summary="Move a trip along its lifecycle",
    responses=_errors,
)
@limiter.limit(settings.rate_limit)
async def update_trip_status(
    request: Request,
    trip_id: int,
    body: StatusUpdateRequest,
    user: UserModel = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    events: EventChannel = Depends(get_events),
):
    trip = await TripLifecycle(db, events).update_status(trip_id, user, body.status)
    return trip_response(trip)


@router.post(
    "/{trip_id}/offers",
    status_code=201,
    response_model=BidResponse,
    summary="Submit a bid",
    responses=_errors,
)
@limiter.limit(settings.rate_limit)
async def submit_bid(
    request: Request,
    trip_id: int,
    body: BidCreateRequest,
    user: UserModel = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    events: EventChannel = Depends(get_events),
):
    bid = await BidArbitration(db, events).submit_bid(
        trip_id, user, body.offer_price, driver_id=body.driver_id
    )
    return bid_response(BidView(bid=bid, driver=user))


@router.post(
    "/{trip_id}/accept",
    response_model=AcceptBidResponse,
    summary="Accept a bid",
    description=(
        "Assigns the bid's driver and price to the trip.  Exactly one accept "
        "per trip succeeds; every other bid is rejected."
    ),
    responses=_errors,
)
@limiter.limit(settings.rate_limit)
async def accept_bid(
    request: Request,
    trip_id: int,
    body: AcceptBidRequest,
    user: UserModel = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    events: EventChannel = Depends(get_events),
):
    trip = await BidArbitration(db, events).accept_bid(trip_id, body.bid_id, user)
    return AcceptBidResponse(
        id=trip.id,
        status=trip.status,
        driver_id=trip.driver_id,
        final_price=trip.final_price,
    )


@router.post(
    "/{trip_id}/review",
    status_code=201,
    response_model=ReviewResponse,
    summary="Review a completed trip",
    responses=_errors,
)
@limiter.limit(settings.rate_limit)
async def submit_review(
    request: Request,
    trip_id: int,
    body: ReviewRequest,
    user: UserModel = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    review = await ReviewService(db).submit_review(
        trip_id,
        user,
        rating=body.rating,
        tags=body.tags,
        comment=body.comment,
        is_favorite=body.is_favorite,
    )
    return ReviewResponse(message="Review submitted", review_id=review.id)
