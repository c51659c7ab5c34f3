"""
Admin / observability endpoints
===============================

GET /api/v1/admin/active-trips -- every non-terminal trip with its bids
GET /api/v1/admin/health       -- simple health check
"""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from ridein.api.dependencies import get_db, require_admin
from ridein.api.middleware import limiter
from ridein.api.routes.trips import trip_response
from ridein.api.schemas import HealthResponse, TripResponse
from ridein.config import settings
from ridein.infrastructure.models import UserModel
from ridein.infrastructure.repositories import (
    BidRepository,
    TripRepository,
    UserRepository,
)
from ridein.services.trips import BidView

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get(
    "/active-trips",
    response_model=list[TripResponse],
    summary="List all active trips with their bids",
)
@limiter.limit(settings.rate_limit)
async def get_active_trips(
    request: Request,
    admin: UserModel = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    bid_repo = BidRepository(db)
    user_repo = UserRepository(db)

    result: list[TripResponse] = []
    for trip in await TripRepository(db).get_active_trips():
        bids = await bid_repo.list_for_trip(trip.id)
        drivers = await user_repo.get_many(b.driver_id for b in bids)
        views = [BidView(bid=b, driver=drivers.get(b.driver_id)) for b in bids]
        result.append(trip_response(trip, views))
    return result


@router.get("/health", response_model=HealthResponse, summary="Health check")
async def health():
    return HealthResponse()
