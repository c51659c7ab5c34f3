"""
Driver endpoints
================

GET  /api/v1/driver/trips/available -- open trips near the driver
POST /api/v1/driver/location        -- location / online ping
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from ridein.api.dependencies import get_current_user, get_db, get_events
from ridein.api.middleware import limiter
from ridein.api.schemas import (
    AvailableTripResponse,
    DriverLocationResponse,
    LocationPingRequest,
)
from ridein.config import settings
from ridein.infrastructure.events import EventChannel
from ridein.infrastructure.models import UserModel
from ridein.services.presence import DriverPresence
from ridein.services.proximity import ProximityFilter

router = APIRouter(prefix="/driver", tags=["driver"])


@router.get(
    "/trips/available",
    response_model=list[AvailableTripResponse],
    summary="Open trips within a radius, nearest first",
)
@limiter.limit(settings.rate_limit)
async def list_available_trips(
    request: Request,
    lat: float = Query(..., ge=-90, le=90),
    lng: float = Query(..., ge=-180, le=180),
    radius: Optional[float] = Query(None, gt=0, description="Search radius in km"),
    user: UserModel = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    nearby = await ProximityFilter(db).list_available_trips(user, lat, lng, radius)
    return [
        AvailableTripResponse(
            id=n.trip.id,
            status=n.trip.status,
            distance_km=round(n.distance_km, 3),
            proposed_price=n.trip.proposed_price,
            vehicle_type=n.trip.vehicle_type,
            category=n.trip.category,
            pickup_address=n.trip.pickup_address,
            dropoff_address=n.trip.dropoff_address,
        )
        for n in nearby
    ]


@router.post(
    "/location",
    response_model=DriverLocationResponse,
    summary="Report the driver's position and online flag",
)
@limiter.limit(settings.rate_limit)
async def ping_location(
    request: Request,
    body: LocationPingRequest,
    user: UserModel = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    events: EventChannel = Depends(get_events),
):
    location = await DriverPresence(db, events).ping(
        user, body.lat, body.lng, is_online=body.is_online
    )
    return location
