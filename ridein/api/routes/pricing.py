"""
Pricing endpoint
================

GET /api/v1/pricing/quote -- suggested fare breakdown for a category
"""

from fastapi import APIRouter, Query, Request

from ridein.api.middleware import limiter
from ridein.api.schemas import PriceQuoteResponse
from ridein.config import settings
from ridein.domain.enums import VehicleType
from ridein.domain.pricing import PricingEngine

router = APIRouter(prefix="/pricing", tags=["pricing"])

_engine = PricingEngine()


@router.get("/quote", response_model=PriceQuoteResponse, summary="Price quote")
@limiter.limit(settings.rate_limit)
async def quote(
    request: Request,
    distance_km: float = Query(..., ge=0),
    category: str = Query(..., min_length=1),
    vehicle_type: VehicleType = Query(VehicleType.PASSENGER),
):
    return _engine.quote(distance_km, category, vehicle_type)
