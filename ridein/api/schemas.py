"""Pydantic request / response schemas for the REST API."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from ridein.domain.enums import (
    AccountStatus,
    BidStatus,
    DriverStatus,
    TripStatus,
    UserRole,
    VehicleType,
)


# ── Requests ──────────────────────────────────────────────────────────


class SignupRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=120)
    phone: str = Field(..., min_length=5, max_length=32)
    password: str = Field(..., min_length=4, max_length=128)
    role: UserRole = UserRole.RIDER
    city: Optional[str] = Field(None, max_length=80)
    vehicle_type: Optional[VehicleType] = None
    vehicle_category: Optional[str] = Field(None, max_length=64)


class LoginRequest(BaseModel):
    phone: str
    password: str


class SwitchRoleRequest(BaseModel):
    role: UserRole


class TripLocation(BaseModel):
    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)
    address: Optional[str] = Field(None, max_length=255)


class TripCreateRequest(BaseModel):
    pickup: TripLocation
    dropoff: TripLocation
    vehicle_type: VehicleType = VehicleType.PASSENGER
    category: str = Field(..., min_length=1, max_length=64)
    proposed_price: float = Field(..., gt=0)
    distance_km: float = Field(0.0, ge=0)
    duration_mins: int = Field(0, ge=0)
    notes: Optional[str] = Field(None, max_length=1000)
    is_guest_booking: bool = False
    guest_name: Optional[str] = Field(None, max_length=120)
    guest_phone: Optional[str] = Field(None, max_length=32)
    scheduled_time: Optional[datetime] = None
    item_description: Optional[str] = Field(None, max_length=1000)
    requires_assistance: bool = False
    cargo_photos: list[str] = Field(default_factory=list, max_length=10)

    def to_fields(self) -> dict:
        data = self.model_dump(exclude={"pickup", "dropoff"})
        data.update(
            pickup_lat=self.pickup.lat,
            pickup_lng=self.pickup.lng,
            pickup_address=self.pickup.address,
            dropoff_lat=self.dropoff.lat,
            dropoff_lng=self.dropoff.lng,
            dropoff_address=self.dropoff.address,
        )
        return data


class StatusUpdateRequest(BaseModel):
    status: str = Field(..., description="Target status, e.g. ARRIVED, STARTED")


class BidCreateRequest(BaseModel):
    offer_price: float = Field(..., gt=0)
    driver_id: Optional[int] = Field(
        None, description="Defaults to the caller; any other driver is rejected."
    )


class AcceptBidRequest(BaseModel):
    bid_id: int


class ReviewRequest(BaseModel):
    rating: float = Field(..., ge=1, le=5)
    tags: list[str] = Field(default_factory=list, max_length=20)
    comment: Optional[str] = Field(None, max_length=1000)
    is_favorite: bool = False


class LocationPingRequest(BaseModel):
    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)
    is_online: bool = True


class FavoriteRequest(BaseModel):
    target_user_id: int
    role_context: str = Field("driver", max_length=16)


# ── Responses ─────────────────────────────────────────────────────────


class UserResponse(BaseModel):
    id: int
    name: str
    phone: str
    city: Optional[str] = None
    role: UserRole
    is_online: bool
    rating: float
    trips_count: int
    account_status: AccountStatus
    driver_profile_exists: bool
    driver_verified: bool
    driver_approved: bool
    driver_status: Optional[DriverStatus] = None
    force_rider_mode: bool
    vehicle_type: Optional[VehicleType] = None
    vehicle_category: Optional[str] = None

    model_config = {"from_attributes": True}


class AuthResponse(BaseModel):
    auth_token: str
    user: UserResponse


class MessageResponse(BaseModel):
    message: str


class BidResponse(BaseModel):
    id: int
    trip_id: int
    driver_id: int
    offer_price: float
    status: BidStatus
    created_at: Optional[datetime] = None
    driver_name: Optional[str] = None
    driver_rating: Optional[float] = None
    vehicle_info: Optional[str] = None

    model_config = {"from_attributes": True}


class TripResponse(BaseModel):
    id: int
    rider_id: int
    driver_id: Optional[int] = None
    status: TripStatus
    pickup: TripLocation
    dropoff: TripLocation
    city: Optional[str] = None
    vehicle_type: VehicleType
    category: str
    proposed_price: float
    suggested_price: Optional[float] = None
    final_price: Optional[float] = None
    distance_km: float
    duration_mins: int
    notes: Optional[str] = None
    is_guest_booking: bool = False
    guest_name: Optional[str] = None
    guest_phone: Optional[str] = None
    scheduled_time: Optional[datetime] = None
    item_description: Optional[str] = None
    requires_assistance: bool = False
    cargo_photos: list[str] = []
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    bids: list[BidResponse] = []


class TripStatusResponse(BaseModel):
    id: int
    status: TripStatus


class AcceptBidResponse(BaseModel):
    id: int
    status: TripStatus
    driver_id: int
    final_price: float


class ReviewResponse(BaseModel):
    message: str
    review_id: int


class AvailableTripResponse(BaseModel):
    id: int
    status: TripStatus
    distance_km: float
    proposed_price: float
    vehicle_type: VehicleType
    category: str
    pickup_address: Optional[str] = None
    dropoff_address: Optional[str] = None


class DriverLocationResponse(BaseModel):
    driver_id: int
    lat: float
    lng: float
    is_online: bool
    updated_at: datetime

    model_config = {"from_attributes": True}


class FavoriteResponse(BaseModel):
    id: int
    user_id: int
    target_user_id: int
    role_context: str

    model_config = {"from_attributes": True}


class PriceQuoteResponse(BaseModel):
    distance_km: float
    category: str
    vehicle_type: VehicleType
    base_price: float
    price_per_km: float
    additional_distance_km: float
    additional_charge: float
    total_price: float

    model_config = {"from_attributes": True}


class HealthResponse(BaseModel):
    status: str = "ok"


class ErrorResponse(BaseModel):
    error_type: str
    error: str
