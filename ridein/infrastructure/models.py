"""
SQLAlchemy ORM models.

Tables
------
* ``users``            -- riders, drivers and admins
* ``trips``            -- trip requests and their lifecycle state
* ``bids``             -- driver offers against an open trip
* ``reviews``          -- rider ratings of a completed trip
* ``favorites``        -- saved drivers
* ``driver_locations`` -- last known position per driver
* ``revoked_tokens``   -- bearer-token denylist (append-only)

Constraints
-----------
* UNIQUE ``(trip_id, driver_id)`` on ``bids``: one offer per driver per trip.
* UNIQUE ``trip_id`` on ``reviews``: one review per trip.
* UNIQUE ``(user_id, target_user_id, role_context)`` on ``favorites``.

Indexes
-------
* **B-Tree** on ``trips.status``, ``trips.rider_id``, ``trips.driver_id``
  and ``bids (trip_id, status)`` for the lifecycle and discovery queries.
"""

from datetime import datetime, timezone

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)

from .database import Base
from ridein.domain.enums import (
    AccountStatus,
    BidStatus,
    DriverStatus,
    TripStatus,
    UserRole,
    VehicleType,
)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _values(enum_cls):
    return [member.value for member in enum_cls]


class UserModel(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(120), nullable=False)
    phone = Column(String(32), unique=True, nullable=False)
    city = Column(String(80), nullable=True)
    password_hash = Column(String(255), nullable=False)
    role = Column(
        Enum(UserRole, values_callable=_values), default=UserRole.RIDER, nullable=False
    )
    is_online = Column(Boolean, default=False, nullable=False)
    rating = Column(Float, default=5.0, nullable=False)
    trips_count = Column(Integer, default=0, nullable=False)
    account_status = Column(
        Enum(AccountStatus, values_callable=_values),
        default=AccountStatus.ACTIVE,
        nullable=False,
    )

    # Driver sub-state
    driver_profile_exists = Column(Boolean, default=False, nullable=False)
    driver_verified = Column(Boolean, default=False, nullable=False)
    driver_approved = Column(Boolean, default=False, nullable=False)
    driver_status = Column(Enum(DriverStatus, values_callable=_values), nullable=True)
    force_rider_mode = Column(Boolean, default=False, nullable=False)
    vehicle_type = Column(Enum(VehicleType), nullable=True)
    vehicle_category = Column(String(64), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    @property
    def is_approved_driver(self) -> bool:
        return (
            self.role == UserRole.DRIVER
            and bool(self.driver_approved)
            and self.driver_status == DriverStatus.APPROVED
        )


class TripModel(Base):
    __tablename__ = "trips"

    id = Column(Integer, primary_key=True, autoincrement=True)
    rider_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    driver_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    status = Column(Enum(TripStatus), default=TripStatus.PENDING, nullable=False)

    pickup_lat = Column(Float, nullable=False)
    pickup_lng = Column(Float, nullable=False)
    pickup_address = Column(String(255), nullable=True)
    dropoff_lat = Column(Float, nullable=False)
    dropoff_lng = Column(Float, nullable=False)
    dropoff_address = Column(String(255), nullable=True)
    city = Column(String(80), nullable=True)

    vehicle_type = Column(Enum(VehicleType), default=VehicleType.PASSENGER, nullable=False)
    category = Column(String(64), nullable=False)
    proposed_price = Column(Float, nullable=False)
    suggested_price = Column(Float, nullable=True)
    final_price = Column(Float, nullable=True)
    distance_km = Column(Float, nullable=False, default=0.0)
    duration_mins = Column(Integer, nullable=False, default=0)
    notes = Column(Text, nullable=True)

    # Guest booking
    is_guest_booking = Column(Boolean, default=False, nullable=False)
    guest_name = Column(String(120), nullable=True)
    guest_phone = Column(String(32), nullable=True)
    scheduled_time = Column(DateTime(timezone=True), nullable=True)

    # Freight
    item_description = Column(Text, nullable=True)
    requires_assistance = Column(Boolean, default=False, nullable=False)
    cargo_photos = Column(JSON, default=list, nullable=False)

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    completed_at = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        Index("idx_trips_status", "status"),
        Index("idx_trips_rider", "rider_id"),
        Index("idx_trips_driver", "driver_id"),
    )


class BidModel(Base):
    __tablename__ = "bids"

    id = Column(Integer, primary_key=True, autoincrement=True)
    trip_id = Column(Integer, ForeignKey("trips.id"), nullable=False)
    driver_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    offer_price = Column(Float, nullable=False)
    status = Column(
        Enum(BidStatus, values_callable=_values),
        default=BidStatus.PENDING,
        nullable=False,
    )
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False
    )

    __table_args__ = (
        UniqueConstraint("trip_id", "driver_id", name="uq_bids_trip_driver"),
        Index("idx_bids_trip_status", "trip_id", "status"),
    )


class ReviewModel(Base):
    __tablename__ = "reviews"

    id = Column(Integer, primary_key=True, autoincrement=True)
    trip_id = Column(Integer, ForeignKey("trips.id"), unique=True, nullable=False)
    reviewer_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    reviewee_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    rating = Column(Float, nullable=False)
    tags = Column(JSON, default=list, nullable=False)
    comment = Column(Text, nullable=True)
    is_favorite = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (Index("idx_reviews_reviewee", "reviewee_id"),)


class FavoriteModel(Base):
    __tablename__ = "favorites"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    target_user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    role_context = Column(String(16), default="driver", nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        UniqueConstraint(
            "user_id", "target_user_id", "role_context", name="uq_favorites_pair"
        ),
    )


class DriverLocationModel(Base):
    __tablename__ = "driver_locations"

    id = Column(Integer, primary_key=True, autoincrement=True)
    driver_id = Column(Integer, ForeignKey("users.id"), unique=True, nullable=False)
    lat = Column(Float, nullable=False)
    lng = Column(Float, nullable=False)
    is_online = Column(Boolean, default=True, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)


class RevokedTokenModel(Base):
    __tablename__ = "revoked_tokens"

    id = Column(Integer, primary_key=True, autoincrement=True)
    token = Column(String(512), unique=True, nullable=False)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    reason = Column(String(64), default="logout", nullable=False)
    revoked_at = Column(DateTime(timezone=True), server_default=func.now())
