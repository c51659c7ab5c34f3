"""Initial schema: users, trips, bids, reviews, favorites, locations, revoked tokens.

Revision ID: 001
Create Date: 2026-10-17
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


revision = "001"
down_revision = None
branch_labels = None
depends_on = None

TRIP_STATUSES = (
    "PENDING",
    "BIDDING",
    "ACCEPTED",
    "ARRIVED",
    "STARTED",
    "COMPLETED",
    "CANCELLED",
)


def _timestamp(name: str, nullable: bool = True) -> sa.Column:
    return sa.Column(
        name,
        sa.DateTime(timezone=True),
        server_default=sa.func.now(),
        nullable=nullable,
    )


def upgrade() -> None:
    # ── users ─────────────────────────────────────────────────────────
    op.create_table(
        "users",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(120), nullable=False),
        sa.Column("phone", sa.String(32), unique=True, nullable=False),
        sa.Column("city", sa.String(80), nullable=True),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column(
            "role",
            sa.Enum("rider", "driver", "admin", name="userrole"),
            nullable=False,
        ),
        sa.Column("is_online", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("rating", sa.Float, nullable=False, server_default="5.0"),
        sa.Column("trips_count", sa.Integer, nullable=False, server_default="0"),
        sa.Column(
            "account_status",
            sa.Enum("active", "suspended", "banned", name="accountstatus"),
            nullable=False,
        ),
        sa.Column(
            "driver_profile_exists", sa.Boolean, nullable=False, server_default=sa.false()
        ),
        sa.Column("driver_verified", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("driver_approved", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column(
            "driver_status",
            sa.Enum("pending", "approved", "rejected", name="driverstatus"),
            nullable=True,
        ),
        sa.Column("force_rider_mode", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column(
            "vehicle_type",
            sa.Enum("PASSENGER", "FREIGHT", name="vehicletype"),
            nullable=True,
        ),
        sa.Column("vehicle_category", sa.String(64), nullable=True),
        _timestamp("created_at"),
    )

    # ── trips ─────────────────────────────────────────────────────────
    op.create_table(
        "trips",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("rider_id", sa.Integer, sa.ForeignKey("users.id"), nullable=False),
        sa.Column("driver_id", sa.Integer, sa.ForeignKey("users.id"), nullable=True),
        sa.Column(
            "status",
            sa.Enum(*TRIP_STATUSES, name="tripstatus"),
            nullable=False,
        ),
        sa.Column("pickup_lat", sa.Float, nullable=False),
        sa.Column("pickup_lng", sa.Float, nullable=False),
        sa.Column("pickup_address", sa.String(255), nullable=True),
        sa.Column("dropoff_lat", sa.Float, nullable=False),
        sa.Column("dropoff_lng", sa.Float, nullable=False),
        sa.Column("dropoff_address", sa.String(255), nullable=True),
        sa.Column("city", sa.String(80), nullable=True),
        sa.Column(
            "vehicle_type",
            postgresql.ENUM("PASSENGER", "FREIGHT", name="vehicletype", create_type=False),
            nullable=False,
        ),
        sa.Column("category", sa.String(64), nullable=False),
        sa.Column("proposed_price", sa.Float, nullable=False),
        sa.Column("suggested_price", sa.Float, nullable=True),
        sa.Column("final_price", sa.Float, nullable=True),
        sa.Column("distance_km", sa.Float, nullable=False, server_default="0"),
        sa.Column("duration_mins", sa.Integer, nullable=False, server_default="0"),
        sa.Column("notes", sa.Text, nullable=True),
        sa.Column("is_guest_booking", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("guest_name", sa.String(120), nullable=True),
        sa.Column("guest_phone", sa.String(32), nullable=True),
        sa.Column("scheduled_time", sa.DateTime(timezone=True), nullable=True),
        sa.Column("item_description", sa.Text, nullable=True),
        sa.Column(
            "requires_assistance", sa.Boolean, nullable=False, server_default=sa.false()
        ),
        sa.Column("cargo_photos", sa.JSON, nullable=False),
        _timestamp("created_at", nullable=False),
        _timestamp("updated_at", nullable=False),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("idx_trips_status", "trips", ["status"])
    op.create_index("idx_trips_rider", "trips", ["rider_id"])
    op.create_index("idx_trips_driver", "trips", ["driver_id"])

    # ── bids ──────────────────────────────────────────────────────────
    op.create_table(
        "bids",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("trip_id", sa.Integer, sa.ForeignKey("trips.id"), nullable=False),
        sa.Column("driver_id", sa.Integer, sa.ForeignKey("users.id"), nullable=False),
        sa.Column("offer_price", sa.Float, nullable=False),
        sa.Column(
            "status",
            sa.Enum("pending", "accepted", "rejected", name="bidstatus"),
            nullable=False,
        ),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        sa.UniqueConstraint("trip_id", "driver_id", name="uq_bids_trip_driver"),
    )
    op.create_index("idx_bids_trip_status", "bids", ["trip_id", "status"])

    # ── reviews ───────────────────────────────────────────────────────
    op.create_table(
        "reviews",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "trip_id", sa.Integer, sa.ForeignKey("trips.id"), unique=True, nullable=False
        ),
        sa.Column("reviewer_id", sa.Integer, sa.ForeignKey("users.id"), nullable=False),
        sa.Column("reviewee_id", sa.Integer, sa.ForeignKey("users.id"), nullable=False),
        sa.Column("rating", sa.Float, nullable=False),
        sa.Column("tags", sa.JSON, nullable=False),
        sa.Column("comment", sa.Text, nullable=True),
        sa.Column("is_favorite", sa.Boolean, nullable=False, server_default=sa.false()),
        _timestamp("created_at"),
    )
    op.create_index("idx_reviews_reviewee", "reviews", ["reviewee_id"])

    # ── favorites ─────────────────────────────────────────────────────
    op.create_table(
        "favorites",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.Integer, sa.ForeignKey("users.id"), nullable=False),
        sa.Column(
            "target_user_id", sa.Integer, sa.ForeignKey("users.id"), nullable=False
        ),
        sa.Column("role_context", sa.String(16), nullable=False, server_default="driver"),
        _timestamp("created_at"),
        sa.UniqueConstraint(
            "user_id", "target_user_id", "role_context", name="uq_favorites_pair"
        ),
    )

    # ── driver_locations ──────────────────────────────────────────────
    op.create_table(
        "driver_locations",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "driver_id", sa.Integer, sa.ForeignKey("users.id"), unique=True, nullable=False
        ),
        sa.Column("lat", sa.Float, nullable=False),
        sa.Column("lng", sa.Float, nullable=False),
        sa.Column("is_online", sa.Boolean, nullable=False, server_default=sa.true()),
        _timestamp("updated_at", nullable=False),
    )

    # ── revoked_tokens ────────────────────────────────────────────────
    op.create_table(
        "revoked_tokens",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("token", sa.String(512), unique=True, nullable=False),
        sa.Column("user_id", sa.Integer, sa.ForeignKey("users.id"), nullable=False),
        sa.Column("reason", sa.String(64), nullable=False, server_default="logout"),
        _timestamp("revoked_at"),
    )


def downgrade() -> None:
    op.drop_table("revoked_tokens")
    op.drop_table("driver_locations")
    op.drop_table("favorites")
    op.drop_table("reviews")
    op.drop_table("bids")
    op.drop_table("trips")
    op.drop_table("users")
    for enum_name in (
        "bidstatus",
        "tripstatus",
        "vehicletype",
        "driverstatus",
        "accountstatus",
        "userrole",
    ):
        op.execute(f"DROP TYPE IF EXISTS {enum_name}")
