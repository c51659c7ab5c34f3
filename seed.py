"""
Seed script -- populates the database with sample data for reviewers.

Run after migrations:
    python seed.py

Creates:
  - 1 admin, 6 riders and 6 drivers (4 approved, 1 pending, 1 freight)
  - 8 sample trips around Harare (mix of PENDING, BIDDING, ACCEPTED,
    STARTED, COMPLETED and CANCELLED) with their bids
  - 1 review with a favourite

Every seeded account uses the PIN ``1234``.
"""

import asyncio

from sqlalchemy import text

from ridein.domain.enums import (
    BidStatus,
    DriverStatus,
    TripStatus,
    UserRole,
    VehicleType,
)
from ridein.domain.pricing import FREIGHT_TARIFFS, PricingEngine
from ridein.infrastructure.database import async_session_factory, engine
from ridein.infrastructure.identity import identity
from ridein.infrastructure.models import (
    BidModel,
    DriverLocationModel,
    FavoriteModel,
    ReviewModel,
    TripModel,
    UserModel,
    utcnow,
)

PIN = "1234"

RIDERS = [
    {"name": "Tendai Moyo", "phone": "+263771000001"},
    {"name": "Chipo Dube", "phone": "+263771000002"},
    {"name": "Nyasha Mutasa", "phone": "+263771000003"},
    {"name": "Tatenda Sibanda", "phone": "+263771000004"},
    {"name": "Rumbidzai Ncube", "phone": "+263771000005"},
    {"name": "Kudzai Marufu", "phone": "+263771000006"},
]

DRIVERS = [
    {"name": "Farai Chikwanha", "phone": "+263772000001", "category": "Standard", "lat": -17.8250, "lng": 31.0490, "approved": True},
    {"name": "Rudo Nyathi", "phone": "+263772000002", "category": "Premium", "lat": -17.8100, "lng": 31.0450, "approved": True},
    {"name": "Blessing Gumbo", "phone": "+263772000003", "category": "Standard", "lat": -17.7900, "lng": 31.0600, "approved": True},
    {"name": "Tapiwa Zhou", "phone": "+263772000004", "category": "Luxury", "lat": -17.7600, "lng": 31.0900, "approved": True},
    {"name": "Simba Mhlanga", "phone": "+263772000005", "category": "Standard", "lat": -17.8400, "lng": 31.0300, "approved": False},
    {"name": "Munyaradzi Chari", "phone": "+263772000006", "category": "1–2 Tonne Truck", "lat": -17.8500, "lng": 31.0200, "approved": True, "freight": True},
]

# (rider idx, pickup, dropoff, category, proposed, status, driver idx, bids)
TRIPS = [
    (0, (-17.8292, 31.0522, "First Street"), (-17.8000, 31.0380, "Avondale Shops"), "Standard", 5.0, TripStatus.PENDING, None, []),
    (1, (-17.8310, 31.0470, "Eastgate Mall"), (-17.7560, 31.0930, "Borrowdale Village"), "Premium", 12.0, TripStatus.BIDDING, None, [(0, 11.0), (1, 12.0)]),
    (2, (-17.8180, 31.0440, "Parirenyatwa Hospital"), (-17.7850, 31.0530, "Sam Levy's"), "Standard", 6.0, TripStatus.BIDDING, None, [(2, 6.5)]),
    (3, (-17.8260, 31.0600, "Harare Gardens"), (-17.8640, 31.0300, "Mbare Musika"), "Standard", 4.0, TripStatus.ACCEPTED, 0, [(0, 4.5), (2, 4.0)]),
    (4, (-17.8000, 31.0380, "Avondale"), (-17.9310, 31.0920, "Robert Gabriel Mugabe Airport"), "Luxury", 25.0, TripStatus.STARTED, 3, [(3, 25.0)]),
    (5, (-17.8292, 31.0522, "Africa Unity Square"), (-17.7700, 31.0500, "Mount Pleasant"), "Standard", 7.0, TripStatus.COMPLETED, 2, [(2, 7.0), (1, 8.0)]),
    (0, (-17.8350, 31.0450, "Kopje"), (-17.8100, 31.0700, "Newlands"), "Standard", 4.0, TripStatus.CANCELLED, None, [(0, 4.5)]),
    (1, (-17.8500, 31.0200, "Workington"), (-17.8800, 30.9800, "Southerton"), "1–2 Tonne Truck", 20.0, TripStatus.PENDING, None, []),
]


async def seed():
    pricing = PricingEngine()
    async with async_session_factory() as session:
        # Check if already seeded
        result = await session.execute(text("SELECT count(*) FROM users"))
        if result.scalar() > 0:
            print("Database already seeded. Skipping.")
            return

        pin_hash = identity.hash_password(PIN)

        # ── Users ─────────────────────────────────────────────────────
        session.add(
            UserModel(
                name="RideIn Ops",
                phone="+263770000000",
                city="Harare",
                password_hash=pin_hash,
                role=UserRole.ADMIN,
            )
        )
        riders = []
        for r in RIDERS:
            m = UserModel(
                name=r["name"],
                phone=r["phone"],
                city="Harare",
                password_hash=pin_hash,
                role=UserRole.RIDER,
            )
            session.add(m)
            riders.append(m)

        drivers = []
        for d in DRIVERS:
            m = UserModel(
                name=d["name"],
                phone=d["phone"],
                city="Harare",
                password_hash=pin_hash,
                role=UserRole.DRIVER,
                is_online=d["approved"],
                driver_profile_exists=True,
                driver_verified=d["approved"],
                driver_approved=d["approved"],
                driver_status=DriverStatus.APPROVED if d["approved"] else DriverStatus.PENDING,
                vehicle_type=VehicleType.FREIGHT if d.get("freight") else VehicleType.PASSENGER,
                vehicle_category=d["category"],
            )
            session.add(m)
            drivers.append(m)
        await session.flush()
        print(f"  Created {len(riders)} riders, {len(drivers)} drivers and 1 admin")

        # ── Driver locations ──────────────────────────────────────────
        for d, m in zip(DRIVERS, drivers):
            session.add(
                DriverLocationModel(
                    driver_id=m.id, lat=d["lat"], lng=d["lng"], is_online=d["approved"]
                )
            )
        await session.flush()

        # ── Trips and bids ────────────────────────────────────────────
        completed = None
        bid_count = 0
        for rider_idx, pickup, dropoff, category, proposed, status, driver_idx, bids in TRIPS:
            vehicle_type = (
                VehicleType.FREIGHT if category in FREIGHT_TARIFFS else VehicleType.PASSENGER
            )
            winner = drivers[driver_idx] if driver_idx is not None else None
            winning_bid = next(
                (price for idx, price in bids if idx == driver_idx), None
            )
            now = utcnow()
            trip = TripModel(
                rider_id=riders[rider_idx].id,
                driver_id=winner.id if winner else None,
                status=status,
                pickup_lat=pickup[0],
                pickup_lng=pickup[1],
                pickup_address=pickup[2],
                dropoff_lat=dropoff[0],
                dropoff_lng=dropoff[1],
                dropoff_address=dropoff[2],
                city="Harare",
                vehicle_type=vehicle_type,
                category=category,
                proposed_price=proposed,
                suggested_price=pricing.calculate_price(8.0, category, vehicle_type),
                final_price=winning_bid,
                distance_km=8.0,
                duration_mins=20,
                created_at=now,
                updated_at=now,
                completed_at=now if status == TripStatus.COMPLETED else None,
            )
            session.add(trip)
            await session.flush()

            for idx, price in bids:
                if status in (TripStatus.PENDING, TripStatus.BIDDING):
                    bid_status = BidStatus.PENDING
                elif idx == driver_idx:
                    bid_status = BidStatus.ACCEPTED
                else:
                    bid_status = BidStatus.REJECTED
                session.add(
                    BidModel(
                        trip_id=trip.id,
                        driver_id=drivers[idx].id,
                        offer_price=price,
                        status=bid_status,
                    )
                )
                bid_count += 1

            if status == TripStatus.COMPLETED:
                completed = trip
                riders[rider_idx].trips_count += 1
                winner.trips_count += 1

        await session.flush()
        print(f"  Created {len(TRIPS)} trips with {bid_count} bids")

        # ── Review + favourite ────────────────────────────────────────
        if completed is not None:
            session.add(
                ReviewModel(
                    trip_id=completed.id,
                    reviewer_id=completed.rider_id,
                    reviewee_id=completed.driver_id,
                    rating=4.5,
                    tags=["friendly", "clean car"],
                    comment="Smooth ride",
                    is_favorite=True,
                )
            )
            session.add(
                FavoriteModel(
                    user_id=completed.rider_id,
                    target_user_id=completed.driver_id,
                    role_context="driver",
                )
            )
            drivers[2].rating = 4.5
            print("  Created 1 review")

        await session.commit()
        print("\nSeed complete!")


async def main():
    print("Seeding database...")
    await seed()
    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(main())
