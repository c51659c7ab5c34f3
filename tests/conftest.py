"""
Shared test fixtures.

Uses an in-memory SQLite database (via aiosqlite) so tests run without
Docker / PostgreSQL / Redis.  A ``StaticPool`` keeps every session on the
same connection, so data committed by one session is visible to the next.
The event channel is an ``AsyncMock``; nothing is published.
"""

from typing import AsyncGenerator
from unittest.mock import AsyncMock, patch

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from ridein.domain.enums import DriverStatus, TripStatus, UserRole, VehicleType
from ridein.infrastructure.database import Base
from ridein.infrastructure.events import EventChannel
from ridein.infrastructure.identity import identity
from ridein.infrastructure.models import TripModel, UserModel


# ── Test DB (SQLite in-memory) ────────────────────────────────────────

TEST_DB_URL = "sqlite+aiosqlite://"

test_engine = create_async_engine(
    TEST_DB_URL,
    echo=False,
    poolclass=StaticPool,
    connect_args={"check_same_thread": False},
)
TestSessionFactory = async_sessionmaker(
    test_engine, class_=AsyncSession, expire_on_commit=False
)

# Harare CBD and nearby pickups
HARARE = (-17.8292, 31.0522)
AVONDALE = (-17.8000, 31.0380)
BORROWDALE = (-17.7560, 31.0930)
BULAWAYO = (-20.1500, 28.5833)


# ── Builders ──────────────────────────────────────────────────────────

_phone_seq = iter(range(1_000_000))


async def make_user(session: AsyncSession, **overrides) -> UserModel:
    data = dict(
        name="Test User",
        phone=f"+26377{next(_phone_seq):07d}",
        city="Harare",
        password_hash=identity.hash_password("1234"),
        role=UserRole.RIDER,
    )
    data.update(overrides)
    user = UserModel(**data)
    session.add(user)
    await session.commit()
    return user


async def make_driver(session: AsyncSession, **overrides) -> UserModel:
    data = dict(
        name="Test Driver",
        role=UserRole.DRIVER,
        driver_profile_exists=True,
        driver_verified=True,
        driver_approved=True,
        driver_status=DriverStatus.APPROVED,
        vehicle_type=VehicleType.PASSENGER,
        vehicle_category="Standard",
    )
    data.update(overrides)
    return await make_user(session, **data)


async def make_trip(session: AsyncSession, rider: UserModel, **overrides) -> TripModel:
    data = dict(
        rider_id=rider.id,
        status=TripStatus.PENDING,
        pickup_lat=HARARE[0],
        pickup_lng=HARARE[1],
        pickup_address="First Street, Harare",
        dropoff_lat=AVONDALE[0],
        dropoff_lng=AVONDALE[1],
        dropoff_address="Avondale Shops",
        city=rider.city,
        vehicle_type=VehicleType.PASSENGER,
        category="Standard",
        proposed_price=5.0,
        distance_km=4.0,
    )
    data.update(overrides)
    trip = TripModel(**data)
    session.add(trip)
    await session.commit()
    return trip


def auth_headers(user: UserModel) -> dict:
    return {"Authorization": f"Bearer {identity.mint_token(user.id)}"}


# ── Fixtures ──────────────────────────────────────────────────────────


@pytest_asyncio.fixture
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Create tables, yield a session, then drop everything."""
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with TestSessionFactory() as session:
        yield session

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture
def events() -> AsyncMock:
    return AsyncMock(spec=EventChannel)


@pytest_asyncio.fixture
async def rider(db_session: AsyncSession) -> UserModel:
    return await make_user(db_session, name="Tendai Moyo")


@pytest_asyncio.fixture
async def driver(db_session: AsyncSession) -> UserModel:
    return await make_driver(db_session, name="Farai Chikwanha")


@pytest_asyncio.fixture
async def other_driver(db_session: AsyncSession) -> UserModel:
    return await make_driver(db_session, name="Rudo Ncube", vehicle_category="Premium")


@pytest_asyncio.fixture
async def admin(db_session: AsyncSession) -> UserModel:
    return await make_user(db_session, name="Ops Admin", role=UserRole.ADMIN)


@pytest_asyncio.fixture
async def client(db_session: AsyncSession, events: AsyncMock):
    """AsyncClient backed by the SQLite test database and a mocked channel."""
    with (
        patch(
            "ridein.workers.reconciler.start_reconcile_loop",
            new_callable=AsyncMock,
        ),
        patch(
            "ridein.workers.reconciler.stop_reconcile_loop",
            new_callable=AsyncMock,
        ),
    ):

        async def _test_db():
            async with TestSessionFactory() as session:
                try:
                    yield session
                    await session.commit()
                except Exception:
                    await session.rollback()
                    raise

        async def _test_events():
            return events

        from ridein.api.app import create_app
        from ridein.api.dependencies import get_db, get_events
        from ridein.api.middleware import limiter

        limiter.reset()
        app = create_app()
        app.dependency_overrides[get_db] = _test_db
        app.dependency_overrides[get_events] = _test_events

        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://test") as ac:
            yield ac
