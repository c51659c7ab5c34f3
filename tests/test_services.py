"""Reviews, proximity, accounts, presence and favourites."""

from __future__ import annotations

import pytest

from ridein.config import settings
from ridein.domain.enums import AccountStatus, DriverStatus, TripStatus, UserRole
from ridein.domain.errors import (
    AccessDenied,
    Conflict,
    InputError,
    InvalidState,
    NotFound,
    Unauthorized,
)
from ridein.domain.distance import haversine_km
from ridein.infrastructure.identity import IdentityService
from ridein.infrastructure.repositories import FavoriteRepository
from ridein.services.accounts import AccountService
from ridein.services.presence import DriverPresence, FavoriteService
from ridein.services.proximity import ProximityFilter
from ridein.services.reviews import ReviewService
from tests.conftest import (
    AVONDALE,
    BORROWDALE,
    BULAWAYO,
    HARARE,
    make_driver,
    make_trip,
    make_user,
)


# ── Reviews ───────────────────────────────────────────────────────────


class TestReviews:
    @pytest.mark.asyncio
    async def test_rating_is_mean_of_all_reviews(self, db_session, rider, driver):
        other_rider = await make_user(db_session, name="Chipo")
        first = await make_trip(
            db_session, rider, status=TripStatus.COMPLETED, driver_id=driver.id
        )
        second = await make_trip(
            db_session, other_rider, status=TripStatus.COMPLETED, driver_id=driver.id
        )
        service = ReviewService(db_session)

        await service.submit_review(first.id, rider, 5)
        await db_session.refresh(driver)
        assert driver.rating == 5.0

        await service.submit_review(second.id, other_rider, 4, tags=["late"])
        await db_session.refresh(driver)
        assert driver.rating == 4.5

    @pytest.mark.asyncio
    async def test_favorite_flag_adds_and_removes(self, db_session, rider, driver):
        favorites = FavoriteRepository(db_session)
        first = await make_trip(
            db_session, rider, status=TripStatus.COMPLETED, driver_id=driver.id
        )
        second = await make_trip(
            db_session, rider, status=TripStatus.COMPLETED, driver_id=driver.id
        )
        service = ReviewService(db_session)

        await service.submit_review(first.id, rider, 5, is_favorite=True)
        assert await favorites.get(rider.id, driver.id, "driver") is not None

        await service.submit_review(second.id, rider, 3, is_favorite=False)
        assert await favorites.get(rider.id, driver.id, "driver") is None

    @pytest.mark.asyncio
    async def test_one_review_per_trip(self, db_session, rider, driver):
        trip = await make_trip(
            db_session, rider, status=TripStatus.COMPLETED, driver_id=driver.id
        )
        service = ReviewService(db_session)
        await service.submit_review(trip.id, rider, 5)
        with pytest.raises(Conflict):
            await service.submit_review(trip.id, rider, 1)

    @pytest.mark.asyncio
    async def test_only_completed_trips(self, db_session, rider, driver):
        trip = await make_trip(
            db_session, rider, status=TripStatus.STARTED, driver_id=driver.id
        )
        with pytest.raises(InvalidState):
            await ReviewService(db_session).submit_review(trip.id, rider, 5)

    @pytest.mark.asyncio
    async def test_only_rider_reviews(self, db_session, rider, driver):
        trip = await make_trip(
            db_session, rider, status=TripStatus.COMPLETED, driver_id=driver.id
        )
        with pytest.raises(AccessDenied):
            await ReviewService(db_session).submit_review(trip.id, driver, 5)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("rating", [0, 5.5])
    async def test_rating_range(self, db_session, rider, rating):
        with pytest.raises(InputError):
            await ReviewService(db_session).submit_review(1, rider, rating)

    @pytest.mark.asyncio
    async def test_missing_trip(self, db_session, rider):
        with pytest.raises(NotFound):
            await ReviewService(db_session).submit_review(404, rider, 4)


# ── Proximity ─────────────────────────────────────────────────────────


class TestProximity:
    @pytest.mark.asyncio
    async def test_nearest_first_within_radius(self, db_session, rider, driver):
        far = await make_trip(
            db_session, rider, pickup_lat=BORROWDALE[0], pickup_lng=BORROWDALE[1]
        )
        near = await make_trip(
            db_session,
            rider,
            status=TripStatus.BIDDING,
            pickup_lat=AVONDALE[0],
            pickup_lng=AVONDALE[1],
        )
        await make_trip(
            db_session, rider, pickup_lat=BULAWAYO[0], pickup_lng=BULAWAYO[1]
        )
        await make_trip(db_session, rider, status=TripStatus.ACCEPTED)

        found = await ProximityFilter(db_session).list_available_trips(
            driver, HARARE[0], HARARE[1], radius_km=20
        )

        assert [n.trip.id for n in found] == [near.id, far.id]
        assert found[0].distance_km < found[1].distance_km

    @pytest.mark.asyncio
    async def test_boundary_is_inclusive(self, db_session, rider, driver):
        trip = await make_trip(
            db_session, rider, pickup_lat=AVONDALE[0], pickup_lng=AVONDALE[1]
        )
        exact = haversine_km(HARARE[0], HARARE[1], AVONDALE[0], AVONDALE[1])
        service = ProximityFilter(db_session)

        inside = await service.list_available_trips(driver, *HARARE, radius_km=exact)
        assert [n.trip.id for n in inside] == [trip.id]

        outside = await service.list_available_trips(
            driver, *HARARE, radius_km=exact * 0.999
        )
        assert outside == []

    @pytest.mark.asyncio
    async def test_equal_distances_ordered_by_id(self, db_session, rider, driver):
        first = await make_trip(db_session, rider)
        second = await make_trip(db_session, rider)
        found = await ProximityFilter(db_session).list_available_trips(
            driver, *HARARE, radius_km=1
        )
        assert [n.trip.id for n in found] == [first.id, second.id]

    @pytest.mark.asyncio
    async def test_own_trips_hidden(self, db_session, driver):
        await make_trip(db_session, driver)
        assert (
            await ProximityFilter(db_session).list_available_trips(driver, *HARARE)
            == []
        )

    @pytest.mark.asyncio
    async def test_unapproved_driver_denied(self, db_session):
        pending = await make_driver(
            db_session, driver_approved=False, driver_status=DriverStatus.PENDING
        )
        with pytest.raises(AccessDenied):
            await ProximityFilter(db_session).list_available_trips(pending, *HARARE)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("radius", [0, -5])
    async def test_radius_must_be_positive(self, db_session, driver, radius):
        with pytest.raises(InputError):
            await ProximityFilter(db_session).list_available_trips(
                driver, *HARARE, radius_km=radius
            )

    @pytest.mark.asyncio
    async def test_radius_capped(self, db_session, driver):
        with pytest.raises(InputError):
            await ProximityFilter(db_session).list_available_trips(
                driver, *HARARE, radius_km=settings.max_search_radius_km + 1
            )


# ── Accounts ──────────────────────────────────────────────────────────


class TestAccounts:
    @pytest.mark.asyncio
    async def test_signup_then_login(self, db_session):
        accounts = AccountService(db_session)
        user, token = await accounts.signup(
            name="Nyasha", phone="+263771234567", password="4321", role=UserRole.RIDER
        )
        assert user.password_hash != "4321"
        assert (await accounts.authenticate(token)).id == user.id

        again, _ = await accounts.login("+263771234567", "4321")
        assert again.id == user.id

    @pytest.mark.asyncio
    async def test_driver_signup_starts_pending(self, db_session):
        user, _ = await AccountService(db_session).signup(
            name="Tafadzwa", phone="+263772222222", password="4321", role=UserRole.DRIVER
        )
        assert user.driver_profile_exists
        assert user.driver_status == DriverStatus.PENDING
        assert not user.is_approved_driver

    @pytest.mark.asyncio
    async def test_duplicate_phone(self, db_session, rider):
        with pytest.raises(Conflict):
            await AccountService(db_session).signup(
                name="Copy", phone=rider.phone, password="1234", role=UserRole.RIDER
            )

    @pytest.mark.asyncio
    async def test_admin_signup_refused(self, db_session):
        with pytest.raises(InputError):
            await AccountService(db_session).signup(
                name="Root", phone="+263770000001", password="1234", role=UserRole.ADMIN
            )

    @pytest.mark.asyncio
    async def test_wrong_pin(self, db_session, rider):
        with pytest.raises(Unauthorized, match="Invalid phone number or PIN"):
            await AccountService(db_session).login(rider.phone, "9999")

    @pytest.mark.asyncio
    async def test_logout_revokes_token(self, db_session, rider):
        accounts = AccountService(db_session)
        _, token = await accounts.login(rider.phone, "1234")
        await accounts.logout(token, rider)
        with pytest.raises(Unauthorized, match="revoked"):
            await accounts.authenticate(token)

    @pytest.mark.asyncio
    async def test_expired_token(self, db_session, rider):
        ids = IdentityService(secret="unit-test-signing-key-0123456789abcdef")
        token = ids.mint_token(rider.id, ttl_seconds=-10)
        with pytest.raises(Unauthorized, match="expired"):
            await AccountService(db_session, ids).authenticate(token)

    @pytest.mark.asyncio
    async def test_suspended_account(self, db_session):
        user = await make_user(db_session, account_status=AccountStatus.SUSPENDED)
        token = IdentityService().mint_token(user.id)
        with pytest.raises(AccessDenied, match="suspended"):
            await AccountService(db_session).authenticate(token)

    @pytest.mark.asyncio
    async def test_switch_role(self, db_session, driver, rider):
        accounts = AccountService(db_session)
        switched = await accounts.switch_role(driver, UserRole.RIDER)
        assert switched.role == UserRole.RIDER
        assert switched.force_rider_mode

        back = await accounts.switch_role(driver, UserRole.DRIVER)
        assert back.role == UserRole.DRIVER
        assert not back.force_rider_mode

        with pytest.raises(AccessDenied):
            await accounts.switch_role(rider, UserRole.DRIVER)


# ── Presence and favourites ───────────────────────────────────────────


class TestPresence:
    @pytest.mark.asyncio
    async def test_ping_upserts_and_publishes(self, db_session, events, driver):
        presence = DriverPresence(db_session, events)
        first = await presence.ping(driver, *HARARE)
        second = await presence.ping(driver, *AVONDALE)

        assert first.id == second.id
        assert (second.lat, second.lng) == AVONDALE
        assert driver.is_online
        assert events.driver_location.await_count == 2

    @pytest.mark.asyncio
    async def test_going_offline_is_silent(self, db_session, events, driver):
        await DriverPresence(db_session, events).ping(driver, *HARARE, is_online=False)
        assert not driver.is_online
        events.driver_location.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_riders_cannot_ping(self, db_session, events, rider):
        with pytest.raises(AccessDenied):
            await DriverPresence(db_session, events).ping(rider, *HARARE)


class TestFavorites:
    @pytest.mark.asyncio
    async def test_add_is_idempotent(self, db_session, rider, driver):
        service = FavoriteService(db_session)
        first = await service.add(rider, driver.id)
        second = await service.add(rider, driver.id)
        assert first.id == second.id
        assert len(await service.list_for(rider)) == 1

    @pytest.mark.asyncio
    async def test_remove(self, db_session, rider, driver):
        service = FavoriteService(db_session)
        await service.add(rider, driver.id)
        await service.remove(rider, driver.id)
        assert await service.list_for(rider) == []
        with pytest.raises(NotFound):
            await service.remove(rider, driver.id)

    @pytest.mark.asyncio
    async def test_cannot_favourite_self_or_nobody(self, db_session, rider):
        service = FavoriteService(db_session)
        with pytest.raises(InputError):
            await service.add(rider, rider.id)
        with pytest.raises(NotFound):
            await service.add(rider, 404)
