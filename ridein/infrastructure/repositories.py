"""
Repository Pattern -- abstracts DB access so domain logic stays DB-agnostic.

Each repository receives an ``AsyncSession`` (unit-of-work) and exposes
domain-relevant queries only.  State changes that race between concurrent
callers are expressed as conditional ``UPDATE ... WHERE`` statements whose
row count tells the caller whether it won.
"""

from __future__ import annotations

from datetime import datetime
from typing import Iterable, Optional

from sqlalchemy import delete, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from .models import (
    BidModel,
    DriverLocationModel,
    FavoriteModel,
    ReviewModel,
    RevokedTokenModel,
    TripModel,
    UserModel,
    utcnow,
)
from ridein.domain.enums import (
    ACTIVE_STATUSES,
    OPEN_STATUSES,
    TERMINAL_STATUSES,
    BidStatus,
    TripStatus,
)


class UserRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, user: UserModel) -> UserModel:
        self.session.add(user)
        await self.session.flush()
        return user

    async def get_by_id(self, user_id: int) -> Optional[UserModel]:
        return await self.session.get(UserModel, user_id)

    async def get_by_phone(self, phone: str) -> Optional[UserModel]:
        result = await self.session.execute(
            select(UserModel).where(UserModel.phone == phone)
        )
        return result.scalar_one_or_none()

    async def get_many(self, user_ids: Iterable[int]) -> dict[int, UserModel]:
        ids = set(user_ids)
        if not ids:
            return {}
        result = await self.session.execute(
            select(UserModel).where(UserModel.id.in_(ids))
        )
        return {u.id: u for u in result.scalars().all()}

    async def increment_trips_count(self, user_ids: Iterable[int]) -> None:
        ids = [uid for uid in set(user_ids) if uid is not None]
        if not ids:
            return
        await self.session.execute(
            update(UserModel)
            .where(UserModel.id.in_(ids))
            .values(trips_count=UserModel.trips_count + 1)
            .execution_options(synchronize_session=False)
        )

    async def set_rating(self, user_id: int, rating: float) -> None:
        await self.session.execute(
            update(UserModel)
            .where(UserModel.id == user_id)
            .values(rating=rating)
            .execution_options(synchronize_session=False)
        )


class TripRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, trip: TripModel) -> TripModel:
        self.session.add(trip)
        await self.session.flush()
        return trip

    async def get_by_id(self, trip_id: int) -> Optional[TripModel]:
        return await self.session.get(TripModel, trip_id)

    async def reload(self, trip: TripModel) -> TripModel:
        await self.session.refresh(trip)
        return trip

    async def get_active_for_rider(self, rider_id: int) -> Optional[TripModel]:
        result = await self.session.execute(
            select(TripModel)
            .where(
                TripModel.rider_id == rider_id,
                TripModel.status.in_(list(ACTIVE_STATUSES)),
            )
            .order_by(TripModel.created_at.desc(), TripModel.id.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def get_active_for_driver(self, driver_id: int) -> Optional[TripModel]:
        result = await self.session.execute(
            select(TripModel)
            .where(
                TripModel.driver_id == driver_id,
                TripModel.status.in_(list(ACTIVE_STATUSES)),
            )
            .order_by(TripModel.updated_at.desc(), TripModel.id.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def get_open_trips(self) -> list[TripModel]:
        result = await self.session.execute(
            select(TripModel)
            .where(TripModel.status.in_(list(OPEN_STATUSES)))
            .order_by(TripModel.created_at, TripModel.id)
        )
        return list(result.scalars().all())

    async def get_active_trips(self) -> list[TripModel]:
        result = await self.session.execute(
            select(TripModel)
            .where(TripModel.status.in_(list(ACTIVE_STATUSES)))
            .order_by(TripModel.created_at)
        )
        return list(result.scalars().all())

    async def list_history(
        self, user_id: int, limit: int = 20, offset: int = 0
    ) -> list[TripModel]:
        result = await self.session.execute(
            select(TripModel)
            .where(
                or_(TripModel.rider_id == user_id, TripModel.driver_id == user_id),
                TripModel.status.in_(list(TERMINAL_STATUSES)),
            )
            .order_by(TripModel.updated_at.desc(), TripModel.id.desc())
            .limit(limit)
            .offset(offset)
        )
        return list(result.scalars().all())

    async def compare_and_set_status(
        self,
        trip_id: int,
        expected: TripStatus,
        new_status: TripStatus,
        now: datetime,
        **extra,
    ) -> bool:
        """UPDATE ... WHERE status = expected.  True if this call won."""
        result = await self.session.execute(
            update(TripModel)
            .where(TripModel.id == trip_id, TripModel.status == expected)
            .values(status=new_status, updated_at=now, **extra)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    async def claim_for_bid(
        self, trip_id: int, driver_id: int, final_price: float, now: datetime
    ) -> bool:
        """Atomically hand an open trip to a driver.

        Succeeds exactly once per trip: the predicate requires the trip to be
        open and unassigned, and the write closes both conditions.
        """
        result = await self.session.execute(
            update(TripModel)
            .where(
                TripModel.id == trip_id,
                TripModel.status.in_(list(OPEN_STATUSES)),
                TripModel.driver_id.is_(None),
            )
            .values(
                status=TripStatus.ACCEPTED,
                driver_id=driver_id,
                final_price=final_price,
                updated_at=now,
            )
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1


class BidRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, bid: BidModel) -> BidModel:
        self.session.add(bid)
        await self.session.flush()
        return bid

    async def get_by_id(self, bid_id: int) -> Optional[BidModel]:
        return await self.session.get(BidModel, bid_id)

    async def count_for_driver(self, trip_id: int, driver_id: int) -> int:
        result = await self.session.execute(
            select(func.count())
            .select_from(BidModel)
            .where(BidModel.trip_id == trip_id, BidModel.driver_id == driver_id)
        )
        return result.scalar() or 0

    async def list_for_trip(self, trip_id: int) -> list[BidModel]:
        result = await self.session.execute(
            select(BidModel)
            .where(BidModel.trip_id == trip_id)
            .order_by(BidModel.created_at, BidModel.id)
            # bulk UPDATEs above do not touch the identity map
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all())

    async def mark_accepted(self, trip_id: int, driver_id: int) -> int:
        result = await self.session.execute(
            update(BidModel)
            .where(
                BidModel.trip_id == trip_id,
                BidModel.driver_id == driver_id,
                BidModel.status == BidStatus.PENDING,
            )
            .values(status=BidStatus.ACCEPTED, updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        return result.rowcount or 0

    async def reject_pending(
        self, trip_id: int, except_driver_id: int | None = None
    ) -> int:
        """Flip every still-pending bid on *trip_id* to rejected."""
        stmt = update(BidModel).where(
            BidModel.trip_id == trip_id, BidModel.status == BidStatus.PENDING
        )
        if except_driver_id is not None:
            stmt = stmt.where(BidModel.driver_id != except_driver_id)
        result = await self.session.execute(
            stmt.values(status=BidStatus.REJECTED, updated_at=utcnow()).execution_options(
                synchronize_session=False
            )
        )
        return result.rowcount or 0

    async def get_unsettled_trips(self) -> list[TripModel]:
        """Trips whose outcome is decided but still have pending bids."""
        pending_trip_ids = (
            select(BidModel.trip_id)
            .where(BidModel.status == BidStatus.PENDING)
            .distinct()
        )
        result = await self.session.execute(
            select(TripModel).where(
                TripModel.id.in_(pending_trip_ids),
                or_(
                    TripModel.driver_id.is_not(None),
                    TripModel.status == TripStatus.CANCELLED,
                ),
            )
        )
        return list(result.scalars().all())


class ReviewRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, review: ReviewModel) -> ReviewModel:
        self.session.add(review)
        await self.session.flush()
        return review

    async def exists_for_trip(self, trip_id: int) -> bool:
        result = await self.session.execute(
            select(func.count())
            .select_from(ReviewModel)
            .where(ReviewModel.trip_id == trip_id)
        )
        return (result.scalar() or 0) > 0

    async def ratings_for(self, reviewee_id: int) -> list[float]:
        result = await self.session.execute(
            select(ReviewModel.rating).where(ReviewModel.reviewee_id == reviewee_id)
        )
        return [float(r) for r in result.scalars().all()]


class FavoriteRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(
        self, user_id: int, target_user_id: int, role_context: str = "driver"
    ) -> Optional[FavoriteModel]:
        result = await self.session.execute(
            select(FavoriteModel).where(
                FavoriteModel.user_id == user_id,
                FavoriteModel.target_user_id == target_user_id,
                FavoriteModel.role_context == role_context,
            )
        )
        return result.scalar_one_or_none()

    async def add(
        self, user_id: int, target_user_id: int, role_context: str = "driver"
    ) -> FavoriteModel:
        existing = await self.get(user_id, target_user_id, role_context)
        if existing:
            return existing
        favorite = FavoriteModel(
            user_id=user_id, target_user_id=target_user_id, role_context=role_context
        )
        self.session.add(favorite)
        await self.session.flush()
        return favorite

    async def remove(
        self, user_id: int, target_user_id: int, role_context: str = "driver"
    ) -> int:
        result = await self.session.execute(
            delete(FavoriteModel).where(
                FavoriteModel.user_id == user_id,
                FavoriteModel.target_user_id == target_user_id,
                FavoriteModel.role_context == role_context,
            )
        )
        return result.rowcount or 0

    async def list_for_user(self, user_id: int) -> list[FavoriteModel]:
        result = await self.session.execute(
            select(FavoriteModel)
            .where(FavoriteModel.user_id == user_id)
            .order_by(FavoriteModel.id)
        )
        return list(result.scalars().all())


class DriverLocationRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_for_driver(self, driver_id: int) -> Optional[DriverLocationModel]:
        result = await self.session.execute(
            select(DriverLocationModel).where(
                DriverLocationModel.driver_id == driver_id
            )
        )
        return result.scalar_one_or_none()

    async def upsert(
        self, driver_id: int, lat: float, lng: float, is_online: bool
    ) -> DriverLocationModel:
        location = await self.get_for_driver(driver_id)
        if location is None:
            location = DriverLocationModel(driver_id=driver_id)
            self.session.add(location)
        location.lat = lat
        location.lng = lng
        location.is_online = is_online
        location.updated_at = utcnow()
        await self.session.flush()
        return location


class RevokedTokenRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def is_revoked(self, token: str) -> bool:
        result = await self.session.execute(
            select(func.count())
            .select_from(RevokedTokenModel)
            .where(RevokedTokenModel.token == token)
        )
        return (result.scalar() or 0) > 0

    async def revoke(self, token: str, user_id: int, reason: str = "logout") -> None:
        if await self.is_revoked(token):
            return
        self.session.add(RevokedTokenModel(token=token, user_id=user_id, reason=reason))
        await self.session.flush()
