"""Post-trip reviews and driver rating aggregation."""

from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ridein.domain.enums import TripStatus
from ridein.domain.errors import AccessDenied, Conflict, InputError, InvalidState, NotFound
from ridein.domain.rating import aggregate_rating, round_rating
from ridein.infrastructure.models import ReviewModel, UserModel
from ridein.infrastructure.repositories import (
    FavoriteRepository,
    ReviewRepository,
    TripRepository,
    UserRepository,
)

logger = logging.getLogger(__name__)

MIN_RATING = 1.0
MAX_RATING = 5.0


class ReviewService:
    def __init__(self, session: AsyncSession):
        self.session = session
        self.trips = TripRepository(session)
        self.reviews = ReviewRepository(session)
        self.favorites = FavoriteRepository(session)
        self.users = UserRepository(session)

    async def submit_review(
        self,
        trip_id: int,
        caller: UserModel,
        rating: float,
        tags: Optional[list[str]] = None,
        comment: Optional[str] = None,
        is_favorite: bool = False,
    ) -> ReviewModel:
        if not MIN_RATING <= rating <= MAX_RATING:
            raise InputError("Rating must be between 1 and 5")

        trip = await self.trips.get_by_id(trip_id)
        if trip is None:
            raise NotFound("Trip not found")
        if trip.rider_id != caller.id:
            raise AccessDenied("Only the rider can review this trip")
        if TripStatus(trip.status) != TripStatus.COMPLETED or trip.driver_id is None:
            raise InvalidState("Only completed trips can be reviewed")
        if await self.reviews.exists_for_trip(trip.id):
            raise Conflict("This trip has already been reviewed")

        review = ReviewModel(
            trip_id=trip.id,
            reviewer_id=caller.id,
            reviewee_id=trip.driver_id,
            rating=round_rating(rating),
            tags=list(tags or []),
            comment=comment,
            is_favorite=is_favorite,
        )
        try:
            await self.reviews.create(review)
        except IntegrityError:
            await self.session.rollback()
            raise Conflict("This trip has already been reviewed") from None

        ratings = await self.reviews.ratings_for(trip.driver_id)
        new_rating = aggregate_rating(ratings)
        await self.users.set_rating(trip.driver_id, new_rating)

        if is_favorite:
            await self.favorites.add(caller.id, trip.driver_id, "driver")
        else:
            await self.favorites.remove(caller.id, trip.driver_id, "driver")

        await self.session.commit()
        logger.info(
            "Review %d on trip %d: driver %d now rated %.1f over %d reviews",
            review.id, trip.id, trip.driver_id, new_rating, len(ratings),
        )
        return review
