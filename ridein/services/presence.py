"""Driver location pings and favorites."""

from __future__ import annotations

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from ridein.config import settings
from ridein.domain.enums import UserRole
from ridein.domain.errors import AccessDenied, InputError, NotFound
from ridein.domain.grid import grid_cell
from ridein.infrastructure.events import EventChannel
from ridein.infrastructure.models import DriverLocationModel, FavoriteModel, UserModel
from ridein.infrastructure.repositories import (
    DriverLocationRepository,
    FavoriteRepository,
    UserRepository,
)

logger = logging.getLogger(__name__)


class DriverPresence:
    def __init__(self, session: AsyncSession, events: EventChannel):
        self.session = session
        self.events = events
        self.locations = DriverLocationRepository(session)

    async def ping(
        self, caller: UserModel, lat: float, lng: float, is_online: bool = True
    ) -> DriverLocationModel:
        if caller.role != UserRole.DRIVER:
            raise AccessDenied("Only drivers report locations")

        location = await self.locations.upsert(caller.id, lat, lng, is_online)
        caller.is_online = is_online
        await self.session.commit()

        if is_online:
            cell = grid_cell(lat, lng, settings.h3_resolution)
            await self.events.driver_location(
                caller.city,
                cell,
                {
                    "driver_id": caller.id,
                    "lat": lat,
                    "lng": lng,
                    "ts": location.updated_at.isoformat(),
                },
            )
        return location


class FavoriteService:
    def __init__(self, session: AsyncSession):
        self.session = session
        self.favorites = FavoriteRepository(session)
        self.users = UserRepository(session)

    async def list_for(self, caller: UserModel) -> list[FavoriteModel]:
        return await self.favorites.list_for_user(caller.id)

    async def add(
        self, caller: UserModel, target_user_id: int, role_context: str = "driver"
    ) -> FavoriteModel:
        if target_user_id == caller.id:
            raise InputError("You cannot favourite yourself")
        if await self.users.get_by_id(target_user_id) is None:
            raise NotFound("User not found")
        favorite = await self.favorites.add(caller.id, target_user_id, role_context)
        await self.session.commit()
        return favorite

    async def remove(
        self, caller: UserModel, target_user_id: int, role_context: str = "driver"
    ) -> None:
        if not await self.favorites.remove(caller.id, target_user_id, role_context):
            raise NotFound("Favourite not found")
        await self.session.commit()
