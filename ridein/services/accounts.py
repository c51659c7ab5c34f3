"""
Account flows on top of the identity service.

Signup, login, logout (token revocation), role switching, and bearer-token
authentication for every protected route.  Revocation and expiry are
checked before any business logic runs.
"""

from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ridein.domain.enums import AccountStatus, DriverStatus, UserRole, VehicleType
from ridein.domain.errors import AccessDenied, Conflict, InputError, Unauthorized
from ridein.infrastructure.identity import IdentityService, identity
from ridein.infrastructure.models import UserModel
from ridein.infrastructure.repositories import RevokedTokenRepository, UserRepository

logger = logging.getLogger(__name__)


def ensure_active(user: UserModel) -> None:
    if user.account_status != AccountStatus.ACTIVE:
        raise AccessDenied(f"Account is {AccountStatus(user.account_status).value}")


class AccountService:
    def __init__(self, session: AsyncSession, ids: IdentityService = identity):
        self.session = session
        self.identity = ids
        self.users = UserRepository(session)
        self.revoked = RevokedTokenRepository(session)

    async def signup(
        self,
        *,
        name: str,
        phone: str,
        password: str,
        role: UserRole,
        city: Optional[str] = None,
        vehicle_type: Optional[VehicleType] = None,
        vehicle_category: Optional[str] = None,
    ) -> tuple[UserModel, str]:
        if role == UserRole.ADMIN:
            raise InputError("Admin accounts cannot be created through signup")
        if await self.users.get_by_phone(phone):
            raise Conflict("An account with this phone number already exists")

        is_driver = role == UserRole.DRIVER
        user = UserModel(
            name=name,
            phone=phone,
            city=city,
            password_hash=self.identity.hash_password(password),
            role=role,
            driver_profile_exists=is_driver,
            driver_status=DriverStatus.PENDING if is_driver else None,
            vehicle_type=vehicle_type if is_driver else None,
            vehicle_category=vehicle_category if is_driver else None,
        )
        try:
            await self.users.create(user)
        except IntegrityError:
            await self.session.rollback()
            raise Conflict("An account with this phone number already exists") from None
        await self.session.commit()
        logger.info("User %d signed up as %s", user.id, role.value)
        return user, self.identity.mint_token(user.id)

    async def login(self, phone: str, password: str) -> tuple[UserModel, str]:
        user = await self.users.get_by_phone(phone)
        if user is None or not self.identity.verify_password(password, user.password_hash):
            raise Unauthorized("Invalid phone number or PIN")
        ensure_active(user)
        return user, self.identity.mint_token(user.id)

    async def authenticate(self, token: str) -> UserModel:
        claims = self.identity.verify_token(token)
        if await self.revoked.is_revoked(token):
            raise Unauthorized("Session has been revoked")
        user = await self.users.get_by_id(claims.user_id)
        if user is None:
            raise Unauthorized("Unknown user")
        ensure_active(user)
        return user

    async def logout(self, token: str, user: UserModel) -> None:
        await self.revoked.revoke(token, user.id, reason="logout")
        await self.session.commit()
        logger.info("User %d logged out", user.id)

    async def switch_role(self, user: UserModel, role: UserRole) -> UserModel:
        if role == UserRole.ADMIN or user.role == UserRole.ADMIN:
            raise InputError("Admin role cannot be switched")
        if role == UserRole.DRIVER:
            if not user.driver_profile_exists:
                raise AccessDenied("Complete driver onboarding first")
            user.force_rider_mode = False
        else:
            user.force_rider_mode = bool(user.driver_profile_exists)
        user.role = role
        await self.session.commit()
        logger.info("User %d switched to %s mode", user.id, role.value)
        return user
