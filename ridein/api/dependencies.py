"""FastAPI dependency injection helpers."""

from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from ridein.domain.enums import UserRole
from ridein.domain.errors import AccessDenied, Unauthorized
from ridein.infrastructure.database import async_session_factory
from ridein.infrastructure.events import EventChannel
from ridein.infrastructure.models import UserModel
from ridein.infrastructure.redis_client import get_redis
from ridein.services.accounts import AccountService

bearer_scheme = HTTPBearer(auto_error=False)


async def get_db() -> AsyncSession:  # type: ignore[misc]
    """Yield an async DB session; commit on success, rollback on error."""
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def get_events() -> EventChannel:
    """Event channel bound to the shared Redis pool."""
    return EventChannel(await get_redis())


async def get_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> str:
    if credentials is None or not credentials.credentials:
        raise Unauthorized("Missing bearer token")
    return credentials.credentials


async def get_current_user(
    token: str = Depends(get_token),
    db: AsyncSession = Depends(get_db),
) -> UserModel:
    """Resolve the caller; expiry, revocation and account status checked here."""
    return await AccountService(db).authenticate(token)


async def require_admin(user: UserModel = Depends(get_current_user)) -> UserModel:
    if user.role != UserRole.ADMIN:
        raise AccessDenied("Admin access required")
    return user
