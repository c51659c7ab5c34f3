"""
Favourite endpoints
===================

GET    /api/v1/favorites                   -- caller's saved users
POST   /api/v1/favorites                   -- save a user (idempotent)
DELETE /api/v1/favorites/{target_user_id}  -- remove
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from ridein.api.dependencies import get_current_user, get_db
from ridein.api.middleware import limiter
from ridein.api.schemas import FavoriteRequest, FavoriteResponse
from ridein.config import settings
from ridein.infrastructure.models import UserModel
from ridein.services.presence import FavoriteService

router = APIRouter(prefix="/favorites", tags=["favorites"])


@router.get("", response_model=list[FavoriteResponse], summary="List favourites")
@limiter.limit(settings.rate_limit)
async def list_favorites(
    request: Request,
    user: UserModel = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await FavoriteService(db).list_for(user)


@router.post(
    "", status_code=201, response_model=FavoriteResponse, summary="Add a favourite"
)
@limiter.limit(settings.rate_limit)
async def add_favorite(
    request: Request,
    body: FavoriteRequest,
    user: UserModel = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await FavoriteService(db).add(user, body.target_user_id, body.role_context)


@router.delete("/{target_user_id}", status_code=204, summary="Remove a favourite")
@limiter.limit(settings.rate_limit)
async def remove_favorite(
    request: Request,
    target_user_id: int,
    role_context: str = Query("driver", max_length=16),
    user: UserModel = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await FavoriteService(db).remove(user, target_user_id, role_context)
    return Response(status_code=204)
