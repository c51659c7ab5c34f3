"""
Auth endpoints
==============

POST /api/v1/auth/signup       -- create an account, returns a token
POST /api/v1/auth/login        -- exchange phone + PIN for a token
GET  /api/v1/auth/me           -- current user
POST /api/v1/auth/logout       -- revoke the presented token
POST /api/v1/auth/switch-role  -- toggle rider / driver mode
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from ridein.api.dependencies import get_current_user, get_db, get_token
from ridein.api.middleware import limiter
from ridein.api.schemas import (
    AuthResponse,
    LoginRequest,
    MessageResponse,
    SignupRequest,
    SwitchRoleRequest,
    UserResponse,
)
from ridein.config import settings
from ridein.infrastructure.models import UserModel
from ridein.services.accounts import AccountService

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/signup", status_code=201, response_model=AuthResponse, summary="Sign up")
@limiter.limit("10/minute")
async def signup(
    request: Request,
    body: SignupRequest,
    db: AsyncSession = Depends(get_db),
):
    user, token = await AccountService(db).signup(**body.model_dump())
    return AuthResponse(auth_token=token, user=UserResponse.model_validate(user))


@router.post("/login", response_model=AuthResponse, summary="Log in")
@limiter.limit("10/minute")
async def login(
    request: Request,
    body: LoginRequest,
    db: AsyncSession = Depends(get_db),
):
    user, token = await AccountService(db).login(body.phone, body.password)
    return AuthResponse(auth_token=token, user=UserResponse.model_validate(user))


@router.get("/me", response_model=UserResponse, summary="Current user")
@limiter.limit(settings.rate_limit)
async def me(request: Request, user: UserModel = Depends(get_current_user)):
    return user


@router.post("/logout", response_model=MessageResponse, summary="Revoke this session")
@limiter.limit(settings.rate_limit)
async def logout(
    request: Request,
    token: str = Depends(get_token),
    user: UserModel = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await AccountService(db).logout(token, user)
    return MessageResponse(message="Logged out")


@router.post("/switch-role", response_model=UserResponse, summary="Switch rider/driver mode")
@limiter.limit(settings.rate_limit)
async def switch_role(
    request: Request,
    body: SwitchRoleRequest,
    user: UserModel = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await AccountService(db).switch_role(user, body.role)
