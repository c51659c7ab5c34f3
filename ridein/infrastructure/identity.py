"""
Identity service: password hashing and bearer tokens.

Tokens are HS256 JWTs carrying the user id (``sub``) and expiry (``exp``).
Revocation is not encoded in the token; callers check the
``revoked_tokens`` denylist after :meth:`IdentityService.verify_token`.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import jwt
from werkzeug.security import check_password_hash, generate_password_hash

from ridein.config import settings
from ridein.domain.errors import Unauthorized


@dataclass(frozen=True)
class TokenClaims:
    user_id: int
    expiry: datetime


class IdentityService:
    def __init__(
        self,
        secret: str = settings.jwt_secret,
        algorithm: str = settings.jwt_algorithm,
        ttl_seconds: int = settings.token_ttl_seconds,
    ):
        self.secret = secret
        self.algorithm = algorithm
        self.ttl_seconds = ttl_seconds

    @staticmethod
    def hash_password(plain: str) -> str:
        return generate_password_hash(plain)

    @staticmethod
    def verify_password(plain: str, hashed: str) -> bool:
        return check_password_hash(hashed, plain)

    def mint_token(self, user_id: int, ttl_seconds: int | None = None) -> str:
        now = datetime.now(timezone.utc)
        ttl = ttl_seconds if ttl_seconds is not None else self.ttl_seconds
        payload = {
            "sub": str(user_id),
            "iat": now,
            "exp": now + timedelta(seconds=ttl),
            "jti": uuid.uuid4().hex,
        }
        return jwt.encode(payload, self.secret, algorithm=self.algorithm)

    def verify_token(self, token: str) -> TokenClaims:
        try:
            payload = jwt.decode(token, self.secret, algorithms=[self.algorithm])
        except jwt.ExpiredSignatureError:
            raise Unauthorized("Session expired") from None
        except jwt.InvalidTokenError:
            raise Unauthorized("Invalid token") from None
        try:
            user_id = int(payload["sub"])
        except (KeyError, TypeError, ValueError):
            raise Unauthorized("Invalid token") from None
        return TokenClaims(
            user_id=user_id,
            expiry=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
        )


identity = IdentityService()
