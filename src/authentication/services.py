"""Issuing, verifying and revoking the API's bearer tokens.

Access and refresh tokens are HS256 JWTs carrying the user's id (``sub``), a
unique ``jti`` and the user's ``token_version`` (``ver``). Revocation is two
layered: a single token is revoked by parking its ``jti`` in Redis until it
expires, and every token of a user is revoked by bumping ``token_version``.
"""

import logging
import time
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Optional, Tuple

import jwt
import redis
from django.conf import settings
from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError
from rest_framework.exceptions import AuthenticationFailed

from core.redis_client import get_redis_client

logger = logging.getLogger(__name__)

ACCESS = "access"
REFRESH = "refresh"


class BlocklistUnavailable(Exception):
    """Redis could not be reached, so revocation state is unknown."""


def bearer_token(request) -> Optional[str]:
    """Token from an ``Authorization: Bearer <token>`` header, if any."""
    header = request.META.get("HTTP_AUTHORIZATION", "")
    scheme, _, token = header.partition(" ")
    if scheme != "Bearer" or not token.strip():
        return None
    return token.strip()


class TokenService:
    ALGORITHM = "HS256"
    BLOCKLIST_PREFIX = "blocklist:token:"

    @staticmethod
    def lifetime(token_type: str) -> timedelta:
        if token_type == ACCESS:
            return timedelta(minutes=settings.ACCESS_TOKEN_LIFETIME_MINUTES)
        return timedelta(hours=settings.REFRESH_TOKEN_LIFETIME_HOURS)

    @classmethod
    def generate_tokens(cls, user) -> Tuple[str, str]:
        """Sign a fresh ``(access, refresh)`` pair for ``user``."""
        now = datetime.now(timezone.utc)
        return cls._sign(user, ACCESS, now), cls._sign(user, REFRESH, now)

    @classmethod
    def _sign(cls, user, token_type: str, issued_at: datetime) -> str:
        payload = {
            "sub": str(user.id),
            "jti": uuid.uuid4().hex,
            "iat": int(issued_at.timestamp()),
            "exp": int((issued_at + cls.lifetime(token_type)).timestamp()),
            "ver": user.token_version,
            "type": token_type,
        }
        return jwt.encode(payload, settings.SECRET_KEY, algorithm=cls.ALGORITHM)

    @classmethod
    def decode_token(cls, token: str, expected_type: Optional[str] = None) -> dict[str, Any]:
        """Verify signature and expiry; map every failure to ``AuthenticationFailed``."""
        try:
            payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[cls.ALGORITHM])
        except jwt.ExpiredSignatureError as exc:
            raise AuthenticationFailed("Token has expired") from exc
        except jwt.InvalidTokenError as exc:
            raise AuthenticationFailed("Invalid token") from exc

        if expected_type and payload.get("type") != expected_type:
            raise AuthenticationFailed("Invalid token type")
        if not payload.get("jti"):
            raise AuthenticationFailed("Invalid token")
        return payload

    @classmethod
    def resolve_user(cls, payload: dict[str, Any]):
        """Active user named by ``payload`` whose token version still matches.

        Raises ``AuthenticationFailed`` for unknown, inactive or revoked users.
        """
        User = get_user_model()
        try:
            user = User.objects.get(id=payload.get("sub"))
        except (User.DoesNotExist, ValidationError, ValueError) as exc:
            raise AuthenticationFailed("User not found or inactive") from exc
        if not user.is_active:
            raise AuthenticationFailed("User not found or inactive")
        # Tokens minted before a logout-all carry a stale version.
        if payload.get("ver") != user.token_version:
            raise AuthenticationFailed("Invalid or revoked token")
        return user

    @classmethod
    def authenticate(cls, token: str):
        """User behind a bearer access token that has not been revoked."""
        payload = cls.decode_token(token, expected_type=ACCESS)
        if cls.is_token_blocked(payload["jti"]):
            raise AuthenticationFailed("Token has been revoked")
        return cls.resolve_user(payload)

    @classmethod
    def revoke(cls, token: str) -> None:
        """Blocklist an access token for the rest of its lifetime."""
        payload = cls.decode_token(token, expected_type=ACCESS)
        cls.block_token(payload["jti"], payload["exp"])

    @staticmethod
    def revoke_all(user) -> None:
        """Invalidate every token issued to ``user`` so far."""
        user.token_version = (user.token_version or 1) + 1
        user.save(update_fields=["token_version"])
        logger.info("Revoked all tokens for user %s", user.pk)

    @classmethod
    def block_token(cls, jti: str, exp: int) -> None:
        ttl_seconds = max(1, exp - int(time.time()))
        try:
            get_redis_client().setex(f"{cls.BLOCKLIST_PREFIX}{jti}", ttl_seconds, "1")
        except redis.RedisError as exc:
            logger.error("Token blocklist write failed: %s", exc)
            raise BlocklistUnavailable("Redis unavailable while blocklisting") from exc

    @classmethod
    def is_token_blocked(cls, jti: str) -> bool:
        try:
            return get_redis_client().get(f"{cls.BLOCKLIST_PREFIX}{jti}") is not None
        except redis.RedisError as exc:
            logger.error("Token blocklist read failed: %s", exc)
            raise BlocklistUnavailable("Redis unavailable while checking blocklist") from exc


__all__ = ["ACCESS", "REFRESH", "BlocklistUnavailable", "TokenService", "bearer_token"]
