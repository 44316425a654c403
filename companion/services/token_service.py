"""JWT token creation, validation, and revocation list management."""

import uuid
from datetime import UTC, datetime, timedelta
from typing import Literal

import jwt
import redis.asyncio as redis

from companion.core.config import settings
from companion.core.exceptions import (
    InvalidTokenError,
    TokenExpiredError,
)
from companion.schemas.auth_schema import TokenPayload

BLACKLIST_PREFIX = "token_blacklist:"
LOGIN_ATTEMPTS_PREFIX = "login_attempts:"
REFRESH_LOCK_PREFIX = "refresh_lock:"

MAX_LOGIN_ATTEMPTS = 5
LOGIN_LOCKOUT_SECONDS = 300
REFRESH_LOCK_SECONDS = 10


class TokenService:
    """Manage session tokens and the Redis-backed revocation list."""

    def __init__(self, redis_client: redis.Redis) -> None:  # type: ignore[type-arg]
        self._redis = redis_client
        self._secret = settings.auth.secret_key.get_secret_value()
        self._algorithm = settings.auth.algorithm

    def create_access_token(self, user_id: str, email: str) -> str:
        expire = timedelta(minutes=settings.auth.access_token_expire_minutes)
        return self._encode(user_id, email, "access", expire)

    def create_refresh_token(self, user_id: str, email: str) -> str:
        expire = timedelta(days=settings.auth.refresh_token_expire_days)
        return self._encode(user_id, email, "refresh", expire)

    def _encode(
        self,
        user_id: str,
        email: str,
        token_type: Literal["access", "refresh"],
        lifetime: timedelta,
    ) -> str:
        """Sign a token carrying the caller identity."""
        now = datetime.now(UTC)
        payload = {
            "sub": user_id,
            "email": email,
            "type": token_type,
            "jti": str(uuid.uuid4()),
            "iat": now,
            "exp": now + lifetime,
        }
        return jwt.encode(payload, self._secret, algorithm=self._algorithm)

    def decode_token(self, token: str) -> TokenPayload:
        """Decode and validate a JWT token."""
        try:
            payload = jwt.decode(token, self._secret, algorithms=[self._algorithm])
        except jwt.ExpiredSignatureError as e:
            raise TokenExpiredError from e
        except jwt.InvalidTokenError as e:
            raise InvalidTokenError from e

        try:
            return TokenPayload(
                sub=payload["sub"],
                email=payload["email"],
                type=payload["type"],
                jti=payload["jti"],
                exp=payload["exp"],
            )
        except KeyError as e:
            raise InvalidTokenError from e

    # --- Revocation ---

    async def blacklist_token(self, jti: str, exp: int) -> None:
        """Revoke a token until it would have expired anyway."""
        ttl = exp - int(datetime.now(UTC).timestamp())
        if ttl > 0:
            await self._redis.setex(f"{BLACKLIST_PREFIX}{jti}", ttl, "1")

    async def is_blacklisted(self, jti: str) -> bool:
        result = await self._redis.get(f"{BLACKLIST_PREFIX}{jti}")
        return result is not None

    # --- Login attempts ---

    async def record_failed_login(self, email: str) -> int:
        """Record a failed login attempt, return total count."""
        key = f"{LOGIN_ATTEMPTS_PREFIX}{email}"
        count = await self._redis.incr(key)
        if count == 1:
            await self._redis.expire(key, LOGIN_LOCKOUT_SECONDS)
        return int(count)

    async def reset_login_attempts(self, email: str) -> None:
        await self._redis.delete(f"{LOGIN_ATTEMPTS_PREFIX}{email}")

    async def get_login_attempts(self, email: str) -> int:
        result = await self._redis.get(f"{LOGIN_ATTEMPTS_PREFIX}{email}")
        return int(result) if result else 0

    # --- Refresh lock (prevent concurrent refresh) ---

    async def acquire_refresh_lock(self, jti: str) -> bool:
        key = f"{REFRESH_LOCK_PREFIX}{jti}"
        return bool(await self._redis.set(key, "1", ex=REFRESH_LOCK_SECONDS, nx=True))

    async def release_refresh_lock(self, jti: str) -> None:
        await self._redis.delete(f"{REFRESH_LOCK_PREFIX}{jti}")
