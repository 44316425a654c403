"""Tests for TokenService."""

import time

import fakeredis.aioredis
import jwt as pyjwt
import pytest

from companion.core.config import settings
from companion.core.exceptions import InvalidTokenError, TokenExpiredError
from companion.services.token_service import TokenService

USER_ID = "3f1c2a9e-7d4b-4a51-9a0e-0c6f1b2d3e4f"


@pytest.fixture
def ts(fake_redis: fakeredis.aioredis.FakeRedis) -> TokenService:
    return TokenService(fake_redis)


def _sign(payload: dict[str, object]) -> str:
    return pyjwt.encode(
        payload,
        settings.auth.secret_key.get_secret_value(),
        algorithm=settings.auth.algorithm,
    )


class TestCreateTokens:
    """Tests for token creation."""

    def test_create_access_token(self, ts: TokenService) -> None:
        token = ts.create_access_token(user_id=USER_ID, email="a@b.com")
        assert isinstance(token, str)
        assert len(token) > 0

    def test_access_token_decodes_correctly(self, ts: TokenService) -> None:
        token = ts.create_access_token(user_id=USER_ID, email="test@test.com")
        payload = ts.decode_token(token)
        assert payload.sub == USER_ID
        assert payload.email == "test@test.com"
        assert payload.type == "access"
        assert payload.jti

    def test_refresh_token_decodes_correctly(self, ts: TokenService) -> None:
        token = ts.create_refresh_token(user_id=USER_ID, email="r@r.com")
        payload = ts.decode_token(token)
        assert payload.type == "refresh"
        assert payload.sub == USER_ID

    def test_each_token_gets_unique_jti(self, ts: TokenService) -> None:
        first = ts.decode_token(ts.create_access_token(USER_ID, "a@b.com"))
        second = ts.decode_token(ts.create_access_token(USER_ID, "a@b.com"))
        assert first.jti != second.jti


class TestDecodeToken:
    """Tests for token decoding."""

    def test_invalid_token_raises(self, ts: TokenService) -> None:
        with pytest.raises(InvalidTokenError):
            ts.decode_token("not.a.valid.token")

    def test_expired_token_raises(self, ts: TokenService) -> None:
        expired_token = _sign(
            {
                "sub": USER_ID,
                "email": "a@b.com",
                "type": "access",
                "jti": "test-jti",
                "exp": int(time.time()) - 10,
            }
        )
        with pytest.raises(TokenExpiredError):
            ts.decode_token(expired_token)

    def test_missing_claim_raises(self, ts: TokenService) -> None:
        token = _sign({"sub": USER_ID, "exp": int(time.time()) + 60})
        with pytest.raises(InvalidTokenError):
            ts.decode_token(token)

    def test_wrong_signature_raises(self, ts: TokenService) -> None:
        token = pyjwt.encode(
            {"sub": USER_ID, "exp": int(time.time()) + 60},
            "another-secret-of-sufficient-length-0000",
            algorithm="HS256",
        )
        with pytest.raises(InvalidTokenError):
            ts.decode_token(token)


class TestBlacklist:
    """Tests for token blacklisting."""

    async def test_blacklist_and_check(self, ts: TokenService) -> None:
        future_exp = int(time.time()) + 3600
        await ts.blacklist_token("jti-123", future_exp)
        assert await ts.is_blacklisted("jti-123") is True

    async def test_already_expired_token_not_stored(self, ts: TokenService) -> None:
        await ts.blacklist_token("old-jti", int(time.time()) - 5)
        assert await ts.is_blacklisted("old-jti") is False

    async def test_not_blacklisted(self, ts: TokenService) -> None:
        assert await ts.is_blacklisted("unknown-jti") is False


class TestLoginAttempts:
    """Tests for login attempt tracking."""

    async def test_record_and_get(self, ts: TokenService) -> None:
        count = await ts.record_failed_login("fail@test.com")
        assert count == 1
        assert await ts.get_login_attempts("fail@test.com") == 1

    async def test_increment(self, ts: TokenService) -> None:
        await ts.record_failed_login("inc@test.com")
        count = await ts.record_failed_login("inc@test.com")
        assert count == 2

    async def test_reset(self, ts: TokenService) -> None:
        await ts.record_failed_login("reset@test.com")
        await ts.reset_login_attempts("reset@test.com")
        assert await ts.get_login_attempts("reset@test.com") == 0

    async def test_zero_for_unknown(self, ts: TokenService) -> None:
        assert await ts.get_login_attempts("nobody@test.com") == 0


class TestRefreshLock:
    """Tests for the per-token refresh lock."""

    async def test_second_acquire_fails(self, ts: TokenService) -> None:
        assert await ts.acquire_refresh_lock("jti-lock") is True
        assert await ts.acquire_refresh_lock("jti-lock") is False

    async def test_release_allows_reacquire(self, ts: TokenService) -> None:
        await ts.acquire_refresh_lock("jti-lock")
        await ts.release_refresh_lock("jti-lock")
        assert await ts.acquire_refresh_lock("jti-lock") is True
