"""ASGI authentication middleware."""

import json
from http.cookies import CookieError, SimpleCookie
from typing import Any

import jwt
import structlog
from starlette.types import ASGIApp, Receive, Scope, Send

from companion.core.config import settings
from companion.core.exceptions import UNAUTHORIZED
from companion.core import redis as redis_state
from companion.services.token_service import BLACKLIST_PREFIX

logger = structlog.get_logger()

PUBLIC_PATHS: set[str] = {
    "",
    "/",
    "/health",
    "/docs",
    "/openapi.json",
    "/redoc",
    "/api/auth/register",
    "/api/auth/login",
    "/api/auth/refresh",
}


def extract_token(headers: dict[bytes, bytes], cookie_name: str) -> str | None:
    """Return the access token from the Bearer header, else from the cookie."""
    auth_header = headers.get(b"authorization", b"").decode()
    if auth_header.startswith("Bearer "):
        return auth_header[7:] or None

    raw_cookie = headers.get(b"cookie", b"").decode()
    if not raw_cookie:
        return None
    try:
        cookie = SimpleCookie(raw_cookie)
    except CookieError:
        return None
    morsel = cookie.get(cookie_name)
    return morsel.value if morsel and morsel.value else None


class AuthMiddleware:
    """Pure ASGI middleware that derives the caller identity from the credential.

    Populates ``scope["state"]`` with ``user_id``, ``email``, ``jti`` and
    ``exp``. Identity never comes from the request body.
    """

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        method = scope.get("method", "")
        if method == "OPTIONS":
            await self.app(scope, receive, send)
            return

        path = scope["path"]
        normalized = path.rstrip("/") or "/"
        if normalized in PUBLIC_PATHS or path.startswith(("/docs", "/redoc")):
            await self.app(scope, receive, send)
            return

        headers = dict(scope.get("headers", []))
        token = extract_token(headers, settings.auth.cookie_name)

        if token is None:
            await self._send_error(
                send, 401, "MISSING_TOKEN", "Authorization header or cookie required"
            )
            return

        secret = settings.auth.secret_key.get_secret_value()
        algorithm = settings.auth.algorithm

        try:
            payload: dict[str, Any] = jwt.decode(token, secret, algorithms=[algorithm])
        except jwt.ExpiredSignatureError:
            await self._send_error(send, 401, "TOKEN_EXPIRED", "Token has expired")
            return
        except jwt.InvalidTokenError:
            await self._send_error(send, 401, "INVALID_TOKEN", "Invalid token")
            return

        if payload.get("type") != "access":
            await self._send_error(send, 401, "INVALID_TOKEN", "Invalid token type")
            return

        jti = payload.get("jti", "")
        client = redis_state.redis_client
        if client is not None:
            is_blacklisted = await client.get(f"{BLACKLIST_PREFIX}{jti}")
            if is_blacklisted is not None:
                await self._send_error(
                    send, 401, "TOKEN_BLACKLISTED", "Token has been revoked"
                )
                return

        scope.setdefault("state", {})
        scope["state"]["user_id"] = payload["sub"]
        scope["state"]["email"] = payload["email"]
        scope["state"]["jti"] = jti
        scope["state"]["exp"] = payload["exp"]

        await self.app(scope, receive, send)

    @staticmethod
    async def _send_error(send: Send, status: int, code: str, message: str) -> None:
        """Send a JSON 401 response directly."""
        logger.info("Rejected unauthenticated request", code=code)
        body = json.dumps(
            {"error": UNAUTHORIZED, "code": code, "message": message}
        ).encode()

        await send(
            {
                "type": "http.response.start",
                "status": status,
                "headers": [
                    [b"content-type", b"application/json"],
                    [b"content-length", str(len(body)).encode()],
                ],
            }
        )
        await send({"type": "http.response.body", "body": body})
