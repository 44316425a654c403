"""Identity provider client: session lookup, sign-in/up/out, state notifications."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

import httpx
import structlog

logger = structlog.get_logger()


class AuthEvent(StrEnum):
    INITIAL_SESSION = "INITIAL_SESSION"
    SIGNED_IN = "SIGNED_IN"
    SIGNED_OUT = "SIGNED_OUT"
    TOKEN_REFRESHED = "TOKEN_REFRESHED"


@dataclass(frozen=True)
class Session:
    """Signed-in identity and the tokens that prove it."""

    user_id: str
    email: str
    access_token: str
    refresh_token: str


AuthListener = Callable[[AuthEvent, Session | None], Awaitable[None]]


class AuthError(Exception):
    """Identity request rejected by the server or not deliverable."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class Subscription:
    """Handle returned by :meth:`IdentityClient.on_auth_state_change`."""

    def __init__(self, listeners: list[AuthListener], listener: AuthListener) -> None:
        self._listeners = listeners
        self._listener = listener

    def unsubscribe(self) -> None:
        if self._listener in self._listeners:
            self._listeners.remove(self._listener)


def error_message(response: httpx.Response) -> str:
    """Best available error text from a JSON error body."""
    try:
        data: Any = response.json()
    except ValueError:
        data = None
    if isinstance(data, dict) and data.get("error"):
        return str(data["error"])
    return f"API Error: {response.status_code}"


class IdentityClient:
    """Client for the ``/api/auth`` endpoints holding the current session.

    Listeners registered with :meth:`on_auth_state_change` are awaited in
    registration order after every session transition.
    """

    def __init__(self, http: httpx.AsyncClient, session: Session | None = None) -> None:
        self._http = http
        self._session = session
        self._listeners: list[AuthListener] = []

    @property
    def session(self) -> Session | None:
        return self._session

    def auth_headers(self) -> dict[str, str]:
        if self._session is None:
            return {}
        return {"Authorization": f"Bearer {self._session.access_token}"}

    def on_auth_state_change(self, listener: AuthListener) -> Subscription:
        self._listeners.append(listener)
        return Subscription(self._listeners, listener)

    async def sign_up(self, email: str, password: str) -> Session:
        """Register an account; the new account is signed in immediately."""
        data = await self._post("/api/auth/register", {"email": email, "password": password})
        tokens = data["tokens"]
        session = Session(
            user_id=data["user"]["id"],
            email=data["user"]["email"],
            access_token=tokens["access_token"],
            refresh_token=tokens["refresh_token"],
        )
        await self._transition(AuthEvent.SIGNED_IN, session)
        return session

    async def sign_in(self, email: str, password: str) -> Session:
        tokens = await self._post("/api/auth/login", {"email": email, "password": password})
        user = await self._lookup(tokens["access_token"])
        if user is None:
            raise AuthError("Session was rejected right after sign-in", 401)
        session = Session(
            user_id=user["id"],
            email=user["email"],
            access_token=tokens["access_token"],
            refresh_token=tokens["refresh_token"],
        )
        await self._transition(AuthEvent.SIGNED_IN, session)
        return session

    async def sign_out(self) -> None:
        """Revoke the session server-side and forget it locally.

        The local session is dropped even when the server call fails.
        """
        session = self._session
        if session is None:
            return
        try:
            response = await self._http.post(
                "/api/auth/logout",
                json={"refresh_token": session.refresh_token},
                headers=self.auth_headers(),
            )
            if response.is_error:
                logger.warning(
                    "Server-side sign-out failed",
                    status_code=response.status_code,
                )
        except httpx.HTTPError as exc:
            logger.warning("Server-side sign-out failed", error=str(exc))
        await self._transition(AuthEvent.SIGNED_OUT, None)

    async def get_session(self) -> Session | None:
        """Validate the stored session, refreshing it once if it was rejected."""
        session = self._session
        if session is None:
            return None
        user = await self._lookup(session.access_token)
        if user is not None:
            return self._session
        return await self.refresh_session()

    async def refresh_session(self) -> Session | None:
        """Rotate tokens; a failed refresh ends the session."""
        session = self._session
        if session is None:
            return None
        response = await self._http.post(
            "/api/auth/refresh", json={"refresh_token": session.refresh_token}
        )
        if response.is_error:
            logger.info("Session refresh rejected", status_code=response.status_code)
            await self._transition(AuthEvent.SIGNED_OUT, None)
            return None
        tokens = response.json()
        refreshed = Session(
            user_id=session.user_id,
            email=session.email,
            access_token=tokens["access_token"],
            refresh_token=tokens["refresh_token"],
        )
        await self._transition(AuthEvent.TOKEN_REFRESHED, refreshed)
        return refreshed

    async def _lookup(self, access_token: str) -> dict[str, Any] | None:
        """Resolve the user behind a token; None when the server rejects it."""
        response = await self._http.get(
            "/api/auth/session",
            headers={"Authorization": f"Bearer {access_token}"},
        )
        if response.status_code == 401:
            return None
        if response.is_error:
            raise AuthError(error_message(response), response.status_code)
        return response.json()["user"]

    async def _post(self, path: str, payload: dict[str, Any]) -> dict[str, Any]:
        response = await self._http.post(path, json=payload)
        if response.is_error:
            raise AuthError(error_message(response), response.status_code)
        return response.json()

    async def _transition(self, event: AuthEvent, session: Session | None) -> None:
        self._session = session
        logger.info("Auth state changed", auth_event=str(event))
        for listener in list(self._listeners):
            await listener(event, session)
