"""Decides which view to show and loads per-user state on session changes."""

from collections.abc import Callable
from enum import StrEnum
from typing import Protocol

import httpx
import structlog

from companion.client.api import ApiError, CompanionApi
from companion.client.auth import (
    AuthError,
    AuthEvent,
    IdentityClient,
    Session,
    Subscription,
)
from companion.client.chat import ChatClient
from companion.schemas.settings_schema import AISettings, Language

logger = structlog.get_logger()

AUTH_PATH = "/auth"


class View(StrEnum):
    AUTH = "auth"
    ONBOARDING = "onboarding"
    CHAT = "chat"


class Navigator(Protocol):
    def navigate(self, path: str) -> None: ...


class SessionBootstrap:
    """Reacts to identity transitions for the lifetime of the app.

    With no session the transcript is cleared and the auth view is shown.
    With a session the stored messages and settings are loaded; users
    without settings are sent to onboarding. A load that finishes after
    the session changed is discarded.
    """

    def __init__(
        self,
        identity: IdentityClient,
        api: CompanionApi,
        chat: ChatClient,
        navigator: Navigator,
        on_language_change: Callable[[Language], None] | None = None,
    ) -> None:
        self._identity = identity
        self._api = api
        self._chat = chat
        self._navigator = navigator
        self._on_language_change = on_language_change
        self._subscription: Subscription | None = None
        self._active_user_id: str | None = None
        self._events_seen = 0
        self.view = View.AUTH
        self.settings: AISettings | None = None

    async def start(self) -> None:
        """Subscribe to transitions and resolve the initial session.

        An unreachable identity server is treated as no session. When the
        lookup itself emits a transition (a refresh, or a sign-out after a
        failed refresh) that transition has already been handled.
        """
        if self._subscription is None:
            self._subscription = self._identity.on_auth_state_change(self._on_auth_event)
        seen = self._events_seen
        try:
            session = await self._identity.get_session()
        except (AuthError, httpx.HTTPError) as exc:
            logger.warning("Session lookup failed", error=str(exc))
            self._signed_out()
            return
        if self._events_seen != seen:
            return
        await self.handle(AuthEvent.INITIAL_SESSION, session)

    def stop(self) -> None:
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None

    async def handle(self, event: AuthEvent, session: Session | None) -> None:
        if session is None:
            self._signed_out()
            return

        if event == AuthEvent.TOKEN_REFRESHED and session.user_id == self._active_user_id:
            return

        user_id = session.user_id
        self._active_user_id = user_id
        logger.info("Loading user state", user_id=user_id, auth_event=str(event))

        try:
            rows = await self._api.list_messages()
        except (ApiError, httpx.HTTPError) as exc:
            if self._is_stale(user_id):
                return
            logger.warning("Loading messages failed", user_id=user_id, error=str(exc))
            self._chat.show_error(f"Error loading messages: {exc}")
        else:
            if self._is_stale(user_id):
                return
            self._chat.load_transcript(rows)

        try:
            stored = await self._api.get_settings()
        except (ApiError, httpx.HTTPError) as exc:
            if self._is_stale(user_id):
                return
            # Unknown state; onboarding would overwrite settings that may exist.
            logger.warning("Loading settings failed", user_id=user_id, error=str(exc))
            self.view = View.CHAT
            return
        if self._is_stale(user_id):
            return

        self.settings = stored
        if stored is None:
            self.view = View.ONBOARDING
            return
        self._apply_language(stored.language)
        self.view = View.CHAT

    def finish_onboarding(self, settings: AISettings) -> None:
        """Adopt the settings the wizard collected and show the chat."""
        self.settings = settings
        self._apply_language(settings.language)
        self.view = View.CHAT

    async def _on_auth_event(self, event: AuthEvent, session: Session | None) -> None:
        self._events_seen += 1
        await self.handle(event, session)

    def _signed_out(self) -> None:
        self._active_user_id = None
        self._chat.clear()
        self.settings = None
        self.view = View.AUTH
        self._navigator.navigate(AUTH_PATH)

    def _is_stale(self, user_id: str) -> bool:
        return self._active_user_id != user_id

    def _apply_language(self, language: Language) -> None:
        if self._on_language_change is not None:
            self._on_language_change(language)
