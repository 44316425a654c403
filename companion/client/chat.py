"""Client-side chat state machine and transcript."""

from dataclasses import dataclass
from enum import StrEnum
from typing import Any, Literal, Protocol

import httpx
import structlog

from companion.client.api import ApiError, CompanionApi
from companion.client.auth import IdentityClient

logger = structlog.get_logger()

FALLBACK_REPLY = "Sorry, I could not get a response."

Sender = Literal["user", "ai"]


class ChatState(StrEnum):
    IDLE = "idle"
    SENDING = "sending"
    ERROR_DISPLAYED = "error-displayed"


class EntryStatus(StrEnum):
    STORED = "stored"  # loaded from the store
    PENDING = "pending"  # sent, waiting for the reply
    DELIVERED = "delivered"
    FAILED = "failed"


@dataclass
class TranscriptEntry:
    text: str
    sender: Sender
    id: int | str | None = None
    created_at: str | None = None
    status: EntryStatus = EntryStatus.STORED
    is_fallback: bool = False


class ChatView(Protocol):
    """Rendering hooks the state machine drives after it updates."""

    def focus_compose(self) -> None: ...

    def scroll_to_latest(self) -> None: ...


class NullView:
    def focus_compose(self) -> None:
        pass

    def scroll_to_latest(self) -> None:
        pass


class ChatClient:
    """Holds the transcript and runs at most one chat request at a time.

    A submitted message is shown at once as a pending entry. It is never
    removed: it becomes ``delivered`` when the reply arrives, or ``failed``
    with a fallback reply and an error line when the request fails.
    """

    def __init__(
        self,
        api: CompanionApi,
        identity: IdentityClient,
        view: ChatView | None = None,
    ) -> None:
        self._api = api
        self._identity = identity
        self._view: ChatView = view or NullView()
        self._transcript: list[TranscriptEntry] = []
        self._sending = False
        # Bumped whenever the transcript is replaced; replies for an older one are dropped.
        self._generation = 0
        self.draft = ""
        self.error: str | None = None

    @property
    def transcript(self) -> tuple[TranscriptEntry, ...]:
        return tuple(self._transcript)

    @property
    def state(self) -> ChatState:
        if self._sending:
            return ChatState.SENDING
        if self.error:
            return ChatState.ERROR_DISPLAYED
        return ChatState.IDLE

    def load_transcript(self, rows: list[dict[str, Any]]) -> None:
        """Replace the transcript with stored messages (oldest first)."""
        self._generation += 1
        self._transcript = [
            TranscriptEntry(
                text=row["content"],
                sender="user" if row["role"] == "user" else "ai",
                id=row.get("id"),
                created_at=row.get("created_at"),
            )
            for row in rows
            if row.get("role") in ("user", "assistant")
        ]
        self._view.scroll_to_latest()

    def clear(self) -> None:
        self._generation += 1
        self._transcript = []
        self.draft = ""
        self.error = None

    def show_error(self, message: str) -> None:
        self.error = message

    def dismiss_error(self) -> None:
        self.error = None

    async def submit(self) -> bool:
        """Send the current draft."""
        return await self.send(self.draft)

    async def send(self, text: str) -> bool:
        """Send ``text`` unless blank, signed out, or a request is in flight.

        Returns whether a request was made.
        """
        if self._sending or not text.strip() or self._identity.session is None:
            return False

        generation = self._generation
        entry = TranscriptEntry(text=text, sender="user", status=EntryStatus.PENDING)
        self._append(entry)
        self.draft = ""
        self.error = None
        self._sending = True

        try:
            reply = await self._api.send_chat(text)
        except (ApiError, httpx.HTTPError) as exc:
            logger.warning("Chat request failed", error=str(exc))
            if generation == self._generation:
                entry.status = EntryStatus.FAILED
                self.error = f"Error: {exc}"
                self._append(
                    TranscriptEntry(text=FALLBACK_REPLY, sender="ai", is_fallback=True)
                )
        else:
            if generation == self._generation:
                entry.status = EntryStatus.DELIVERED
                self._append(TranscriptEntry(text=reply, sender="ai"))
        finally:
            self._sending = False
            self._view.scroll_to_latest()
            self._view.focus_compose()
        return True

    def _append(self, entry: TranscriptEntry) -> None:
        self._transcript.append(entry)
        self._view.scroll_to_latest()
