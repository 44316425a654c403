"""Unit tests for the client chat state machine."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from companion.client.api import ApiError, CompanionApi
from companion.client.auth import IdentityClient, Session
from companion.client.chat import (
    FALLBACK_REPLY,
    ChatClient,
    ChatState,
    EntryStatus,
)

SESSION = Session(
    user_id="u1", email="u1@test.com", access_token="at", refresh_token="rt"
)


def _identity(session: Session | None = SESSION) -> IdentityClient:
    http = httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(500)))
    return IdentityClient(http, session=session)


@pytest.fixture
def api() -> AsyncMock:
    mock = AsyncMock(spec=CompanionApi)
    mock.send_chat.return_value = "I'm well"
    return mock


@pytest.fixture
def view() -> MagicMock:
    return MagicMock()


@pytest.fixture
def chat(api: AsyncMock, view: MagicMock) -> ChatClient:
    return ChatClient(api, _identity(), view)


class TestSend:
    """Tests for ChatClient.send."""

    async def test_success_appends_user_and_reply(
        self, chat: ChatClient, api: AsyncMock
    ) -> None:
        assert await chat.send("how are you") is True

        api.send_chat.assert_awaited_once_with("how are you")
        assert [(e.sender, e.text) for e in chat.transcript] == [
            ("user", "how are you"),
            ("ai", "I'm well"),
        ]
        assert chat.transcript[0].status == EntryStatus.DELIVERED
        assert chat.state == ChatState.IDLE

    async def test_whitespace_sends_nothing(
        self, chat: ChatClient, api: AsyncMock
    ) -> None:
        assert await chat.send("   ") is False
        api.send_chat.assert_not_awaited()
        assert chat.transcript == ()

    async def test_signed_out_sends_nothing(self, api: AsyncMock) -> None:
        chat = ChatClient(api, _identity(session=None))
        assert await chat.send("hello") is False
        api.send_chat.assert_not_awaited()

    async def test_second_send_while_in_flight_ignored(
        self, chat: ChatClient, api: AsyncMock
    ) -> None:
        release = asyncio.Event()

        async def slow_reply(message: str) -> str:
            await release.wait()
            return "done"

        api.send_chat.side_effect = slow_reply
        first = asyncio.create_task(chat.send("one"))
        await asyncio.sleep(0)

        assert chat.state == ChatState.SENDING
        assert await chat.send("two") is False

        release.set()
        await first
        assert api.send_chat.await_count == 1
        assert [e.text for e in chat.transcript] == ["one", "done"]

    async def test_pending_entry_visible_before_reply(
        self, chat: ChatClient, api: AsyncMock
    ) -> None:
        seen: list[EntryStatus] = []

        async def capture(message: str) -> str:
            seen.append(chat.transcript[-1].status)
            return "ok"

        api.send_chat.side_effect = capture
        await chat.send("hi")

        assert seen == [EntryStatus.PENDING]

    async def test_failure_keeps_user_entry_and_adds_fallback(
        self, chat: ChatClient, api: AsyncMock
    ) -> None:
        api.send_chat.side_effect = ApiError("Internal server error", 500)

        assert await chat.send("hello") is True

        user_entry, fallback = chat.transcript
        assert user_entry.text == "hello"
        assert user_entry.status == EntryStatus.FAILED
        assert fallback.text == FALLBACK_REPLY
        assert fallback.is_fallback is True
        assert chat.error == "Error: Internal server error"
        assert chat.state == ChatState.ERROR_DISPLAYED

    async def test_network_failure_handled(
        self, chat: ChatClient, api: AsyncMock
    ) -> None:
        api.send_chat.side_effect = httpx.ConnectError("refused")

        await chat.send("hello")

        assert chat.state == ChatState.ERROR_DISPLAYED
        assert chat.transcript[-1].is_fallback is True

    async def test_next_send_clears_error(
        self, chat: ChatClient, api: AsyncMock
    ) -> None:
        api.send_chat.side_effect = [ApiError("boom"), "fine"]
        await chat.send("first")
        await chat.send("second")

        assert chat.error is None
        assert chat.state == ChatState.IDLE

    async def test_submit_sends_and_clears_draft(
        self, chat: ChatClient, api: AsyncMock, view: MagicMock
    ) -> None:
        chat.draft = "from the compose box"

        await chat.submit()

        api.send_chat.assert_awaited_once_with("from the compose box")
        assert chat.draft == ""
        view.focus_compose.assert_called()
        view.scroll_to_latest.assert_called()

    async def test_reply_after_clear_dropped(
        self, chat: ChatClient, api: AsyncMock
    ) -> None:
        async def reply_after_sign_out(message: str) -> str:
            chat.clear()
            return "late"

        api.send_chat.side_effect = reply_after_sign_out
        await chat.send("hello")

        assert chat.transcript == ()


class TestTranscript:
    """Loading and clearing the transcript."""

    def test_load_maps_roles(self, chat: ChatClient) -> None:
        chat.load_transcript(
            [
                {"id": 1, "role": "system", "content": "hidden"},
                {"id": 2, "role": "user", "content": "hi", "created_at": "t1"},
                {"id": 3, "role": "assistant", "content": "hello", "created_at": "t2"},
            ]
        )

        assert [(e.sender, e.text) for e in chat.transcript] == [
            ("user", "hi"),
            ("ai", "hello"),
        ]
        assert chat.transcript[0].status == EntryStatus.STORED

    def test_clear(self, chat: ChatClient) -> None:
        chat.load_transcript([{"role": "user", "content": "hi"}])
        chat.draft = "half typed"
        chat.show_error("Error: x")

        chat.clear()

        assert chat.transcript == ()
        assert chat.draft == ""
        assert chat.error is None

    def test_dismiss_error(self, chat: ChatClient) -> None:
        chat.show_error("Error loading messages: down")
        assert chat.state == ChatState.ERROR_DISPLAYED
        chat.dismiss_error()
        assert chat.state == ChatState.IDLE
