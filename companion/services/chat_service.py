"""Chat orchestration: context assembly, generation and exchange persistence."""

from typing import Any

import structlog
from fastapi import BackgroundTasks
from langchain_core.language_models import BaseChatModel
from langchain_core.messages import (
    AIMessage,
    BaseMessage,
    HumanMessage,
    SystemMessage,
)
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from companion.core.exceptions import (
    HistoryLoadDegraded,
    PersistenceDegraded,
    UpstreamGenerationError,
)
from companion.core.settings import ChatConfig
from companion.models.message import Message
from companion.repositories.message_repo import MessageRepository
from companion.schemas.chat_schema import ChatRequest, ChatResponse
from companion.services.persistence_task import save_exchange, save_exchange_best_effort

logger = structlog.get_logger()

SYSTEM_PROMPT = (
    "You are an AI coach and companion. You have access to the conversation "
    "history and should maintain context and continuity in your responses. "
    "Be helpful, supportive, and engaging while maintaining a professional tone."
)


class ChatService:
    """Runs one chat exchange on behalf of an authenticated caller.

    The steps run in a fixed order: load recent history (non-fatal), build
    the prompt, generate, then persist the user message followed by the
    reply. Nothing is written unless generation succeeds.
    """

    def __init__(
        self,
        llm: BaseChatModel,
        message_repo: MessageRepository,
        session_factory: async_sessionmaker[AsyncSession],
        user_id: str,
        config: ChatConfig,
    ) -> None:
        self._llm = llm
        self._message_repo = message_repo
        self._session_factory = session_factory
        self._user_id = user_id
        self._config = config

    async def chat(
        self,
        request: ChatRequest,
        background_tasks: BackgroundTasks | None = None,
    ) -> ChatResponse:
        """Generate a reply to ``request.message`` and record the exchange.

        In best-effort mode the write is handed to ``background_tasks`` (or
        awaited when none are given) and its failure is only logged. In
        strict mode a failed write raises PersistenceDegraded.
        """
        try:
            history = await self._fetch_history()
        except HistoryLoadDegraded as exc:
            logger.warning(
                "Chat history unavailable, continuing without context",
                user_id=self._user_id,
                code=exc.code,
            )
            history = []

        prompt = self.build_prompt(history, request.message)
        reply = await self._generate(prompt)

        await self._persist(request.message, reply, background_tasks)
        return ChatResponse(response=reply)

    async def _fetch_history(self) -> list[BaseMessage]:
        """Load the context window, oldest first."""
        try:
            rows = await self._message_repo.find_recent_by_user(
                self._user_id, self._config.history_limit
            )
        except Exception as exc:
            await self._message_repo.rollback()
            raise HistoryLoadDegraded from exc
        return self._build_langchain_messages(rows)

    async def _generate(self, prompt: list[BaseMessage]) -> str:
        """Call the completion provider once; no retries at this layer."""
        try:
            result = await self._llm.ainvoke(prompt)
        except Exception as exc:
            logger.exception(
                "Completion provider call failed",
                user_id=self._user_id,
                error_type=type(exc).__name__,
            )
            raise UpstreamGenerationError from exc

        reply = self._extract_reply(result)
        if not reply.strip():
            logger.error("Completion provider returned an empty reply", user_id=self._user_id)
            raise UpstreamGenerationError
        return reply

    async def _persist(
        self,
        user_message: str,
        reply: str,
        background_tasks: BackgroundTasks | None,
    ) -> None:
        if self._config.is_strict:
            try:
                await save_exchange(
                    self._session_factory, self._user_id, user_message, reply
                )
            except Exception as exc:
                logger.exception("Failed to persist chat exchange", user_id=self._user_id)
                raise PersistenceDegraded from exc
            return

        if background_tasks is None:
            await save_exchange_best_effort(
                self._session_factory, self._user_id, user_message, reply
            )
            return

        background_tasks.add_task(
            save_exchange_best_effort,
            self._session_factory,
            self._user_id,
            user_message,
            reply,
        )

    @staticmethod
    def build_prompt(history: list[BaseMessage], message: str) -> list[BaseMessage]:
        """System instruction, then prior turns, then the new user message."""
        return [
            SystemMessage(content=SYSTEM_PROMPT),
            *history,
            HumanMessage(content=message),
        ]

    @staticmethod
    def _build_langchain_messages(rows: list[Message]) -> list[BaseMessage]:
        """Convert stored messages to LangChain message objects."""
        messages: list[BaseMessage] = []
        for row in rows:
            if row.role == "user":
                messages.append(HumanMessage(content=row.content))
            elif row.role == "assistant":
                messages.append(AIMessage(content=row.content))
            elif row.role == "system":
                messages.append(SystemMessage(content=row.content))
        return messages

    @staticmethod
    def _extract_reply(result: Any) -> str:
        """Pull plain text out of a chat model result.

        Providers may return content as a string or as a list of blocks.
        """
        content = getattr(result, "content", None)
        if isinstance(content, str):
            return content
        if isinstance(content, list):
            parts: list[str] = []
            for block in content:
                if isinstance(block, str):
                    parts.append(block)
                elif isinstance(block, dict) and block.get("type") == "text":
                    parts.append(str(block.get("text", "")))
            return "".join(parts)
        return ""
