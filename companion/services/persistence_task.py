"""Writes a completed chat exchange to the conversation store."""

import structlog
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from companion.repositories.message_repo import MessageRepository

logger = structlog.get_logger()


async def save_exchange(
    session_factory: async_sessionmaker[AsyncSession],
    user_id: str,
    user_message: str,
    reply: str,
) -> None:
    """Persist the user message, then the reply, in separate commits.

    Uses its own session so it can run after the request session is gone.
    If the second commit fails the user message stays without a reply.
    """
    async with session_factory() as session:
        repo = MessageRepository(session)
        await repo.create_message(user_id, "user", user_message)
        await session.commit()
        await repo.create_message(user_id, "assistant", reply)
        await session.commit()


async def save_exchange_best_effort(
    session_factory: async_sessionmaker[AsyncSession],
    user_id: str,
    user_message: str,
    reply: str,
) -> None:
    """Run :func:`save_exchange` and log, rather than raise, any failure.

    Scheduled as a FastAPI BackgroundTask in best-effort mode.
    """
    try:
        await save_exchange(session_factory, user_id, user_message, reply)
    except Exception:
        logger.exception("Failed to persist chat exchange", user_id=user_id)
        return
    logger.info("Chat exchange persisted", user_id=user_id)
