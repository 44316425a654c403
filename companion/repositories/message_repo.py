"""Message repository for conversation history queries."""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from companion.models.message import Message


class MessageRepository:
    """Encapsulates reads and appends on a user's conversation."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def find_recent_by_user(self, user_id: str, limit: int) -> list[Message]:
        """Return the ``limit`` most recent messages, oldest first."""
        if limit <= 0:
            return []
        result = await self._session.execute(
            select(Message)
            .where(Message.user_id == user_id)
            .order_by(Message.created_at.desc(), Message.id.desc())
            .limit(limit)
        )
        return list(reversed(result.scalars().all()))

    async def find_all_by_user(self, user_id: str) -> list[Message]:
        """Return the whole conversation in chronological order."""
        result = await self._session.execute(
            select(Message)
            .where(Message.user_id == user_id)
            .order_by(Message.created_at.asc(), Message.id.asc())
        )
        return list(result.scalars().all())

    async def rollback(self) -> None:
        """Discard a failed read so the session stays usable."""
        await self._session.rollback()

    async def create_message(self, user_id: str, role: str, content: str) -> Message:
        """Append a single message to the user's conversation."""
        message = Message(user_id=user_id, role=role, content=content)
        self._session.add(message)
        await self._session.flush()
        await self._session.refresh(message)
        return message
