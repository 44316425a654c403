"""Service layer for reading a user's stored conversation."""

from companion.repositories.message_repo import MessageRepository
from companion.schemas.chat_schema import MessageItem, MessageListResponse


class ConversationService:
    """Read-only access to the authenticated user's messages."""

    def __init__(self, message_repo: MessageRepository, user_id: str) -> None:
        self._message_repo = message_repo
        self._user_id = user_id

    async def get_messages(self, limit: int | None = None) -> MessageListResponse:
        """Return the conversation oldest first, optionally only the last ``limit``."""
        if limit is None:
            rows = await self._message_repo.find_all_by_user(self._user_id)
        else:
            rows = await self._message_repo.find_recent_by_user(self._user_id, limit)
        return MessageListResponse(
            messages=[MessageItem.model_validate(row) for row in rows],
        )
