"""Chat request and response schemas."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from companion.schemas.settings_schema import AISettings


class HistoryItem(BaseModel):
    """Transcript entry as a browser client may echo it back."""

    text: str
    sender: Literal["user", "ai"]


class ChatRequest(BaseModel):
    """Chat API request schema.

    ``history``, ``user_id`` and ``ai_settings`` are accepted for client
    compatibility only. The server derives identity from the session and
    rebuilds history from the store.
    """

    model_config = ConfigDict(populate_by_name=True)

    message: str = Field(..., min_length=1, max_length=4000)
    history: list[HistoryItem] | None = None
    user_id: str | None = Field(default=None, alias="userId")
    ai_settings: AISettings | None = Field(default=None, alias="aiSettings")


class ChatResponse(BaseModel):
    """Chat API response schema."""

    response: str


class MessageItem(BaseModel):
    """Stored message returned by the history endpoint."""

    model_config = ConfigDict(frozen=True, from_attributes=True)

    id: int
    role: Literal["system", "user", "assistant"]
    content: str
    created_at: datetime


class MessageListResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    messages: list[MessageItem]
