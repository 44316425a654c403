"""Conversation history API router."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query

from companion.dependencies import get_conversation_service
from companion.schemas.chat_schema import MessageListResponse
from companion.services.conversation_service import ConversationService

router = APIRouter(prefix="/api/messages", tags=["messages"])

ConversationServiceDep = Annotated[
    ConversationService, Depends(get_conversation_service)
]


@router.get("", response_model=MessageListResponse)
async def list_messages(
    service: ConversationServiceDep,
    limit: int | None = Query(default=None, ge=1, le=1000),
) -> MessageListResponse:
    """List the caller's stored messages, oldest first."""
    return await service.get_messages(limit=limit)
