"""Chat API router."""

from typing import Annotated

from fastapi import APIRouter, BackgroundTasks, Depends

from companion.dependencies import get_chat_service
from companion.schemas.chat_schema import ChatRequest, ChatResponse
from companion.services.chat_service import ChatService

router = APIRouter(prefix="/api/chat", tags=["chat"])

ChatServiceDep = Annotated[ChatService, Depends(get_chat_service)]


@router.post("", response_model=ChatResponse)
async def chat(
    body: ChatRequest,
    chat_service: ChatServiceDep,
    background_tasks: BackgroundTasks,
) -> ChatResponse:
    """Generate a reply to one message from the authenticated caller."""
    return await chat_service.chat(body, background_tasks)
