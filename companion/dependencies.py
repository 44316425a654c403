"""Global dependencies for the application."""

from fastapi import Depends, Request
from langchain_anthropic import ChatAnthropic
from langchain_core.language_models import BaseChatModel
from langchain_openai import ChatOpenAI
from pydantic import BaseModel, ConfigDict
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from companion.core.config import settings
from companion.core.database import get_async_session, get_session_factory
from companion.core.exceptions import AuthenticationError
from companion.core.redis import get_redis
from companion.core.settings import ChatConfig, LLMConfig
from companion.repositories.message_repo import MessageRepository
from companion.repositories.settings_repo import SettingsRepository
from companion.repositories.user_repo import UserRepository
from companion.services.auth_service import AuthService
from companion.services.chat_service import ChatService
from companion.services.conversation_service import ConversationService
from companion.services.settings_service import SettingsService
from companion.services.token_service import TokenService

# --- Completion provider ---


def build_llm(llm_config: LLMConfig) -> BaseChatModel:
    """Build the chat model with the fixed generation parameters."""
    match llm_config.provider:
        case "openai":
            return ChatOpenAI(
                model=llm_config.openai_model,
                api_key=llm_config.openai_api_key,
                temperature=llm_config.temperature,
                max_tokens=llm_config.max_tokens,  # type: ignore[call-arg]
                max_retries=llm_config.max_retries,
            )
        case "anthropic":
            return ChatAnthropic(  # type: ignore[call-arg]
                model_name=llm_config.anthropic_model,
                api_key=llm_config.anthropic_api_key,
                temperature=llm_config.temperature,
                max_tokens=llm_config.max_tokens,
                max_retries=llm_config.max_retries,
            )
        case _:
            raise ValueError(f"Unsupported LLM provider: {llm_config.provider}")


def get_llm(request: Request) -> BaseChatModel:
    """Get the chat model created at application startup."""
    llm: BaseChatModel | None = getattr(request.app.state, "llm", None)
    if llm is None:
        raise RuntimeError("Chat model not initialized")
    return llm


# --- Auth dependencies ---


class CurrentUser(BaseModel):
    """Authenticated caller extracted from request state."""

    model_config = ConfigDict(frozen=True)

    id: str
    email: str


def get_token_service() -> TokenService:
    """Get TokenService backed by the active Redis client."""
    return TokenService(get_redis())


def get_user_repository(
    session: AsyncSession = Depends(get_async_session),
) -> UserRepository:
    return UserRepository(session)


def get_message_repository(
    session: AsyncSession = Depends(get_async_session),
) -> MessageRepository:
    return MessageRepository(session)


def get_settings_repository(
    session: AsyncSession = Depends(get_async_session),
) -> SettingsRepository:
    return SettingsRepository(session)


def get_auth_service(
    user_repo: UserRepository = Depends(get_user_repository),
    token_service: TokenService = Depends(get_token_service),
    session: AsyncSession = Depends(get_async_session),
) -> AuthService:
    """Get AuthService with all dependencies."""
    return AuthService(
        user_repo=user_repo,
        token_service=token_service,
        session=session,
    )


def get_current_user(request: Request) -> CurrentUser:
    """Extract the caller identity populated by AuthMiddleware."""
    state = getattr(request, "state", None)
    user_id = getattr(state, "user_id", None) if state else None
    if user_id is None:
        raise AuthenticationError
    return CurrentUser(id=state.user_id, email=state.email)


# --- Domain services ---


def get_chat_config() -> ChatConfig:
    return settings.chat


def get_chat_service(
    llm: BaseChatModel = Depends(get_llm),
    message_repo: MessageRepository = Depends(get_message_repository),
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
    config: ChatConfig = Depends(get_chat_config),
    current_user: CurrentUser = Depends(get_current_user),
) -> ChatService:
    """Get ChatService scoped to the authenticated caller."""
    return ChatService(
        llm=llm,
        message_repo=message_repo,
        session_factory=session_factory,
        user_id=current_user.id,
        config=config,
    )


def get_conversation_service(
    message_repo: MessageRepository = Depends(get_message_repository),
    current_user: CurrentUser = Depends(get_current_user),
) -> ConversationService:
    return ConversationService(message_repo=message_repo, user_id=current_user.id)


def get_settings_service(
    settings_repo: SettingsRepository = Depends(get_settings_repository),
    current_user: CurrentUser = Depends(get_current_user),
) -> SettingsService:
    return SettingsService(settings_repo=settings_repo, user_id=current_user.id)
