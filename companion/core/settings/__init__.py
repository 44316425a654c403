"""Domain-specific configuration models."""

from companion.core.settings.app_config import AppConfig
from companion.core.settings.auth_config import AuthConfig
from companion.core.settings.chat_config import ChatConfig
from companion.core.settings.database_config import DatabaseConfig
from companion.core.settings.llm_config import LLMConfig
from companion.core.settings.redis_config import RedisConfig

__all__ = [
    "AppConfig",
    "AuthConfig",
    "ChatConfig",
    "DatabaseConfig",
    "LLMConfig",
    "RedisConfig",
]
