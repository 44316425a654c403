"""Application configuration using Pydantic Settings V2."""

from functools import cached_property
from typing import Literal

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

from companion.core.settings import (
    AppConfig,
    AuthConfig,
    ChatConfig,
    DatabaseConfig,
    LLMConfig,
    RedisConfig,
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Flat fields are loaded directly from environment variables.
    Domain properties provide grouped access (e.g. settings.chat.history_limit).
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # LLM Provider
    llm_provider: Literal["openai", "anthropic"] = Field(
        default="openai",
        description="Completion provider to use",
    )

    # OpenAI
    openai_api_key: SecretStr = Field(
        default=SecretStr(""),
        description="OpenAI API key",
    )
    openai_model: str = Field(
        default="gpt-3.5-turbo",
        description="OpenAI model name",
    )

    # Anthropic
    anthropic_api_key: SecretStr = Field(
        default=SecretStr(""),
        description="Anthropic API key",
    )
    anthropic_model: str = Field(
        default="claude-sonnet-4-20250514",
        description="Anthropic model name",
    )

    # Generation parameters
    llm_temperature: float = Field(
        default=0.7,
        ge=0.0,
        le=2.0,
        description="Sampling temperature for chat replies",
    )
    llm_max_tokens: int = Field(
        default=500,
        ge=1,
        le=4096,
        description="Maximum tokens in a generated reply",
    )
    llm_max_retries: int = Field(
        default=0,
        ge=0,
        le=5,
        description="Retries performed by the provider client itself",
    )

    # Chat
    chat_history_limit: int = Field(
        default=10,
        ge=0,
        le=100,
        description="Number of stored messages sent as context",
    )
    chat_persistence_mode: Literal["best_effort", "strict"] = Field(
        default="best_effort",
        description="Whether a failed exchange write fails the request",
    )

    # App
    app_name: str = Field(
        default="coach-companion",
        description="Application name",
    )
    app_env: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Application environment",
    )
    debug: bool = Field(
        default=True,
        description="Debug mode",
    )
    cors_origins: str = Field(
        default="",
        description="Comma-separated list of allowed origins outside development",
    )

    # JWT Auth
    jwt_secret_key: SecretStr = Field(
        description="JWT secret key for token signing",
    )
    jwt_algorithm: str = Field(
        default="HS256",
        description="JWT signing algorithm",
    )
    jwt_access_token_expire_minutes: int = Field(
        default=60,
        ge=1,
        le=1440,
        description="Access token expiration in minutes",
    )
    jwt_refresh_token_expire_days: int = Field(
        default=7,
        ge=1,
        le=90,
        description="Refresh token expiration in days",
    )
    login_rate_limit: str = Field(
        default="5/minute",
        description="Login endpoint rate limit",
    )
    register_rate_limit: str = Field(
        default="3/minute",
        description="Register endpoint rate limit",
    )
    auth_cookie_name: str = Field(
        default="access_token",
        description="Cookie carrying the access token for browser clients",
    )
    rate_limit_enabled: bool = Field(
        default=True,
        description="Apply per-client rate limits to auth endpoints",
    )

    # Database
    database_url: SecretStr = Field(
        description="Async database URL (mysql+aiomysql://...)",
    )

    # Redis
    redis_url: str = Field(
        default="redis://localhost:6379/0",
        description="Redis connection URL",
    )
    redis_socket_timeout: float = Field(
        default=5.0,
        gt=0,
        description="Redis socket timeout in seconds",
    )

    # --- Domain properties ---

    @cached_property
    def llm(self) -> LLMConfig:
        """Completion provider configuration."""
        return LLMConfig(
            provider=self.llm_provider,
            openai_api_key=self.openai_api_key,
            openai_model=self.openai_model,
            anthropic_api_key=self.anthropic_api_key,
            anthropic_model=self.anthropic_model,
            temperature=self.llm_temperature,
            max_tokens=self.llm_max_tokens,
            max_retries=self.llm_max_retries,
        )

    @cached_property
    def chat(self) -> ChatConfig:
        """Chat orchestration configuration."""
        return ChatConfig(
            history_limit=self.chat_history_limit,
            persistence_mode=self.chat_persistence_mode,
        )

    @cached_property
    def app(self) -> AppConfig:
        """Application environment configuration."""
        return AppConfig(
            name=self.app_name,
            env=self.app_env,
            debug=self.debug,
            cors_origins=self.cors_origins,
        )

    @cached_property
    def auth(self) -> AuthConfig:
        """JWT authentication configuration."""
        return AuthConfig(
            secret_key=self.jwt_secret_key,
            algorithm=self.jwt_algorithm,
            access_token_expire_minutes=self.jwt_access_token_expire_minutes,
            refresh_token_expire_days=self.jwt_refresh_token_expire_days,
            login_rate_limit=self.login_rate_limit,
            register_rate_limit=self.register_rate_limit,
            cookie_name=self.auth_cookie_name,
            rate_limit_enabled=self.rate_limit_enabled,
        )

    @cached_property
    def database(self) -> DatabaseConfig:
        """Database connection configuration."""
        return DatabaseConfig(url=self.database_url)

    @cached_property
    def redis(self) -> RedisConfig:
        """Redis connection configuration."""
        return RedisConfig(
            url=self.redis_url,
            socket_timeout=self.redis_socket_timeout,
        )

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.app.is_development


# Global settings instance
settings = Settings()
