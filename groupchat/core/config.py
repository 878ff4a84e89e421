"""Application configuration using Pydantic Settings.

Environment variables are loaded with the GROUPCHAT_ prefix. Values here are
the fallbacks used when a GroupChatConfig leaves a limit unset.
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from groupchat.core.constants import (
    DEFAULT_HISTORY_WINDOW,
    DEFAULT_MAX_MESSAGES,
    DEFAULT_MAX_ROUNDS,
    DEFAULT_NESTED_MAX_ROUNDS,
)


class Settings(BaseSettings):
    """Runtime settings loaded from environment variables.

    Pattern: Pydantic Settings with Environment Variables
    """

    # Service configuration
    service_name: str = "agent-groupchat"
    environment: str = Field(default="development", description="Runtime environment")
    log_level: str = Field(default="INFO", description="Logging level")

    # Conversation limits
    default_max_rounds: int = Field(
        default=DEFAULT_MAX_ROUNDS,
        ge=1,
        description="Round cap used when a chat config does not set max_rounds",
    )
    default_max_messages: int = Field(
        default=DEFAULT_MAX_MESSAGES,
        ge=1,
        description="Message cap used when a chat config does not set max_messages",
    )
    default_nested_max_rounds: int = Field(
        default=DEFAULT_NESTED_MAX_ROUNDS,
        ge=1,
        description="Round cap for nested chats whose config does not set one",
    )
    default_timeout_ms: Optional[int] = Field(
        default=None,
        gt=0,
        description="Per-reply generation timeout; None disables it",
    )

    # Remote reply generation (llm-gateway)
    llm_gateway_url: str = Field(
        default="http://localhost:8080",
        description="LLM Gateway service URL"
    )
    llm_timeout_seconds: float = Field(default=120.0, description="LLM request timeout")
    history_window: int = Field(
        default=DEFAULT_HISTORY_WINDOW,
        ge=1,
        description="Number of trailing messages sent to a remote model",
    )

    model_config = SettingsConfigDict(
        env_prefix="GROUPCHAT_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Returns:
        Settings: Application settings singleton
    """
    return Settings()
