"""Core module - Configuration, logging, constants and exceptions.

Exports:
    - Settings, get_settings: Pydantic Settings configuration
    - configure_logging, get_logger, chat_logger: Structured logging (structlog)
    - ErrorCode and default limits
    - Exception classes: GroupChatError, ChatConfigurationError, etc.
"""

from groupchat.core.config import Settings, get_settings
from groupchat.core.constants import (
    CHARS_PER_TOKEN,
    DEFAULT_MAX_MESSAGES,
    DEFAULT_MAX_ROUNDS,
    DEFAULT_NESTED_MAX_ROUNDS,
    ErrorCode,
)
from groupchat.core.exceptions import (
    ChatConfigurationError,
    ChatStateError,
    GroupChatError,
    NestedChatError,
    NoEligibleSpeakerError,
    ResponderError,
    ResponseGenerationError,
    ResponseTimeoutError,
    SpeakerSelectionError,
    TerminationEvaluationError,
)
from groupchat.core.logging import chat_logger, configure_logging, get_logger


__all__ = [
    # Constants
    "CHARS_PER_TOKEN",
    "DEFAULT_MAX_MESSAGES",
    "DEFAULT_MAX_ROUNDS",
    "DEFAULT_NESTED_MAX_ROUNDS",
    # Exceptions
    "ChatConfigurationError",
    "ChatStateError",
    "ErrorCode",
    "GroupChatError",
    "NestedChatError",
    "NoEligibleSpeakerError",
    "ResponderError",
    "ResponseGenerationError",
    "ResponseTimeoutError",
    # Configuration
    "Settings",
    "SpeakerSelectionError",
    "TerminationEvaluationError",
    # Logging
    "chat_logger",
    "configure_logging",
    "get_logger",
    "get_settings",
]
