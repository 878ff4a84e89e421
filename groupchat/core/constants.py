"""Group chat constants and default values.

Provides centralized constants for:
- Conversation limits
- Token estimation
- Well-known sender names and message prefixes
- Structured error codes
"""

from enum import Enum


# =============================================================================
# Conversation Limits
# =============================================================================

DEFAULT_MAX_ROUNDS = 100
DEFAULT_MAX_MESSAGES = 1000
DEFAULT_NESTED_MAX_ROUNDS = 5
MIN_BUILDER_PARTICIPANTS = 2


# =============================================================================
# Token Estimation
# =============================================================================

# Rough estimate: one token per four characters, rounded up.
CHARS_PER_TOKEN = 4


# =============================================================================
# Senders and Prefixes
# =============================================================================

DEFAULT_SENDER = "user"
SYSTEM_SENDER = "system"
NESTED_SUMMARY_PREFIX = "[Nested Chat Summary]: "
GENERATED_NAME_PREFIX = "group-chat-"


# =============================================================================
# Summaries and Prompts
# =============================================================================

TOP_CONTRIBUTORS_LIMIT = 3
SUMMARY_EXCERPT_CHARS = 200
DEFAULT_HISTORY_WINDOW = 30


class ErrorCode(str, Enum):
    """Codes carried by ChatError when the turn loop fails."""

    CHAT_ERROR = "CHAT_ERROR"
    SPEAKER_SELECTION_ERROR = "SPEAKER_SELECTION_ERROR"
    TERMINATION_ERROR = "TERMINATION_ERROR"
    NESTED_CHAT_ERROR = "NESTED_CHAT_ERROR"
