"""Group chat core schemas (participants, messages, context, metrics).

Models:
- Participant: A registered speaker (human, agent or function-backed)
- Message: Immutable entry of the append-only message log
- ChatState: Typed scratch state carried inside ChatContext
- ChatContext: Per-conversation bookkeeping passed to selectors/evaluators
- ChatMetrics: Running reply accounting
- ChatError: Structured record of a loop-fatal failure
- Option records for add_message / add_participant / start

Anti-Pattern Compliance:
- No mutable default arguments (uses Field(default_factory=...))
- Scratch state is a closed set of typed keys plus an extension map
"""

from __future__ import annotations

import math
import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator

from groupchat.core.constants import CHARS_PER_TOKEN


def utcnow() -> datetime:
    """Timezone-aware current time used for all timestamps."""
    return datetime.now(timezone.utc)


def new_id() -> str:
    """Globally unique opaque identifier."""
    return str(uuid.uuid4())


def estimate_tokens(text: str) -> int:
    """Estimate token usage as ceil(len(text) / 4)."""
    return math.ceil(len(text) / CHARS_PER_TOKEN)


# =============================================================================
# Enums
# =============================================================================

class ParticipantType(str, Enum):
    """Kind of participant in the conversation."""

    HUMAN = "human"
    AGENT = "agent"
    FUNCTION = "function"


class ParticipantStatus(str, Enum):
    """Mutable participant status, cycled busy/idle/error around replies."""

    ACTIVE = "active"
    BUSY = "busy"
    IDLE = "idle"
    ERROR = "error"


class MessageRole(str, Enum):
    """Role tag of a message."""

    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"
    FUNCTION = "function"


class ContentType(str, Enum):
    """Discriminator between plain text and structured function-call payloads."""

    TEXT = "text"
    FUNCTION_CALL = "function_call"


class MessageStatus(str, Enum):
    """Delivery status of a message."""

    PENDING = "pending"
    DELIVERED = "delivered"
    FAILED = "failed"


class ChatStatus(str, Enum):
    """Lifecycle status of a conversation.

    initializing -> active <-> paused -> {completed | terminated | error}
    """

    INITIALIZING = "initializing"
    ACTIVE = "active"
    PAUSED = "paused"
    COMPLETED = "completed"
    TERMINATED = "terminated"
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        """True for statuses that can never be left."""
        return self in (ChatStatus.COMPLETED, ChatStatus.TERMINATED, ChatStatus.ERROR)


# =============================================================================
# Participants
# =============================================================================

class LLMConfig(BaseModel):
    """Model settings for agent participants backed by a remote model."""

    model: str
    provider: Optional[str] = None
    temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    max_tokens: int = Field(default=2000, ge=1)


class FunctionDefinition(BaseModel):
    """Callable function a participant declares."""

    name: str = Field(min_length=1)
    description: str = ""
    parameters: dict[str, Any] = Field(default_factory=dict)


class Participant(BaseModel):
    """A conversation participant.

    The name is the registry key and must be unique within a conversation.

    Attributes:
        id: Opaque unique identifier
        name: Unique participant name
        type: human, agent or function-backed
        system_prompt: Optional system instruction
        status: Mutable status (active, busy, idle, error)
        capabilities: Capability tags
        llm_config: Optional model configuration
        functions: Callable function declarations
        max_consecutive_replies: Optional cap on back-to-back turns
        description: Free-text description
    """

    id: str = Field(default_factory=new_id)
    name: str = Field(min_length=1)
    type: ParticipantType = ParticipantType.AGENT
    system_prompt: Optional[str] = None
    status: ParticipantStatus = ParticipantStatus.ACTIVE
    capabilities: list[str] = Field(default_factory=list)
    llm_config: Optional[LLMConfig] = None
    functions: list[FunctionDefinition] = Field(default_factory=list)
    max_consecutive_replies: Optional[int] = Field(default=None, ge=1)
    description: Optional[str] = None


# =============================================================================
# Messages
# =============================================================================

class FunctionCall(BaseModel):
    """Structured function-call payload."""

    name: str
    arguments: dict[str, Any] = Field(default_factory=dict)


class Message(BaseModel):
    """Immutable message of the conversation log.

    ``metadata["token_count"]`` is always present and equals
    ceil(len(content) / 4).
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=new_id)
    role: MessageRole
    content: str
    name: str
    timestamp: datetime = Field(default_factory=utcnow)
    content_type: ContentType = ContentType.TEXT
    function_call: Optional[FunctionCall] = None
    status: MessageStatus = MessageStatus.DELIVERED
    metadata: dict[str, Any] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def _add_token_count(cls, data: Any) -> Any:
        if isinstance(data, dict) and "content" in data:
            metadata = dict(data.get("metadata") or {})
            metadata["token_count"] = estimate_tokens(str(data["content"]))
            data = {**data, "metadata": metadata}
        return data

    @property
    def token_count(self) -> int:
        """Estimated token count of the content."""
        return self.metadata["token_count"]


# =============================================================================
# Context
# =============================================================================

StateValue = Union[bool, int, float, str, None, list[Any], dict[str, Any]]


class StateKey(str, Enum):
    """Known scratch-state keys."""

    LAST_EVENT = "last_event"
    CONSECUTIVE_REPLIES = "consecutive_replies"
    LAST_SELECTION_REASON = "last_selection_reason"
    NESTED_DEPTH = "nested_depth"
    CURRENT_SPEAKER_INDEX = "current_speaker_index"


_KNOWN_STATE_KEYS = frozenset(key.value for key in StateKey)


class ChatState(BaseModel):
    """Scratch state for strategy bookkeeping.

    Known keys are typed fields; anything else goes through the
    ``extensions`` map, whose values must be JSON-like.
    """

    model_config = ConfigDict(validate_assignment=True)

    last_event: Optional[str] = None
    consecutive_replies: int = Field(default=0, ge=0)
    last_selection_reason: Optional[str] = None
    nested_depth: int = Field(default=0, ge=0)
    current_speaker_index: Optional[int] = Field(default=None, ge=0)
    extensions: dict[str, StateValue] = Field(default_factory=dict)

    def get(self, key: StateKey | str) -> Any:
        """Read a known key."""
        return getattr(self, StateKey(key).value)

    def set(self, key: StateKey | str, value: Any) -> None:
        """Write a known key (validated against the field type)."""
        setattr(self, StateKey(key).value, value)

    def get_extension(self, name: str, default: StateValue = None) -> StateValue:
        """Read an extension value."""
        return self.extensions.get(name, default)

    def set_extension(self, name: str, value: StateValue) -> None:
        """Write an extension value.

        Raises:
            ValueError: If ``name`` shadows a known key.
        """
        if name in _KNOWN_STATE_KEYS:
            raise ValueError(f"'{name}' is a known state key; use set() instead")
        self.extensions = {**self.extensions, name: value}

    def update(self, values: Mapping[str, StateValue]) -> None:
        """Merge a plain mapping, routing known keys to their typed fields."""
        for name, value in values.items():
            if name in _KNOWN_STATE_KEYS:
                self.set(name, value)
            else:
                self.set_extension(name, value)


class ChatContext(BaseModel):
    """Per-conversation bookkeeping.

    Mutated only by the orchestrator that owns it; everyone else receives a
    deep copy from ``snapshot()``.
    """

    chat_id: str
    current_round: int = Field(default=0, ge=0)
    message_count: int = Field(default=0, ge=0)
    active_participants: list[str] = Field(default_factory=list)
    previous_speaker: Optional[str] = None
    current_speaker: Optional[str] = None
    start_time: datetime = Field(default_factory=utcnow)
    state: ChatState = Field(default_factory=ChatState)

    def snapshot(self) -> ChatContext:
        """Deep copy safe to hand to collaborators."""
        return self.model_copy(deep=True)


# =============================================================================
# Metrics and errors
# =============================================================================

class ChatMetrics(BaseModel):
    """Running totals updated once per reply attempt."""

    total_tokens: int = 0
    avg_response_time_ms: float = 0.0
    messages_per_participant: dict[str, int] = Field(default_factory=dict)
    tokens_per_participant: dict[str, int] = Field(default_factory=dict)
    successful_responses: int = 0
    failed_responses: int = 0

    @property
    def total_attempts(self) -> int:
        """Successful plus failed reply attempts."""
        return self.successful_responses + self.failed_responses


class ChatError(BaseModel):
    """Structured record of a loop-fatal error."""

    code: str
    message: str
    stack: Optional[str] = None
    context: dict[str, int] = Field(default_factory=dict)
    recoverable: bool = False


# =============================================================================
# Option records
# =============================================================================

class CreateMessageOptions(BaseModel):
    """Arguments for appending a message."""

    role: MessageRole
    content: str
    name: str
    content_type: ContentType = ContentType.TEXT
    function_call: Optional[FunctionCall] = None
    metadata: dict[str, Any] = Field(default_factory=dict)


class AddParticipantOptions(BaseModel):
    """Arguments for registering a participant on a live conversation."""

    name: str = Field(min_length=1)
    type: ParticipantType = ParticipantType.AGENT
    system_prompt: Optional[str] = None
    capabilities: list[str] = Field(default_factory=list)
    llm_config: Optional[LLMConfig] = None
    functions: list[FunctionDefinition] = Field(default_factory=list)
    max_consecutive_replies: Optional[int] = Field(default=None, ge=1)
    description: Optional[str] = None


class StartChatOptions(BaseModel):
    """Options accepted by ``start()``.

    Attributes:
        initial_message: Optional opening message appended as role ``user``
        initial_sender: Sender of the opening message (defaults to the admin
            name, then "user")
        skip_initial_selection: Skip speaker selection and reply generation in
            round 1. When the initial sender is a registered participant it is
            recorded as the current speaker, so rotation continues after it.
        initial_state: Seed values for the context scratch state
    """

    initial_message: Optional[str] = None
    initial_sender: Optional[str] = None
    skip_initial_selection: bool = False
    initial_state: dict[str, StateValue] = Field(default_factory=dict)
