"""Schemas for group chat orchestration.

Pure data models shared by every package; nothing here drives a
conversation.
"""

from groupchat.schemas.chat import (
    AddParticipantOptions,
    ChatContext,
    ChatError,
    ChatMetrics,
    ChatState,
    ChatStatus,
    ContentType,
    CreateMessageOptions,
    FunctionCall,
    FunctionDefinition,
    LLMConfig,
    Message,
    MessageRole,
    MessageStatus,
    Participant,
    ParticipantStatus,
    ParticipantType,
    StartChatOptions,
    StateKey,
    StateValue,
    estimate_tokens,
)
from groupchat.schemas.config import GroupChatConfig
from groupchat.schemas.nested import (
    NestedChatConfig,
    NestedChatResult,
    NestedChatState,
    NestedChatTrigger,
)
from groupchat.schemas.result import ChatResult
from groupchat.schemas.selection import (
    SpeakerSelectionConfig,
    SpeakerSelectionMethod,
    SpeakerSelectionResult,
)
from groupchat.schemas.termination import (
    TerminationCondition,
    TerminationConditionType,
    TerminationResult,
)


__all__ = [
    "AddParticipantOptions",
    "ChatContext",
    "ChatError",
    "ChatMetrics",
    "ChatResult",
    "ChatState",
    "ChatStatus",
    "ContentType",
    "CreateMessageOptions",
    "FunctionCall",
    "FunctionDefinition",
    "GroupChatConfig",
    "LLMConfig",
    "Message",
    "MessageRole",
    "MessageStatus",
    "NestedChatConfig",
    "NestedChatResult",
    "NestedChatState",
    "NestedChatTrigger",
    "Participant",
    "ParticipantStatus",
    "ParticipantType",
    "SpeakerSelectionConfig",
    "SpeakerSelectionMethod",
    "SpeakerSelectionResult",
    "StartChatOptions",
    "StateKey",
    "StateValue",
    "TerminationCondition",
    "TerminationConditionType",
    "TerminationResult",
    "estimate_tokens",
]
