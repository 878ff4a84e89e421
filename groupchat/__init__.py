"""agent-groupchat - multi-agent conversation orchestration.

Quick start:
    >>> from groupchat import GroupChatBuilder, create_participant
    >>> chat = (
    ...     GroupChatBuilder()
    ...     .with_participants([create_participant("alice"), create_participant("bob")])
    ...     .with_max_rounds(4)
    ...     .build()
    ... )
    >>> result = await chat.start({"initial_message": "Kick off"})
"""

from groupchat.chat import (
    ChatEvent,
    ChatEventType,
    EventChannel,
    GroupChatBuilder,
    GroupChatOrchestrator,
    ResponseGenerator,
    create_participant,
)
from groupchat.core import (
    ChatConfigurationError,
    ChatStateError,
    GroupChatError,
    NestedChatError,
    NoEligibleSpeakerError,
    ResponderError,
    ResponseGenerationError,
    ResponseTimeoutError,
    Settings,
    SpeakerSelectionError,
    TerminationEvaluationError,
    configure_logging,
    get_settings,
)
from groupchat.nested import NestedChatManager
from groupchat.participants import (
    BaseResponder,
    FunctionResponder,
    GatewayResponder,
    ParticipantRouter,
)
from groupchat.schemas import (
    AddParticipantOptions,
    ChatContext,
    ChatResult,
    ChatStatus,
    CreateMessageOptions,
    GroupChatConfig,
    Message,
    MessageRole,
    NestedChatConfig,
    NestedChatTrigger,
    Participant,
    ParticipantStatus,
    ParticipantType,
    SpeakerSelectionConfig,
    SpeakerSelectionMethod,
    StartChatOptions,
    TerminationCondition,
)
from groupchat.selection import SpeakerSelectionManager, SpeakerSelectorProtocol
from groupchat.termination import (
    TerminationEvaluator,
    custom_condition,
    keyword_condition,
    max_messages_condition,
    max_rounds_condition,
)


__version__ = "0.1.0"

__all__ = [
    "AddParticipantOptions",
    "BaseResponder",
    "ChatConfigurationError",
    "ChatContext",
    "ChatEvent",
    "ChatEventType",
    "ChatResult",
    "ChatStateError",
    "ChatStatus",
    "CreateMessageOptions",
    "EventChannel",
    "FunctionResponder",
    "GatewayResponder",
    "GroupChatBuilder",
    "GroupChatConfig",
    "GroupChatError",
    "GroupChatOrchestrator",
    "Message",
    "MessageRole",
    "NestedChatConfig",
    "NestedChatError",
    "NestedChatManager",
    "NestedChatTrigger",
    "NoEligibleSpeakerError",
    "Participant",
    "ParticipantRouter",
    "ParticipantStatus",
    "ParticipantType",
    "ResponderError",
    "ResponseGenerationError",
    "ResponseGenerator",
    "ResponseTimeoutError",
    "Settings",
    "SpeakerSelectionConfig",
    "SpeakerSelectionError",
    "SpeakerSelectionManager",
    "SpeakerSelectionMethod",
    "SpeakerSelectorProtocol",
    "StartChatOptions",
    "TerminationCondition",
    "TerminationEvaluationError",
    "TerminationEvaluator",
    "configure_logging",
    "create_participant",
    "custom_condition",
    "get_settings",
    "keyword_condition",
    "max_messages_condition",
    "max_rounds_condition",
]
