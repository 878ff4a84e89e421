"""Group chat orchestration.

Exports:
    - GroupChatOrchestrator: turn loop, lifecycle and result construction
    - GroupChatBuilder, create_participant: fluent construction helpers
    - ChatEvent, ChatEventType, EventChannel: per-chat lifecycle events
"""

from groupchat.chat.builder import GroupChatBuilder, create_participant
from groupchat.chat.events import ChatEvent, ChatEventType, EventChannel, EventHandler
from groupchat.chat.orchestrator import GroupChatOrchestrator, ResponseGenerator


__all__ = [
    "ChatEvent",
    "ChatEventType",
    "EventChannel",
    "EventHandler",
    "GroupChatBuilder",
    "GroupChatOrchestrator",
    "ResponseGenerator",
    "create_participant",
]
