"""Nested chat schemas.

A nested chat is a bounded child conversation spawned by a triggering
message. It owns its message log and round counter; only its summary is
folded back into the parent.
"""

from __future__ import annotations

from datetime import datetime
from typing import Callable, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field

from groupchat.schemas.chat import (
    ChatContext,
    ChatStatus,
    Message,
    MessageRole,
    Participant,
    new_id,
    utcnow,
)
from groupchat.schemas.selection import SpeakerSelectionMethod


TriggerPredicate = Callable[[Message, Sequence[Participant], ChatContext], bool]


class NestedChatTrigger(BaseModel):
    """When a message should spawn a nested chat.

    Every configured facet must match; a trigger with no facets never fires.

    Attributes:
        keywords: Any of these appears in the message content
        case_sensitive: Keyword matching mode
        sender_names: Message was sent by one of these participants
        roles: Message has one of these roles
        predicate: Caller-supplied check
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    keywords: list[str] = Field(default_factory=list)
    case_sensitive: bool = False
    sender_names: list[str] = Field(default_factory=list)
    roles: list[MessageRole] = Field(default_factory=list)
    predicate: Optional[TriggerPredicate] = None

    @property
    def is_empty(self) -> bool:
        """True when no facet is configured."""
        return not (self.keywords or self.sender_names or self.roles or self.predicate)


class NestedChatConfig(BaseModel):
    """Registration of a nested chat.

    Attributes:
        id: Config identifier reported in results
        name: Human-readable name
        trigger: Trigger facets
        participants: Names taking part; empty means every parent participant
        max_rounds: Round cap (falls back to settings)
        speaker_selection_method: Optional strategy override for nested turns
        summarize: Fold a summary back into the parent log
        summary_prefix: Optional text placed before the generated summary
    """

    id: str = Field(default_factory=new_id)
    name: str = "nested-chat"
    trigger: NestedChatTrigger
    participants: list[str] = Field(default_factory=list)
    max_rounds: Optional[int] = Field(default=None, ge=1)
    speaker_selection_method: Optional[SpeakerSelectionMethod] = None
    summarize: bool = True
    summary_prefix: Optional[str] = None


class NestedChatState(BaseModel):
    """Live state of a running nested chat."""

    nested_chat_id: str
    config: NestedChatConfig
    parent_chat_id: str
    trigger_message_id: str
    participants: list[Participant]
    messages: list[Message] = Field(default_factory=list)
    context: ChatContext
    status: ChatStatus = ChatStatus.ACTIVE
    started_at: datetime = Field(default_factory=utcnow)


class NestedChatResult(BaseModel):
    """Terminal snapshot of a nested chat."""

    nested_chat_id: str
    config_id: str
    parent_chat_id: str
    parent_message_id: str
    status: ChatStatus
    messages: list[Message] = Field(default_factory=list)
    summary: Optional[str] = None
    termination_reason: Optional[str] = None
    total_rounds: int = 0
    started_at: datetime
    ended_at: datetime
