"""Group chat configuration schema.

Validation happens here, before an orchestrator is constructed. Unset limits
fall back to Settings defaults at construction time.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field, field_validator

from groupchat.schemas.chat import Participant
from groupchat.schemas.nested import NestedChatConfig
from groupchat.schemas.selection import SpeakerSelectionConfig, SpeakerSelectionMethod
from groupchat.schemas.termination import TerminationCondition


class GroupChatConfig(BaseModel):
    """Validated configuration of one conversation.

    Attributes:
        id: Conversation id; generated when omitted
        name: Conversation name
        description: Free-text description
        participants: Registered participants (unique names)
        speaker_selection_method: Built-in strategy tag
        speaker_selection_config: Strategy configuration
        max_rounds: Round cap
        max_messages: Message cap
        termination_conditions: Conditions evaluated every round
        allow_nested_chats: Enables nested chat triggers
        nested_chat_configs: Nested chat registrations
        admin_name: Sender of the opening message when none is given
        timeout_ms: Per-reply generation timeout
    """

    id: Optional[str] = None
    name: Optional[str] = None
    description: Optional[str] = None
    participants: list[Participant] = Field(min_length=1)
    speaker_selection_method: SpeakerSelectionMethod = SpeakerSelectionMethod.ROUND_ROBIN
    speaker_selection_config: SpeakerSelectionConfig = Field(default_factory=SpeakerSelectionConfig)
    max_rounds: Optional[int] = Field(default=None, ge=1)
    max_messages: Optional[int] = Field(default=None, ge=1)
    termination_conditions: list[TerminationCondition] = Field(default_factory=list)
    allow_nested_chats: bool = False
    nested_chat_configs: list[NestedChatConfig] = Field(default_factory=list)
    admin_name: Optional[str] = None
    timeout_ms: Optional[int] = Field(default=None, gt=0)

    @field_validator("participants")
    @classmethod
    def _unique_names(cls, participants: list[Participant]) -> list[Participant]:
        seen: set[str] = set()
        duplicates = []
        for participant in participants:
            if participant.name in seen:
                duplicates.append(participant.name)
            seen.add(participant.name)
        if duplicates:
            raise ValueError(f"participant names must be unique, duplicated: {sorted(set(duplicates))}")
        return participants

    @property
    def participant_names(self) -> list[str]:
        """Names in registration order."""
        return [p.name for p in self.participants]
