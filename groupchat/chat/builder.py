"""Fluent construction of group chats.

Example:
    >>> chat = (
    ...     GroupChatBuilder()
    ...     .with_name("design-review")
    ...     .with_participants([
    ...         create_participant("architect", "You review system designs."),
    ...         create_participant("engineer", "You estimate implementation cost."),
    ...     ])
    ...     .with_max_rounds(6)
    ...     .with_termination_condition(keyword_condition("TERMINATE"))
    ...     .build()
    ... )
"""

from __future__ import annotations

import uuid
from typing import Any, Iterable, Mapping

from groupchat.chat.orchestrator import GroupChatOrchestrator, ResponseGenerator
from groupchat.core.config import Settings
from groupchat.core.constants import GENERATED_NAME_PREFIX, MIN_BUILDER_PARTICIPANTS
from groupchat.core.exceptions import ChatConfigurationError
from groupchat.schemas import (
    NestedChatConfig,
    Participant,
    ParticipantType,
    SpeakerSelectionConfig,
    SpeakerSelectionMethod,
    TerminationCondition,
)
from groupchat.selection import SpeakerSelectorProtocol


class GroupChatBuilder:
    """Assembles a GroupChatConfig and the orchestrator that runs it.

    Each ``with_*`` method returns the builder. ``build()`` enforces the
    two-participant minimum and validates the configuration.
    """

    def __init__(self) -> None:
        self._name: str | None = None
        self._description: str | None = None
        self._participants: list[Participant | Mapping[str, Any]] = []
        self._method: SpeakerSelectionMethod | str = SpeakerSelectionMethod.ROUND_ROBIN
        self._selection_config: SpeakerSelectionConfig | Mapping[str, Any] | None = None
        self._max_rounds: int | None = None
        self._max_messages: int | None = None
        self._termination_conditions: list[TerminationCondition] = []
        self._allow_nested = False
        self._nested_configs: list[NestedChatConfig] = []
        self._admin_name: str | None = None
        self._timeout_ms: int | None = None
        self._generator: ResponseGenerator | None = None
        self._selector: SpeakerSelectorProtocol | None = None
        self._settings: Settings | None = None

    def with_name(self, name: str) -> GroupChatBuilder:
        self._name = name
        return self

    def with_description(self, description: str) -> GroupChatBuilder:
        self._description = description
        return self

    def with_participant(self, participant: Participant | Mapping[str, Any]) -> GroupChatBuilder:
        self._participants.append(participant)
        return self

    def with_participants(self, participants: Iterable[Participant | Mapping[str, Any]]) -> GroupChatBuilder:
        self._participants.extend(participants)
        return self

    def with_speaker_selection(
        self,
        method: SpeakerSelectionMethod | str,
        config: SpeakerSelectionConfig | Mapping[str, Any] | None = None,
    ) -> GroupChatBuilder:
        self._method = method
        if config is not None:
            self._selection_config = config
        return self

    def with_speaker_selection_config(
        self,
        config: SpeakerSelectionConfig | Mapping[str, Any],
    ) -> GroupChatBuilder:
        self._selection_config = config
        return self

    def with_speaker_selector(self, selector: SpeakerSelectorProtocol) -> GroupChatBuilder:
        """Use a custom selector instead of the built-in strategies."""
        self._selector = selector
        return self

    def with_max_rounds(self, max_rounds: int) -> GroupChatBuilder:
        self._max_rounds = max_rounds
        return self

    def with_max_messages(self, max_messages: int) -> GroupChatBuilder:
        self._max_messages = max_messages
        return self

    def with_termination_condition(self, condition: TerminationCondition) -> GroupChatBuilder:
        self._termination_conditions.append(condition)
        return self

    def with_nested_chats(self, enabled: bool = True) -> GroupChatBuilder:
        self._allow_nested = enabled
        return self

    def with_nested_chat_config(self, config: NestedChatConfig) -> GroupChatBuilder:
        """Register a nested chat (also enables nested chats)."""
        self._nested_configs.append(config)
        self._allow_nested = True
        return self

    def with_admin(self, admin_name: str) -> GroupChatBuilder:
        self._admin_name = admin_name
        return self

    def with_timeout(self, timeout_ms: int) -> GroupChatBuilder:
        self._timeout_ms = timeout_ms
        return self

    def with_response_generator(self, generator: ResponseGenerator) -> GroupChatBuilder:
        self._generator = generator
        return self

    def with_settings(self, settings: Settings) -> GroupChatBuilder:
        self._settings = settings
        return self

    def build(self) -> GroupChatOrchestrator:
        """Validate the configuration and create the orchestrator.

        Raises:
            ChatConfigurationError: With fewer than two participants or an
                invalid configuration.
        """
        if len(self._participants) < MIN_BUILDER_PARTICIPANTS:
            raise ChatConfigurationError(
                f"A group chat needs at least {MIN_BUILDER_PARTICIPANTS} participants, "
                f"got {len(self._participants)}",
                field="participants",
                value=len(self._participants),
            )

        config: dict[str, Any] = {
            "name": self._name or f"{GENERATED_NAME_PREFIX}{uuid.uuid4().hex[:8]}",
            "description": self._description,
            "participants": list(self._participants),
            "speaker_selection_method": self._method,
            "max_rounds": self._max_rounds,
            "max_messages": self._max_messages,
            "termination_conditions": list(self._termination_conditions),
            "allow_nested_chats": self._allow_nested,
            "nested_chat_configs": list(self._nested_configs),
            "admin_name": self._admin_name,
            "timeout_ms": self._timeout_ms,
        }
        if self._selection_config is not None:
            config["speaker_selection_config"] = self._selection_config

        return GroupChatOrchestrator(
            config,
            response_generator=self._generator,
            speaker_selector=self._selector,
            settings=self._settings,
        )


def create_participant(
    name: str,
    system_prompt: str | None = None,
    capabilities: Iterable[str] | None = None,
    type: ParticipantType = ParticipantType.AGENT,
    **fields: Any,
) -> Participant:
    """Shorthand for a Participant with the common fields."""
    return Participant(
        name=name,
        system_prompt=system_prompt,
        capabilities=list(capabilities or []),
        type=type,
        **fields,
    )
