"""NestedChatManager - bounded child conversations.

The manager detects triggers and owns the state of running nested chats
(their own message logs and round counters). It does not run turns: the
orchestrator drives nested rounds through the same turn routine it uses for
the parent, on the nested scope exposed by ``get_active_chat()``.

Anti-Patterns Avoided:
- Nested state never aliases the parent's log, counter or participants
- Nested messages never trigger further nesting
"""

from __future__ import annotations

import logging
import re
from typing import Iterable, Sequence

from groupchat.core.constants import SUMMARY_EXCERPT_CHARS
from groupchat.core.exceptions import NestedChatError
from groupchat.schemas import (
    ChatContext,
    ChatState,
    ChatStatus,
    Message,
    MessageRole,
    NestedChatConfig,
    NestedChatResult,
    NestedChatState,
    NestedChatTrigger,
    Participant,
)
from groupchat.schemas.chat import new_id, utcnow


logger = logging.getLogger(__name__)


class NestedChatManager:
    """Detects nested chat triggers and tracks running nested chats.

    Example:
        >>> manager = NestedChatManager([review_config])
        >>> config = manager.check_trigger(message, participants, context)
        >>> if config:
        ...     nested_id = manager.start_nested_chat(config, chat_id, message.id, participants, context)
    """

    def __init__(self, configs: Iterable[NestedChatConfig] | None = None) -> None:
        """Initialize the manager.

        Args:
            configs: Nested chat registrations, checked in order.
        """
        self._configs: list[NestedChatConfig] = list(configs or [])
        self._active: dict[str, NestedChatState] = {}

    @property
    def configs(self) -> tuple[NestedChatConfig, ...]:
        """Registered configs in trigger-check order."""
        return tuple(self._configs)

    def add_config(self, config: NestedChatConfig) -> None:
        """Register another nested chat config."""
        self._configs.append(config)

    # -------------------------------------------------------------------------
    # Triggers
    # -------------------------------------------------------------------------

    def check_trigger(
        self,
        message: Message,
        participants: Sequence[Participant],
        context: ChatContext,
    ) -> NestedChatConfig | None:
        """Return the first config whose trigger matches ``message``.

        Configs whose participant subset is absent from ``participants`` are
        skipped. Messages of a nested chat never match.
        """
        if context.state.nested_depth > 0:
            return None

        for config in self._configs:
            if not _resolve_participants(config, participants):
                logger.debug("Nested config %s has no available participants", config.name)
                continue
            if _trigger_matches(config.trigger, message, participants, context):
                logger.info("Message %s triggered nested chat %s", message.id, config.name)
                return config
        return None

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def start_nested_chat(
        self,
        config: NestedChatConfig,
        parent_chat_id: str,
        trigger_message_id: str,
        participants: Sequence[Participant],
        context: ChatContext,
    ) -> str:
        """Create a nested chat and return its id.

        Participants are copied so status changes inside the nested chat stay
        there. The nested context starts at round 0.

        Raises:
            NestedChatError: If none of the configured participants exist.
        """
        members = [p.model_copy(deep=True) for p in _resolve_participants(config, participants)]
        if not members:
            raise NestedChatError(
                f"Nested chat '{config.name}' has no available participants",
                chat_id=parent_chat_id,
            )

        nested_chat_id = new_id()
        nested_context = ChatContext(
            chat_id=nested_chat_id,
            active_participants=[p.name for p in members],
            state=ChatState(nested_depth=context.state.nested_depth + 1),
        )
        self._active[nested_chat_id] = NestedChatState(
            nested_chat_id=nested_chat_id,
            config=config,
            parent_chat_id=parent_chat_id,
            trigger_message_id=trigger_message_id,
            participants=members,
            context=nested_context,
        )
        logger.info(
            "Started nested chat %s (%s) for parent %s with %d participants",
            nested_chat_id, config.name, parent_chat_id, len(members),
        )
        return nested_chat_id

    def get_active_chat(self, nested_chat_id: str) -> NestedChatState | None:
        """Live state of a running nested chat (mutated by the turn routine)."""
        return self._active.get(nested_chat_id)

    def get_context(self, nested_chat_id: str) -> ChatContext | None:
        """Snapshot of a running nested chat's context."""
        state = self._active.get(nested_chat_id)
        return state.context.snapshot() if state else None

    def add_message(self, nested_chat_id: str, message: Message) -> None:
        """Append to a nested chat's own log."""
        state = self._require(nested_chat_id)
        state.messages.append(message)
        state.context.message_count = len(state.messages)

    def increment_round(self, nested_chat_id: str) -> int:
        """Advance a nested chat's own round counter."""
        state = self._require(nested_chat_id)
        state.context.current_round += 1
        return state.context.current_round

    def has_active_chats(self) -> bool:
        """True while any nested chat is running."""
        return bool(self._active)

    def end_nested_chat(
        self,
        nested_chat_id: str,
        status: ChatStatus,
        reason: str | None = None,
    ) -> NestedChatResult:
        """Finish a nested chat and fold it into a result.

        Raises:
            NestedChatError: If the id is unknown or already ended.
        """
        state = self._require(nested_chat_id)
        del self._active[nested_chat_id]
        state.status = status

        summary = _summarize(state) if state.config.summarize else None
        result = NestedChatResult(
            nested_chat_id=nested_chat_id,
            config_id=state.config.id,
            parent_chat_id=state.parent_chat_id,
            parent_message_id=state.trigger_message_id,
            status=status,
            messages=list(state.messages),
            summary=summary,
            termination_reason=reason,
            total_rounds=state.context.current_round,
            started_at=state.started_at,
            ended_at=utcnow(),
        )
        logger.info(
            "Ended nested chat %s with status %s after %d rounds",
            nested_chat_id, status.value, result.total_rounds,
        )
        return result

    def _require(self, nested_chat_id: str) -> NestedChatState:
        state = self._active.get(nested_chat_id)
        if state is None:
            raise NestedChatError(
                f"Unknown nested chat: {nested_chat_id}",
                nested_chat_id=nested_chat_id,
            )
        return state


# =============================================================================
# Helpers
# =============================================================================

def _resolve_participants(
    config: NestedChatConfig,
    participants: Sequence[Participant],
) -> list[Participant]:
    if not config.participants:
        return list(participants)
    wanted = set(config.participants)
    return [p for p in participants if p.name in wanted]


def _trigger_matches(
    trigger: NestedChatTrigger,
    message: Message,
    participants: Sequence[Participant],
    context: ChatContext,
) -> bool:
    if trigger.is_empty:
        return False
    if trigger.sender_names and message.name not in trigger.sender_names:
        return False
    if trigger.roles and message.role not in trigger.roles:
        return False
    if trigger.keywords:
        flags = 0 if trigger.case_sensitive else re.IGNORECASE
        if not any(re.search(re.escape(k), message.content, flags) for k in trigger.keywords):
            return False
    if trigger.predicate is not None and not trigger.predicate(message, participants, context):
        return False
    return True


def _summarize(state: NestedChatState) -> str | None:
    replies = [
        m for m in state.messages
        if m.role == MessageRole.ASSISTANT and m.id != state.trigger_message_id
    ]
    if not replies:
        return None

    contributors: list[str] = []
    for message in replies:
        if message.name not in contributors:
            contributors.append(message.name)

    final = replies[-1].content.strip()
    if len(final) > SUMMARY_EXCERPT_CHARS:
        final = final[:SUMMARY_EXCERPT_CHARS].rstrip() + "..."

    summary = (
        f"{state.config.name}: {len(replies)} replies over {state.context.current_round} rounds "
        f"from {', '.join(contributors)}. Final: {final}"
    )
    if state.config.summary_prefix:
        summary = f"{state.config.summary_prefix}{summary}"
    return summary
