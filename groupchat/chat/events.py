"""Lifecycle events and the per-orchestrator event channel.

Each orchestrator owns one EventChannel; nothing is shared between
conversations. Handlers can be plain functions or coroutines.
"""

from __future__ import annotations

import inspect
import logging
from datetime import datetime
from enum import Enum
from typing import Any, Awaitable, Callable, Optional, Union

from pydantic import BaseModel, Field

from groupchat.schemas.chat import utcnow


logger = logging.getLogger(__name__)


class ChatEventType(str, Enum):
    """Lifecycle events emitted by an orchestrator."""

    CHAT_STARTED = "chat_started"
    CHAT_ENDED = "chat_ended"
    CHAT_ERROR = "chat_error"
    MESSAGE_RECEIVED = "message_received"
    SPEAKER_SELECTED = "speaker_selected"
    ROUND_STARTED = "round_started"
    ROUND_ENDED = "round_ended"
    TERMINATION_TRIGGERED = "termination_triggered"
    NESTED_STARTED = "nested_started"
    NESTED_ENDED = "nested_ended"


class ChatEvent(BaseModel):
    """A single emitted event."""

    type: ChatEventType
    chat_id: str
    timestamp: datetime = Field(default_factory=utcnow)
    data: dict[str, Any] = Field(default_factory=dict)


EventHandler = Callable[[ChatEvent], Union[None, Awaitable[None]]]
Unsubscribe = Callable[[], None]


class EventChannel:
    """Ordered publish/subscribe channel owned by one orchestrator.

    A handler that raises is logged and skipped; delivery continues with the
    remaining handlers.
    """

    def __init__(self) -> None:
        self._subscriptions: list[tuple[Optional[ChatEventType], EventHandler]] = []
        self._history: list[ChatEvent] = []

    @property
    def history(self) -> list[ChatEvent]:
        """Events published so far, oldest first."""
        return list(self._history)

    def subscribe(
        self,
        handler: EventHandler,
        event_type: ChatEventType | str | None = None,
    ) -> Unsubscribe:
        """Register a handler for one event type (or all when None).

        Returns:
            Callable removing the subscription; calling it twice is harmless.
        """
        key = ChatEventType(event_type) if event_type is not None else None
        entry = (key, handler)
        self._subscriptions.append(entry)

        def unsubscribe() -> None:
            if entry in self._subscriptions:
                self._subscriptions.remove(entry)

        return unsubscribe

    async def publish(self, event: ChatEvent) -> None:
        """Deliver ``event`` to matching handlers in subscription order."""
        self._history.append(event)
        for event_type, handler in list(self._subscriptions):
            if event_type is not None and event_type != event.type:
                continue
            try:
                outcome = handler(event)
                if inspect.isawaitable(outcome):
                    await outcome
            except Exception:
                logger.exception(
                    "Event handler failed for %s on %s", event.type.value, event.chat_id
                )
