"""Base Responder - Abstract interface for reply generators.

A responder produces one participant's reply text. Instances are callable
with the orchestrator's reply generator signature, so any responder can be
passed as ``response_generator``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Sequence

from groupchat.schemas import ChatContext, Message, Participant


class BaseResponder(ABC):
    """Abstract base class for participant responders.

    All responders (gateway, function) must implement this interface.
    """

    @abstractmethod
    async def respond(
        self,
        participant: Participant,
        messages: Sequence[Message],
        context: ChatContext,
    ) -> str:
        """Generate a reply for this participant.

        Args:
            participant: The speaking participant.
            messages: Message log so far.
            context: Snapshot of the conversation context.

        Returns:
            The reply text.
        """

    async def health_check(self) -> bool:
        """Check if the backing service is healthy.

        Returns:
            True if healthy, False otherwise.
        """
        return True

    async def close(self) -> None:
        """Release held resources."""

    async def __call__(
        self,
        participant: Participant,
        messages: Sequence[Message],
        context: ChatContext,
    ) -> str:
        return await self.respond(participant, messages, context)
