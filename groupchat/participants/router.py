"""ParticipantRouter - one responder per participant type.

Routes each reply request to the responder registered for the
participant's type (agent participants to the gateway, function
participants to local callables, humans to an input source).
"""

from __future__ import annotations

import logging
from typing import Mapping, Sequence

from groupchat.core.exceptions import ResponseGenerationError
from groupchat.participants.base import BaseResponder
from groupchat.schemas import ChatContext, Message, Participant, ParticipantType


logger = logging.getLogger(__name__)


class ParticipantRouter(BaseResponder):
    """Responder that delegates by ParticipantType.

    Example:
        >>> router = ParticipantRouter({
        ...     ParticipantType.AGENT: GatewayResponder(),
        ...     ParticipantType.FUNCTION: FunctionResponder({"calculator": calculate}),
        ... })
        >>> chat = GroupChatOrchestrator(config, response_generator=router)
    """

    def __init__(self, responders: Mapping[ParticipantType | str, BaseResponder] | None = None) -> None:
        self._responders: dict[ParticipantType, BaseResponder] = {
            ParticipantType(kind): responder for kind, responder in (responders or {}).items()
        }

    def register(self, participant_type: ParticipantType | str, responder: BaseResponder) -> None:
        self._responders[ParticipantType(participant_type)] = responder

    async def respond(
        self,
        participant: Participant,
        messages: Sequence[Message],
        context: ChatContext,
    ) -> str:
        """Forward to the responder for ``participant.type``.

        Raises:
            ResponseGenerationError: If no responder handles the type.
        """
        responder = self._responders.get(participant.type)
        if responder is None:
            raise ResponseGenerationError(
                f"No responder registered for {participant.type.value} participants",
                participant_name=participant.name,
                chat_id=context.chat_id,
            )
        return await responder.respond(participant, messages, context)

    async def health_check(self) -> bool:
        """True when every registered responder is healthy."""
        results = {kind: await responder.health_check() for kind, responder in self._responders.items()}
        unhealthy = [kind.value for kind, healthy in results.items() if not healthy]
        if unhealthy:
            logger.warning("Unhealthy responders: %s", ", ".join(unhealthy))
        return not unhealthy

    async def close(self) -> None:
        """Close every distinct registered responder."""
        closed: set[int] = set()
        for responder in self._responders.values():
            if id(responder) not in closed:
                closed.add(id(responder))
                await responder.close()
