"""Function Responder - Replies produced by registered Python callables.

Used for ``function`` participants: deterministic tools, calculators or
adapters around local code. Callables may be sync or async and receive
(participant, messages, context).
"""

from __future__ import annotations

import inspect
import logging
from typing import Any, Awaitable, Callable, Mapping, Sequence, Union

from groupchat.core.exceptions import ResponseGenerationError
from groupchat.participants.base import BaseResponder
from groupchat.schemas import ChatContext, Message, Participant


logger = logging.getLogger(__name__)

ParticipantFunction = Callable[
    [Participant, Sequence[Message], ChatContext],
    Union[Any, Awaitable[Any]],
]


class FunctionResponder(BaseResponder):
    """Dispatches replies to a callable registered under the participant's name."""

    def __init__(self, functions: Mapping[str, ParticipantFunction] | None = None) -> None:
        self._functions: dict[str, ParticipantFunction] = dict(functions or {})

    def register(self, participant_name: str, function: ParticipantFunction) -> None:
        """Register (or replace) the callable for a participant."""
        self._functions[participant_name] = function

    @property
    def registered(self) -> list[str]:
        return list(self._functions)

    async def respond(
        self,
        participant: Participant,
        messages: Sequence[Message],
        context: ChatContext,
    ) -> str:
        """Call the participant's function and return its output as text.

        Raises:
            ResponseGenerationError: If no function is registered.
        """
        function = self._functions.get(participant.name)
        if function is None:
            raise ResponseGenerationError(
                f"No function registered for participant '{participant.name}'",
                participant_name=participant.name,
                chat_id=context.chat_id,
            )

        outcome = function(participant, messages, context)
        if inspect.isawaitable(outcome):
            outcome = await outcome
        logger.debug("Function participant %s replied", participant.name)
        return outcome if isinstance(outcome, str) else str(outcome)
