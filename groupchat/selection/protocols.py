"""Protocol definitions for speaker selectors.

Pattern Reference: Protocol duck typing with runtime_checkable so custom
selectors can be injected without subclassing.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, Sequence, runtime_checkable

if TYPE_CHECKING:
    from groupchat.schemas import (
        ChatContext,
        Message,
        Participant,
        SpeakerSelectionConfig,
        SpeakerSelectionResult,
    )


@runtime_checkable
class SpeakerSelectorProtocol(Protocol):
    """Interface every speaker selector satisfies.

    Implementations must keep per-conversation state in the passed context,
    never on the instance, so one selector can serve concurrent chats.

    Example:
        >>> class FirstSpeaker:
        ...     async def select_speaker(self, participants, messages, context, config=None):
        ...         return SpeakerSelectionResult(speaker=participants[0].name)
        >>> isinstance(FirstSpeaker(), SpeakerSelectorProtocol)
        True
    """

    async def select_speaker(
        self,
        participants: Sequence[Participant],
        messages: Sequence[Message],
        context: ChatContext,
        config: SpeakerSelectionConfig | None = None,
    ) -> SpeakerSelectionResult:
        """Pick the next speaker.

        Args:
            participants: Candidate participants in registry order.
            messages: Message log so far.
            context: Snapshot of the conversation context.
            config: Strategy configuration.

        Returns:
            SpeakerSelectionResult naming a member of ``participants``.

        Raises:
            NoEligibleSpeakerError: If ``participants`` is empty.
        """
        ...
