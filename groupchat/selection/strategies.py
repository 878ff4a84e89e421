"""Built-in speaker selection strategies.

Strategies:
- RoundRobinSelector: rotate through participants in registry order
- RandomSelector: uniform choice, reproducible when seeded
- ManualSelector: explicit sequence or an injected chooser (human input)
- AutoSelector: policy-driven (e.g. a model call) with mention detection

All strategies read the previous speaker from the passed context and keep no
per-conversation state on the instance.

Anti-Patterns Avoided:
- Selection never returns a name outside the participant list
- Eligibility filters that exclude everyone fall back to the full list
"""

from __future__ import annotations

import inspect
import logging
import random
import re
from abc import ABC, abstractmethod
from typing import Awaitable, Callable, ClassVar, Optional, Sequence, Union

from groupchat.core.exceptions import NoEligibleSpeakerError, SpeakerSelectionError
from groupchat.schemas import (
    ChatContext,
    Message,
    Participant,
    SpeakerSelectionConfig,
    SpeakerSelectionMethod,
    SpeakerSelectionResult,
)


logger = logging.getLogger(__name__)

ChoiceValue = Union[str, SpeakerSelectionResult, None]
SpeakerChooser = Callable[
    [Sequence[Participant], Sequence[Message], ChatContext],
    Union[ChoiceValue, Awaitable[ChoiceValue]],
]

_REASON_INITIAL = "Initial speaker"
_REASON_ROTATION = "Round-robin rotation"


# =============================================================================
# Eligibility
# =============================================================================

def eligible_candidates(
    participants: Sequence[Participant],
    context: ChatContext,
    config: SpeakerSelectionConfig,
) -> list[Participant]:
    """Filter participants by transition rules, repeat policy and reply caps.

    Args:
        participants: Participants in registry order.
        context: Conversation context; ``current_speaker`` is the last speaker.
        config: Strategy configuration.

    Returns:
        Eligible participants in registry order, or all participants when
        the filters exclude everyone.
    """
    previous = context.current_speaker
    candidates = list(participants)

    if previous is not None:
        allowed = config.allowed_transitions.get(previous)
        if allowed is not None:
            candidates = [p for p in candidates if p.name in allowed]
        if not config.allow_repeat_speaker and len(participants) > 1:
            candidates = [p for p in candidates if p.name != previous]
        candidates = [p for p in candidates if not _at_reply_cap(p, context)]

    if not candidates:
        logger.debug(
            "Eligibility filters excluded every participant after %s; using all %d",
            previous, len(participants),
        )
        return list(participants)
    return candidates


def _at_reply_cap(participant: Participant, context: ChatContext) -> bool:
    cap = participant.max_consecutive_replies
    return (
        cap is not None
        and participant.name == context.current_speaker
        and context.state.consecutive_replies >= cap
    )


def _normalize_choice(choice: ChoiceValue, reason: str) -> Optional[SpeakerSelectionResult]:
    if choice is None:
        return None
    if isinstance(choice, SpeakerSelectionResult):
        return choice if choice.reason else choice.model_copy(update={"reason": reason})
    return SpeakerSelectionResult(speaker=str(choice), reason=reason)


# =============================================================================
# Base
# =============================================================================

class BaseSpeakerSelector(ABC):
    """Shared validation around a strategy's choice.

    Subclasses implement ``_choose`` over the eligible candidates.
    """

    method: ClassVar[SpeakerSelectionMethod]

    async def select_speaker(
        self,
        participants: Sequence[Participant],
        messages: Sequence[Message],
        context: ChatContext,
        config: SpeakerSelectionConfig | None = None,
    ) -> SpeakerSelectionResult:
        """Pick the next speaker.

        Raises:
            NoEligibleSpeakerError: If ``participants`` is empty.
            SpeakerSelectionError: If the strategy picks an unknown name.
        """
        if not participants:
            raise NoEligibleSpeakerError(
                "Cannot select a speaker from an empty participant list",
                strategy=self.method.value,
                chat_id=context.chat_id,
            )

        config = config or SpeakerSelectionConfig()
        candidates = eligible_candidates(participants, context, config)
        result = await self._choose(candidates, participants, messages, context, config)

        if result.speaker not in {p.name for p in participants}:
            raise SpeakerSelectionError(
                f"Selected speaker '{result.speaker}' is not a participant",
                strategy=self.method.value,
                chat_id=context.chat_id,
            )
        return result

    @abstractmethod
    async def _choose(
        self,
        candidates: list[Participant],
        participants: Sequence[Participant],
        messages: Sequence[Message],
        context: ChatContext,
        config: SpeakerSelectionConfig,
    ) -> SpeakerSelectionResult:
        """Choose among non-empty ``candidates``."""

    async def _fallback(
        self,
        why: str,
        candidates: list[Participant],
        participants: Sequence[Participant],
        messages: Sequence[Message],
        context: ChatContext,
        config: SpeakerSelectionConfig,
    ) -> SpeakerSelectionResult:
        fallback = _fallback_selector(config.fallback_method)
        result = await fallback._choose(candidates, participants, messages, context, config)
        return result.model_copy(
            update={"reason": f"Fallback to {fallback.method.value} ({why}): {result.reason}"}
        )


# =============================================================================
# Strategies
# =============================================================================

class RoundRobinSelector(BaseSpeakerSelector):
    """Rotate through participants in registry order.

    The first selection (no current speaker) picks ``initial_speaker`` when it
    is eligible, otherwise the first eligible participant. Afterwards the next
    eligible participant after the current speaker is chosen, wrapping around.
    When the current speaker has been removed, rotation resumes at the
    registry slot it held (``state.current_speaker_index``).
    """

    method = SpeakerSelectionMethod.ROUND_ROBIN

    async def _choose(
        self,
        candidates: list[Participant],
        participants: Sequence[Participant],
        messages: Sequence[Message],
        context: ChatContext,
        config: SpeakerSelectionConfig,
    ) -> SpeakerSelectionResult:
        names = [p.name for p in participants]
        eligible = {p.name for p in candidates}
        anchor = context.current_speaker

        if anchor is None:
            if config.initial_speaker in eligible:
                return SpeakerSelectionResult(speaker=config.initial_speaker, reason=_REASON_INITIAL)
            return SpeakerSelectionResult(speaker=candidates[0].name, reason=_REASON_INITIAL)

        if anchor not in names:
            # Removal shifted later participants into the departed speaker's slot
            start = (context.state.current_speaker_index or 0) % len(names)
            for offset in range(len(names)):
                name = names[(start + offset) % len(names)]
                if name in eligible:
                    return SpeakerSelectionResult(
                        speaker=name,
                        reason=f"Previous speaker '{anchor}' left; rotation resumed at {name}",
                    )

        start = names.index(anchor)
        for offset in range(1, len(names) + 1):
            name = names[(start + offset) % len(names)]
            if name in eligible:
                return SpeakerSelectionResult(speaker=name, reason=_REASON_ROTATION)

        # candidates is a non-empty subset of participants
        return SpeakerSelectionResult(speaker=candidates[0].name, reason=_REASON_ROTATION)


class RandomSelector(BaseSpeakerSelector):
    """Uniform random choice among eligible participants.

    With ``random_seed`` set, the generator is seeded from
    (seed, chat id, round) so runs are reproducible and independent
    conversations never share a random stream.
    """

    method = SpeakerSelectionMethod.RANDOM

    async def _choose(
        self,
        candidates: list[Participant],
        participants: Sequence[Participant],
        messages: Sequence[Message],
        context: ChatContext,
        config: SpeakerSelectionConfig,
    ) -> SpeakerSelectionResult:
        if config.random_seed is None:
            rng = random.Random()
        else:
            rng = random.Random(f"{config.random_seed}:{context.chat_id}:{context.current_round}")
        chosen = rng.choice(candidates)
        return SpeakerSelectionResult(
            speaker=chosen.name,
            reason=f"Random choice among {len(candidates)} eligible participants",
        )


class ManualSelector(BaseSpeakerSelector):
    """Explicit selection.

    An injected ``chooser`` (for example a prompt to a human moderator) wins
    over ``manual_sequence``; the sequence is cycled by round number. Without
    either, the configured fallback strategy decides.
    """

    method = SpeakerSelectionMethod.MANUAL

    def __init__(self, chooser: SpeakerChooser | None = None) -> None:
        """Initialize the manual selector.

        Args:
            chooser: Callable returning the next speaker's name (sync or async).
        """
        self._chooser = chooser

    async def _choose(
        self,
        candidates: list[Participant],
        participants: Sequence[Participant],
        messages: Sequence[Message],
        context: ChatContext,
        config: SpeakerSelectionConfig,
    ) -> SpeakerSelectionResult:
        names = {p.name for p in participants}

        if self._chooser is not None:
            choice = self._chooser(candidates, messages, context)
            if inspect.isawaitable(choice):
                choice = await choice
            result = _normalize_choice(choice, "Chosen manually")
            if result is None or result.speaker not in names:
                raise SpeakerSelectionError(
                    f"Manual chooser returned {choice!r}, which is not a participant",
                    strategy=self.method.value,
                    chat_id=context.chat_id,
                )
            return result

        if config.manual_sequence:
            position = (max(context.current_round, 1) - 1) % len(config.manual_sequence)
            name = config.manual_sequence[position]
            if name not in names:
                raise SpeakerSelectionError(
                    f"Manual sequence entry '{name}' is not a participant",
                    strategy=self.method.value,
                    chat_id=context.chat_id,
                )
            return SpeakerSelectionResult(
                speaker=name,
                reason=f"Manual sequence position {position + 1}",
            )

        return await self._fallback(
            "no chooser or sequence configured",
            candidates, participants, messages, context, config,
        )


class AutoSelector(BaseSpeakerSelector):
    """Policy-driven selection.

    With a ``policy`` callable (typically a model call) its answer is used
    when it names an eligible participant. Without one, the first eligible
    participant mentioned by name in the last message is chosen, ignoring the
    author of that message. Anything else falls back to the configured
    fallback strategy.
    """

    method = SpeakerSelectionMethod.AUTO

    def __init__(self, policy: SpeakerChooser | None = None) -> None:
        """Initialize the auto selector.

        Args:
            policy: Callable returning the next speaker's name (sync or async).
        """
        self._policy = policy

    async def _choose(
        self,
        candidates: list[Participant],
        participants: Sequence[Participant],
        messages: Sequence[Message],
        context: ChatContext,
        config: SpeakerSelectionConfig,
    ) -> SpeakerSelectionResult:
        eligible = {p.name for p in candidates}

        if self._policy is not None:
            try:
                choice = self._policy(candidates, messages, context)
                if inspect.isawaitable(choice):
                    choice = await choice
            except Exception as e:
                raise SpeakerSelectionError(
                    f"Selection policy failed: {e}",
                    strategy=self.method.value,
                    chat_id=context.chat_id,
                ) from e

            result = _normalize_choice(choice, "Selected by policy")
            if result is not None and result.speaker in eligible:
                return result
            logger.warning("Selection policy returned ineligible speaker %r", choice)
            return await self._fallback(
                f"policy returned {choice!r}",
                candidates, participants, messages, context, config,
            )

        mentioned = _first_mentioned(candidates, messages)
        if mentioned is not None:
            return SpeakerSelectionResult(
                speaker=mentioned,
                reason=f"Mentioned by {messages[-1].name}",
            )
        return await self._fallback(
            "no participant mentioned",
            candidates, participants, messages, context, config,
        )


def _first_mentioned(candidates: Sequence[Participant], messages: Sequence[Message]) -> str | None:
    if not messages:
        return None
    last = messages[-1]
    best: tuple[int, str] | None = None
    for participant in candidates:
        if participant.name == last.name:
            continue
        match = re.search(rf"\b{re.escape(participant.name)}\b", last.content, re.IGNORECASE)
        if match and (best is None or match.start() < best[0]):
            best = (match.start(), participant.name)
    return best[1] if best else None


def _fallback_selector(method: SpeakerSelectionMethod) -> BaseSpeakerSelector:
    if method == SpeakerSelectionMethod.RANDOM:
        return RandomSelector()
    return RoundRobinSelector()
