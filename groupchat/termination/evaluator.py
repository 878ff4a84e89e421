"""TerminationEvaluator - decides whether a conversation should stop.

Conditions are evaluated in registration order and the first satisfied one
wins. Evaluation is side-effect free: each condition receives copies of the
log, participants and context, so nothing it does leaks back.
"""

from __future__ import annotations

import logging
from typing import Iterable, Sequence

from groupchat.core.exceptions import TerminationEvaluationError
from groupchat.schemas import (
    ChatContext,
    Message,
    Participant,
    TerminationCondition,
    TerminationResult,
)
from groupchat.termination.conditions import CONDITION_CHECKS, describe


logger = logging.getLogger(__name__)


class TerminationEvaluator:
    """Holds an appendable list of named conditions.

    The condition list is the only instance state, so one evaluator can be
    shared by concurrent conversations.

    Example:
        >>> evaluator = TerminationEvaluator([keyword_condition("TERMINATE")])
        >>> verdict = await evaluator.evaluate(messages, participants, context)
        >>> verdict.should_terminate
        False
    """

    def __init__(self, conditions: Iterable[TerminationCondition] | None = None) -> None:
        """Initialize the evaluator.

        Args:
            conditions: Initial conditions in evaluation order.
        """
        self._conditions: list[TerminationCondition] = list(conditions or [])

    @property
    def conditions(self) -> tuple[TerminationCondition, ...]:
        """Registered conditions in evaluation order."""
        return tuple(self._conditions)

    def add_condition(self, condition: TerminationCondition) -> None:
        """Append a condition (evaluated after those already registered)."""
        self._conditions.append(condition)

    def remove_condition(self, name: str) -> bool:
        """Remove every condition named ``name``.

        Returns:
            True if anything was removed.
        """
        before = len(self._conditions)
        self._conditions = [c for c in self._conditions if c.name != name]
        return len(self._conditions) != before

    async def evaluate(
        self,
        messages: Sequence[Message],
        participants: Sequence[Participant],
        context: ChatContext,
    ) -> TerminationResult:
        """Evaluate all conditions against the current conversation.

        Args:
            messages: Message log so far.
            participants: Current participants.
            context: Conversation context.

        Returns:
            TerminationResult naming the first satisfied condition, if any.

        Raises:
            TerminationEvaluationError: If a condition raises.
        """
        log = tuple(messages)

        for condition in tuple(self._conditions):
            check = CONDITION_CHECKS[condition.type]
            try:
                satisfied = await check(
                    condition,
                    log,
                    tuple(p.model_copy(deep=True) for p in participants),
                    context.snapshot(),
                )
            except Exception as e:
                raise TerminationEvaluationError(
                    f"Termination condition '{condition.name}' failed: {e}",
                    condition_name=condition.name,
                    cause=e,
                    chat_id=context.chat_id,
                ) from e

            if satisfied:
                reason = describe(condition, log)
                logger.info("Termination condition %s satisfied for %s", condition.name, context.chat_id)
                return TerminationResult(
                    should_terminate=True,
                    reason=reason,
                    condition_name=condition.name,
                )

        return TerminationResult(should_terminate=False)
