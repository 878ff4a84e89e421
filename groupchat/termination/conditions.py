"""Factories and checks for built-in termination conditions.

Each condition type maps to one check function through ``CONDITION_CHECKS``;
the evaluator dispatches on the tag instead of inspecting callables.
"""

from __future__ import annotations

import inspect
from typing import Awaitable, Callable, Iterable, Sequence

from groupchat.schemas import (
    ChatContext,
    Message,
    MessageRole,
    Participant,
    TerminationCondition,
    TerminationConditionType,
)
from groupchat.schemas.termination import TerminationPredicate


ConditionCheck = Callable[
    [TerminationCondition, Sequence[Message], Sequence[Participant], ChatContext],
    Awaitable[bool],
]


# =============================================================================
# Factories
# =============================================================================

def max_rounds_condition(max_rounds: int, name: str = "max_rounds") -> TerminationCondition:
    """Stop once ``max_rounds`` rounds have run."""
    return TerminationCondition(
        type=TerminationConditionType.MAX_ROUNDS,
        name=name,
        value=max_rounds,
    )


def max_messages_condition(max_messages: int, name: str = "max_messages") -> TerminationCondition:
    """Stop once the log holds ``max_messages`` messages."""
    return TerminationCondition(
        type=TerminationConditionType.MAX_MESSAGES,
        name=name,
        value=max_messages,
    )


def keyword_condition(
    keywords: str | Iterable[str],
    name: str = "keyword",
    *,
    case_sensitive: bool = False,
    roles: Iterable[MessageRole] = (),
) -> TerminationCondition:
    """Stop when the last message contains any keyword (e.g. "TERMINATE")."""
    if isinstance(keywords, str):
        keywords = [keywords]
    return TerminationCondition(
        type=TerminationConditionType.KEYWORD,
        name=name,
        keywords=list(keywords),
        case_sensitive=case_sensitive,
        match_roles=list(roles),
    )


def custom_condition(
    name: str,
    predicate: TerminationPredicate,
    description: str | None = None,
) -> TerminationCondition:
    """Stop when a caller-supplied predicate returns True."""
    return TerminationCondition(
        type=TerminationConditionType.CUSTOM,
        name=name,
        predicate=predicate,
        description=description,
    )


# =============================================================================
# Checks
# =============================================================================

async def _check_max_rounds(
    condition: TerminationCondition,
    messages: Sequence[Message],
    participants: Sequence[Participant],
    context: ChatContext,
) -> bool:
    return context.current_round >= condition.value


async def _check_max_messages(
    condition: TerminationCondition,
    messages: Sequence[Message],
    participants: Sequence[Participant],
    context: ChatContext,
) -> bool:
    return len(messages) >= condition.value


async def _check_keyword(
    condition: TerminationCondition,
    messages: Sequence[Message],
    participants: Sequence[Participant],
    context: ChatContext,
) -> bool:
    if not messages:
        return False
    last = messages[-1]
    if condition.match_roles and last.role not in condition.match_roles:
        return False

    content = last.content if condition.case_sensitive else last.content.lower()
    for keyword in condition.keywords:
        needle = keyword if condition.case_sensitive else keyword.lower()
        if needle in content:
            return True
    return False


async def _check_custom(
    condition: TerminationCondition,
    messages: Sequence[Message],
    participants: Sequence[Participant],
    context: ChatContext,
) -> bool:
    outcome = condition.predicate(messages, participants, context)
    if inspect.isawaitable(outcome):
        outcome = await outcome
    return bool(outcome)


CONDITION_CHECKS: dict[TerminationConditionType, ConditionCheck] = {
    TerminationConditionType.MAX_ROUNDS: _check_max_rounds,
    TerminationConditionType.MAX_MESSAGES: _check_max_messages,
    TerminationConditionType.KEYWORD: _check_keyword,
    TerminationConditionType.CUSTOM: _check_custom,
}


def describe(condition: TerminationCondition, messages: Sequence[Message]) -> str:
    """Reason reported when ``condition`` fires."""
    if condition.description:
        return condition.description
    if condition.type == TerminationConditionType.MAX_ROUNDS:
        return f"Round limit reached: {condition.value} ({condition.name})"
    if condition.type == TerminationConditionType.MAX_MESSAGES:
        return f"Message limit reached: {condition.value} ({condition.name})"
    if condition.type == TerminationConditionType.KEYWORD:
        sender = messages[-1].name if messages else "unknown"
        return f"Termination keyword from {sender} ({condition.name})"
    return f"Condition met: {condition.name}"
