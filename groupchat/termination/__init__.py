"""Termination - when a conversation should stop.

Exports:
    - TerminationEvaluator: ordered, side-effect free condition evaluation
    - Condition factories: max rounds, max messages, keyword, custom predicate
"""

from groupchat.termination.conditions import (
    CONDITION_CHECKS,
    custom_condition,
    keyword_condition,
    max_messages_condition,
    max_rounds_condition,
)
from groupchat.termination.evaluator import TerminationEvaluator


__all__ = [
    "CONDITION_CHECKS",
    "TerminationEvaluator",
    "custom_condition",
    "keyword_condition",
    "max_messages_condition",
    "max_rounds_condition",
]
