"""Termination condition schemas.

Conditions are a tagged variant: ``type`` selects the check and only the
fields belonging to that type are consulted.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Awaitable, Callable, Optional, Sequence, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator

from groupchat.schemas.chat import ChatContext, Message, MessageRole, Participant


TerminationPredicate = Callable[
    [Sequence[Message], Sequence[Participant], ChatContext],
    Union[bool, Awaitable[bool]],
]


class TerminationConditionType(str, Enum):
    """Built-in condition kinds."""

    MAX_ROUNDS = "max_rounds"
    MAX_MESSAGES = "max_messages"
    KEYWORD = "keyword"
    CUSTOM = "custom"


class TerminationCondition(BaseModel):
    """A named termination predicate.

    Attributes:
        type: Condition kind
        name: Name reported when the condition fires
        value: Limit for max_rounds / max_messages
        keywords: Keywords searched in the last message (keyword)
        case_sensitive: Keyword matching mode
        match_roles: Only messages with these roles can match (keyword);
            empty means any role
        predicate: Caller-supplied check (custom); sync or async
        description: Optional reason text used when the condition fires
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    type: TerminationConditionType
    name: str = Field(min_length=1)
    value: Optional[int] = Field(default=None, ge=1)
    keywords: list[str] = Field(default_factory=list)
    case_sensitive: bool = False
    match_roles: list[MessageRole] = Field(default_factory=list)
    predicate: Optional[TerminationPredicate] = None
    description: Optional[str] = None

    @model_validator(mode="after")
    def _check_variant(self) -> TerminationCondition:
        if self.type in (TerminationConditionType.MAX_ROUNDS, TerminationConditionType.MAX_MESSAGES):
            if self.value is None:
                raise ValueError(f"{self.type.value} condition requires 'value'")
        elif self.type == TerminationConditionType.KEYWORD:
            if not self.keywords:
                raise ValueError("keyword condition requires at least one keyword")
        elif self.predicate is None:
            raise ValueError("custom condition requires 'predicate'")
        return self


class TerminationResult(BaseModel):
    """Verdict of one evaluation."""

    should_terminate: bool
    reason: Optional[str] = None
    condition_name: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for event payloads."""
        return self.model_dump()
