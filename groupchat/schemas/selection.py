"""Speaker selection schemas."""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class SpeakerSelectionMethod(str, Enum):
    """Built-in speaker selection strategies."""

    ROUND_ROBIN = "round_robin"
    RANDOM = "random"
    MANUAL = "manual"
    AUTO = "auto"


class SpeakerSelectionConfig(BaseModel):
    """Strategy configuration passed to the selector every round.

    Attributes:
        initial_speaker: Speaker for the first selection (round-robin and the
            round-robin fallback). Defaults to the first registered participant.
        allow_repeat_speaker: Whether the previous speaker may speak again
            when someone else is eligible.
        allowed_transitions: previous speaker -> names allowed to follow.
            Speakers without an entry are unconstrained.
        manual_sequence: Names cycled by round number by the manual strategy.
        random_seed: Seed for reproducible random selection.
        fallback_method: Strategy used when manual/auto cannot decide.
    """

    initial_speaker: Optional[str] = None
    allow_repeat_speaker: bool = True
    allowed_transitions: dict[str, list[str]] = Field(default_factory=dict)
    manual_sequence: list[str] = Field(default_factory=list)
    random_seed: Optional[int] = None
    fallback_method: SpeakerSelectionMethod = SpeakerSelectionMethod.ROUND_ROBIN


class SpeakerSelectionResult(BaseModel):
    """Outcome of one selection."""

    speaker: str
    reason: Optional[str] = None
