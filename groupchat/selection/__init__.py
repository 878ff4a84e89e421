"""Speaker selection - who speaks next.

Exports:
    - SpeakerSelectorProtocol: contract for custom selectors
    - RoundRobinSelector, RandomSelector, ManualSelector, AutoSelector
    - SpeakerSelectionManager: dispatch by SpeakerSelectionMethod
"""

from groupchat.selection.manager import SpeakerSelectionManager
from groupchat.selection.protocols import SpeakerSelectorProtocol
from groupchat.selection.strategies import (
    AutoSelector,
    BaseSpeakerSelector,
    ManualSelector,
    RandomSelector,
    RoundRobinSelector,
    SpeakerChooser,
    eligible_candidates,
)


__all__ = [
    "AutoSelector",
    "BaseSpeakerSelector",
    "ManualSelector",
    "RandomSelector",
    "RoundRobinSelector",
    "SpeakerChooser",
    "SpeakerSelectionManager",
    "SpeakerSelectorProtocol",
    "eligible_candidates",
]
