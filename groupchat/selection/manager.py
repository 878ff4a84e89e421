"""SpeakerSelectionManager - dispatch by selection method.

The manager holds one selector per SpeakerSelectionMethod and forwards each
request to the selector registered for the configured (or overridden)
method. Custom selectors can replace a built-in one.
"""

from __future__ import annotations

import logging
from typing import Mapping, Sequence

from groupchat.core.exceptions import ChatConfigurationError
from groupchat.schemas import (
    ChatContext,
    Message,
    Participant,
    SpeakerSelectionConfig,
    SpeakerSelectionMethod,
    SpeakerSelectionResult,
)
from groupchat.selection.protocols import SpeakerSelectorProtocol
from groupchat.selection.strategies import (
    AutoSelector,
    ManualSelector,
    RandomSelector,
    RoundRobinSelector,
    SpeakerChooser,
)


logger = logging.getLogger(__name__)


class SpeakerSelectionManager:
    """Selects speakers using the strategy registered for a method.

    Example:
        >>> manager = SpeakerSelectionManager(SpeakerSelectionMethod.ROUND_ROBIN)
        >>> result = await manager.select_speaker(participants, messages, context)
        >>> result.speaker
        'alice'
    """

    def __init__(
        self,
        method: SpeakerSelectionMethod | str = SpeakerSelectionMethod.ROUND_ROBIN,
        *,
        selectors: Mapping[SpeakerSelectionMethod | str, SpeakerSelectorProtocol] | None = None,
        policy: SpeakerChooser | None = None,
        chooser: SpeakerChooser | None = None,
    ) -> None:
        """Initialize the manager.

        Args:
            method: Default selection method.
            selectors: Custom selectors replacing built-ins per method.
            policy: Policy callable for the auto strategy.
            chooser: Chooser callable for the manual strategy.

        Raises:
            ChatConfigurationError: If the method is unknown or a custom
                selector does not satisfy SpeakerSelectorProtocol.
        """
        self._method = self._coerce_method(method)
        self._selectors: dict[SpeakerSelectionMethod, SpeakerSelectorProtocol] = {
            SpeakerSelectionMethod.ROUND_ROBIN: RoundRobinSelector(),
            SpeakerSelectionMethod.RANDOM: RandomSelector(),
            SpeakerSelectionMethod.MANUAL: ManualSelector(chooser),
            SpeakerSelectionMethod.AUTO: AutoSelector(policy),
        }
        for key, selector in (selectors or {}).items():
            self.register(key, selector)

    @property
    def method(self) -> SpeakerSelectionMethod:
        """Default selection method."""
        return self._method

    def register(
        self,
        method: SpeakerSelectionMethod | str,
        selector: SpeakerSelectorProtocol,
    ) -> None:
        """Register a selector for a method, replacing the current one."""
        if not isinstance(selector, SpeakerSelectorProtocol):
            raise ChatConfigurationError(
                f"Selector for '{method}' does not implement select_speaker()",
                field="selectors",
                value=type(selector).__name__,
            )
        self._selectors[self._coerce_method(method)] = selector

    def get_selector(
        self,
        method: SpeakerSelectionMethod | str | None = None,
    ) -> SpeakerSelectorProtocol:
        """Selector registered for ``method`` (default method when None)."""
        key = self._method if method is None else self._coerce_method(method)
        return self._selectors[key]

    async def select_speaker(
        self,
        participants: Sequence[Participant],
        messages: Sequence[Message],
        context: ChatContext,
        config: SpeakerSelectionConfig | None = None,
        *,
        method: SpeakerSelectionMethod | str | None = None,
    ) -> SpeakerSelectionResult:
        """Select the next speaker.

        Args:
            participants: Candidate participants in registry order.
            messages: Message log so far.
            context: Snapshot of the conversation context.
            config: Strategy configuration.
            method: Override of the default method for this call.

        Returns:
            SpeakerSelectionResult naming one of ``participants``.
        """
        selector = self.get_selector(method)
        result = await selector.select_speaker(participants, messages, context, config)
        logger.debug(
            "Selected speaker %s for %s round %d (%s)",
            result.speaker, context.chat_id, context.current_round, result.reason,
        )
        return result

    @staticmethod
    def _coerce_method(method: SpeakerSelectionMethod | str) -> SpeakerSelectionMethod:
        try:
            return SpeakerSelectionMethod(method)
        except ValueError as e:
            raise ChatConfigurationError(
                f"Unknown speaker selection method: {method!r}",
                field="speaker_selection_method",
                value=method,
            ) from e
