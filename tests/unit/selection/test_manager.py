"""Unit tests for SpeakerSelectionManager dispatch."""

from __future__ import annotations

import pytest

from groupchat.schemas import (
    ChatContext,
    Participant,
    SpeakerSelectionConfig,
    SpeakerSelectionMethod,
    SpeakerSelectionResult,
)


# =============================================================================
# Test Constants (S1192 compliance)
# =============================================================================

_CHAT_ID = "chat-manager"


class _LastParticipantSelector:
    """Custom selector satisfying SpeakerSelectorProtocol."""

    async def select_speaker(self, participants, messages, context, config=None):
        return SpeakerSelectionResult(speaker=participants[-1].name, reason="custom")


def _participants() -> list[Participant]:
    return [Participant(name="alice"), Participant(name="bob")]


class TestSpeakerSelectionManager:
    def test_default_method(self) -> None:
        from groupchat.selection import RoundRobinSelector, SpeakerSelectionManager

        manager = SpeakerSelectionManager()

        assert manager.method == SpeakerSelectionMethod.ROUND_ROBIN
        assert isinstance(manager.get_selector(), RoundRobinSelector)

    def test_method_accepts_string(self) -> None:
        from groupchat.selection import RandomSelector, SpeakerSelectionManager

        manager = SpeakerSelectionManager("random")

        assert isinstance(manager.get_selector(), RandomSelector)

    def test_unknown_method_raises(self) -> None:
        from groupchat.core.exceptions import ChatConfigurationError
        from groupchat.selection import SpeakerSelectionManager

        with pytest.raises(ChatConfigurationError) as exc_info:
            SpeakerSelectionManager("loudest")

        assert exc_info.value.field == "speaker_selection_method"

    def test_register_rejects_non_selector(self) -> None:
        from groupchat.core.exceptions import ChatConfigurationError
        from groupchat.selection import SpeakerSelectionManager

        with pytest.raises(ChatConfigurationError):
            SpeakerSelectionManager().register("auto", object())

    @pytest.mark.asyncio
    async def test_dispatches_to_default_method(self) -> None:
        from groupchat.selection import SpeakerSelectionManager

        manager = SpeakerSelectionManager(SpeakerSelectionMethod.MANUAL)
        config = SpeakerSelectionConfig(manual_sequence=["bob"])
        context = ChatContext(chat_id=_CHAT_ID, current_round=1)

        result = await manager.select_speaker(_participants(), [], context, config)

        assert result.speaker == "bob"

    @pytest.mark.asyncio
    async def test_method_override_per_call(self) -> None:
        from groupchat.selection import SpeakerSelectionManager

        manager = SpeakerSelectionManager(SpeakerSelectionMethod.ROUND_ROBIN)
        config = SpeakerSelectionConfig(manual_sequence=["bob"])
        context = ChatContext(chat_id=_CHAT_ID, current_round=1)

        default = await manager.select_speaker(_participants(), [], context, config)
        override = await manager.select_speaker(
            _participants(), [], context, config, method=SpeakerSelectionMethod.MANUAL
        )

        assert default.speaker == "alice"
        assert override.speaker == "bob"

    @pytest.mark.asyncio
    async def test_custom_selector_replaces_builtin(self) -> None:
        from groupchat.selection import SpeakerSelectionManager

        manager = SpeakerSelectionManager(selectors={"round_robin": _LastParticipantSelector()})
        context = ChatContext(chat_id=_CHAT_ID, current_round=1)

        result = await manager.select_speaker(_participants(), [], context)

        assert result.speaker == "bob"
        assert result.reason == "custom"

    @pytest.mark.asyncio
    async def test_policy_and_chooser_wired(self) -> None:
        from groupchat.selection import SpeakerSelectionManager

        manager = SpeakerSelectionManager(
            "auto",
            policy=lambda candidates, messages, context: "bob",
            chooser=lambda candidates, messages, context: "alice",
        )
        context = ChatContext(chat_id=_CHAT_ID, current_round=1)

        auto = await manager.select_speaker(_participants(), [], context)
        manual = await manager.select_speaker(_participants(), [], context, method="manual")

        assert auto.speaker == "bob"
        assert manual.speaker == "alice"
