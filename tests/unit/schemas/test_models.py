"""Unit tests for groupchat.schemas.

Covers validation rules, token estimation, the typed scratch state and the
result record.
"""

from __future__ import annotations

from datetime import datetime, timezone

import pytest
from pydantic import ValidationError


# =============================================================================
# Test Constants (S1192 compliance)
# =============================================================================

_CONTENT_9_CHARS = "123456789"
_EXTENSION_KEY = "topic"


class TestEstimateTokens:
    """ceil(len / 4) token estimate."""

    @pytest.mark.parametrize(
        ("text", "expected"),
        [("", 0), ("abc", 1), ("abcd", 1), ("abcde", 2), (_CONTENT_9_CHARS, 3)],
    )
    def test_estimate(self, text: str, expected: int) -> None:
        from groupchat.schemas import estimate_tokens

        assert estimate_tokens(text) == expected


class TestParticipant:
    def test_defaults(self) -> None:
        from groupchat.schemas import Participant, ParticipantStatus, ParticipantType

        participant = Participant(name="alice")

        assert participant.type == ParticipantType.AGENT
        assert participant.status == ParticipantStatus.ACTIVE
        assert participant.capabilities == []
        assert participant.id

    def test_ids_are_unique(self) -> None:
        from groupchat.schemas import Participant

        assert Participant(name="a").id != Participant(name="a").id

    def test_empty_name_rejected(self) -> None:
        from groupchat.schemas import Participant

        with pytest.raises(ValidationError):
            Participant(name="")

    def test_reply_cap_must_be_positive(self) -> None:
        from groupchat.schemas import Participant

        with pytest.raises(ValidationError):
            Participant(name="a", max_consecutive_replies=0)


class TestMessage:
    def test_token_count_in_metadata(self) -> None:
        from groupchat.schemas import Message, MessageRole

        message = Message(role=MessageRole.USER, content=_CONTENT_9_CHARS, name="user")

        assert message.metadata["token_count"] == 3
        assert message.token_count == 3

    def test_token_count_overrides_caller_value(self) -> None:
        from groupchat.schemas import Message, MessageRole

        message = Message(
            role=MessageRole.USER,
            content="abcd",
            name="user",
            metadata={"token_count": 99, "source": "test"},
        )

        assert message.metadata == {"token_count": 1, "source": "test"}

    def test_message_is_frozen(self) -> None:
        from groupchat.schemas import Message, MessageRole

        message = Message(role=MessageRole.USER, content="hi", name="user")

        with pytest.raises(ValidationError):
            message.content = "changed"

    def test_defaults(self) -> None:
        from groupchat.schemas import ContentType, Message, MessageRole, MessageStatus

        message = Message(role=MessageRole.ASSISTANT, content="hi", name="bob")

        assert message.content_type == ContentType.TEXT
        assert message.status == MessageStatus.DELIVERED
        assert message.timestamp.tzinfo is not None


class TestChatStatus:
    @pytest.mark.parametrize(
        ("status", "terminal"),
        [
            ("initializing", False),
            ("active", False),
            ("paused", False),
            ("completed", True),
            ("terminated", True),
            ("error", True),
        ],
    )
    def test_is_terminal(self, status: str, terminal: bool) -> None:
        from groupchat.schemas import ChatStatus

        assert ChatStatus(status).is_terminal is terminal


class TestChatState:
    """Closed set of known keys plus typed extensions."""

    def test_known_keys_round_trip(self) -> None:
        from groupchat.schemas import ChatState, StateKey

        state = ChatState()
        state.set(StateKey.CONSECUTIVE_REPLIES, 2)
        state.set("last_selection_reason", "Round-robin rotation")

        assert state.get("consecutive_replies") == 2
        assert state.get(StateKey.LAST_SELECTION_REASON) == "Round-robin rotation"

    def test_unknown_known_key_rejected(self) -> None:
        from groupchat.schemas import ChatState

        with pytest.raises(ValueError):
            ChatState().get("not_a_key")

    def test_known_key_type_validated(self) -> None:
        from groupchat.schemas import ChatState

        with pytest.raises(ValidationError):
            ChatState().set("consecutive_replies", -1)

    def test_extensions(self) -> None:
        from groupchat.schemas import ChatState

        state = ChatState()
        state.set_extension(_EXTENSION_KEY, "release")

        assert state.get_extension(_EXTENSION_KEY) == "release"
        assert state.get_extension("missing", "fallback") == "fallback"

    def test_extension_cannot_shadow_known_key(self) -> None:
        from groupchat.schemas import ChatState

        with pytest.raises(ValueError):
            ChatState().set_extension("nested_depth", 3)

    def test_update_routes_keys(self) -> None:
        from groupchat.schemas import ChatState

        state = ChatState()
        state.update({"nested_depth": 1, _EXTENSION_KEY: ["a", "b"]})

        assert state.nested_depth == 1
        assert state.extensions == {_EXTENSION_KEY: ["a", "b"]}


class TestChatContext:
    def test_snapshot_is_deep_copy(self) -> None:
        from groupchat.schemas import ChatContext

        context = ChatContext(chat_id="c", active_participants=["alice"])
        snapshot = context.snapshot()
        snapshot.active_participants.append("mallory")
        snapshot.state.set_extension(_EXTENSION_KEY, "x")

        assert context.active_participants == ["alice"]
        assert context.state.extensions == {}

    def test_round_cannot_be_negative(self) -> None:
        from groupchat.schemas import ChatContext

        with pytest.raises(ValidationError):
            ChatContext(chat_id="c", current_round=-1)


class TestChatMetrics:
    def test_total_attempts(self) -> None:
        from groupchat.schemas import ChatMetrics

        assert ChatMetrics(successful_responses=3, failed_responses=2).total_attempts == 5


class TestTerminationCondition:
    def test_cap_requires_value(self) -> None:
        from groupchat.schemas import TerminationCondition

        with pytest.raises(ValidationError):
            TerminationCondition(type="max_rounds", name="rounds")

    def test_keyword_requires_keywords(self) -> None:
        from groupchat.schemas import TerminationCondition

        with pytest.raises(ValidationError):
            TerminationCondition(type="keyword", name="kw")

    def test_custom_requires_predicate(self) -> None:
        from groupchat.schemas import TerminationCondition

        with pytest.raises(ValidationError):
            TerminationCondition(type="custom", name="custom")


class TestGroupChatConfig:
    def test_requires_a_participant(self) -> None:
        from groupchat.schemas import GroupChatConfig

        with pytest.raises(ValidationError):
            GroupChatConfig(participants=[])

    def test_duplicate_names_rejected(self) -> None:
        from groupchat.schemas import GroupChatConfig, Participant

        with pytest.raises(ValidationError, match="unique"):
            GroupChatConfig(participants=[Participant(name="a"), Participant(name="a")])

    def test_defaults(self) -> None:
        from groupchat.schemas import GroupChatConfig, Participant, SpeakerSelectionMethod

        config = GroupChatConfig(participants=[Participant(name="a"), Participant(name="b")])

        assert config.speaker_selection_method == SpeakerSelectionMethod.ROUND_ROBIN
        assert config.max_rounds is None
        assert config.allow_nested_chats is False
        assert config.participant_names == ["a", "b"]

    def test_unknown_selection_method_rejected(self) -> None:
        from groupchat.schemas import GroupChatConfig, Participant

        with pytest.raises(ValidationError):
            GroupChatConfig(participants=[Participant(name="a")], speaker_selection_method="loudest")


class TestNestedChatTrigger:
    def test_empty_trigger(self) -> None:
        from groupchat.schemas import NestedChatTrigger

        assert NestedChatTrigger().is_empty
        assert not NestedChatTrigger(keywords=["review"]).is_empty


class TestChatResult:
    def test_to_dict_is_json_ready(self) -> None:
        from groupchat.schemas import ChatResult, ChatStatus

        now = datetime.now(timezone.utc)
        result = ChatResult(
            chat_id="c",
            status=ChatStatus.TERMINATED,
            summary="done",
            started_at=now,
            ended_at=now,
        )

        data = result.to_dict()

        assert data["status"] == "terminated"
        assert isinstance(data["started_at"], str)
        assert result.succeeded

    def test_error_status_not_succeeded(self) -> None:
        from groupchat.schemas import ChatResult, ChatStatus

        now = datetime.now(timezone.utc)
        result = ChatResult(chat_id="c", status=ChatStatus.ERROR, summary="", started_at=now, ended_at=now)

        assert not result.succeeded
