"""Unit tests for custom exceptions.

Pattern: Custom exception hierarchy rooted at GroupChatError
"""

import pytest

from groupchat.core.exceptions import (
    ChatConfigurationError,
    ChatStateError,
    GroupChatError,
    NestedChatError,
    NoEligibleSpeakerError,
    ResponderError,
    ResponseGenerationError,
    ResponseTimeoutError,
    SpeakerSelectionError,
    TerminationEvaluationError,
)


class TestGroupChatError:
    """Tests for the base exception."""

    def test_is_exception(self) -> None:
        assert issubclass(GroupChatError, Exception)

    def test_stores_message_and_chat_id(self) -> None:
        error = GroupChatError("boom", chat_id="chat-1")

        assert str(error) == "boom"
        assert error.chat_id == "chat-1"

    @pytest.mark.parametrize(
        "error_class",
        [
            ChatConfigurationError,
            ChatStateError,
            SpeakerSelectionError,
            TerminationEvaluationError,
            ResponseGenerationError,
            NestedChatError,
            ResponderError,
        ],
    )
    def test_subclasses_share_base(self, error_class: type) -> None:
        assert issubclass(error_class, GroupChatError)


class TestChatConfigurationError:
    def test_stores_field_value_and_errors(self) -> None:
        error = ChatConfigurationError(
            "bad participants",
            field="participants",
            value=1,
            errors=[{"loc": ("participants",), "msg": "too short"}],
        )

        assert error.field == "participants"
        assert error.value == 1
        assert len(error.errors) == 1

    def test_errors_default_empty(self) -> None:
        assert ChatConfigurationError("x", field="name").errors == []


class TestChatStateError:
    def test_stores_status_and_operation(self) -> None:
        error = ChatStateError("cannot start", current_status="active", operation="start")

        assert error.current_status == "active"
        assert error.operation == "start"


class TestSelectionErrors:
    def test_no_eligible_speaker_is_selection_error(self) -> None:
        error = NoEligibleSpeakerError("empty", strategy="round_robin")

        assert isinstance(error, SpeakerSelectionError)
        assert error.strategy == "round_robin"


class TestTerminationEvaluationError:
    def test_chains_cause(self) -> None:
        cause = ValueError("predicate exploded")
        error = TerminationEvaluationError("failed", condition_name="custom", cause=cause)

        assert error.condition_name == "custom"
        assert error.__cause__ is cause


class TestResponseErrors:
    def test_timeout_is_generation_error(self) -> None:
        error = ResponseTimeoutError("slow", participant_name="bob", timeout_seconds=0.5)

        assert isinstance(error, ResponseGenerationError)
        assert error.participant_name == "bob"
        assert error.timeout_seconds == 0.5

    def test_timeout_does_not_shadow_builtin(self) -> None:
        assert not issubclass(ResponseTimeoutError, TimeoutError)


class TestResponderError:
    def test_stores_provider_context(self) -> None:
        error = ResponderError(
            "rate limited",
            provider="openai",
            model="gpt-4o",
            status_code=429,
            error_code="rate_limit",
        )

        assert error.provider == "openai"
        assert error.model == "gpt-4o"
        assert error.status_code == 429
        assert error.error_code == "rate_limit"
