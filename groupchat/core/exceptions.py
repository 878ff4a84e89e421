"""Custom exceptions for group chat orchestration.

All exceptions are namespaced to avoid shadowing Python builtins and inherit
from GroupChatError so callers can catch any group chat failure with a single
except clause.

Only construction-time misuse is raised out of the orchestrator. Failures
inside the turn loop are recovered per reply or packaged into the returned
ChatResult.
"""

from typing import Any


class GroupChatError(Exception):
    """Base exception for all group chat errors."""

    def __init__(self, message: str, chat_id: str | None = None) -> None:
        """Initialize group chat error.

        Args:
            message: Error description
            chat_id: Conversation the error belongs to, if known
        """
        self.chat_id = chat_id
        super().__init__(message)


class ChatConfigurationError(GroupChatError):
    """Raised when a chat configuration is invalid.

    Covers schema validation failures, duplicate participant names and the
    builder's minimum participant rule.
    """

    def __init__(
        self,
        message: str,
        field: str,
        value: Any | None = None,
        errors: list[dict[str, Any]] | None = None,
        chat_id: str | None = None,
    ) -> None:
        """Initialize configuration error.

        Args:
            message: Error description
            field: The field that failed validation
            value: The invalid value
            errors: Validation errors for multiple fields
            chat_id: Conversation the error belongs to, if known
        """
        self.field = field
        self.value = value
        self.errors = errors or []
        super().__init__(message, chat_id)


class ChatStateError(GroupChatError):
    """Raised when an operation is not valid in the current lifecycle state."""

    def __init__(
        self,
        message: str,
        current_status: str,
        operation: str,
        chat_id: str | None = None,
    ) -> None:
        """Initialize state error.

        Args:
            message: Error description
            current_status: Status the chat was in
            operation: The rejected operation
            chat_id: Conversation the error belongs to
        """
        self.current_status = current_status
        self.operation = operation
        super().__init__(message, chat_id)


class SpeakerSelectionError(GroupChatError):
    """Raised when a speaker selector cannot produce a valid speaker."""

    def __init__(
        self,
        message: str,
        strategy: str,
        chat_id: str | None = None,
    ) -> None:
        """Initialize selection error.

        Args:
            message: Error description
            strategy: Selection method that failed
            chat_id: Conversation the error belongs to
        """
        self.strategy = strategy
        super().__init__(message, chat_id)


class NoEligibleSpeakerError(SpeakerSelectionError):
    """Raised when there is nobody to select (empty participant list)."""


class TerminationEvaluationError(GroupChatError):
    """Raised when a termination condition fails to evaluate."""

    def __init__(
        self,
        message: str,
        condition_name: str,
        cause: Exception | None = None,
        chat_id: str | None = None,
    ) -> None:
        """Initialize evaluation error.

        Args:
            message: Error description
            condition_name: Name of the failing condition
            cause: Original exception raised by the condition
            chat_id: Conversation the error belongs to
        """
        self.condition_name = condition_name
        self.cause = cause
        if cause:
            self.__cause__ = cause
        super().__init__(message, chat_id)


class ResponseGenerationError(GroupChatError):
    """Raised when a participant's reply could not be produced."""

    def __init__(
        self,
        message: str,
        participant_name: str,
        cause: Exception | None = None,
        chat_id: str | None = None,
    ) -> None:
        """Initialize generation error.

        Args:
            message: Error description
            participant_name: Participant whose reply failed
            cause: Original exception that caused this error
            chat_id: Conversation the error belongs to
        """
        self.participant_name = participant_name
        self.cause = cause
        if cause:
            self.__cause__ = cause
        super().__init__(message, chat_id)


class ResponseTimeoutError(ResponseGenerationError):
    """Raised when reply generation exceeds the configured timeout.

    Distinct from Python's built-in TimeoutError to avoid exception shadowing.
    """

    def __init__(
        self,
        message: str,
        participant_name: str,
        timeout_seconds: float,
        chat_id: str | None = None,
    ) -> None:
        """Initialize timeout error.

        Args:
            message: Error description
            participant_name: Participant whose reply timed out
            timeout_seconds: The timeout that was exceeded
            chat_id: Conversation the error belongs to
        """
        self.timeout_seconds = timeout_seconds
        super().__init__(message, participant_name, chat_id=chat_id)


class NestedChatError(GroupChatError):
    """Raised for operations on unknown or unusable nested chats."""

    def __init__(
        self,
        message: str,
        nested_chat_id: str | None = None,
        chat_id: str | None = None,
    ) -> None:
        """Initialize nested chat error.

        Args:
            message: Error description
            nested_chat_id: The nested chat involved
            chat_id: Parent conversation, if known
        """
        self.nested_chat_id = nested_chat_id
        super().__init__(message, chat_id)


class ResponderError(GroupChatError):
    """Error from a remote model provider with context for error handling."""

    def __init__(
        self,
        message: str,
        provider: str,
        model: str,
        status_code: int | None = None,
        error_code: str | None = None,
    ) -> None:
        """Initialize responder error.

        Args:
            message: Error description
            provider: Provider name reported by the participant
            model: Model identifier that was called
            status_code: HTTP status code, if any
            error_code: Provider error code, if any
        """
        self.provider = provider
        self.model = model
        self.status_code = status_code
        self.error_code = error_code
        super().__init__(message)
