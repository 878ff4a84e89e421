"""Unit tests for groupchat.core.logging.

Tests structured logging configuration, processors and chat-bound loggers.
"""

import logging
from unittest.mock import MagicMock, patch

import structlog

from groupchat.core.logging import (
    MAX_LOGGED_VALUE_CHARS,
    add_service_context,
    chat_logger,
    configure_logging,
    get_logger,
    truncate_long_values,
)


class TestConfigureLogging:
    """Tests for configure_logging function."""

    def test_configure_logging_development(self) -> None:
        """Development uses the console renderer."""
        with patch("groupchat.core.logging.get_settings") as mock_settings:
            mock_settings.return_value.environment = "development"
            mock_settings.return_value.log_level = "DEBUG"
            mock_settings.return_value.service_name = "agent-groupchat"

            with patch("groupchat.core.logging.structlog.configure") as mock_configure:
                configure_logging()

                processors = mock_configure.call_args.kwargs["processors"]
                assert isinstance(processors[-1], structlog.dev.ConsoleRenderer)

    def test_configure_logging_production(self) -> None:
        """Production renders JSON."""
        with patch("groupchat.core.logging.get_settings") as mock_settings:
            mock_settings.return_value.environment = "production"
            mock_settings.return_value.log_level = "INFO"
            mock_settings.return_value.service_name = "agent-groupchat"

            with patch("groupchat.core.logging.structlog.configure") as mock_configure:
                configure_logging()

                processors = mock_configure.call_args.kwargs["processors"]
                assert isinstance(processors[-1], structlog.processors.JSONRenderer)
                assert truncate_long_values in processors

    def test_explicit_settings(self, test_settings) -> None:
        """Settings passed in win over get_settings()."""
        with patch("groupchat.core.logging.structlog.configure"):
            configure_logging(test_settings)

        assert logging.getLogger().level == logging.DEBUG

    def test_reconfigure_replaces_stdlib_handler(self) -> None:
        """Calling twice leaves exactly one handler installed by this module."""
        import groupchat.core.logging as logging_module

        with patch("groupchat.core.logging.structlog.configure"):
            configure_logging()
            first = logging_module._stdlib_handler
            configure_logging()
            second = logging_module._stdlib_handler

        root_handlers = logging.getLogger().handlers
        assert first not in root_handlers
        assert second in root_handlers
        assert isinstance(second.formatter, structlog.stdlib.ProcessorFormatter)

    def test_quiets_http_loggers(self) -> None:
        with patch("groupchat.core.logging.structlog.configure"):
            configure_logging()

        assert logging.getLogger("httpx").level == logging.WARNING


class TestProcessors:
    """Tests for the custom processors."""

    def test_adds_service_and_environment(self) -> None:
        with patch("groupchat.core.logging.get_settings") as mock_settings:
            mock_settings.return_value.service_name = "agent-groupchat"
            mock_settings.return_value.environment = "test"

            event = add_service_context(MagicMock(), "info", {"event": "round_started"})

        assert event["service"] == "agent-groupchat"
        assert event["environment"] == "test"
        assert event["component"] == "orchestrator"

    def test_keeps_explicit_component(self) -> None:
        event = add_service_context(MagicMock(), "info", {"event": "x", "component": "nested"})

        assert event["component"] == "nested"

    def test_truncates_long_reply_text(self) -> None:
        long_reply = "x" * (MAX_LOGGED_VALUE_CHARS + 100)

        event = truncate_long_values(MagicMock(), "info", {"event": "response_failed", "error": long_reply})

        assert event["error"].startswith("x" * MAX_LOGGED_VALUE_CHARS + "...")
        assert event["error"].endswith(f"({len(long_reply)} chars)")

    def test_leaves_short_and_non_string_values(self) -> None:
        event = truncate_long_values(MagicMock(), "info", {"event": "x", "content": "short", "reason": None})

        assert event == {"event": "x", "content": "short", "reason": None}


class TestLoggers:
    """Tests for get_logger and chat_logger."""

    def test_get_logger(self) -> None:
        logger = get_logger(__name__)

        assert hasattr(logger, "info")

    def test_chat_logger_binds_chat_id(self) -> None:
        with structlog.testing.capture_logs() as captured:
            chat_logger(__name__, "chat-1", chat_name="release").info("round_started", round=1)

        assert captured == [{
            "event": "round_started",
            "log_level": "info",
            "chat_id": "chat-1",
            "chat_name": "release",
            "round": 1,
        }]
