"""Structured logging for group chats.

Orchestrator lifecycle entries go through structlog and carry the chat id
bound by ``chat_logger()``. Leaf modules (selection, termination, nested,
participants) log through the standard library; ``configure_logging()``
renders both streams with the same processors:

- JSON lines in production and staging
- Coloured console output everywhere else
- Service context and a component tag on every entry
- Reply text and error messages shortened before rendering
"""

import logging
import sys
from typing import Any, Optional

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

from groupchat.core.config import Settings, get_settings


_JSON_ENVIRONMENTS = ("production", "staging")
_QUIET_LOGGERS = ("httpx", "httpcore")
_TRUNCATED_KEYS = ("content", "error", "reason")
MAX_LOGGED_VALUE_CHARS = 500

_stdlib_handler: Optional[logging.Handler] = None


def add_service_context(
    logger: WrappedLogger,
    method_name: str,
    event_dict: EventDict,
) -> EventDict:
    """Stamp service, environment and component on every entry.

    ``component`` defaults to "orchestrator"; leaf modules may bind their own.
    """
    settings = get_settings()
    event_dict["service"] = settings.service_name
    event_dict["environment"] = settings.environment
    event_dict.setdefault("component", "orchestrator")
    return event_dict


def truncate_long_values(
    logger: WrappedLogger,
    method_name: str,
    event_dict: EventDict,
) -> EventDict:
    """Shorten reply text, error messages and reasons to a bounded length."""
    for key in _TRUNCATED_KEYS:
        value = event_dict.get(key)
        if isinstance(value, str) and len(value) > MAX_LOGGED_VALUE_CHARS:
            event_dict[key] = f"{value[:MAX_LOGGED_VALUE_CHARS]}... ({len(value)} chars)"
    return event_dict


def _render_chain(use_json: bool) -> list[Processor]:
    if use_json:
        return [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    return [structlog.dev.ConsoleRenderer(colors=True)]


def configure_logging(settings: Optional[Settings] = None) -> None:
    """Configure structlog and render stdlib records through it.

    Safe to call more than once; later calls re-apply the current settings
    and replace the previously installed stdlib handler.

    Args:
        settings: Settings to read level and environment from
            (defaults to get_settings()).
    """
    global _stdlib_handler
    settings = settings or get_settings()
    level = logging.getLevelName(settings.log_level.upper())
    render_chain = _render_chain(settings.environment in _JSON_ENVIRONMENTS)

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        add_service_context,
        truncate_long_values,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    structlog.configure(
        processors=[*shared_processors, *render_chain],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=[structlog.stdlib.add_logger_name, *shared_processors],
        processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, *render_chain],
    ))

    root = logging.getLogger()
    if _stdlib_handler is not None:
        root.removeHandler(_stdlib_handler)
    root.addHandler(handler)
    root.setLevel(level)
    _stdlib_handler = handler

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str | None = None) -> structlog.BoundLogger:
    """Get a structured logger instance.

    Args:
        name: Optional logger name (module name recommended).

    Returns:
        structlog BoundLogger instance.
    """
    return structlog.get_logger(name)


def chat_logger(name: str, chat_id: str, **context: Any) -> structlog.BoundLogger:
    """Logger bound to one conversation; every entry carries ``chat_id``.

    Example:
        ```python
        log = chat_logger(__name__, chat.chat_id, chat_name="release-planning")
        log.info("round_started", round=1)
        ```
    """
    return get_logger(name).bind(chat_id=chat_id, **context)


Logger = structlog.BoundLogger
