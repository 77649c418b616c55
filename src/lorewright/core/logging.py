"""Structured logging for lorewright.

The pipeline logs through structlog so every attempt, migration step and
repair call carries machine-readable context (kind, attempt, error count)
that works in both console and JSON output.

Example:
    >>> from lorewright.core.logging import get_logger
    >>> logger = get_logger(__name__)
    >>> logger.info("Record validated", kind="actor", attempt=1)
"""

from __future__ import annotations

import logging
import sys
from typing import TYPE_CHECKING, Any

import structlog
from structlog.types import Processor


if TYPE_CHECKING:
    from structlog.types import EventDict, WrappedLogger

    from lorewright.core.config import Settings


DEFAULT_APP_NAME = "lorewright"


def app_context_processor(app_name: str) -> Processor:
    """Build a processor tagging every log entry with ``app_name``."""

    def add_app_context(
        logger: WrappedLogger,
        method_name: str,
        event_dict: EventDict,
    ) -> EventDict:
        event_dict["app"] = app_name
        return event_dict

    return add_app_context


add_app_context = app_context_processor(DEFAULT_APP_NAME)


def drop_payloads(
    logger: WrappedLogger,
    method_name: str,
    event_dict: EventDict,
) -> EventDict:
    """Replace raw record payloads with their size.

    Raw payloads are only ever recorded by the diagnostics sink, and only
    when explicitly enabled.
    """
    for key in ("payload", "normalized", "candidate"):
        value = event_dict.get(key)
        if isinstance(value, (dict, list)):
            event_dict[key] = f"<{type(value).__name__} len={len(value)}>"
    return event_dict


def configure_logging(
    *,
    level: str = "INFO",
    json_format: bool = False,
    log_file: str | None = None,
    app_name: str = DEFAULT_APP_NAME,
) -> None:
    """Configure application-wide logging.

    Args:
        level: The logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        json_format: If True, output logs in JSON format for production.
        log_file: Optional path to a log file for persistent logging.
        app_name: Application name attached to every entry.

    Example:
        >>> configure_logging(level="DEBUG", json_format=False)
    """
    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        app_context_processor(app_name),
        drop_payloads,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if json_format:
        processors: list[Processor] = [
            *shared_processors,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors = [
            *shared_processors,
            structlog.dev.ConsoleRenderer(
                colors=True,
                exception_formatter=structlog.dev.plain_traceback,
            ),
        ]

    numeric_level = getattr(logging, level.upper(), logging.INFO)

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    # Standard library logging for the openai/httpx stack
    logging.basicConfig(
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        level=numeric_level,
        stream=sys.stdout,
        force=True,
    )
    for noisy in ("httpx", "httpcore", "openai"):
        logging.getLogger(noisy).setLevel(logging.WARNING)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(numeric_level)
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s")
        )
        logging.getLogger().addHandler(file_handler)


def configure_from_settings(settings: Settings) -> None:
    """Configure logging from application settings.

    Production mode emits JSON; debug mode switches to console output.
    """
    configure_logging(
        level=settings.log_level,
        json_format=settings.is_production,
        app_name=settings.app_name,
    )


def get_logger(name: str | None = None) -> structlog.BoundLogger:
    """Get a configured logger instance.

    Args:
        name: Optional name for the logger (typically __name__).

    Returns:
        A configured structlog BoundLogger instance.
    """
    return structlog.get_logger(name)


def bind_context(**kwargs: Any) -> None:
    """Bind context variables included in all subsequent log entries.

    Example:
        >>> bind_context(request_id="abc123", kind="actor")
        >>> logger.info("Ingest started")  # includes request_id and kind
    """
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    """Clear all bound context variables."""
    structlog.contextvars.clear_contextvars()


__all__ = [
    "DEFAULT_APP_NAME",
    "add_app_context",
    "app_context_processor",
    "drop_payloads",
    "configure_logging",
    "configure_from_settings",
    "get_logger",
    "bind_context",
    "clear_context",
]
