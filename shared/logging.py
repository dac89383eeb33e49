"""
Structured logging for the captcha service.

Sets up structlog on top of the standard library logger with:
- JSON formatting for production, pretty console for development
- Redaction of credential-like fields (client secrets, captcha answers)
- Logger factory and context binding helpers

setup_logging() is called once by the app factory; get_logger() is safe to
call at import time because structlog loggers are lazily configured.
"""

from __future__ import annotations

import logging
import sys
from datetime import datetime, timezone

import structlog
from structlog.stdlib import BoundLogger
from structlog.types import EventDict, Processor

# Sensitive fields to redact from logs
REDACTED_FIELDS = {
    "secret",
    "secret_hash",
    "credential",
    "key",
    "password",
    "answer",
    "answer_to_captcha",
    "Authorization",
    "Cookie",
}

_SENSITIVE_SUBSTRINGS = ("secret", "credential", "password", "answer")
_PRESERVED_KEYS = {"level", "event", "timestamp", "logger"}


def add_timestamp(
    logger: logging.Logger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Add ISO format timestamp to event dict."""
    event_dict["timestamp"] = datetime.now(timezone.utc).isoformat()
    return event_dict


def redact_sensitive_fields(
    logger: logging.Logger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Redact sensitive fields from logs."""
    for key in list(event_dict.keys()):
        if key in _PRESERVED_KEYS:
            continue
        lowered = key.lower()
        if key in REDACTED_FIELDS or any(s in lowered for s in _SENSITIVE_SUBSTRINGS):
            event_dict[key] = "***REDACTED***"
    return event_dict


def configure_structlog(log_format: str = "console") -> None:
    """
    Configure structlog with appropriate processors for the environment.

    "json": JSON formatting for easy parsing
    anything else: pretty console formatting with colors
    """
    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        add_timestamp,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        redact_sensitive_fields,
        structlog.processors.format_exc_info,
    ]

    if log_format == "json":
        renderer: Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(
            colors=True,
            pad_event=15,
            sort_keys=False,
        )

    structlog.configure(
        processors=shared_processors + [renderer],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def configure_stdlib_logging(log_level: str = "INFO") -> None:
    """Route stdlib logging to stdout at *log_level* and quiet noisy libraries."""
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, log_level.upper(), logging.INFO),
    )

    logging.getLogger("pymongo").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)


def setup_logging(
    log_level: str = "INFO", log_format: str = "console", env: str = "development"
) -> None:
    """
    Initialize logging system for the application.

    This is the main entry point for logging configuration and should be
    called early in application startup (in app.create_app).
    """
    configure_stdlib_logging(log_level)
    configure_structlog(log_format)

    get_logger(__name__).info(
        "logging_initialized",
        env=env,
        log_level=log_level,
        log_format=log_format,
    )


def get_logger(name: str) -> BoundLogger:
    """
    Get a configured logger instance.

    Example:
        >>> log = get_logger(__name__)
        >>> log.info("captcha_created", captcha_id="...", owner_id="...")
    """
    return structlog.get_logger(name)


def log_with_context(logger: BoundLogger, **context) -> BoundLogger:
    """Bind context to a logger for all subsequent log calls."""
    return logger.bind(**context)


__all__ = [
    "REDACTED_FIELDS",
    "add_timestamp",
    "configure_stdlib_logging",
    "configure_structlog",
    "get_logger",
    "log_with_context",
    "redact_sensitive_fields",
    "setup_logging",
]
