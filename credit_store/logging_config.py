"""Structured logging for the credit store, built on structlog.

Every event carries the service name, the request correlation ID and the
caller identity bound by the middleware. Phone numbers and relay
credentials are redacted before rendering.
"""

import logging
import sys
from typing import Any

import structlog
from structlog.typing import EventDict, Processor

SERVICE_NAME = "credit-store"

REDACTED = "[redacted]"
_PHONE_FIELDS = ("phone", "phone_number")
_SECRET_FIELDS = ("api_key", "authorization", "token")

_METHOD_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "warn": logging.WARNING,
    "error": logging.ERROR,
    "exception": logging.ERROR,
    "critical": logging.CRITICAL,
}


def add_service_context(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    event_dict.setdefault("service", SERVICE_NAME)
    return event_dict


def mask_phone(value: str) -> str:
    """Keep the last three digits of a phone number."""
    if len(value) <= 3:
        return value
    return "*" * (len(value) - 3) + value[-3:]


def redact_sensitive_fields(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    """Mask phone numbers and blank out credentials."""
    for key in _PHONE_FIELDS:
        value = event_dict.get(key)
        if isinstance(value, str):
            event_dict[key] = mask_phone(value)
    for key in _SECRET_FIELDS:
        if event_dict.get(key):
            event_dict[key] = REDACTED
    return event_dict


def level_filter(min_level: int) -> Processor:
    """Build a processor dropping events below ``min_level``."""

    def _filter(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
        if _METHOD_LEVELS.get(method_name, logging.INFO) < min_level:
            raise structlog.DropEvent
        return event_dict

    return _filter


def configure_logging(log_level: str = "INFO", json_format: bool = True) -> None:
    """Configure stdlib logging and structlog for the store.

    Args:
        log_level: Minimum level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_format: Render JSON lines when True, coloured console output otherwise
    """
    numeric_level = getattr(logging, log_level.upper(), logging.INFO)
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=numeric_level)

    renderer: Processor
    if json_format:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=True, exception_formatter=structlog.dev.plain_traceback)

    processors: list[Processor] = [
        level_filter(numeric_level),
        structlog.contextvars.merge_contextvars,
        add_service_context,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        redact_sensitive_fields,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        renderer,
    ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str = __name__) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


def bind_context(**kwargs: Any) -> None:
    """Bind request-scoped fields, e.g. ``bind_context(request_id=..., user_id=...)``."""
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()
