"""Structured logging configuration for handles and engines."""

import logging
import sys
from typing import TextIO

import structlog
from structlog.typing import EventDict, WrappedLogger

from src.easy.redact import redact_url_credentials
from src.settings.app import EasySettings, get_settings


# Event keys that may hold a URL with embedded credentials
_URL_KEYS = ("url", "proxy", "effective_url")


def redact_url_fields(
    _logger: WrappedLogger, _method_name: str, event_dict: EventDict
) -> EventDict:
    """Strip credentials from URL-valued event fields before rendering."""
    for key in _URL_KEYS:
        value = event_dict.get(key)
        if isinstance(value, str):
            event_dict[key] = redact_url_credentials(value)
    return event_dict


def default_level(settings: EasySettings | None = None) -> int:
    """Pick the log level from settings.

    ``EASY_VERBOSE`` turns on DEBUG so option, header and engine exchange
    events are shown; otherwise only completions and failures are logged.
    """
    settings = settings or get_settings()
    return logging.DEBUG if settings.verbose else logging.INFO


def configure_logging(
    level: int | None = None,
    output: TextIO = sys.stderr,
    json_format: bool = True,
) -> None:
    """Configure structured logging.

    Args:
        level: Logging level (default: from ``default_level()``).
        output: Output stream (default: stderr).
        json_format: Whether to use JSON format (default: True).
    """
    if level is None:
        level = default_level()

    processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        redact_url_fields,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]
    if json_format:
        processors.append(structlog.processors.JSONRenderer(sort_keys=True))
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=False))

    # Handles bind their logger at creation, so caching would pin old config
    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=output),
        cache_logger_on_first_use=False,
    )

    logging.basicConfig(format="%(message)s", stream=output, level=level)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a bound logger instance."""
    logger: structlog.stdlib.BoundLogger = structlog.get_logger(name)
    return logger


def bind_request_context(request_id: str) -> None:
    """Bind a caller-chosen request id to all subsequent log messages.

    Useful when one logical request is retried over several performs.
    """
    structlog.contextvars.bind_contextvars(request_id=request_id)


def clear_request_context() -> None:
    """Clear the request id from log messages."""
    structlog.contextvars.unbind_contextvars("request_id")
