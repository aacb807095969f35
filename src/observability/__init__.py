"""Observability module for logging."""

from src.observability.logging import (
    bind_request_context,
    clear_request_context,
    configure_logging,
    default_level,
    get_logger,
    redact_url_fields,
)


__all__ = [
    "bind_request_context",
    "clear_request_context",
    "configure_logging",
    "default_level",
    "get_logger",
    "redact_url_fields",
]
