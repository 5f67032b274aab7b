"""Structured logging for PostPilot."""

from postpilot.logging.structured import (
    configure_structlog,
    get_logger,
    bind_context,
    clear_context,
    post_context,
)

__all__ = [
    "configure_structlog",
    "get_logger",
    "bind_context",
    "clear_context",
    "post_context",
]
