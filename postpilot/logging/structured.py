"""Structured logging for PostPilot, built on structlog.

Production renders one JSON object per line; development uses the
console renderer. Every entry is tagged with service=postpilot and with
whatever request context is bound: request_id from the middleware,
user_id from auth, and post_id while the scheduler dispatches a post.
"""

import logging
import sys
from contextlib import contextmanager
from typing import Iterator, Optional, Union
from uuid import UUID

import structlog
from structlog.types import EventDict, WrappedLogger


# request_id, user_id and post_id for the work in progress
_context_vars: dict[str, str] = {}


def add_request_context(
    logger: WrappedLogger,
    method_name: str,
    event_dict: EventDict,
) -> EventDict:
    """Copy bound context onto the entry without overriding explicit keys."""
    if _context_vars:
        for key, value in _context_vars.items():
            event_dict.setdefault(key, value)
    return event_dict


def add_service_info(
    logger: WrappedLogger,
    method_name: str,
    event_dict: EventDict,
) -> EventDict:
    """Tag the entry with the service name."""
    event_dict["service"] = "postpilot"
    return event_dict


def configure_structlog(
    json_format: bool = True,
    log_level: str = "INFO",
) -> None:
    """Configure structlog and the stdlib root logger.

    api.main calls this once at import, with LOG_JSON and LOG_LEVEL.
    """
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, log_level.upper(), logging.INFO),
    )

    shared_processors: list = [
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        add_service_info,
        add_request_context,
    ]

    if json_format:
        renderer_processors = [
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer(),
        ]
    else:
        renderer_processors = [
            structlog.processors.format_exc_info,
            structlog.dev.ConsoleRenderer(colors=True),
        ]

    structlog.configure(
        processors=shared_processors + renderer_processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Module logger; events are snake_case names with keyword fields."""
    return structlog.get_logger(name)


def bind_context(
    request_id: Optional[str] = None,
    user_id: Optional[UUID] = None,
) -> None:
    """Bind request-scoped values; None values are ignored.

    The request middleware binds request_id and the auth dependency
    binds user_id. Both stay on every entry until clear_context().
    """
    if request_id:
        _context_vars["request_id"] = request_id
    if user_id:
        _context_vars["user_id"] = str(user_id)


def clear_context() -> None:
    """Clear all bound context variables."""
    _context_vars.clear()


@contextmanager
def post_context(post_id: Union[UUID, str], **extra) -> Iterator[dict[str, str]]:
    """Tag log entries with one post's id while it is being worked on.

    Used by the dispatch loop so every entry for a due post carries its
    post_id. Keys bound here are removed on exit; request keys stay.

        with post_context(post.id, run="scheduler"):
            logger.info("dispatch_published")
    """
    values = {"post_id": post_id, **extra}
    added = {key: str(value) for key, value in values.items() if value is not None}
    _context_vars.update(added)
    try:
        yield added
    finally:
        for key in added:
            _context_vars.pop(key, None)
