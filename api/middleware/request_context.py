"""Request context middleware.

Binds a request id to the structured log context for the duration of a
request, echoes it back in X-Request-ID and logs each request's outcome.
"""

import time
from typing import Callable
from uuid import uuid4

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from postpilot.logging import bind_context, clear_context, get_logger

logger = get_logger(__name__)


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Attach request_id to every log entry written while serving a request."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get("X-Request-ID") or str(uuid4())
        clear_context()
        bind_context(request_id=request_id)
        start_time = time.time()

        try:
            response = await call_next(request)
        except Exception:
            logger.error(
                "request_failed",
                method=request.method,
                path=request.url.path,
                duration_ms=int((time.time() - start_time) * 1000),
            )
            raise
        else:
            response.headers["X-Request-ID"] = request_id
            logger.info(
                "request_completed",
                method=request.method,
                path=request.url.path,
                status=response.status_code,
                duration_ms=int((time.time() - start_time) * 1000),
            )
            return response
        finally:
            clear_context()
