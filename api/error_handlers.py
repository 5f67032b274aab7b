"""Global exception handlers for FastAPI.

Provides consistent JSON error response format across all endpoints.
Internal server errors (500s) are logged but not exposed to clients.
Outside production a diagnostic trace is attached under details.trace.
"""

import traceback
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.exceptions import PostPilotException
from postpilot import config
from postpilot.logging import get_logger

logger = get_logger(__name__)


def create_error_response(
    code: str,
    message: str,
    details: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Create standardized error response structure.

    Args:
        code: Machine-readable error code
        message: Human-readable error message
        details: Optional additional context

    Returns:
        Error response dictionary
    """
    error = {
        "code": code,
        "message": message,
    }
    if details:
        error["details"] = details
    return {"error": error}


def _with_trace(details: dict[str, Any] | None, exc: BaseException) -> dict[str, Any] | None:
    if config.is_production():
        return details
    trace = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    return {**(details or {}), "trace": trace}


async def postpilot_exception_handler(
    request: Request, exc: PostPilotException
) -> JSONResponse:
    """Handle PostPilotException and subclasses."""
    logger.warning(
        "api_error",
        message=exc.message,
        code=exc.error_code,
        status=exc.status_code,
        path=request.url.path,
        details=exc.details,
    )

    return JSONResponse(
        status_code=exc.status_code,
        content=create_error_response(
            code=exc.error_code,
            message=exc.message,
            details=_with_trace(exc.details or None, exc),
        ),
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Handle Pydantic validation errors.

    Converts FastAPI's validation errors to our standard format.
    """
    errors = []
    for error in exc.errors():
        loc = ".".join(str(x) for x in error.get("loc", []))
        errors.append(
            {
                "field": loc,
                "message": error.get("msg", "Invalid value"),
                "type": error.get("type", "value_error"),
            }
        )

    logger.info("validation_error", field_errors=len(errors), path=request.url.path)

    return JSONResponse(
        status_code=400,
        content=create_error_response(
            code="VALIDATION_ERROR",
            message="Request validation failed",
            details={"errors": errors},
        ),
    )


async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    """Handle Starlette/FastAPI HTTPExceptions."""
    status_code_map = {
        400: "BAD_REQUEST",
        401: "Unauthorized",
        403: "FORBIDDEN",
        404: "NOT_FOUND",
        405: "METHOD_NOT_ALLOWED",
        409: "CONFLICT",
        422: "UNPROCESSABLE_ENTITY",
        500: "INTERNAL_ERROR",
    }

    error_code = status_code_map.get(exc.status_code, "ERROR")
    message = str(exc.detail) if exc.detail else "An error occurred"

    if exc.status_code >= 500:
        logger.error("http_error", status=exc.status_code, message=message, path=request.url.path)
    else:
        logger.info("http_error", status=exc.status_code, message=message, path=request.url.path)

    return JSONResponse(
        status_code=exc.status_code,
        content=create_error_response(code=error_code, message=message),
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions.

    Logs the full traceback but returns a generic message to clients.
    """
    logger.error(
        "unhandled_exception",
        error=str(exc),
        path=request.url.path,
        exc_info=exc,
    )

    return JSONResponse(
        status_code=500,
        content=create_error_response(
            code="INTERNAL_ERROR",
            message="An unexpected error occurred",
            details=_with_trace(None, exc),
        ),
    )


def register_error_handlers(app: FastAPI) -> None:
    """Register all error handlers with the FastAPI app."""
    app.add_exception_handler(PostPilotException, postpilot_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
