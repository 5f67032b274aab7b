"""Standard exception classes for the API.

All custom exceptions inherit from PostPilotException and include:
- message: Human-readable error message
- error_code: Machine-readable error code (e.g., "NOT_FOUND")
- details: Optional dictionary with additional context
"""

from typing import Any, Optional


class PostPilotException(Exception):
    """Base exception for all PostPilot API errors.

    Attributes:
        message: Human-readable error message
        error_code: Machine-readable error code for client handling
        details: Optional dictionary with additional error context
        status_code: HTTP status code (set by subclasses)
    """

    status_code: int = 500
    default_error_code: str = "INTERNAL_ERROR"

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        error_code: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        self.message = message
        self.error_code = error_code or self.default_error_code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for JSON response."""
        result = {
            "code": self.error_code,
            "message": self.message,
        }
        if self.details:
            result["details"] = self.details
        return result


class NotFoundError(PostPilotException):
    """Resource not found (HTTP 404).

    Also raised when the resource exists but belongs to another user.
    """

    status_code = 404
    default_error_code = "NOT_FOUND"

    def __init__(
        self,
        message: str = "Resource not found",
        error_code: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message, error_code, details)


class ValidationError(PostPilotException):
    """Request validation failed (HTTP 400)."""

    status_code = 400
    default_error_code = "VALIDATION_ERROR"

    def __init__(
        self,
        message: str = "Validation failed",
        error_code: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message, error_code, details)


class InvalidStateError(PostPilotException):
    """Operation not allowed in the post's current status (HTTP 409)."""

    status_code = 409
    default_error_code = "INVALID_STATE"

    def __init__(
        self,
        message: str = "Operation not allowed in the current state",
        error_code: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message, error_code, details)


class ExternalServiceError(PostPilotException):
    """A remote dependency (AI, platform, webhook) failed (HTTP 502)."""

    status_code = 502
    default_error_code = "EXTERNAL_SERVICE_ERROR"

    def __init__(
        self,
        message: str = "External service failed",
        error_code: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message, error_code, details)


class AuthenticationError(PostPilotException):
    """Authentication failed (HTTP 401).

    error_code is one of Unauthorized, TokenExpired or InvalidToken.
    """

    status_code = 401
    default_error_code = "Unauthorized"

    def __init__(
        self,
        message: str = "Authentication required",
        error_code: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message, error_code, details)
