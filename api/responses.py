"""Standard response models for API documentation.

Provides Pydantic models that appear in OpenAPI/Swagger docs
for consistent error schemas.
"""

from typing import Any, Optional

from pydantic import BaseModel, Field


class ErrorContent(BaseModel):
    """Error information container."""

    code: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error message")
    details: Optional[dict[str, Any]] = Field(
        default=None,
        description="Additional error context (trace outside production)",
    )


class ErrorResponse(BaseModel):
    """Standard error response format.

    Example:
        {
            "error": {
                "code": "INVALID_STATE",
                "message": "Cannot cancel a post that is draft",
                "details": {"post_id": "123", "status": "draft"}
            }
        }
    """

    error: ErrorContent = Field(description="Error information")


# Shared `responses=` mapping for authenticated routers
ERROR_RESPONSES: dict[int | str, dict[str, Any]] = {
    400: {"model": ErrorResponse, "description": "Validation failed"},
    401: {"model": ErrorResponse, "description": "Missing, expired or invalid token"},
    404: {"model": ErrorResponse, "description": "Post not found"},
    409: {"model": ErrorResponse, "description": "Not allowed in the post's status"},
    502: {"model": ErrorResponse, "description": "AI, platform or webhook failure"},
}
