"""Base authentication provider abstraction.

Authentication providers handle token verification and user identity.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Optional

from sqlmodel import Session

from postpilot.db.models import User

# error_code values
UNAUTHORIZED = "Unauthorized"
TOKEN_EXPIRED = "TokenExpired"
INVALID_TOKEN = "InvalidToken"


@dataclass
class AuthResult:
    """Result of authentication token verification.

    Attributes:
        valid: Whether the token was successfully verified
        user_id: Identity provider's subject for the user
        email: User's email from the provider
        full_name: User's display name from the provider
        provider: Name of the auth provider (e.g., "local")
        error: Error message if validation failed
        error_code: Unauthorized, TokenExpired or InvalidToken when invalid
        raw_claims: Full JWT claims for debugging/auditing
    """

    valid: bool
    user_id: Optional[str] = None
    email: Optional[str] = None
    full_name: Optional[str] = None
    provider: str = "unknown"
    error: Optional[str] = None
    error_code: Optional[str] = None
    raw_claims: Optional[dict] = field(default=None)


class BaseAuthProvider(ABC):
    """Abstract base class for authentication providers."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Unique identifier for this provider (e.g., 'local')."""
        ...

    @abstractmethod
    async def verify_token(self, token: str) -> AuthResult:
        """Verify an authentication token.

        Args:
            token: The authentication token (typically JWT)

        Returns:
            AuthResult with validation status and user info if valid
        """
        ...

    @abstractmethod
    async def get_or_create_user(
        self, auth_result: AuthResult, session: Session
    ) -> Optional[User]:
        """Get existing user or create new one from auth result.

        Returns:
            User if found/created, None if auth_result is invalid
        """
        ...
