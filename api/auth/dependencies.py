"""FastAPI dependencies for authentication.

Provides get_current_user: verify the bearer token and load (or create)
the local user it identifies.
"""

from typing import Optional
from uuid import UUID

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlmodel import Session

from api.auth.providers import get_provider
from api.auth.providers.base import UNAUTHORIZED
from api.exceptions import AuthenticationError
from postpilot.db.engine import get_session_dependency
from postpilot.db.models import User
from postpilot.logging import bind_context


# Security scheme for JWT Bearer tokens
security = HTTPBearer(auto_error=False)


class CurrentUser:
    """Container for authenticated user context."""

    def __init__(self, user: User):
        self.user = user

    @property
    def user_id(self) -> UUID:
        return self.user.id


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    session: Session = Depends(get_session_dependency),
) -> CurrentUser:
    """Extract and validate the current user from the bearer token.

    Raises:
        AuthenticationError: Missing, expired or invalid token
    """
    if not credentials:
        raise AuthenticationError("No token provided", error_code=UNAUTHORIZED)

    provider = get_provider()
    result = await provider.verify_token(credentials.credentials)
    if not result.valid:
        raise AuthenticationError(
            result.error or "Invalid token",
            error_code=result.error_code or UNAUTHORIZED,
        )

    user = await provider.get_or_create_user(result, session)
    if user is None:
        raise AuthenticationError("User not found", error_code=UNAUTHORIZED)

    bind_context(user_id=user.id)
    return CurrentUser(user=user)
