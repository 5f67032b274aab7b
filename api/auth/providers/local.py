"""Local authentication provider using JWT with shared secret."""

from typing import Optional

from jose import ExpiredSignatureError, JWTError
from sqlmodel import Session

from api.auth.jwt import decode_token
from api.auth.providers.base import (
    AuthResult,
    BaseAuthProvider,
    INVALID_TOKEN,
    TOKEN_EXPIRED,
    UNAUTHORIZED,
)
from postpilot.content.repository import UserRepository
from postpilot.db.models import User


class LocalAuthProvider(BaseAuthProvider):
    """Local JWT authentication provider.

    Uses HS256 JWT tokens with a shared secret (JWT_SECRET). The 'sub'
    claim is the external user id; users are created on first sight.
    """

    @property
    def name(self) -> str:
        return "local"

    async def verify_token(self, token: str) -> AuthResult:
        """Verify a local JWT token."""
        if not token:
            return AuthResult(
                valid=False,
                provider=self.name,
                error="No token provided",
                error_code=UNAUTHORIZED,
            )

        try:
            payload = decode_token(token)
        except ExpiredSignatureError:
            return AuthResult(
                valid=False,
                provider=self.name,
                error="Token expired",
                error_code=TOKEN_EXPIRED,
            )
        except JWTError:
            return AuthResult(
                valid=False,
                provider=self.name,
                error="Invalid token",
                error_code=INVALID_TOKEN,
            )

        user_id = payload.get("sub")
        if not user_id:
            return AuthResult(
                valid=False,
                provider=self.name,
                error="Invalid token payload: missing 'sub' claim",
                error_code=INVALID_TOKEN,
            )

        return AuthResult(
            valid=True,
            user_id=str(user_id),
            email=payload.get("email"),
            full_name=payload.get("name"),
            provider=self.name,
            raw_claims=payload,
        )

    async def get_or_create_user(
        self, auth_result: AuthResult, session: Session
    ) -> Optional[User]:
        """Load the user by external id, creating it on first login."""
        if not auth_result.valid or not auth_result.user_id:
            return None

        return UserRepository(session).get_or_create(
            external_id=auth_result.user_id,
            email=auth_result.email,
            display_name=auth_result.full_name,
        )
