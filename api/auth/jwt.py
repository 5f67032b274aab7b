"""JWT token utilities for authentication."""

from datetime import datetime, timedelta, timezone
from uuid import uuid4

from jose import JWTError, jwt

from postpilot.config import JWT_ALGORITHM, JWT_SECRET

# JWT_SECRET is REQUIRED in all environments
if not JWT_SECRET:
    raise RuntimeError(
        "JWT_SECRET environment variable is required. "
        "Set it to a secure random string (e.g., openssl rand -hex 32)"
    )
ACCESS_TOKEN_EXPIRE_MINUTES = 60


def create_access_token(data: dict, expires_in: timedelta | None = None) -> str:
    """Create a JWT access token.

    Args:
        data: Payload data (should include 'sub' for the external user id)
        expires_in: Lifetime; defaults to ACCESS_TOKEN_EXPIRE_MINUTES

    Returns:
        Encoded JWT token string
    """
    now = datetime.now(timezone.utc)
    to_encode = data.copy()
    to_encode.update(
        {
            "exp": now + (expires_in or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)),
            "iat": now,
            "jti": str(uuid4()),
        }
    )
    return jwt.encode(to_encode, JWT_SECRET, algorithm=JWT_ALGORITHM)


def decode_token(token: str) -> dict:
    """Decode a JWT token.

    Raises:
        jose.ExpiredSignatureError: Token is past its exp claim
        jose.JWTError: Token is malformed or the signature is wrong
    """
    return jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALGORITHM])


def verify_token(token: str) -> dict | None:
    """Verify and decode a JWT token.

    Returns:
        Decoded payload dict if valid, None if invalid/expired
    """
    try:
        return decode_token(token)
    except JWTError:
        return None
