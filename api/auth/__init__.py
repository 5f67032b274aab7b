"""Authentication module for the API."""

from api.auth.jwt import create_access_token, decode_token, verify_token
from api.auth.dependencies import CurrentUser, get_current_user

__all__ = [
    "create_access_token",
    "decode_token",
    "verify_token",
    "CurrentUser",
    "get_current_user",
]
