"""Authentication provider factory.

The provider is selected via the AUTH_PROVIDER environment variable:

    AUTH_PROVIDER=local  (default) - Local JWT with shared secret

Usage:
    from api.auth.providers import get_provider

    provider = get_provider()
    result = await provider.verify_token(token)
"""

import os
from functools import lru_cache

from api.auth.providers.base import AuthResult, BaseAuthProvider


@lru_cache(maxsize=1)
def get_provider() -> BaseAuthProvider:
    """Get the configured authentication provider.

    Raises:
        ValueError: If AUTH_PROVIDER is set to an unknown value
    """
    # Read env var at call time, not import time
    provider_name = os.getenv("AUTH_PROVIDER", "local").lower()

    if provider_name == "local":
        from api.auth.providers.local import LocalAuthProvider

        return LocalAuthProvider()

    raise ValueError(
        f"Unknown AUTH_PROVIDER: {provider_name}. Supported values: local"
    )


def clear_provider_cache() -> None:
    """Clear the cached provider instance (mainly for testing)."""
    get_provider.cache_clear()


__all__ = [
    "AuthResult",
    "BaseAuthProvider",
    "get_provider",
    "clear_provider_cache",
]
