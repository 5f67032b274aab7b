"""SQLModel table definitions.

This module exports all SQLModel table classes and their Create/Read variants.
"""

# Base class
from postpilot.db.models.base import UUIDModel, TimestampMixin, utcnow, to_naive_utc

# Core models
from postpilot.db.models.user import User, UserCreate, UserRead
from postpilot.db.models.post import (
    Post, PostCreate, PostRead,
    PostStatus, SocialPlatform, normalize_platforms,
)
from postpilot.db.models.platform import (
    PlatformConnection, PlatformConnectionUpsert, PlatformConnectionRead,
)

__all__ = [
    "UUIDModel",
    "TimestampMixin",
    "utcnow",
    "to_naive_utc",
    "User",
    "UserCreate",
    "UserRead",
    "Post",
    "PostCreate",
    "PostRead",
    "PostStatus",
    "SocialPlatform",
    "normalize_platforms",
    "PlatformConnection",
    "PlatformConnectionUpsert",
    "PlatformConnectionRead",
]
