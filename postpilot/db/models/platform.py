"""Social platform connection model.

Stores OAuth tokens for LinkedIn and Twitter. One row per
(user, platform); disconnecting clears tokens but keeps the row.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from sqlalchemy import UniqueConstraint
from sqlmodel import Field, SQLModel

from postpilot.db.models.base import UUIDModel, TimestampMixin
from postpilot.db.models.post import SocialPlatform


class PlatformConnection(UUIDModel, TimestampMixin, table=True):
    """OAuth credentials and profile info for one platform account."""

    __tablename__ = "platform_connections"
    __table_args__ = (UniqueConstraint("user_id", "platform"),)

    user_id: UUID = Field(nullable=False, index=True)
    platform: SocialPlatform = Field(nullable=False)
    connected: bool = Field(default=False)

    access_token: Optional[str] = Field(default=None)
    refresh_token: Optional[str] = Field(default=None)  # OAuth 1.0a token secret for Twitter
    expires_at: Optional[datetime] = Field(default=None)

    # Platform-specific user info
    profile_id: Optional[str] = Field(default=None)  # LinkedIn sub, Twitter user id
    profile_name: Optional[str] = Field(default=None)
    profile_username: Optional[str] = Field(default=None)
    avatar_url: Optional[str] = Field(default=None)

    # Pending authorization: LinkedIn state nonce or Twitter request token
    oauth_state: Optional[str] = Field(default=None, index=True)
    oauth_request_secret: Optional[str] = Field(default=None)

    def credentials(self) -> dict:
        """Credential bundle handed to platform clients and the webhook."""
        return {
            "accessToken": self.access_token,
            "refreshToken": self.refresh_token,
            "profileId": self.profile_id,
            "profileName": self.profile_name,
        }


class PlatformConnectionUpsert(SQLModel):
    """Fields written when a connection is established."""

    access_token: str
    refresh_token: Optional[str] = None
    expires_at: Optional[datetime] = None
    profile_id: Optional[str] = None
    profile_name: Optional[str] = None
    profile_username: Optional[str] = None
    avatar_url: Optional[str] = None


class PlatformConnectionRead(SQLModel):
    """Read schema for a connection (no tokens exposed)."""

    platform: SocialPlatform
    connected: bool
    profile_id: Optional[str] = None
    profile_name: Optional[str] = None
    profile_username: Optional[str] = None
    avatar_url: Optional[str] = None
    expires_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
