"""User model.

Users are created on first verified token (get-or-create by external_id).
"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from sqlmodel import Field, SQLModel

from postpilot.db.models.base import UUIDModel, TimestampMixin


class UserBase(SQLModel):
    """Base user fields shared across Create/Read."""

    email: Optional[str] = Field(default=None, index=True)
    display_name: Optional[str] = Field(default=None)
    photo_url: Optional[str] = Field(default=None)


class User(UUIDModel, UserBase, TimestampMixin, table=True):
    """User table."""

    __tablename__ = "users"

    # Identity provider subject
    external_id: str = Field(nullable=False, unique=True, index=True)

    # Denormalised from platform_connections for quick client display
    linkedin_connected: bool = Field(default=False)
    twitter_connected: bool = Field(default=False)


class UserCreate(UserBase):
    """Schema for creating a new user."""

    external_id: str


class UserRead(UserBase):
    """Schema for reading user data."""

    id: UUID
    external_id: str
    linkedin_connected: bool = False
    twitter_connected: bool = False
    created_at: datetime
