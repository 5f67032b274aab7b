"""Post model and its lifecycle status.

A Post is one piece of user-authored text moving through
draft -> enhanced -> scheduled -> published/failed.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID

from pydantic import AliasChoices, BaseModel, ConfigDict, field_validator
from pydantic import Field as PydanticField
from sqlalchemy import Column, JSON
from sqlmodel import Field, SQLModel

from postpilot.db.models.base import UUIDModel, TimestampMixin


class SocialPlatform(str, Enum):
    """Supported social media platforms."""

    linkedin = "linkedin"
    twitter = "twitter"


class PostStatus(str, Enum):
    """Status of a post. Shared by storage, services and the HTTP surface."""

    draft = "draft"  # Created, not yet enhanced
    enhanced = "enhanced"  # AI text available
    scheduled = "scheduled"  # Waiting for scheduled_at
    publishing = "publishing"  # Claimed by a dispatch run
    published = "published"  # Every platform succeeded
    failed = "failed"  # Enhancement or at least one platform failed


def normalize_platforms(platforms: Any) -> list[str]:
    """Lower-case, de-duplicate and validate a platform list.

    Order of first appearance is kept. Raises ValueError for an empty
    list or an unsupported platform name.
    """
    if isinstance(platforms, str):
        platforms = [platforms]
    if not platforms:
        raise ValueError("At least one platform is required")

    allowed = {p.value for p in SocialPlatform}
    seen: list[str] = []
    for raw in platforms:
        name = raw.value if isinstance(raw, SocialPlatform) else str(raw).strip().lower()
        if name not in allowed:
            raise ValueError(f"Unsupported platform: {raw}")
        if name not in seen:
            seen.append(name)
    return seen


class Post(UUIDModel, TimestampMixin, table=True):
    """A user's post and its publishing history."""

    __tablename__ = "posts"

    user_id: UUID = Field(nullable=False, index=True)

    original_content: str = Field(nullable=False)
    enhanced_content: Optional[str] = Field(default=None)

    # Ordered, de-duplicated, lower-cased platform names
    platforms: list[str] = Field(
        default_factory=list,
        sa_column=Column(JSON, nullable=False),
    )

    status: PostStatus = Field(default=PostStatus.draft, nullable=False, index=True)
    scheduled_at: Optional[datetime] = Field(default=None, index=True)
    publish_now: bool = Field(default=True)

    # platform -> {success, post_id?, post_url?, error?}
    publish_results: Optional[dict[str, Any]] = Field(
        default=None,
        sa_column=Column(JSON, nullable=True),
    )
    # "metadata" is reserved on SQLAlchemy models, so map via post_metadata.
    post_metadata: dict[str, Any] = Field(
        default_factory=dict,
        sa_column=Column("post_metadata", JSON, nullable=False),
    )

    error_message: Optional[str] = Field(default=None)
    published_at: Optional[datetime] = Field(default=None)

    @property
    def content(self) -> str:
        """Text to publish: enhanced when available, else original."""
        return self.enhanced_content or self.original_content


class PostCreate(SQLModel):
    """Create schema for a post."""

    user_id: UUID
    original_content: str
    platforms: list[str]
    publish_now: bool = True

    @field_validator("platforms", mode="before")
    @classmethod
    def _normalize_platforms(cls, value: Any) -> list[str]:
        return normalize_platforms(value)


class PostRead(BaseModel):
    """Read schema for a post as returned to clients."""

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: UUID
    user_id: UUID
    original_content: str
    enhanced_content: Optional[str] = None
    platforms: list[str]
    status: PostStatus
    scheduled_at: Optional[datetime] = None
    publish_now: bool = True
    publish_results: Optional[dict[str, Any]] = None
    metadata: dict[str, Any] = PydanticField(
        default_factory=dict,
        validation_alias=AliasChoices("post_metadata", "metadata"),
    )
    error_message: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    published_at: Optional[datetime] = None
