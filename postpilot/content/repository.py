"""SQLModel-based repository layer.

Each repository handles one table. Every write bumps updated_at, which
never moves backwards.

Usage:
    from postpilot.db import get_session
    from postpilot.content.repository import PostRepository

    with get_session() as session:
        repo = PostRepository(session)
        due = repo.list_due(utcnow())
"""

from datetime import datetime
from typing import Any, Generic, Optional, TypeVar
from uuid import UUID

from sqlalchemy import func, update
from sqlmodel import Session, select

from postpilot.content.lifecycle import publish_outcome_status
from postpilot.db.models import (
    User, UserCreate,
    Post, PostCreate, PostStatus,
    PlatformConnection, PlatformConnectionUpsert,
    SocialPlatform,
    utcnow, to_naive_utc,
)

T = TypeVar("T")
CreateT = TypeVar("CreateT")


def _touch(obj: Any) -> None:
    now = utcnow()
    if obj.updated_at is None or now > obj.updated_at:
        obj.updated_at = now


# =============================================================================
# Base Repository
# =============================================================================

class BaseRepository(Generic[T, CreateT]):
    """Base repository with common CRUD operations."""

    model: type[T]

    def __init__(self, session: Session):
        self.session = session

    def create(self, data: CreateT) -> T:
        """Create a new record."""
        obj = self.model.model_validate(data)
        self.session.add(obj)
        self.session.commit()
        self.session.refresh(obj)
        return obj

    def get(self, id: UUID) -> Optional[T]:
        """Get a record by ID."""
        return self.session.get(self.model, id)

    def update(self, id: UUID, **fields: Any) -> Optional[T]:
        """Patch the given fields on a record."""
        obj = self.get(id)
        if obj is None:
            return None
        for key, value in fields.items():
            setattr(obj, key, value)
        return self._save(obj)

    def delete(self, id: UUID) -> bool:
        """Delete a record by ID. Returns True if deleted."""
        obj = self.get(id)
        if obj:
            self.session.delete(obj)
            self.session.commit()
            return True
        return False

    def _save(self, obj: T) -> T:
        _touch(obj)
        self.session.add(obj)
        self.session.commit()
        self.session.refresh(obj)
        return obj


# =============================================================================
# User Repository
# =============================================================================

class UserRepository(BaseRepository[User, UserCreate]):
    """Repository for User operations."""

    model = User

    def get_by_external_id(self, external_id: str) -> Optional[User]:
        """Get user by identity-provider subject."""
        statement = select(User).where(User.external_id == external_id)
        return self.session.exec(statement).first()

    def get_or_create(
        self,
        external_id: str,
        email: Optional[str] = None,
        display_name: Optional[str] = None,
    ) -> User:
        """Return the user for a subject, creating it on first sight."""
        existing = self.get_by_external_id(external_id)
        if existing:
            return existing
        return self.create(
            UserCreate(external_id=external_id, email=email, display_name=display_name)
        )

    def set_platform_connected(
        self, user_id: UUID, platform: SocialPlatform, connected: bool
    ) -> Optional[User]:
        """Sync the denormalised per-platform connected flag."""
        field = f"{SocialPlatform(platform).value}_connected"
        return self.update(user_id, **{field: connected})


# =============================================================================
# Post Repository
# =============================================================================

class PostRepository(BaseRepository[Post, PostCreate]):
    """Repository for Post operations."""

    model = Post

    def create(self, data: PostCreate) -> Post:
        """Create a draft post with its character count recorded."""
        post = Post(
            user_id=data.user_id,
            original_content=data.original_content,
            platforms=list(data.platforms),
            publish_now=data.publish_now,
            status=PostStatus.draft,
            post_metadata={"character_count": len(data.original_content)},
        )
        self.session.add(post)
        self.session.commit()
        self.session.refresh(post)
        return post

    def list_by_user(
        self,
        user_id: UUID,
        limit: int = 20,
        before: Optional[datetime] = None,
        status: Optional[PostStatus] = None,
    ) -> list[Post]:
        """List a user's posts, newest first.

        Args:
            user_id: Owner.
            limit: Maximum number of posts.
            before: Only posts created strictly before this time (cursor).
            status: Optional status filter.
        """
        statement = select(Post).where(Post.user_id == user_id)
        if status is not None:
            statement = statement.where(Post.status == PostStatus(status))
        if before is not None:
            statement = statement.where(Post.created_at < to_naive_utc(before))
        statement = statement.order_by(Post.created_at.desc()).limit(limit)
        return list(self.session.exec(statement).all())

    def list_scheduled_by_user(self, user_id: UUID) -> list[Post]:
        """List a user's scheduled posts, soonest first."""
        statement = (
            select(Post)
            .where(Post.user_id == user_id, Post.status == PostStatus.scheduled)
            .order_by(Post.scheduled_at.asc())
        )
        return list(self.session.exec(statement).all())

    def list_due(self, now: datetime) -> list[Post]:
        """List scheduled posts whose time has come, across all users."""
        statement = select(Post).where(
            Post.status == PostStatus.scheduled,
            Post.scheduled_at <= to_naive_utc(now),
        )
        return list(self.session.exec(statement).all())

    def update_enhanced(
        self, post_id: UUID, enhanced_content: str, metadata: dict[str, Any]
    ) -> Optional[Post]:
        """Store AI text and mark the post enhanced."""
        post = self.get(post_id)
        if post is None:
            return None
        post.enhanced_content = enhanced_content
        post.post_metadata = {**(post.post_metadata or {}), **metadata}
        post.status = PostStatus.enhanced
        post.error_message = None
        return self._save(post)

    def update_scheduled(
        self,
        post_id: UUID,
        scheduled_at: datetime,
        platforms: Optional[list[str]] = None,
    ) -> Optional[Post]:
        """Mark the post scheduled for the given time.

        Replacing the platforms drops earlier results for platforms no
        longer targeted.
        """
        post = self.get(post_id)
        if post is None:
            return None
        post.scheduled_at = to_naive_utc(scheduled_at)
        if platforms is not None:
            post.platforms = list(platforms)
            if post.publish_results:
                post.publish_results = {
                    platform: result
                    for platform, result in post.publish_results.items()
                    if platform in post.platforms
                }
        post.status = PostStatus.scheduled
        post.publish_now = False
        post.error_message = None
        return self._save(post)

    def update_published(
        self,
        post_id: UUID,
        results: dict[str, dict[str, Any]],
        error_message: Optional[str] = None,
    ) -> Optional[Post]:
        """Record a publish outcome.

        Status becomes published only when there is at least one result
        and every result succeeded. Results for platforms the post does
        not target are dropped. published_at is set once.
        """
        post = self.get(post_id)
        if post is None:
            return None

        kept = {
            platform: dict(result)
            for platform, result in (results or {}).items()
            if platform in post.platforms
        }
        status = publish_outcome_status(kept)

        if status == PostStatus.failed and error_message is None:
            failures = [
                f"{platform}: {result.get('error') or 'failed'}"
                for platform, result in kept.items()
                if not result.get("success")
            ]
            error_message = "; ".join(failures) or "No publish results"

        post.publish_results = kept
        post.status = status
        post.scheduled_at = None
        post.error_message = error_message if status == PostStatus.failed else None
        if post.published_at is None:
            post.published_at = utcnow()
        return self._save(post)

    def mark_failed(self, post_id: UUID, error_message: str) -> Optional[Post]:
        """Mark the post failed without touching its content."""
        return self.update(post_id, status=PostStatus.failed, error_message=error_message)

    def claim_for_dispatch(self, post_id: UUID) -> bool:
        """Atomically move a post from scheduled to publishing.

        Returns False if another run already claimed it or it is no
        longer scheduled.
        """
        statement = (
            update(Post)
            .where(Post.id == post_id, Post.status == PostStatus.scheduled)
            .values(status=PostStatus.publishing, updated_at=utcnow())
        )
        result = self.session.exec(statement)
        self.session.commit()
        return result.rowcount == 1

    def count_by_status(self, user_id: UUID) -> dict[str, int]:
        """Count a user's posts per status, plus a total."""
        statement = (
            select(Post.status, func.count())
            .where(Post.user_id == user_id)
            .group_by(Post.status)
        )
        counts = {status.value: 0 for status in PostStatus}
        for status, count in self.session.exec(statement).all():
            counts[PostStatus(status).value] = count
        return {"total": sum(counts.values()), **counts}


# =============================================================================
# Platform Connection Repository
# =============================================================================

class PlatformConnectionRepository(BaseRepository[PlatformConnection, PlatformConnectionUpsert]):
    """Repository for PlatformConnection operations."""

    model = PlatformConnection

    def get_by_platform(
        self, user_id: UUID, platform: SocialPlatform
    ) -> Optional[PlatformConnection]:
        """Get the user's row for a platform, connected or not."""
        statement = select(PlatformConnection).where(
            PlatformConnection.user_id == user_id,
            PlatformConnection.platform == SocialPlatform(platform),
        )
        return self.session.exec(statement).first()

    def list_by_user(self, user_id: UUID) -> list[PlatformConnection]:
        """List all connection rows for a user."""
        statement = select(PlatformConnection).where(PlatformConnection.user_id == user_id)
        return list(self.session.exec(statement).all())

    def list_connected(self, user_id: UUID) -> dict[str, PlatformConnection]:
        """Connected platforms for a user, keyed by platform name."""
        statement = select(PlatformConnection).where(
            PlatformConnection.user_id == user_id,
            PlatformConnection.connected == True,  # noqa: E712
        )
        return {
            SocialPlatform(conn.platform).value: conn
            for conn in self.session.exec(statement).all()
        }

    def upsert(
        self,
        user_id: UUID,
        platform: SocialPlatform,
        data: PlatformConnectionUpsert,
    ) -> PlatformConnection:
        """Create or update the connection and mark it connected."""
        connection = self.get_by_platform(user_id, platform)
        if connection is None:
            connection = PlatformConnection(user_id=user_id, platform=SocialPlatform(platform))

        for key, value in data.model_dump().items():
            setattr(connection, key, value)
        connection.expires_at = to_naive_utc(data.expires_at)
        connection.connected = True
        connection.oauth_state = None
        connection.oauth_request_secret = None
        return self._save(connection)

    def disconnect(self, user_id: UUID, platform: SocialPlatform) -> Optional[PlatformConnection]:
        """Clear tokens and mark disconnected. The row is kept."""
        connection = self.get_by_platform(user_id, platform)
        if connection is None:
            return None
        connection.connected = False
        connection.access_token = None
        connection.refresh_token = None
        connection.expires_at = None
        return self._save(connection)

    def set_pending_authorization(
        self,
        user_id: UUID,
        platform: SocialPlatform,
        state: str,
        request_secret: Optional[str] = None,
    ) -> PlatformConnection:
        """Remember an in-flight OAuth authorization for the user."""
        connection = self.get_by_platform(user_id, platform)
        if connection is None:
            connection = PlatformConnection(user_id=user_id, platform=SocialPlatform(platform))
        connection.oauth_state = state
        connection.oauth_request_secret = request_secret
        return self._save(connection)
