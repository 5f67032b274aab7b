"""Post lifecycle service.

Enhance, publish immediately, and read back a user's posts.
"""

import asyncio
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional
from uuid import UUID

from api.exceptions import (
    ExternalServiceError,
    InvalidStateError,
    NotFoundError,
    ValidationError,
)
from api.services.ai_service import AIEnhancer, EnhancementFailed
from api.services.automation_webhook import (
    AutomationWebhookClient,
    WebhookError,
    credential_bundle,
)
from api.services.social_service import PlatformClientRegistry, PlatformError
from postpilot.content.lifecycle import (
    InvalidTransitionError,
    PostEvent,
    require_transition,
)
from postpilot.content.repository import PlatformConnectionRepository, PostRepository
from postpilot.db.models import (
    PlatformConnection,
    Post,
    PostCreate,
    PostStatus,
    normalize_platforms,
)
from postpilot.logging import get_logger

logger = get_logger(__name__)

ENHANCE_MIN_CHARS = 10
MAX_CHARS = 5000
MAX_HISTORY_LIMIT = 100


# =============================================================================
# Shared helpers
# =============================================================================


def get_owned_post(repo: PostRepository, user_id: UUID, post_id: UUID) -> Post:
    """Load a post the user owns. Foreign posts look exactly like missing ones."""
    post = repo.get(post_id)
    if post is None or post.user_id != user_id:
        raise NotFoundError("Post not found", details={"post_id": str(post_id)})
    return post


def ensure_transition(post: Post, event: PostEvent, all_succeeded: bool = False) -> PostStatus:
    """require_transition, reported as an API InvalidStateError."""
    try:
        return require_transition(post.status, event, all_succeeded)
    except InvalidTransitionError as e:
        raise InvalidStateError(
            str(e),
            details={"post_id": str(post.id), "status": e.status.value},
        ) from e


def validate_platforms(platforms: Any) -> list[str]:
    try:
        return normalize_platforms(platforms)
    except ValueError as e:
        raise ValidationError(str(e), details={"field": "platforms"}) from e


def validate_content(content: Optional[str], min_chars: int) -> str:
    text = (content or "").strip()
    if len(text) < min_chars or len(text) > MAX_CHARS:
        raise ValidationError(
            f"Content must be between {min_chars} and {MAX_CHARS} characters",
            details={"field": "content", "length": len(text)},
        )
    return text


@dataclass
class PublishOutcome:
    """Result of an immediate publish."""

    success: bool
    results: dict[str, dict[str, Any]]
    via: str = "direct"
    post: Optional[Post] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "results": self.results,
            "via": self.via,
            "post_id": str(self.post.id) if self.post else None,
        }


@dataclass
class PostHistory:
    posts: list[Post] = field(default_factory=list)
    next_cursor: Optional[datetime] = None


# =============================================================================
# Service
# =============================================================================


class PostService:
    """Enhance, publish and inspect posts."""

    def __init__(
        self,
        posts: PostRepository,
        connections: PlatformConnectionRepository,
        enhancer: AIEnhancer,
        platform_clients: PlatformClientRegistry,
        webhook: AutomationWebhookClient,
    ):
        self.posts = posts
        self.connections = connections
        self.enhancer = enhancer
        self.platform_clients = platform_clients
        self.webhook = webhook

    # -------------------------------------------------------------------------
    # Enhancement
    # -------------------------------------------------------------------------

    async def enhance_post(self, user_id: UUID, content: str, platforms: list[str]) -> Post:
        """Create a draft and run it through the AI enhancer.

        On failure the post is marked failed with its original content
        untouched and ExternalServiceError is raised.
        """
        text = validate_content(content, ENHANCE_MIN_CHARS)
        targets = validate_platforms(platforms)

        post = self.posts.create(
            PostCreate(user_id=user_id, original_content=text, platforms=targets)
        )

        try:
            result = await self.enhancer.enhance(text, targets, str(user_id))
        except EnhancementFailed as e:
            ensure_transition(post, PostEvent.enhance_failed)
            self.posts.mark_failed(post.id, str(e))
            logger.warning("enhancement_failed", post_id=str(post.id), error=str(e))
            raise ExternalServiceError(
                f"Enhancement failed: {e}",
                details={"post_id": str(post.id)},
            ) from e

        ensure_transition(post, PostEvent.enhance_succeeded)
        post = self.posts.update_enhanced(post.id, result.enhanced_text, result.as_metadata())
        logger.info(
            "post_enhanced",
            post_id=str(post.id),
            model=result.model,
            elapsed_ms=result.elapsed_ms,
        )
        return post

    async def generate_variations(
        self, content: str, platforms: list[str], count: int = 3
    ) -> list[str]:
        """Best-effort alternative enhancements. Failed attempts are skipped."""
        text = validate_content(content, ENHANCE_MIN_CHARS)
        targets = validate_platforms(platforms)
        if not 1 <= count <= 5:
            raise ValidationError("count must be between 1 and 5", details={"field": "count"})

        variations = []
        for i in range(count):
            try:
                result = await self.enhancer.enhance(
                    f"{text} (Rewrite option {i + 1})", targets
                )
            except EnhancementFailed as e:
                logger.warning("variation_failed", index=i + 1, error=str(e))
                continue
            variations.append(result.enhanced_text)
        return variations

    # -------------------------------------------------------------------------
    # Immediate publish
    # -------------------------------------------------------------------------

    async def _publish_direct(
        self,
        platform: str,
        connection: Optional[PlatformConnection],
        text: str,
    ) -> dict[str, Any]:
        if connection is None:
            return {"success": False, "error": "Not connected"}
        if platform not in self.platform_clients:
            return {"success": False, "error": "Unsupported platform"}

        client = self.platform_clients.get(platform)
        try:
            published = await client.publish(connection.credentials(), text)
        except PlatformError as e:
            logger.warning("direct_publish_failed", platform=platform, error=e.detail)
            return {"success": False, "error": e.detail}
        return {"success": True, "post_id": published.post_id, "post_url": published.post_url}

    async def publish_post(
        self,
        user_id: UUID,
        platforms: Optional[list[str]] = None,
        post_id: Optional[UUID] = None,
        content: Optional[str] = None,
    ) -> PublishOutcome:
        """Publish now, directly per platform, with one webhook salvage attempt.

        Direct publishes run concurrently. If none succeeds and the
        webhook is configured, the webhook is asked to publish instead.
        When a post_id is given the outcome is recorded on the post.

        Raises:
            NotFoundError: post_id is not the user's
            InvalidStateError: the post is being dispatched right now
            ExternalServiceError: direct publish and webhook salvage both failed
        """
        post = None
        if post_id is not None:
            post = get_owned_post(self.posts, user_id, post_id)
            if post.status == PostStatus.publishing:
                raise InvalidStateError(
                    "Post is being published by a scheduled run",
                    details={"post_id": str(post.id), "status": post.status.value},
                )
            if post.status != PostStatus.published:
                ensure_transition(post, PostEvent.publish_completed)

        if content is None and post is None:
            raise ValidationError("Either post_id or content is required")
        text = validate_content(content if content is not None else post.content, 1)

        if platforms is None and post is not None:
            targets = list(post.platforms)
        else:
            targets = validate_platforms(platforms)
        if post is not None:
            # Results are only kept for platforms the post targets
            extra = [p for p in targets if p not in post.platforms]
            if extra:
                raise ValidationError(
                    "Platforms not targeted by this post",
                    details={"platforms": extra},
                )

        if post is not None and post.status == PostStatus.scheduled:
            # Take the post away from the scheduler before publishing it here
            if not self.posts.claim_for_dispatch(post.id):
                raise InvalidStateError(
                    "Post is being published by a scheduled run",
                    details={"post_id": str(post.id)},
                )

        connected = self.connections.list_connected(user_id)
        gathered = await asyncio.gather(
            *(self._publish_direct(p, connected.get(p), text) for p in targets),
            return_exceptions=True,
        )
        results: dict[str, dict[str, Any]] = {}
        for platform, outcome in zip(targets, gathered):
            if isinstance(outcome, Exception):
                logger.error("direct_publish_error", platform=platform, exc_info=outcome)
                outcome = {"success": False, "error": str(outcome) or type(outcome).__name__}
            results[platform] = outcome

        via = "direct"
        if not any(r["success"] for r in results.values()) and self.webhook.configured:
            try:
                response = await self.webhook.publish(
                    post.id if post else None,
                    user_id,
                    text,
                    targets,
                    credential_bundle(connected, targets),
                )
            except WebhookError as e:
                if post is not None:
                    self.posts.update_published(post.id, results)
                logger.warning("webhook_salvage_failed", error=str(e))
                raise ExternalServiceError(
                    f"Publish failed: {e}",
                    details={"results": results},
                ) from e
            results = {
                p: response.results.get(p) or {"success": False, "error": "No result reported"}
                for p in targets
            }
            via = "webhook"

        success = bool(results) and all(r["success"] for r in results.values())
        if post is not None:
            post = self.posts.update_published(post.id, results)

        logger.info(
            "post_published" if success else "post_publish_failed",
            post_id=str(post.id) if post else None,
            via=via,
            platforms=targets,
        )
        return PublishOutcome(success=success, results=results, via=via, post=post)

    # -------------------------------------------------------------------------
    # Reads and deletes
    # -------------------------------------------------------------------------

    async def get_post(self, user_id: UUID, post_id: UUID) -> Post:
        return get_owned_post(self.posts, user_id, post_id)

    async def get_post_history(
        self,
        user_id: UUID,
        limit: int = 20,
        status: Optional[PostStatus] = None,
        before: Optional[datetime] = None,
    ) -> PostHistory:
        """Newest-first page of the user's posts.

        next_cursor is the created_at of the last post when the page is full.
        """
        if not 1 <= limit <= MAX_HISTORY_LIMIT:
            raise ValidationError(
                f"limit must be between 1 and {MAX_HISTORY_LIMIT}",
                details={"field": "limit"},
            )
        posts = self.posts.list_by_user(user_id, limit=limit, before=before, status=status)
        cursor = posts[-1].created_at if len(posts) == limit else None
        return PostHistory(posts=posts, next_cursor=cursor)

    async def delete_post(self, user_id: UUID, post_id: UUID) -> None:
        post = get_owned_post(self.posts, user_id, post_id)
        self.posts.delete(post.id)
        logger.info("post_deleted", post_id=str(post_id))

    async def get_stats(self, user_id: UUID) -> dict[str, int]:
        return self.posts.count_by_status(user_id)
