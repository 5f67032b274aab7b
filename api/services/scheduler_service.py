"""Scheduling and due-post dispatch.

Posts are scheduled by the user and dispatched by an external trigger
calling process_scheduled_posts. Each due post is claimed
(scheduled -> publishing) before it is sent to the publish webhook, so
overlapping runs never dispatch the same post twice. Any error after
the claim is recorded as a failed outcome, so the post can be
rescheduled. Only a process that dies between claim and outcome leaves
the post in publishing, where an operator has to reset it.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional
from uuid import UUID

from api.exceptions import ValidationError
from api.services.automation_webhook import (
    AutomationWebhookClient,
    WebhookError,
    credential_bundle,
)
from api.services.background import BackgroundTasks
from api.services.post_service import ensure_transition, get_owned_post, validate_platforms
from postpilot.content.lifecycle import PostEvent
from postpilot.content.repository import PlatformConnectionRepository, PostRepository
from postpilot.db.models import Post, PostStatus, to_naive_utc, utcnow
from postpilot.logging import get_logger, post_context

logger = get_logger(__name__)

NO_CONNECTED_PLATFORMS = "No connected platforms"


@dataclass
class DispatchOutcome:
    """What happened to one due post."""

    post_id: UUID
    success: bool
    result: Optional[dict[str, dict[str, Any]]] = None
    error: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"post_id": str(self.post_id), "success": self.success}
        if self.result is not None:
            data["result"] = self.result
        if self.error is not None:
            data["error"] = self.error
        return data


class SchedulerService:
    """Schedule, cancel and dispatch posts."""

    def __init__(
        self,
        posts: PostRepository,
        connections: PlatformConnectionRepository,
        webhook: AutomationWebhookClient,
        background: BackgroundTasks,
    ):
        self.posts = posts
        self.connections = connections
        self.webhook = webhook
        self.background = background

    # -------------------------------------------------------------------------
    # User operations
    # -------------------------------------------------------------------------

    async def schedule_post(
        self,
        user_id: UUID,
        post_id: UUID,
        scheduled_at: datetime,
        platforms: Optional[list[str]] = None,
    ) -> Post:
        """Schedule a post for a future time.

        Checks ownership, then that the time is in the future, then the
        post's status. The webhook is told about the schedule in the
        background after the write; its failure is only logged.
        """
        post = get_owned_post(self.posts, user_id, post_id)

        when = to_naive_utc(scheduled_at)
        if when is None or when <= utcnow():
            raise ValidationError(
                "Scheduled time must be in the future",
                details={"field": "scheduled_at"},
            )

        ensure_transition(post, PostEvent.schedule)
        targets = validate_platforms(platforms) if platforms is not None else None

        post = self.posts.update_scheduled(post.id, when, targets)
        logger.info(
            "post_scheduled",
            post_id=str(post.id),
            scheduled_at=when.isoformat(),
            platforms=post.platforms,
        )

        if self.webhook.configured:
            self.background.spawn(
                self.webhook.notify_scheduled(post.id, user_id, when, list(post.platforms)),
                name=f"notify-schedule-{post.id}",
            )
        return post

    async def cancel_scheduled_post(self, user_id: UUID, post_id: UUID) -> Post:
        """Return a scheduled post to draft."""
        post = get_owned_post(self.posts, user_id, post_id)
        ensure_transition(post, PostEvent.cancel)
        post = self.posts.update(
            post.id,
            status=PostStatus.draft,
            scheduled_at=None,
            publish_now=True,
        )
        logger.info("schedule_cancelled", post_id=str(post.id))
        return post

    async def reschedule_post(
        self, user_id: UUID, post_id: UUID, new_scheduled_at: datetime
    ) -> Post:
        """Move a post to a new time, keeping its platforms."""
        post = get_owned_post(self.posts, user_id, post_id)
        return await self.schedule_post(
            user_id, post.id, new_scheduled_at, platforms=list(post.platforms)
        )

    async def get_scheduled_posts(self, user_id: UUID) -> list[Post]:
        return self.posts.list_scheduled_by_user(user_id)

    # -------------------------------------------------------------------------
    # Dispatch
    # -------------------------------------------------------------------------

    async def process_scheduled_posts(
        self, now: Optional[datetime] = None
    ) -> list[DispatchOutcome]:
        """Publish every post whose scheduled time has passed.

        Posts are handled one at a time and independently: a failure on
        one is recorded and reported without affecting the rest. Posts
        another run already claimed are skipped and not reported. Only a
        failure to list due posts propagates.
        """
        now = to_naive_utc(now) or utcnow()
        due = self.posts.list_due(now)
        if not due:
            return []

        logger.info("dispatch_started", due=len(due))
        outcomes = []
        for post_id in [post.id for post in due]:
            with post_context(post_id):
                try:
                    outcome = await self._dispatch(post_id)
                except Exception as e:
                    self.posts.session.rollback()
                    logger.error("dispatch_error", exc_info=e)
                    error = str(e) or type(e).__name__
                    self._record_failure(post_id, error)
                    outcome = DispatchOutcome(post_id=post_id, success=False, error=error)
            if outcome is not None:
                outcomes.append(outcome)

        logger.info(
            "dispatch_finished",
            dispatched=len(outcomes),
            succeeded=sum(1 for o in outcomes if o.success),
        )
        return outcomes

    def _record_failure(self, post_id: UUID, error: str) -> None:
        """Mark a claimed post failed after an unexpected dispatch error."""
        post = self.posts.get(post_id)
        if post is None or post.status != PostStatus.publishing:
            return
        results = {p: {"success": False, "error": error} for p in post.platforms}
        self.posts.update_published(post_id, results, error)

    async def _dispatch(self, post_id: UUID) -> Optional[DispatchOutcome]:
        if not self.posts.claim_for_dispatch(post_id):
            logger.info("dispatch_skipped", post_id=str(post_id), reason="already claimed")
            return None

        post = self.posts.get(post_id)
        connected = self.connections.list_connected(post.user_id)
        targets = [p for p in post.platforms if p in connected]

        if not targets:
            results = {
                p: {"success": False, "error": NO_CONNECTED_PLATFORMS} for p in post.platforms
            }
            self.posts.update_published(post_id, results, NO_CONNECTED_PLATFORMS)
            logger.warning("dispatch_failed", post_id=str(post_id), error=NO_CONNECTED_PLATFORMS)
            return DispatchOutcome(post_id=post_id, success=False, error=NO_CONNECTED_PLATFORMS)

        results: dict[str, dict[str, Any]] = {
            p: {"success": False, "error": "Not connected"}
            for p in post.platforms
            if p not in connected
        }
        try:
            response = await self.webhook.publish(
                post.id,
                post.user_id,
                post.content,
                targets,
                credential_bundle(connected, targets),
            )
        except WebhookError as e:
            for p in targets:
                results[p] = {"success": False, "error": str(e)}
            self.posts.update_published(post_id, results, str(e))
            logger.warning("dispatch_failed", post_id=str(post_id), error=str(e))
            return DispatchOutcome(post_id=post_id, success=False, error=str(e))

        for p in targets:
            results[p] = response.results.get(p) or {
                "success": False,
                "error": "No result reported",
            }
        ordered = {p: results[p] for p in post.platforms}
        post = self.posts.update_published(post_id, ordered)

        if post.status == PostStatus.published:
            logger.info("dispatch_published", post_id=str(post_id))
            return DispatchOutcome(post_id=post_id, success=True, result=ordered)

        logger.warning("dispatch_failed", post_id=str(post_id), error=post.error_message)
        return DispatchOutcome(
            post_id=post_id,
            success=False,
            result=ordered,
            error=post.error_message,
        )
