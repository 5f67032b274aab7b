"""Post state machine.

Transitions:
    draft --enhance_succeeded--> enhanced
    draft/enhanced --enhance_failed--> failed
    draft/enhanced/failed/scheduled --schedule--> scheduled
    scheduled --cancel--> draft
    scheduled --claim--> publishing
    anything but published --publish_completed--> published | failed

published is terminal. Publishing an already published post again only
rewrites its results, which is handled outside the state machine.
"""

from enum import Enum

from postpilot.db.models import PostStatus


class PostEvent(str, Enum):
    """Events that move a post between statuses."""

    enhance_succeeded = "enhance_succeeded"
    enhance_failed = "enhance_failed"
    schedule = "schedule"
    cancel = "cancel"
    claim = "claim"
    publish_completed = "publish_completed"


class InvalidTransitionError(Exception):
    """Raised when an event is not allowed from the current status."""

    def __init__(self, status: PostStatus, event: PostEvent):
        self.status = PostStatus(status)
        self.event = PostEvent(event)
        super().__init__(
            f"Cannot {self.event.value.replace('_', ' ')} a post that is {self.status.value}"
        )


_PRE_PUBLISH = frozenset({
    PostStatus.draft,
    PostStatus.enhanced,
    PostStatus.scheduled,
    PostStatus.publishing,
    PostStatus.failed,
})

# event -> statuses the event may fire from
ALLOWED_SOURCES: dict[PostEvent, frozenset[PostStatus]] = {
    PostEvent.enhance_succeeded: frozenset({PostStatus.draft}),
    PostEvent.enhance_failed: frozenset({PostStatus.draft, PostStatus.enhanced}),
    PostEvent.schedule: frozenset({
        PostStatus.draft,
        PostStatus.enhanced,
        PostStatus.failed,
        PostStatus.scheduled,
    }),
    PostEvent.cancel: frozenset({PostStatus.scheduled}),
    PostEvent.claim: frozenset({PostStatus.scheduled}),
    PostEvent.publish_completed: _PRE_PUBLISH,
}

# Fixed targets; publish_completed depends on the results
_TARGETS: dict[PostEvent, PostStatus] = {
    PostEvent.enhance_succeeded: PostStatus.enhanced,
    PostEvent.enhance_failed: PostStatus.failed,
    PostEvent.schedule: PostStatus.scheduled,
    PostEvent.cancel: PostStatus.draft,
    PostEvent.claim: PostStatus.publishing,
}


def can_transition(status: PostStatus, event: PostEvent) -> bool:
    """Whether the event is allowed from the given status."""
    return PostStatus(status) in ALLOWED_SOURCES[PostEvent(event)]


def require_transition(
    status: PostStatus,
    event: PostEvent,
    all_succeeded: bool = False,
) -> PostStatus:
    """Return the status the event leads to, or raise InvalidTransitionError.

    Args:
        status: Current post status.
        event: Event to apply.
        all_succeeded: For publish_completed only; True when every
            platform result succeeded.
    """
    if not can_transition(status, event):
        raise InvalidTransitionError(status, event)
    event = PostEvent(event)
    if event == PostEvent.publish_completed:
        return PostStatus.published if all_succeeded else PostStatus.failed
    return _TARGETS[event]


def publish_outcome_status(results: dict) -> PostStatus:
    """published iff there is at least one result and all succeeded."""
    if results and all(bool(r.get("success")) for r in results.values()):
        return PostStatus.published
    return PostStatus.failed
