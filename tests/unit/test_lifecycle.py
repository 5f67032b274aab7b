"""Tests for the post state machine."""

import pytest

from postpilot.content.lifecycle import (
    InvalidTransitionError,
    PostEvent,
    can_transition,
    publish_outcome_status,
    require_transition,
)
from postpilot.db.models import PostStatus


class TestTransitions:
    @pytest.mark.parametrize(
        "status,event,expected",
        [
            (PostStatus.draft, PostEvent.enhance_succeeded, PostStatus.enhanced),
            (PostStatus.draft, PostEvent.enhance_failed, PostStatus.failed),
            (PostStatus.enhanced, PostEvent.enhance_failed, PostStatus.failed),
            (PostStatus.draft, PostEvent.schedule, PostStatus.scheduled),
            (PostStatus.enhanced, PostEvent.schedule, PostStatus.scheduled),
            (PostStatus.failed, PostEvent.schedule, PostStatus.scheduled),
            (PostStatus.scheduled, PostEvent.schedule, PostStatus.scheduled),
            (PostStatus.scheduled, PostEvent.cancel, PostStatus.draft),
            (PostStatus.scheduled, PostEvent.claim, PostStatus.publishing),
        ],
    )
    def test_allowed(self, status, event, expected):
        assert can_transition(status, event)
        assert require_transition(status, event) == expected

    @pytest.mark.parametrize(
        "status,event",
        [
            (PostStatus.published, PostEvent.schedule),
            (PostStatus.publishing, PostEvent.schedule),
            (PostStatus.draft, PostEvent.cancel),
            (PostStatus.published, PostEvent.cancel),
            (PostStatus.draft, PostEvent.claim),
            (PostStatus.enhanced, PostEvent.enhance_succeeded),
            (PostStatus.published, PostEvent.publish_completed),
        ],
    )
    def test_rejected(self, status, event):
        assert not can_transition(status, event)
        with pytest.raises(InvalidTransitionError) as exc_info:
            require_transition(status, event)
        assert exc_info.value.status == status
        assert exc_info.value.event == event

    def test_published_has_no_outgoing_transition(self):
        assert not any(can_transition(PostStatus.published, event) for event in PostEvent)

    def test_publish_completed_depends_on_results(self):
        assert require_transition(
            PostStatus.publishing, PostEvent.publish_completed, all_succeeded=True
        ) == PostStatus.published
        assert require_transition(
            PostStatus.publishing, PostEvent.publish_completed, all_succeeded=False
        ) == PostStatus.failed

    def test_accepts_plain_strings(self):
        assert require_transition("scheduled", "cancel") == PostStatus.draft

    def test_error_message_names_status(self):
        with pytest.raises(InvalidTransitionError, match="Cannot cancel a post that is draft"):
            require_transition(PostStatus.draft, PostEvent.cancel)


class TestPublishOutcomeStatus:
    def test_all_success(self):
        assert publish_outcome_status(
            {"linkedin": {"success": True}, "twitter": {"success": True}}
        ) == PostStatus.published

    def test_any_failure(self):
        assert publish_outcome_status(
            {"linkedin": {"success": True}, "twitter": {"success": False}}
        ) == PostStatus.failed

    def test_empty(self):
        assert publish_outcome_status({}) == PostStatus.failed
