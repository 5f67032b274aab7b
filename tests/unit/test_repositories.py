"""Tests for the SQLModel repositories."""

from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError as PydanticValidationError

from postpilot.db.models import PostCreate, PostStatus, SocialPlatform, utcnow


# =============================================================================
# PostCreate validation
# =============================================================================


class TestPostCreate:
    def test_platforms_normalized(self, user):
        """Platform names are lower-cased and de-duplicated in order."""
        data = PostCreate(
            user_id=user.id,
            original_content="hello",
            platforms=["Twitter", "linkedin", "TWITTER"],
        )
        assert data.platforms == ["twitter", "linkedin"]

    def test_empty_platforms_rejected(self, user):
        with pytest.raises(PydanticValidationError):
            PostCreate(user_id=user.id, original_content="hello", platforms=[])

    def test_unknown_platform_rejected(self, user):
        with pytest.raises(PydanticValidationError):
            PostCreate(user_id=user.id, original_content="hello", platforms=["myspace"])


# =============================================================================
# PostRepository
# =============================================================================


class TestPostRepository:
    def test_create_is_draft_with_character_count(self, make_post):
        post = make_post(content="Twelve chars")

        assert post.status == PostStatus.draft
        assert post.publish_now is True
        assert post.scheduled_at is None
        assert post.published_at is None
        assert post.post_metadata["character_count"] == 12

    def test_list_by_user_newest_first_with_cursor(self, post_repo, make_post, other_user):
        first = make_post(content="first")
        second = make_post(content="second")
        third = make_post(content="third")
        make_post(content="foreign", user_id=other_user.id)
        # Force distinct creation times
        for offset, post in enumerate([first, second, third]):
            post_repo.update(post.id, created_at=datetime(2026, 1, 1, 12, offset))

        page = post_repo.list_by_user(first.user_id, limit=2)
        assert [p.original_content for p in page] == ["third", "second"]

        rest = post_repo.list_by_user(first.user_id, limit=2, before=page[-1].created_at)
        assert [p.original_content for p in rest] == ["first"]

    def test_list_by_user_status_filter(self, post_repo, make_post):
        draft = make_post()
        failed = make_post()
        post_repo.mark_failed(failed.id, "boom")

        only_failed = post_repo.list_by_user(draft.user_id, status=PostStatus.failed)
        assert [p.id for p in only_failed] == [failed.id]

    def test_update_scheduled(self, post_repo, make_post, future):
        post = make_post(platforms=["linkedin"])
        post_repo.update(post.id, error_message="old failure")

        updated = post_repo.update_scheduled(post.id, future, ["linkedin", "twitter"])

        assert updated.status == PostStatus.scheduled
        assert updated.scheduled_at == future
        assert updated.publish_now is False
        assert updated.platforms == ["linkedin", "twitter"]
        assert updated.error_message is None

    def test_update_scheduled_converts_aware_time_to_utc(self, post_repo, make_post):
        post = make_post()
        aware = datetime(2030, 5, 1, 14, 0, tzinfo=timezone(timedelta(hours=2)))

        updated = post_repo.update_scheduled(post.id, aware)

        assert updated.scheduled_at == datetime(2030, 5, 1, 12, 0)

    def test_list_scheduled_by_user_sorted(self, post_repo, make_post, future):
        later = make_post()
        sooner = make_post()
        make_post()
        post_repo.update_scheduled(later.id, future + timedelta(hours=1))
        post_repo.update_scheduled(sooner.id, future)

        scheduled = post_repo.list_scheduled_by_user(later.user_id)

        assert [p.id for p in scheduled] == [sooner.id, later.id]

    def test_list_due_only_scheduled_in_past(self, post_repo, make_post, other_user):
        now = utcnow()
        due = make_post()
        not_yet = make_post()
        foreign_due = make_post(user_id=other_user.id)
        make_post()
        post_repo.update_scheduled(due.id, now - timedelta(minutes=1))
        post_repo.update_scheduled(not_yet.id, now + timedelta(minutes=5))
        post_repo.update_scheduled(foreign_due.id, now - timedelta(hours=1))

        ids = {p.id for p in post_repo.list_due(now)}

        assert ids == {due.id, foreign_due.id}

    def test_update_published_all_success(self, post_repo, make_post, future):
        post = make_post(platforms=["linkedin", "twitter"])
        post_repo.update_scheduled(post.id, future)

        updated = post_repo.update_published(
            post.id,
            {
                "linkedin": {"success": True, "post_id": "li-1"},
                "twitter": {"success": True, "post_id": "tw-1"},
            },
        )

        assert updated.status == PostStatus.published
        assert updated.scheduled_at is None
        assert updated.published_at is not None
        assert updated.error_message is None

    def test_update_published_partial_failure(self, post_repo, make_post):
        post = make_post(platforms=["linkedin", "twitter"])

        updated = post_repo.update_published(
            post.id,
            {
                "linkedin": {"success": True},
                "twitter": {"success": False, "error": "Not connected"},
            },
        )

        assert updated.status == PostStatus.failed
        assert updated.error_message == "twitter: Not connected"

    def test_update_published_empty_results_is_failed(self, post_repo, make_post):
        post = make_post()

        updated = post_repo.update_published(post.id, {})

        assert updated.status == PostStatus.failed
        assert updated.publish_results == {}

    def test_update_published_drops_untargeted_platforms(self, post_repo, make_post):
        post = make_post(platforms=["linkedin"])

        updated = post_repo.update_published(
            post.id,
            {
                "linkedin": {"success": True},
                "twitter": {"success": False, "error": "unexpected"},
            },
        )

        assert set(updated.publish_results) == {"linkedin"}
        assert updated.status == PostStatus.published

    def test_published_at_set_once(self, post_repo, make_post):
        post = make_post()
        first = post_repo.update_published(post.id, {"linkedin": {"success": False}})
        first_time = first.published_at

        second = post_repo.update_published(post.id, {"linkedin": {"success": True}})

        assert second.published_at == first_time
        assert second.status == PostStatus.published

    def test_updated_at_never_decreases(self, post_repo, make_post):
        post = make_post()
        far_future = utcnow() + timedelta(days=365)
        post_repo.update(post.id, updated_at=far_future)

        touched = post_repo.update(post.id, error_message="x")

        assert touched.updated_at == far_future

    def test_claim_for_dispatch_only_once(self, post_repo, make_post, future):
        post = make_post()
        post_repo.update_scheduled(post.id, future)

        assert post_repo.claim_for_dispatch(post.id) is True
        assert post_repo.claim_for_dispatch(post.id) is False
        assert post_repo.get(post.id).status == PostStatus.publishing

    def test_claim_requires_scheduled(self, post_repo, make_post):
        post = make_post()

        assert post_repo.claim_for_dispatch(post.id) is False
        assert post_repo.get(post.id).status == PostStatus.draft

    def test_count_by_status(self, post_repo, make_post, other_user):
        make_post()
        make_post()
        failed = make_post()
        post_repo.mark_failed(failed.id, "boom")
        make_post(user_id=other_user.id)

        stats = post_repo.count_by_status(failed.user_id)

        assert stats["total"] == 3
        assert stats["draft"] == 2
        assert stats["failed"] == 1
        assert stats["published"] == 0
        assert set(stats) == {"total"} | {s.value for s in PostStatus}

    def test_delete(self, post_repo, make_post):
        post = make_post()

        assert post_repo.delete(post.id) is True
        assert post_repo.get(post.id) is None
        assert post_repo.delete(post.id) is False


# =============================================================================
# PlatformConnectionRepository / UserRepository
# =============================================================================


class TestPlatformConnectionRepository:
    def test_upsert_creates_then_updates(self, connection_repo, connect, user):
        first = connect("linkedin")
        second = connect("linkedin")

        assert first.id == second.id
        assert second.connected is True
        assert len(connection_repo.list_by_user(user.id)) == 1

    def test_list_connected_keyed_by_platform(self, connection_repo, connect, user):
        connect("linkedin")

        connected = connection_repo.list_connected(user.id)

        assert list(connected) == ["linkedin"]
        assert connected["linkedin"].credentials() == {
            "accessToken": "linkedin-access",
            "refreshToken": "linkedin-secret",
            "profileId": "linkedin-profile",
            "profileName": "Ada Example",
        }

    def test_disconnect_keeps_row(self, connection_repo, connect, user):
        connect("twitter")

        row = connection_repo.disconnect(user.id, SocialPlatform.twitter)

        assert row.connected is False
        assert row.access_token is None
        assert row.refresh_token is None
        assert connection_repo.get_by_platform(user.id, "twitter") is not None
        assert connection_repo.list_connected(user.id) == {}

    def test_disconnect_unknown_returns_none(self, connection_repo, user):
        assert connection_repo.disconnect(user.id, SocialPlatform.linkedin) is None


class TestUserRepository:
    def test_get_or_create_is_idempotent(self, user_repo):
        created = user_repo.get_or_create("ext-new", email="new@example.com")
        again = user_repo.get_or_create("ext-new")

        assert created.id == again.id
        assert again.email == "new@example.com"

    def test_set_platform_connected(self, user_repo, user):
        updated = user_repo.set_platform_connected(user.id, SocialPlatform.twitter, True)

        assert updated.twitter_connected is True
        assert updated.linkedin_connected is False
