"""Tests for structured logging helpers."""

from uuid import uuid4

import pytest

from postpilot.logging import bind_context, clear_context, configure_structlog, get_logger
from postpilot.logging.structured import (
    _context_vars,
    add_request_context,
    add_service_info,
    post_context,
)


@pytest.fixture(autouse=True)
def clean_context():
    clear_context()
    yield
    clear_context()


class TestContext:
    def test_bind_and_clear(self):
        user_id = uuid4()

        bind_context(request_id="req-1", user_id=user_id)

        assert _context_vars == {"request_id": "req-1", "user_id": str(user_id)}
        clear_context()
        assert _context_vars == {}

    def test_none_values_not_bound(self):
        bind_context(request_id=None, user_id=None)
        assert _context_vars == {}

    def test_post_context_scoped_to_block(self):
        post_id = uuid4()
        bind_context(request_id="req-3")

        with post_context(post_id, attempt=2, skipped=None) as added:
            assert added == {"post_id": str(post_id), "attempt": "2"}
            event = add_request_context(None, "info", {"event": "dispatch_published"})
            assert event["post_id"] == str(post_id)
            assert "skipped" not in _context_vars

        assert _context_vars == {"request_id": "req-3"}

    def test_post_context_cleared_on_error(self):
        with pytest.raises(RuntimeError):
            with post_context("p1"):
                raise RuntimeError("boom")

        assert "post_id" not in _context_vars


class TestProcessors:
    def test_request_context_added_without_overriding(self):
        bind_context(request_id="req-9")

        event = add_request_context(None, "info", {"event": "x", "request_id": "explicit"})
        assert event["request_id"] == "explicit"

        event = add_request_context(None, "info", {"event": "y"})
        assert event["request_id"] == "req-9"

    def test_service_name(self):
        assert add_service_info(None, "info", {"event": "x"})["service"] == "postpilot"


class TestConfigure:
    @pytest.mark.parametrize("json_format", [True, False])
    def test_configure_and_log(self, json_format):
        configure_structlog(json_format=json_format, log_level="DEBUG")

        logger = get_logger("tests.logging")
        logger.info("test_event", post_id="p1")
