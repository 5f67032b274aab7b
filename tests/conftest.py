"""Shared fixtures and fake collaborators for testing."""

import os

# Set test environment variables before any application imports
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("JWT_SECRET", "test-secret-for-unit-tests")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SCHEDULER_SECRET", "test-scheduler-secret")
os.environ.setdefault("LOG_JSON", "false")

from typing import Callable, Optional

import httpx
import pytest

from api.services.ai_service import EnhancementFailed, EnhancementResult
from api.services.automation_webhook import AutomationWebhookClient
from api.services.social_service import (
    AuthorizationRequest,
    PlatformClient,
    PlatformClientRegistry,
    PlatformProfile,
    PlatformPublishError,
    PlatformTokens,
    PublishedPost,
)
from postpilot.db.models import SocialPlatform

WEBHOOK_URL = "https://n8n.test/webhook/publish"


class FakeEnhancer:
    """Enhancer that returns canned text or fails on demand."""

    def __init__(self, text: str = "Enhanced post text #launch", fail: bool = False):
        self.text = text
        self.fail = fail
        self.calls: list[tuple[str, list[str]]] = []

    async def enhance(self, text, platforms, user_id=None) -> EnhancementResult:
        self.calls.append((text, list(platforms)))
        if self.fail:
            raise EnhancementFailed("AI service unavailable")
        return EnhancementResult(
            enhanced_text=self.text,
            model="fake-model",
            elapsed_ms=12,
            tokens_used=42,
        )


class FakePlatformClient(PlatformClient):
    """Platform client that records publishes instead of calling the network."""

    def __init__(self, platform: SocialPlatform, fail_with: Optional[str] = None):
        super().__init__("client-id", "client-secret", "https://app.test/callback")
        self.platform = SocialPlatform(platform)
        self.fail_with = fail_with
        self.published: list[tuple[dict, str]] = []
        self.exchanged: list[tuple[str, Optional[str], Optional[str]]] = []

    async def get_authorization_url(self, state: str) -> AuthorizationRequest:
        if self.platform == SocialPlatform.twitter:
            return AuthorizationRequest(
                url="https://api.twitter.test/oauth/authenticate?oauth_token=req-token",
                state="req-token",
                request_secret="req-secret",
            )
        return AuthorizationRequest(url=f"https://linkedin.test/auth?state={state}", state=state)

    async def exchange_code(self, code, verifier=None, request_secret=None) -> PlatformTokens:
        self.exchanged.append((code, verifier, request_secret))
        return PlatformTokens(access_token=f"access-{code}", refresh_token="token-secret")

    async def fetch_profile(self, tokens: PlatformTokens) -> PlatformProfile:
        return PlatformProfile(
            id=f"{self.name}-profile",
            name="Ada Example",
            username="ada",
            avatar_url="https://img.test/ada.png",
        )

    async def publish(self, credentials: dict, text: str) -> PublishedPost:
        self.published.append((credentials, text))
        if self.fail_with:
            raise PlatformPublishError(self.name, self.fail_with)
        return PublishedPost(
            post_id=f"{self.name}-123",
            post_url=f"https://{self.name}.test/posts/123",
        )


@pytest.fixture
def fake_enhancer():
    return FakeEnhancer()


@pytest.fixture
def failing_enhancer():
    return FakeEnhancer(fail=True)


@pytest.fixture
def make_platform_client() -> Callable[..., FakePlatformClient]:
    return FakePlatformClient


@pytest.fixture
def platform_clients():
    """Registry with succeeding LinkedIn and Twitter fakes."""
    return PlatformClientRegistry([
        FakePlatformClient(SocialPlatform.linkedin),
        FakePlatformClient(SocialPlatform.twitter),
    ])


class WebhookRecorder:
    """httpx MockTransport handler that records requests and replays a response."""

    def __init__(self):
        self.requests: list[httpx.Request] = []
        self.response: Callable[[httpx.Request], httpx.Response] = lambda request: httpx.Response(
            200, json={"success": True, "results": {}}
        )

    def reply(self, status_code: int = 200, json=None) -> None:
        self.response = lambda request: httpx.Response(status_code, json=json)

    def raise_error(self, exc: Exception) -> None:
        def _raise(request):
            raise exc
        self.response = _raise

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.response(request)


@pytest.fixture
def webhook_recorder():
    return WebhookRecorder()


@pytest.fixture
def webhook(webhook_recorder):
    """Publish webhook client wired to the recorder."""
    return AutomationWebhookClient(WEBHOOK_URL, transport=httpx.MockTransport(webhook_recorder))


@pytest.fixture
def unconfigured_webhook():
    return AutomationWebhookClient("")
