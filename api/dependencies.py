"""Service construction for FastAPI routes.

Services are built per request from the request's database session and
the process-wide clients below. Tests override these with
app.dependency_overrides.
"""

import hmac
from functools import lru_cache
from typing import Optional

from fastapi import Depends, Header
from sqlmodel import Session

from api.exceptions import AuthenticationError
from api.services.ai_service import (
    AIEnhancer,
    FallbackEnhancer,
    GeminiEnhancer,
    WebhookEnhancer,
)
from api.services.automation_webhook import AutomationWebhookClient
from api.services.background import BackgroundTasks
from api.services.platform_service import PlatformConnectionService
from api.services.post_service import PostService
from api.services.scheduler_service import SchedulerService
from api.services.social_service import (
    LinkedInClient,
    PlatformClientRegistry,
    TwitterClient,
)
from postpilot import config
from postpilot.content.repository import (
    PlatformConnectionRepository,
    PostRepository,
    UserRepository,
)
from postpilot.db.engine import get_session_dependency


@lru_cache(maxsize=1)
def get_background_tasks() -> BackgroundTasks:
    return BackgroundTasks()


@lru_cache(maxsize=1)
def get_platform_registry() -> PlatformClientRegistry:
    return PlatformClientRegistry([
        LinkedInClient(
            config.LINKEDIN_CLIENT_ID,
            config.LINKEDIN_CLIENT_SECRET,
            config.LINKEDIN_REDIRECT_URI,
        ),
        TwitterClient(
            config.TWITTER_CLIENT_ID,
            config.TWITTER_CLIENT_SECRET,
            config.TWITTER_REDIRECT_URI,
        ),
    ])


@lru_cache(maxsize=1)
def get_enhancer() -> AIEnhancer:
    """Gemini SDK with webhook fallback when a key is set, else webhook only."""
    webhook = WebhookEnhancer(config.N8N_ENHANCE_WEBHOOK)
    if config.GEMINI_API_KEY:
        gemini = GeminiEnhancer(config.GEMINI_API_KEY, config.GEMINI_MODEL)
        if config.N8N_ENHANCE_WEBHOOK:
            return FallbackEnhancer(gemini, webhook)
        return gemini
    return webhook


@lru_cache(maxsize=1)
def get_webhook_client() -> AutomationWebhookClient:
    return AutomationWebhookClient(config.N8N_PUBLISH_WEBHOOK)


def get_post_service(
    session: Session = Depends(get_session_dependency),
    enhancer: AIEnhancer = Depends(get_enhancer),
    registry: PlatformClientRegistry = Depends(get_platform_registry),
    webhook: AutomationWebhookClient = Depends(get_webhook_client),
) -> PostService:
    return PostService(
        posts=PostRepository(session),
        connections=PlatformConnectionRepository(session),
        enhancer=enhancer,
        platform_clients=registry,
        webhook=webhook,
    )


def get_scheduler_service(
    session: Session = Depends(get_session_dependency),
    webhook: AutomationWebhookClient = Depends(get_webhook_client),
    background: BackgroundTasks = Depends(get_background_tasks),
) -> SchedulerService:
    return SchedulerService(
        posts=PostRepository(session),
        connections=PlatformConnectionRepository(session),
        webhook=webhook,
        background=background,
    )


def get_platform_service(
    session: Session = Depends(get_session_dependency),
    registry: PlatformClientRegistry = Depends(get_platform_registry),
) -> PlatformConnectionService:
    return PlatformConnectionService(
        connections=PlatformConnectionRepository(session),
        users=UserRepository(session),
        platform_clients=registry,
    )


def require_scheduler_secret(
    x_scheduler_secret: Optional[str] = Header(default=None),
) -> None:
    """Guard for the dispatch trigger. Rejects everything when no secret is set."""
    expected = config.SCHEDULER_SECRET
    if not expected or not x_scheduler_secret or not hmac.compare_digest(
        expected, x_scheduler_secret
    ):
        raise AuthenticationError("Invalid scheduler secret", error_code="Unauthorized")
