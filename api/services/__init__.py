"""Service layer for the PostPilot API."""

from api.services.ai_service import (
    AIEnhancer,
    EnhancementFailed,
    EnhancementResult,
    FallbackEnhancer,
    GeminiEnhancer,
    WebhookEnhancer,
)
from api.services.automation_webhook import AutomationWebhookClient, WebhookError
from api.services.background import BackgroundTasks
from api.services.platform_service import PlatformConnectionService
from api.services.post_service import PostService, PublishOutcome
from api.services.scheduler_service import DispatchOutcome, SchedulerService
from api.services.social_service import (
    LinkedInClient,
    PlatformClient,
    PlatformClientRegistry,
    PlatformError,
    PlatformPublishError,
    TwitterClient,
)

__all__ = [
    "AIEnhancer",
    "EnhancementFailed",
    "EnhancementResult",
    "FallbackEnhancer",
    "GeminiEnhancer",
    "WebhookEnhancer",
    "AutomationWebhookClient",
    "WebhookError",
    "BackgroundTasks",
    "PlatformConnectionService",
    "PostService",
    "PublishOutcome",
    "DispatchOutcome",
    "SchedulerService",
    "LinkedInClient",
    "PlatformClient",
    "PlatformClientRegistry",
    "PlatformError",
    "PlatformPublishError",
    "TwitterClient",
]
