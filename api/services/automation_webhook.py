"""Client for the automation (n8n) workflow webhook.

Two actions are sent as JSON POSTs:
- schedule: fire-and-forget notice that a post was scheduled
- publish: ask the workflow to publish now and report per-platform results
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional
from uuid import UUID

import httpx

from postpilot.config import WEBHOOK_NOTIFY_TIMEOUT_SECONDS, WEBHOOK_PUBLISH_TIMEOUT_SECONDS
from postpilot.logging import get_logger

logger = get_logger(__name__)


class WebhookError(Exception):
    """The webhook could not be reached or reported failure."""


@dataclass
class WebhookPublishResponse:
    success: bool
    results: dict[str, dict[str, Any]] = field(default_factory=dict)


def credential_bundle(connections: dict, platforms: list[str]) -> dict[str, dict]:
    """Per-platform credentials for the connected platforms in the list."""
    return {
        platform: connections[platform].credentials()
        for platform in platforms
        if platform in connections
    }


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


def _iso(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.isoformat()


class AutomationWebhookClient:
    """Sends schedule and publish actions to the workflow webhook."""

    def __init__(
        self,
        url: str,
        publish_timeout: float = WEBHOOK_PUBLISH_TIMEOUT_SECONDS,
        notify_timeout: float = WEBHOOK_NOTIFY_TIMEOUT_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.url = url
        self.publish_timeout = publish_timeout
        self.notify_timeout = notify_timeout
        self.transport = transport

    @property
    def configured(self) -> bool:
        return bool(self.url)

    async def _post(self, payload: dict, timeout: float) -> httpx.Response:
        if not self.url:
            raise WebhookError("Publish webhook is not configured")
        try:
            async with httpx.AsyncClient(timeout=timeout, transport=self.transport) as client:
                response = await client.post(self.url, json=payload)
        except httpx.TimeoutException as e:
            raise WebhookError("Webhook request timed out") from e
        except httpx.RequestError as e:
            raise WebhookError(f"Webhook request failed: {e}") from e

        if not 200 <= response.status_code < 300:
            raise WebhookError(f"Webhook returned HTTP {response.status_code}")
        return response

    async def notify_scheduled(
        self,
        post_id: UUID,
        user_id: UUID,
        scheduled_at: datetime,
        platforms: list[str],
    ) -> None:
        """Tell the workflow a post was scheduled.

        Raises:
            WebhookError: on timeout, network error or non-2xx
        """
        payload = {
            "action": "schedule",
            "post_id": str(post_id),
            "user_id": str(user_id),
            "scheduled_at": _iso(scheduled_at),
            "platforms": [p.lower() for p in platforms],
            "timestamp": _timestamp(),
        }
        await self._post(payload, self.notify_timeout)
        logger.info("schedule_notification_sent", post_id=str(post_id))

    async def publish(
        self,
        post_id: Optional[UUID],
        user_id: UUID,
        content: str,
        platforms: list[str],
        credentials: dict[str, dict],
    ) -> WebhookPublishResponse:
        """Ask the workflow to publish and return its per-platform results.

        Raises:
            WebhookError: on timeout, network error, non-2xx, an unreadable
                body, results that are not keyed by platform, or success: false
        """
        payload = {
            "action": "publish",
            "post_id": str(post_id) if post_id else None,
            "user_id": str(user_id),
            "content": content,
            "platforms": [p.lower() for p in platforms],
            "credentials": credentials,
            "timestamp": _timestamp(),
        }
        response = await self._post(payload, self.publish_timeout)

        try:
            data = response.json()
        except ValueError as e:
            raise WebhookError("Webhook returned an invalid response body") from e
        if not isinstance(data, dict):
            raise WebhookError("Webhook returned an invalid response body")

        if not data.get("success"):
            raise WebhookError(data.get("error") or data.get("message") or "Webhook reported failure")

        raw_results = data.get("results") or {}
        if not isinstance(raw_results, dict):
            raise WebhookError("Webhook returned malformed per-platform results")

        results = {}
        for platform, raw in raw_results.items():
            raw = raw if isinstance(raw, dict) else {}
            entry: dict[str, Any] = {"success": bool(raw.get("success"))}
            post_ref = raw.get("postId") or raw.get("post_id")
            if post_ref:
                entry["post_id"] = str(post_ref)
            url = raw.get("url") or raw.get("post_url")
            if url:
                entry["post_url"] = url
            if not entry["success"]:
                entry["error"] = raw.get("error") or "Publish failed"
            results[str(platform).lower()] = entry

        return WebhookPublishResponse(success=True, results=results)
