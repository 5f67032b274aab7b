"""AI text enhancement.

Two backends share one interface: the Google Generative AI SDK and the
automation enhance webhook. FallbackEnhancer tries the SDK first and
falls back to the webhook. Every failure surfaces as EnhancementFailed.
"""

import asyncio
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional, Protocol

import google.generativeai as genai
import httpx

from postpilot.config import ENHANCE_TIMEOUT_SECONDS, GEMINI_MODEL
from postpilot.logging import get_logger

logger = get_logger(__name__)


ENHANCE_PROMPT = """You are an expert social media manager.
Please enhance the following content for {platforms}.

Original Content: "{content}"

Requirements:
- Professional yet engaging tone
- Optimized for visibility on the specified platforms
- Include relevant hashtags
- Check for grammar and clarity

Return ONLY the enhanced content text, no conversational filler."""


@dataclass
class EnhancementResult:
    enhanced_text: str
    model: str
    elapsed_ms: int
    tokens_used: Optional[int] = None

    def as_metadata(self) -> dict:
        return {
            "enhancement_time_ms": self.elapsed_ms,
            "model": self.model,
            "tokens_used": self.tokens_used,
        }


class EnhancementFailed(Exception):
    """The AI service could not enhance the text."""


class AIEnhancer(Protocol):
    async def enhance(
        self, text: str, platforms: list[str], user_id: Optional[str] = None
    ) -> EnhancementResult:
        ...


def _elapsed_ms(started: float) -> int:
    return int((time.monotonic() - started) * 1000)


# =============================================================================
# Gemini SDK
# =============================================================================


class GeminiEnhancer:
    """Enhancer backed by the Google Generative AI SDK."""

    def __init__(
        self,
        api_key: str,
        model: str = GEMINI_MODEL,
        timeout: float = ENHANCE_TIMEOUT_SECONDS,
    ):
        genai.configure(api_key=api_key)
        self.model_id = model
        self.model_instance = genai.GenerativeModel(model)
        self.timeout = timeout

    async def enhance(
        self, text: str, platforms: list[str], user_id: Optional[str] = None
    ) -> EnhancementResult:
        started = time.monotonic()
        prompt = ENHANCE_PROMPT.format(platforms=" and ".join(platforms), content=text)
        try:
            response = await asyncio.wait_for(
                self.model_instance.generate_content_async(prompt),
                timeout=self.timeout,
            )
            enhanced = (response.text or "").strip()
        except asyncio.TimeoutError as e:
            raise EnhancementFailed("Gemini enhancement timed out") from e
        except Exception as e:
            raise EnhancementFailed(f"Gemini enhancement failed: {e}") from e

        if not enhanced:
            raise EnhancementFailed("Gemini returned empty content")

        usage = getattr(response, "usage_metadata", None)
        return EnhancementResult(
            enhanced_text=enhanced,
            model=self.model_id,
            elapsed_ms=_elapsed_ms(started),
            tokens_used=getattr(usage, "total_token_count", None) if usage else None,
        )


# =============================================================================
# Automation webhook
# =============================================================================


class WebhookEnhancer:
    """Enhancer backed by the automation enhance webhook."""

    def __init__(
        self,
        url: str,
        timeout: float = ENHANCE_TIMEOUT_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.url = url
        self.timeout = timeout
        self.transport = transport

    async def enhance(
        self, text: str, platforms: list[str], user_id: Optional[str] = None
    ) -> EnhancementResult:
        if not self.url:
            raise EnhancementFailed("Enhancement webhook is not configured")

        started = time.monotonic()
        payload = {
            "content": text.strip(),
            "platforms": [p.lower() for p in platforms],
            "user_id": user_id,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(self.url, json=payload)
                response.raise_for_status()
                data = response.json()
        except httpx.TimeoutException as e:
            raise EnhancementFailed("Enhancement webhook timed out") from e
        except httpx.HTTPStatusError as e:
            raise EnhancementFailed(
                f"Enhancement webhook returned HTTP {e.response.status_code}"
            ) from e
        except (httpx.RequestError, ValueError) as e:
            raise EnhancementFailed(f"Enhancement webhook failed: {e}") from e

        if not isinstance(data, dict):
            raise EnhancementFailed("Enhancement webhook returned an invalid response body")
        enhanced = data.get("improved_content") or data.get("enhanced_content")
        if not enhanced:
            raise EnhancementFailed("Enhancement webhook returned no content")

        return EnhancementResult(
            enhanced_text=enhanced,
            model=data.get("model") or "gemini-n8n",
            elapsed_ms=_elapsed_ms(started),
            tokens_used=data.get("tokens_used"),
        )


# =============================================================================
# Fallback chain
# =============================================================================


class FallbackEnhancer:
    """Try the primary enhancer, fall back to the secondary on failure."""

    def __init__(self, primary: AIEnhancer, fallback: AIEnhancer):
        self.primary = primary
        self.fallback = fallback

    async def enhance(
        self, text: str, platforms: list[str], user_id: Optional[str] = None
    ) -> EnhancementResult:
        try:
            return await self.primary.enhance(text, platforms, user_id)
        except EnhancementFailed as e:
            logger.warning("enhancement_fallback", error=str(e), user_id=user_id)
        return await self.fallback.enhance(text, platforms, user_id)
