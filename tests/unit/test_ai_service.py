"""Tests for the AI enhancers."""

import asyncio
import json
from types import SimpleNamespace

import httpx
import pytest

from api.services import ai_service
from api.services.ai_service import (
    EnhancementFailed,
    EnhancementResult,
    FallbackEnhancer,
    GeminiEnhancer,
    WebhookEnhancer,
)

ENHANCE_URL = "https://n8n.test/webhook/enhance"


def _webhook_enhancer(handler) -> WebhookEnhancer:
    return WebhookEnhancer(ENHANCE_URL, transport=httpx.MockTransport(handler))


class TestWebhookEnhancer:
    @pytest.mark.asyncio
    async def test_enhance_success(self):
        seen = []

        def handler(request):
            seen.append(json.loads(request.content))
            return httpx.Response(
                200, json={"improved_content": "Shiny post", "tokens_used": 17}
            )

        result = await _webhook_enhancer(handler).enhance(
            "  rough post  ", ["LinkedIn", "twitter"], user_id="u-1"
        )

        assert result.enhanced_text == "Shiny post"
        assert result.model == "gemini-n8n"
        assert result.tokens_used == 17
        assert seen[0]["content"] == "rough post"
        assert seen[0]["platforms"] == ["linkedin", "twitter"]
        assert seen[0]["user_id"] == "u-1"
        assert "timestamp" in seen[0]

    @pytest.mark.asyncio
    async def test_enhanced_content_key_accepted(self):
        enhancer = _webhook_enhancer(
            lambda request: httpx.Response(
                200, json={"enhanced_content": "Alt key", "model": "gemini-pro"}
            )
        )

        result = await enhancer.enhance("text", ["linkedin"])

        assert result.enhanced_text == "Alt key"
        assert result.model == "gemini-pro"

    @pytest.mark.asyncio
    async def test_http_error(self):
        enhancer = _webhook_enhancer(lambda request: httpx.Response(503))

        with pytest.raises(EnhancementFailed, match="HTTP 503"):
            await enhancer.enhance("text", ["linkedin"])

    @pytest.mark.asyncio
    async def test_timeout(self):
        def handler(request):
            raise httpx.ReadTimeout("slow", request=request)

        with pytest.raises(EnhancementFailed, match="timed out"):
            await _webhook_enhancer(handler).enhance("text", ["linkedin"])

    @pytest.mark.asyncio
    async def test_empty_content(self):
        enhancer = _webhook_enhancer(lambda request: httpx.Response(200, json={"foo": "bar"}))

        with pytest.raises(EnhancementFailed, match="no content"):
            await enhancer.enhance("text", ["linkedin"])

    @pytest.mark.asyncio
    async def test_invalid_body(self):
        enhancer = _webhook_enhancer(lambda request: httpx.Response(200, text="not json"))

        with pytest.raises(EnhancementFailed):
            await enhancer.enhance("text", ["linkedin"])

    @pytest.mark.asyncio
    async def test_unconfigured(self):
        with pytest.raises(EnhancementFailed, match="not configured"):
            await WebhookEnhancer("").enhance("text", ["linkedin"])


# =============================================================================
# Gemini SDK
# =============================================================================


class FakeModel:
    def __init__(self, name, reply="Gemini text", delay=0.0, error=None):
        self.name = name
        self.reply = reply
        self.delay = delay
        self.error = error
        self.prompts = []

    async def generate_content_async(self, prompt):
        self.prompts.append(prompt)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error:
            raise self.error
        return SimpleNamespace(
            text=self.reply,
            usage_metadata=SimpleNamespace(total_token_count=99),
        )


@pytest.fixture
def gemini(monkeypatch):
    """GeminiEnhancer whose SDK model is a FakeModel."""
    configured = {}
    monkeypatch.setattr(ai_service.genai, "configure", lambda **kw: configured.update(kw))
    monkeypatch.setattr(ai_service.genai, "GenerativeModel", FakeModel)

    def _make(**model_kwargs):
        enhancer = GeminiEnhancer("key-123", model="gemini-test", timeout=0.05)
        for name, value in model_kwargs.items():
            setattr(enhancer.model_instance, name, value)
        return enhancer, configured

    return _make


class TestGeminiEnhancer:
    @pytest.mark.asyncio
    async def test_enhance_success(self, gemini):
        enhancer, configured = gemini(reply="  Gemini text  ")

        result = await enhancer.enhance("Launch day", ["linkedin", "twitter"])

        assert configured == {"api_key": "key-123"}
        assert result.enhanced_text == "Gemini text"
        assert result.model == "gemini-test"
        assert result.tokens_used == 99
        prompt = enhancer.model_instance.prompts[0]
        assert "linkedin and twitter" in prompt
        assert '"Launch day"' in prompt

    @pytest.mark.asyncio
    async def test_timeout(self, gemini):
        enhancer, _ = gemini(delay=1.0)

        with pytest.raises(EnhancementFailed, match="timed out"):
            await enhancer.enhance("Launch day", ["linkedin"])

    @pytest.mark.asyncio
    async def test_sdk_error_wrapped(self, gemini):
        enhancer, _ = gemini(error=RuntimeError("quota exceeded"))

        with pytest.raises(EnhancementFailed, match="quota exceeded"):
            await enhancer.enhance("Launch day", ["linkedin"])

    @pytest.mark.asyncio
    async def test_empty_reply(self, gemini):
        enhancer, _ = gemini(reply="   ")

        with pytest.raises(EnhancementFailed, match="empty"):
            await enhancer.enhance("Launch day", ["linkedin"])


# =============================================================================
# Fallback
# =============================================================================


class StubEnhancer:
    def __init__(self, result=None, error=None):
        self.result = result
        self.error = error
        self.calls = 0

    async def enhance(self, text, platforms, user_id=None):
        self.calls += 1
        if self.error:
            raise self.error
        return self.result


class TestFallbackEnhancer:
    @pytest.mark.asyncio
    async def test_primary_used_when_it_works(self):
        primary = StubEnhancer(EnhancementResult("primary", "a", 1))
        fallback = StubEnhancer(EnhancementResult("fallback", "b", 1))

        result = await FallbackEnhancer(primary, fallback).enhance("t", ["linkedin"])

        assert result.enhanced_text == "primary"
        assert fallback.calls == 0

    @pytest.mark.asyncio
    async def test_falls_back_on_failure(self):
        primary = StubEnhancer(error=EnhancementFailed("down"))
        fallback = StubEnhancer(EnhancementResult("fallback", "b", 1))

        result = await FallbackEnhancer(primary, fallback).enhance("t", ["linkedin"])

        assert result.enhanced_text == "fallback"
        assert primary.calls == 1

    @pytest.mark.asyncio
    async def test_both_fail(self):
        primary = StubEnhancer(error=EnhancementFailed("down"))
        fallback = StubEnhancer(error=EnhancementFailed("also down"))

        with pytest.raises(EnhancementFailed, match="also down"):
            await FallbackEnhancer(primary, fallback).enhance("t", ["linkedin"])


def test_result_metadata():
    result = EnhancementResult("text", "gemini-test", elapsed_ms=250, tokens_used=None)

    assert result.as_metadata() == {
        "enhancement_time_ms": 250,
        "model": "gemini-test",
        "tokens_used": None,
    }
