"""Tests for tiergate.routing.triage — local model triage classifier."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, patch

import httpx
import litellm
import pytest

from tiergate.providers.base import ChatClient, LocalModelError
from tiergate.providers.litellm_provider import LiteLLMChatClient
from tiergate.routing.triage import (
    DEFAULT_TRIAGE,
    TriageClassifier,
    clamp_confidence,
    parse_triage_response,
)
from tiergate.schemas.chat import ChatResult
from tiergate.schemas.config import LocalModelConfig, RoutingSettings, TierGateConfig
from tiergate.schemas.triage import TriageCategory, TriageResponse


# ── Helpers ───────────────────────────────────────────────────


def _make_config(**routing) -> TierGateConfig:
    return TierGateConfig(routing=RoutingSettings(**routing))


def _make_client(text: str = "", side_effect=None) -> AsyncMock:
    client = AsyncMock(spec=ChatClient)
    if side_effect is not None:
        client.chat.side_effect = side_effect
    else:
        client.chat.return_value = ChatResult(text=text, model="qwen2.5-coder:7b")
    return client


# ── Decoder ──────────────────────────────────────────────────


class TestParseTriageResponse:
    def test_strict_json(self):
        category, confidence = parse_triage_response(
            '{"category": "complex", "confidence": 0.8}'
        )
        assert category == TriageCategory.COMPLEX
        assert confidence == 0.8

    def test_json_embedded_in_prose(self):
        category, confidence = parse_triage_response(
            'Sure! {"category": "simple", "confidence": 0.6} Hope that helps.'
        )
        assert category == TriageCategory.SIMPLE
        assert confidence == 0.6

    def test_text_scan_fallback(self):
        category, confidence = parse_triage_response("Category: MODERATE")
        assert category == TriageCategory.MODERATE
        assert confidence is None

    def test_text_scan_uses_category_order(self):
        category, _ = parse_triage_response("somewhere between simple and expert")
        assert category == TriageCategory.SIMPLE

    def test_invalid_json_category_falls_back_to_scan(self):
        category, confidence = parse_triage_response(
            '{"category": "hard", "confidence": 0.9} maybe complex'
        )
        assert category == TriageCategory.COMPLEX
        assert confidence is None

    def test_category_case_insensitive(self):
        category, confidence = parse_triage_response('{"category": "Expert", "confidence": 0.9}')
        assert category == TriageCategory.EXPERT
        assert confidence == 0.9

    def test_out_of_range_confidence_kept_for_clamping(self):
        category, confidence = parse_triage_response('{"category": "expert", "confidence": 1.2}')
        assert category == TriageCategory.EXPERT
        assert confidence == 1.2

    def test_unknown_raises(self):
        with pytest.raises(ValueError, match="No triage category"):
            parse_triage_response("I have no idea")


class TestClampConfidence:
    @pytest.mark.parametrize("raw, expected", [
        (0.0, 0.3),
        (0.5, 0.5),
        (1.0, 0.95),
    ])
    def test_clamp(self, raw, expected):
        assert clamp_confidence(raw) == expected


# ── Classifier ───────────────────────────────────────────────


class TestTriageClassifier:
    @pytest.mark.asyncio
    async def test_category_mapped_to_level(self):
        client = _make_client('{"category": "complex", "confidence": 0.8}')
        result = await TriageClassifier(client, _make_config()).triage("Split the service")

        assert result.category == TriageCategory.COMPLEX
        assert result.level == 5
        assert result.confidence == 0.8

    @pytest.mark.parametrize("category, level", [
        ("trivial", 1),
        ("simple", 2),
        ("moderate", 3),
        ("complex", 5),
        ("expert", 6),
    ])
    @pytest.mark.asyncio
    async def test_level_table(self, category, level):
        client = _make_client(category)
        result = await TriageClassifier(client, _make_config()).triage("x")
        assert result.level == level

    @pytest.mark.asyncio
    async def test_overconfident_model_clamped(self):
        client = _make_client('{"category": "trivial", "confidence": 1.0}')
        result = await TriageClassifier(client, _make_config()).triage("x")
        assert result.confidence == 0.95

    @pytest.mark.asyncio
    @pytest.mark.parametrize("reply", [
        '{"category": "expert", "confidence": 1.2}',
        '{"category": "EXPERT", "confidence": 85}',
    ])
    async def test_out_of_range_confidence_clamped(self, reply):
        client = _make_client(reply)
        result = await TriageClassifier(client, _make_config()).triage("x")
        assert result.category == TriageCategory.EXPERT
        assert result.level == 6
        assert result.confidence == 0.95

    @pytest.mark.asyncio
    async def test_text_answer_gets_default_confidence(self):
        client = _make_client("expert")
        result = await TriageClassifier(client, _make_config()).triage("x")
        assert result.confidence == 0.7

    @pytest.mark.asyncio
    async def test_request_parameters(self):
        client = _make_client("simple")
        config = _make_config(triage_model="llama3.2:1b", triage_timeout=3)
        await TriageClassifier(client, config).triage("Add a CRUD endpoint")

        args, kwargs = client.chat.call_args
        assert "Task: Add a CRUD endpoint" in args[0]
        assert kwargs["model"] == "llama3.2:1b"
        assert kwargs["temperature"] == 0.1
        assert kwargs["timeout"] == 3
        assert kwargs["response_format"] is TriageResponse

    @pytest.mark.asyncio
    async def test_empty_triage_model_uses_client_default(self):
        client = _make_client("simple")
        await TriageClassifier(client, _make_config()).triage("x")
        assert client.chat.call_args.kwargs["model"] is None


# ── Degraded Operation ───────────────────────────────────────


class TestTriageFallback:
    @pytest.mark.asyncio
    async def test_timeout_returns_default(self):
        client = _make_client(side_effect=TimeoutError("slow"))
        result = await TriageClassifier(client, _make_config()).triage("x")
        assert result == DEFAULT_TRIAGE

    @pytest.mark.asyncio
    async def test_backend_error_returns_default(self):
        client = _make_client(side_effect=LocalModelError("down"))
        result = await TriageClassifier(client, _make_config()).triage("x")
        assert result == DEFAULT_TRIAGE

    @pytest.mark.asyncio
    @pytest.mark.parametrize("error", [ValueError("boom"), RuntimeError("boom")])
    async def test_client_error_returns_default(self, error):
        client = _make_client(side_effect=error)
        result = await TriageClassifier(client, _make_config()).triage("x")
        assert result == DEFAULT_TRIAGE

    @pytest.mark.asyncio
    async def test_litellm_permission_error_returns_default(self):
        request = httpx.Request("POST", "http://localhost:11434/api/chat")
        error = litellm.PermissionDeniedError(
            message="forbidden", model="test", llm_provider="test",
            response=httpx.Response(403, request=request),
        )
        client = LiteLLMChatClient(LocalModelConfig())
        with patch(
            "tiergate.providers.litellm_provider.litellm.acompletion",
            new_callable=AsyncMock, side_effect=error,
        ):
            result = await TriageClassifier(client, _make_config()).triage("x")
        assert result == DEFAULT_TRIAGE

    @pytest.mark.asyncio
    async def test_unknown_category_returns_default(self):
        client = _make_client("no clue")
        result = await TriageClassifier(client, _make_config()).triage("x")
        assert result == DEFAULT_TRIAGE

    @pytest.mark.asyncio
    async def test_hung_client_cut_off_by_timeout(self):
        async def _hang(*args, **kwargs):
            await asyncio.sleep(10)

        client = _make_client(side_effect=_hang)
        config = _make_config(triage_timeout=0.01)
        result = await TriageClassifier(client, config).triage("x")
        assert result == DEFAULT_TRIAGE

    def test_default_is_moderate_level_three(self):
        assert DEFAULT_TRIAGE.category == TriageCategory.MODERATE
        assert DEFAULT_TRIAGE.level == 3
        assert DEFAULT_TRIAGE.confidence == 0.3
