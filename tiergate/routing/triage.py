"""Local model triage — layer 3 of the classification pipeline.

Consulted only for heuristic scores in the ambiguous band. Asks a local
model to place the task in one of five ordered categories and converts
the answer into a complexity level. The model's verdict is never fully
trusted: its confidence is clamped, and every failure degrades to a
moderate/level-3 default instead of raising.
"""

from __future__ import annotations

import asyncio
import logging
import re

from pydantic import ValidationError

from tiergate.prompts import render_prompt
from tiergate.providers.base import ChatClient
from tiergate.schemas.config import TierGateConfig
from tiergate.schemas.triage import TriageCategory, TriageResponse, TriageResult

logger = logging.getLogger(__name__)

CATEGORY_TO_LEVEL: dict[TriageCategory, int] = {
    TriageCategory.TRIVIAL: 1,
    TriageCategory.SIMPLE: 2,
    TriageCategory.MODERATE: 3,
    TriageCategory.COMPLEX: 5,
    TriageCategory.EXPERT: 6,
}

MIN_CONFIDENCE = 0.3
MAX_CONFIDENCE = 0.95

# Used when the category was recovered from free text with no confidence
TEXT_SCAN_CONFIDENCE = 0.7

DEFAULT_TRIAGE = TriageResult(
    category=TriageCategory.MODERATE,
    level=3,
    confidence=MIN_CONFIDENCE,
)

# Enough for {"category": "...", "confidence": 0.xx}
_TRIAGE_MAX_TOKENS = 60
_TRIAGE_TEMPERATURE = 0.1

_JSON_OBJECT_RE = re.compile(r"\{.*?\}", re.DOTALL)


def clamp_confidence(value: float) -> float:
    """Clamp a model-reported confidence into [0.3, 0.95]."""
    return max(MIN_CONFIDENCE, min(MAX_CONFIDENCE, value))


def parse_triage_response(text: str) -> tuple[TriageCategory, float | None]:
    """Decode a triage reply into a category and optional confidence.

    Stage one parses the reply (or the first ``{...}`` object in it)
    against TriageResponse. Stage two, used when the model ignored the
    schema, scans the text case-insensitively for the category names in
    order and reports no confidence.

    Raises:
        ValueError: If neither stage finds a known category.
    """
    stripped = text.strip()
    candidates = [stripped]
    json_match = _JSON_OBJECT_RE.search(stripped)
    if json_match and json_match.group(0) != stripped:
        candidates.append(json_match.group(0))

    for candidate in candidates:
        try:
            parsed = TriageResponse.model_validate_json(candidate)
        except ValidationError:
            continue
        return parsed.category, parsed.confidence

    lower = stripped.lower()
    for category in TriageCategory:
        if category.value in lower:
            return category, None

    raise ValueError(f"No triage category in response: {stripped[:80]!r}")


class TriageClassifier:
    """Classifies ambiguous tasks with a local model.

    Args:
        client: Chat client for the local backend.
        config: Configuration bundle (triage model and timeout).
    """

    def __init__(self, client: ChatClient, config: TierGateConfig) -> None:
        self._client = client
        self._config = config

    async def triage(self, description: str, context: str | None = None) -> TriageResult:
        """Classify ``description``; returns DEFAULT_TRIAGE on any failure."""
        routing = self._config.routing
        prompt = render_prompt(
            "triage", task_description=description, context=context,
        )

        try:
            result = await asyncio.wait_for(
                self._client.chat(
                    prompt,
                    model=routing.triage_model or None,
                    temperature=_TRIAGE_TEMPERATURE,
                    max_tokens=_TRIAGE_MAX_TOKENS,
                    timeout=routing.triage_timeout,
                    response_format=TriageResponse,
                ),
                timeout=routing.triage_timeout,
            )
        except (TimeoutError, RuntimeError, ValueError) as e:
            logger.warning("Triage unavailable, using default: %s", e)
            return DEFAULT_TRIAGE

        logger.debug("Triage raw response: %r", result.text)
        try:
            category, confidence = parse_triage_response(result.text)
        except ValueError as e:
            logger.warning("Triage response unusable, using default: %s", e)
            return DEFAULT_TRIAGE

        return TriageResult(
            category=category,
            level=CATEGORY_TO_LEVEL[category],
            confidence=clamp_confidence(
                TEXT_SCAN_CONFIDENCE if confidence is None else confidence
            ),
        )
