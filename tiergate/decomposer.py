"""Task decomposer.

Asks a local model to split a large task into subtasks with their own
complexity estimates and dependencies, so each piece can be routed on
its own. Off by default. Every failure, from a disabled flag to a dead
backend, comes back as ``decomposed=False`` with a reason rather than an
exception.
"""

from __future__ import annotations

import asyncio
import json
import logging

from tiergate.config_loader import load_config
from tiergate.prompts import render_prompt
from tiergate.providers.base import ChatClient
from tiergate.schemas.config import TierGateConfig
from tiergate.schemas.decomposition import DecompositionResult, Subtask

logger = logging.getLogger(__name__)

MIN_SUBTASK_LEVEL = 1
MAX_SUBTASK_LEVEL = 6
DEFAULT_SUBTASK_LEVEL = 3

_DECOMPOSE_TEMPERATURE = 0.2
_DECOMPOSE_MAX_TOKENS = 1000


def _first_json_object(text: str) -> dict:
    """Decode the first top-level JSON object embedded in ``text``."""
    decoder = json.JSONDecoder()
    start = text.find("{")
    while start != -1:
        try:
            value, _ = decoder.raw_decode(text, start)
        except json.JSONDecodeError:
            start = text.find("{", start + 1)
            continue
        if isinstance(value, dict):
            return value
        start = text.find("{", start + 1)
    raise ValueError("No JSON object in decomposition response")


def _clamp_level(raw: object) -> int:
    try:
        level = int(float(raw))  # type: ignore[arg-type]
    except (TypeError, ValueError, OverflowError):
        level = DEFAULT_SUBTASK_LEVEL
    return max(MIN_SUBTASK_LEVEL, min(MAX_SUBTASK_LEVEL, level))


def parse_decomposition_response(text: str) -> list[Subtask]:
    """Extract subtasks from a model reply.

    Entries without a description are dropped. Missing ids become the
    entry's 1-based position among the kept entries, missing levels
    default to 3, and levels are clamped to 1–6.

    Raises:
        ValueError: If the reply holds no decodable JSON object.
    """
    data = _first_json_object(text)
    raw_subtasks = data.get("subtasks")
    if not isinstance(raw_subtasks, list):
        return []

    kept = [
        s for s in raw_subtasks
        if isinstance(s, dict)
        and isinstance(s.get("description"), str)
        and s["description"].strip()
    ]

    subtasks: list[Subtask] = []
    for index, raw in enumerate(kept, start=1):
        raw_id = raw.get("id")
        depends_on = raw.get("depends_on")
        subtasks.append(Subtask(
            id=str(raw_id) if raw_id is not None else str(index),
            description=raw["description"].strip(),
            estimated_level=_clamp_level(raw.get("level", DEFAULT_SUBTASK_LEVEL)),
            depends_on=[str(d) for d in depends_on] if isinstance(depends_on, list) else [],
        ))
    return subtasks


class TaskDecomposer:
    """Splits tasks into subtasks with a local model.

    Args:
        client: Chat client for the local backend.
        config: Configuration bundle (feature flag and timeout).
    """

    def __init__(self, client: ChatClient, config: TierGateConfig) -> None:
        self._client = client
        self._config = config

    async def decompose(self, description: str) -> DecompositionResult:
        routing = self._config.routing
        if not routing.enable_decomposition:
            return DecompositionResult(decomposed=False, reason="Decomposition disabled")

        prompt = render_prompt("decompose", task_description=description)
        try:
            result = await asyncio.wait_for(
                self._client.chat(
                    prompt,
                    temperature=_DECOMPOSE_TEMPERATURE,
                    max_tokens=_DECOMPOSE_MAX_TOKENS,
                    timeout=routing.decompose_timeout,
                ),
                timeout=routing.decompose_timeout,
            )
        except (TimeoutError, RuntimeError, ValueError) as e:
            logger.warning("Decomposition unavailable: %s", e)
            return DecompositionResult(decomposed=False, reason="Decomposition failed")

        logger.debug("Decomposition raw response: %r", result.text)
        try:
            subtasks = parse_decomposition_response(result.text)
        except ValueError as e:
            logger.warning("Decomposition response unusable: %s", e)
            return DecompositionResult(
                decomposed=False, reason="Could not parse decomposition response",
            )

        if not subtasks:
            return DecompositionResult(decomposed=False, reason="Could not decompose")
        if len(subtasks) == 1:
            return DecompositionResult(decomposed=False, reason="Task is atomic")

        logger.info("Decomposed task into %d subtasks", len(subtasks))
        return DecompositionResult(
            decomposed=True,
            subtasks=subtasks,
            reason=f"Decomposed into {len(subtasks)} subtasks",
        )


async def decompose_task(
    description: str,
    *,
    config: TierGateConfig | None = None,
    client: ChatClient | None = None,
) -> DecompositionResult:
    """Decompose ``description`` using the default configuration and local backend."""
    if config is None:
        config = load_config()
    if client is None:
        from tiergate.providers.litellm_provider import LiteLLMChatClient

        client = LiteLLMChatClient(config.local_model)
    return await TaskDecomposer(client, config).decompose(description)
