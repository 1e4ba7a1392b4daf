"""LiteLLM adapter for the local model backend.

Routes chat requests to a local Ollama server through litellm's unified
API. Handles thinking-model responses whose answer only appears in the
reasoning text, token accounting, timeouts and an optional one-shot
fallback model. Nothing here retries the same model.
"""

from __future__ import annotations

import logging
import re
import time

import litellm
import openai
from pydantic import BaseModel

# Suppress LiteLLM's "Give Feedback / Get Help" and "Provider List" banners
litellm.suppress_debug_info = True

from tiergate.providers.base import ChatClient, LocalModelError
from tiergate.schemas.chat import ChatResult
from tiergate.schemas.config import LocalModelConfig

logger = logging.getLogger(__name__)

# First fenced code block, fences included
_CODE_BLOCK_RE = re.compile(r"```[\w]*\n[\s\S]*?```")

# Paragraphs shorter than this are not treated as an answer
_MIN_PARAGRAPH_CHARS = 20

_THINKING_MARKER = "[Thinking model output — see thinking field]"

# Backend failures surfaced as LocalModelError. LiteLLM error classes
# subclass openai.APIError, which also covers the ones not listed here.
_BACKEND_ERRORS = (
    openai.APIError,
    litellm.APIConnectionError,
    litellm.APIError,
    litellm.AuthenticationError,
    litellm.BadRequestError,
    litellm.NotFoundError,
    litellm.RateLimitError,
    litellm.ServiceUnavailableError,
    litellm.InternalServerError,
)


def _short_error_reason(error: Exception) -> str:
    """Extract a short, user-friendly reason from a LiteLLM error."""
    error_str = str(error).lower()
    if "timeout" in error_str or isinstance(error, TimeoutError):
        return "timeout"
    if "connection" in error_str or "refused" in error_str:
        return "connection error"
    if "not found" in error_str or "404" in error_str:
        return "model not found"
    if "503" in error_str or "unavailable" in error_str:
        return "service unavailable"
    if "500" in error_str or "internal" in error_str:
        return "server error"
    return str(error)[:80]


def extract_response_from_thinking(thinking: str) -> str:
    """Salvage an answer from a thinking model's reasoning text.

    Used when the model spent its budget reasoning and left the content
    empty. Prefers the first fenced code block, then the last substantive
    paragraph, then the whole reasoning text behind a marker line.
    """
    code_match = _CODE_BLOCK_RE.search(thinking)
    if code_match:
        return code_match.group(0)

    paragraphs = [
        p for p in thinking.split("\n\n") if len(p.strip()) > _MIN_PARAGRAPH_CHARS
    ]
    if paragraphs:
        return paragraphs[-1].strip()

    return f"{_THINKING_MARKER}\n{thinking}"


class LiteLLMChatClient(ChatClient):
    """Chat client for a local Ollama server, powered by LiteLLM."""

    def __init__(self, config: LocalModelConfig) -> None:
        self._config = config

    @property
    def config(self) -> LocalModelConfig:
        """The backend configuration this client was built from."""
        return self._config

    async def chat(
        self,
        prompt: str,
        *,
        model: str | None = None,
        system: str | None = None,
        temperature: float = 0.3,
        max_tokens: int = 4096,
        timeout: float | None = None,
        response_format: type[BaseModel] | dict | None = None,
    ) -> ChatResult:
        """Send one prompt to the local model.

        When the default model fails and a distinct fallback model is
        configured, the fallback is tried once. An explicitly requested
        model never falls back.
        """
        primary = model or self._config.default_model
        effective_timeout = timeout if timeout is not None else self._config.timeout
        try:
            return await self._chat_once(
                prompt, primary, system, temperature, max_tokens,
                effective_timeout, response_format,
            )
        except (LocalModelError, TimeoutError) as primary_error:
            fallback = self._config.fallback_model
            if not fallback or model is not None or fallback == primary:
                raise
            logger.warning(
                "Local model %s failed (%s), trying fallback %s",
                primary, _short_error_reason(primary_error), fallback,
            )
            try:
                return await self._chat_once(
                    prompt, fallback, system, temperature, max_tokens,
                    effective_timeout, response_format,
                )
            except (LocalModelError, TimeoutError) as fallback_error:
                logger.debug("Fallback model %s also failed: %s", fallback, fallback_error)
            raise primary_error

    async def _chat_once(
        self,
        prompt: str,
        model: str,
        system: str | None,
        temperature: float,
        max_tokens: int,
        timeout: float,
        response_format: type[BaseModel] | dict | None,
    ) -> ChatResult:
        kwargs = self._build_completion_kwargs(
            prompt, model, system, temperature, max_tokens, timeout, response_format,
        )

        start = time.monotonic()
        try:
            response = await litellm.acompletion(**kwargs)
        except (TimeoutError, litellm.Timeout) as e:
            raise TimeoutError(
                f"Local model {model} timed out after {timeout}s"
            ) from e
        except _BACKEND_ERRORS as e:
            raise LocalModelError(
                f"Local model call to {model} failed ({_short_error_reason(e)})"
            ) from e
        duration_ms = int((time.monotonic() - start) * 1000)

        content, thinking, done_reason = self._extract_message(response)
        text = content
        if not text.strip() and thinking:
            logger.debug("Empty content from %s, salvaging from thinking text", model)
            text = extract_response_from_thinking(thinking)

        usage = getattr(response, "usage", None)
        return ChatResult(
            text=text,
            thinking=thinking,
            model=model,
            prompt_tokens=getattr(usage, "prompt_tokens", 0) or 0,
            completion_tokens=getattr(usage, "completion_tokens", 0) or 0,
            duration_ms=duration_ms,
            done_reason=done_reason,
        )

    def _build_completion_kwargs(
        self,
        prompt: str,
        model: str,
        system: str | None,
        temperature: float,
        max_tokens: int,
        timeout: float,
        response_format: type[BaseModel] | dict | None,
    ) -> dict:
        """Build the kwargs dict for litellm.acompletion."""
        messages: list[dict[str, str]] = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})

        kwargs: dict = {
            "model": f"{self._config.provider_prefix}/{model}",
            "messages": messages,
            "api_base": self._config.base_url,
            "temperature": temperature,
            "max_tokens": max_tokens,
            "timeout": float(timeout),
        }
        if response_format is not None:
            kwargs["response_format"] = response_format
        return kwargs

    @staticmethod
    def _extract_message(response: litellm.ModelResponse) -> tuple[str, str | None, str | None]:
        """Return (content, thinking, finish_reason) from a LiteLLM response."""
        if not response.choices:
            return "", None, None
        choice = response.choices[0]
        message = getattr(choice, "message", None)
        if message is None:
            return "", None, getattr(choice, "finish_reason", None)
        content = message.content or ""
        thinking = getattr(message, "reasoning_content", None) or None
        return content, thinking, getattr(choice, "finish_reason", None)
