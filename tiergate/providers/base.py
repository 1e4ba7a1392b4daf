"""Abstract chat-completion client for the local model backend.

Triage and decomposition talk to the local model exclusively through
this interface, so tests can swap in an in-process fake.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from pydantic import BaseModel

from tiergate.schemas.chat import ChatResult


class LocalModelError(RuntimeError):
    """Raised when the local model backend cannot produce a response."""


class ChatClient(ABC):
    """Single-prompt chat-completion interface."""

    @abstractmethod
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
        """Send one prompt and return the normalized response.

        Args:
            prompt: User prompt text.
            model: Model override (defaults to the configured model).
            system: Optional system prompt.
            temperature: Sampling temperature.
            max_tokens: Output token limit.
            timeout: Timeout in seconds (defaults to the configured timeout).
            response_format: Optional output schema. Backends may ignore it,
                so callers must still decode defensively.

        Returns:
            ChatResult with the usable text and usage data.

        Raises:
            TimeoutError: If the call exceeds the timeout.
            LocalModelError: If the backend is unreachable or errors.
        """
