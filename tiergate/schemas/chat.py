"""Chat-completion result schema for the local model backend."""

from __future__ import annotations

from pydantic import BaseModel, Field


class ChatResult(BaseModel):
    """Normalized response from a single chat-completion call."""

    text: str = Field(description="Usable response text (salvaged from thinking if needed)")
    thinking: str | None = Field(
        default=None, description="Reasoning text reported separately by the model"
    )
    model: str = Field(description="Model that produced the response")
    prompt_tokens: int = Field(default=0, ge=0, description="Input tokens consumed")
    completion_tokens: int = Field(default=0, ge=0, description="Output tokens generated")
    duration_ms: int = Field(default=0, ge=0, description="Wall-clock call duration")
    done_reason: str | None = Field(default=None, description="Completion stop reason")

    @property
    def tokens_used(self) -> int:
        """Total tokens across prompt and completion."""
        return self.prompt_tokens + self.completion_tokens
