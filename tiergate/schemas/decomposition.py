"""Task decomposition schemas."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class Subtask(BaseModel):
    """One step of a decomposed task."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(description="Identifier unique within the decomposition")
    description: str = Field(min_length=1, description="What this step does")
    estimated_level: int = Field(ge=1, le=6, description="Estimated complexity level")
    depends_on: list[str] = Field(
        default_factory=list, description="Ids of subtasks that must finish first"
    )


class DecompositionResult(BaseModel):
    """Outcome of a decomposition attempt.

    ``decomposed`` is False whenever the task was left whole; ``reason``
    says why (disabled, atomic, unparseable, backend failure).
    """

    model_config = ConfigDict(frozen=True)

    decomposed: bool = Field(description="Whether the task was split")
    subtasks: list[Subtask] = Field(default_factory=list, description="Proposed subtasks")
    reason: str = Field(description="Explanation of the outcome")
