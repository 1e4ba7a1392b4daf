"""Local triage schemas.

Defines the five ordered triage categories, the structured output the
local model is asked to produce and the result handed back to the router.
"""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, field_validator


class TriageCategory(StrEnum):
    """Triage categories, ordered from least to most demanding."""

    TRIVIAL = "trivial"
    SIMPLE = "simple"
    MODERATE = "moderate"
    COMPLEX = "complex"
    EXPERT = "expert"


class TriageResponse(BaseModel):
    """Output schema requested from the local model.

    Decoding is lenient: the category is matched case-insensitively and
    the confidence is unbounded. TriageClassifier clamps it.
    """

    category: TriageCategory = Field(description="Selected category")
    confidence: float = Field(description="Model's own confidence, from 0 to 1")

    @field_validator("category", mode="before")
    @classmethod
    def _normalize_category(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip().lower()
        return value


class TriageResult(BaseModel):
    """Triage verdict used by the router."""

    model_config = ConfigDict(frozen=True)

    category: TriageCategory = Field(description="Resolved category")
    level: int = Field(ge=1, le=6, description="Complexity level for the category")
    confidence: float = Field(
        ge=0.3, le=0.95, description="Clamped confidence in the verdict"
    )
