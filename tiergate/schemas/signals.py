"""Task signal schemas.

Defines the feature vector the signal extractor derives from a raw task
description, along with the enumerations for each categorical feature.
"""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field


class Scope(StrEnum):
    """How much of the codebase a task touches."""

    FUNCTION = "function"
    FILE = "file"
    MODULE = "module"
    SYSTEM = "system"


class OutputType(StrEnum):
    """Kind of artifact the task is expected to produce."""

    CODE_GEN = "code_gen"
    CODE_MOD = "code_mod"
    ANALYSIS = "analysis"
    TEXT = "text"
    DATA_TRANSFORM = "data_transform"


class Novelty(StrEnum):
    """How far the task strays from well-trodden patterns."""

    BOILERPLATE = "boilerplate"
    KNOWN_PATTERN = "known_pattern"
    ADAPTATION = "adaptation"
    NOVEL = "novel"


class CostOfWrong(StrEnum):
    """Damage done if the produced output is wrong."""

    TRIVIAL = "trivial"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class Reversibility(StrEnum):
    """How easily a wrong result can be undone."""

    EASY_UNDO = "easy_undo"
    NEEDS_REVIEW = "needs_review"
    HARD_TO_REVERSE = "hard_to_reverse"


class TaskSignals(BaseModel):
    """Structured features derived once per task description.

    Every field comes from an independent heuristic over the lowercased
    text. The record is frozen; the scorer only reads it.
    """

    model_config = ConfigDict(frozen=True)

    files_referenced: int = Field(ge=0, description="Distinct file references found")
    estimated_context_tokens: int = Field(
        ge=0, description="Rough context size implied by the referenced files"
    )
    scope: Scope = Field(description="Breadth of the change")
    reasoning_depth: float = Field(
        ge=0.0, le=1.0, description="Multi-step and conditional reasoning load"
    )
    requires_tool_chain: bool = Field(
        description="Whether the task implies an iterative edit/run/fix loop"
    )
    output_type: OutputType = Field(description="Kind of artifact requested")
    novelty: Novelty = Field(description="Distance from known patterns")
    cost_of_wrong: CostOfWrong = Field(description="Damage done by a wrong answer")
    reversibility: Reversibility = Field(description="Ease of undoing a wrong answer")
    language_familiarity: float = Field(
        ge=0.0, le=1.0, description="How well local models handle the language"
    )
    has_examples: bool = Field(description="Whether the task supplies examples")
    has_tests: bool = Field(description="Whether the task mentions existing tests")
