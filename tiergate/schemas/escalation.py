"""Escalation schemas.

Defines the failure signals the escalation evaluator can detect in a
model's output and the accept/reject verdict built from them.
"""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field


class FailureSignal(StrEnum):
    """Defect categories detectable in model output."""

    EMPTY_OUTPUT = "empty_output"
    REFUSAL = "refusal"
    SYNTAX_ERROR = "syntax_error"
    HALLUCINATED_IMPORTS = "hallucinated_imports"
    INCOMPLETE = "incomplete"
    REPETITION_LOOP = "repetition_loop"
    WRONG_LANGUAGE = "wrong_language"
    CONFIDENCE_CAVEAT = "confidence_caveat"
    PLACEHOLDER_MARKERS = "placeholder_markers"


class Severity(StrEnum):
    """How serious the detected signals are."""

    NONE = "none"
    MINOR = "minor"
    MAJOR = "major"


class EscalationResult(BaseModel):
    """Verdict on a produced output."""

    model_config = ConfigDict(frozen=True)

    accept: bool = Field(description="Whether the output can be used as-is")
    signals: list[FailureSignal] = Field(
        default_factory=list, description="Signals the verdict was based on"
    )
    severity: Severity = Field(description="Overall severity")
    escalation_context: str | None = Field(
        default=None, description="Summary handed to the escalation target"
    )
