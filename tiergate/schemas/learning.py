"""Historical learning schemas.

Defines the append-only outcome record and the recommendation the
learner derives from aggregated outcomes.
"""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field


class Outcome(StrEnum):
    """What happened after a task was executed at some level."""

    SUCCESS = "success"
    ESCALATED = "escalated"
    USER_REJECTED = "user_rejected"
    UNKNOWN = "unknown"


class HistoricalRecord(BaseModel):
    """A single outcome fact, appended by the caller and never rewritten."""

    model_config = ConfigDict(frozen=True)

    task_fingerprint: str = Field(description="Similarity hash of the normalized task text")
    task_type: str = Field(description="Task type key (output type or category)")
    level_used: int = Field(ge=0, le=6, description="Complexity level the task ran at")
    outcome: Outcome = Field(description="Result of running the task")
    quality_signal: float | None = Field(
        default=None, description="Optional caller-supplied quality score"
    )
    timestamp: str = Field(description="ISO 8601 time the outcome was recorded")


class LearnerRecommendation(BaseModel):
    """Adjustment proposed by the learner for a task type and level."""

    model_config = ConfigDict(frozen=True)

    adjusted_level: int | None = Field(
        default=None, ge=0, le=6, description="Recommended level, if it should change"
    )
    confidence_adjustment: float = Field(
        default=0.0, ge=-0.2, le=0.2, description="Additive change to decision confidence"
    )
    reason: str = Field(description="Why this recommendation was made")
    sample_size: int = Field(
        ge=0, description="Records behind the recommendation or the limiting gate"
    )
