"""Routing decision schemas.

Defines the execution routes, escalation policies, static pattern rules,
per-level gate configuration and the RoutingDecision record returned by
the classification pipeline.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from tiergate.schemas.signals import CostOfWrong

# Which classification layer produced a decision: the level gate, the
# pattern table (1), the heuristic scorer (2), local triage (3) or the
# historical learner (5).
ClassificationLayer = Literal["level_gate", 1, 2, 3, 5]


class Route(StrEnum):
    """Execution tier a task is routed to."""

    NO_LLM = "no_llm"
    LOCAL = "local"
    CLOUD = "cloud"


class EscalationPolicy(StrEnum):
    """How eagerly local results are escalated to the cloud tier."""

    NONE = "none"
    IMMEDIATE = "immediate"
    STANDARD = "standard"
    TOLERANT = "tolerant"
    MINIMAL = "minimal"
    NEVER = "never"


class PatternRule(BaseModel):
    """One entry of the ordered static pattern table.

    Rules are evaluated top to bottom and the first rule with any matching
    pattern wins, so more specific rules must precede general ones.
    """

    model_config = ConfigDict(frozen=True)

    patterns: list[str] = Field(min_length=1, description="Lowercase substrings to match")
    route: Route = Field(description="Route taken when this rule matches")
    level: int = Field(ge=0, le=6, description="Complexity level assigned by this rule")
    confidence: float = Field(gt=0.0, le=1.0, description="Trust placed in this rule")
    cost_of_wrong: CostOfWrong = Field(description="Damage done if the rule misroutes")
    category: str = Field(description="Specialist category key for matched tasks")


class PatternMatch(BaseModel):
    """Outcome of a pattern table lookup."""

    model_config = ConfigDict(frozen=True)

    matched: bool = Field(description="Whether any rule matched")
    rule: PatternRule | None = Field(default=None, description="The winning rule")
    matched_pattern: str | None = Field(
        default=None, description="The pattern that triggered the match"
    )
    confidence: float = Field(
        default=0.0, ge=0.0, le=1.0, description="Confidence of the winning rule"
    )


class LevelConfig(BaseModel):
    """Gate configuration for a single delegation level."""

    model_config = ConfigDict(frozen=True)

    ceiling: int = Field(
        ge=-1, le=6, description="Highest complexity still routed locally (-1 = never)"
    )
    escalation: EscalationPolicy = Field(description="Escalation policy in force")
    skip_classification: bool = Field(description="Whether classification is bypassed")
    try_local_first: bool = Field(description="Whether local execution is attempted first")


class RoutingDecision(BaseModel):
    """Record of a single classification.

    Captures the chosen route, the complexity estimate behind it, which
    layer produced it and why.
    """

    model_config = ConfigDict(frozen=True)

    route: Route = Field(description="Selected execution tier")
    delegation_level: int = Field(ge=0, le=5, description="Delegation level in effect")
    task_complexity: int = Field(ge=0, le=6, description="Resolved complexity level")
    confidence: float = Field(ge=0.0, le=1.0, description="Confidence in the decision")
    reason: str = Field(description="Human-readable explanation")
    classification_layer: ClassificationLayer = Field(
        description="Layer that produced the decision"
    )
    escalation_policy: EscalationPolicy = Field(description="Escalation policy in force")
    suggested_model: str | None = Field(
        default=None, description="Model override or capability-ladder size tag"
    )
    specialist_key: str | None = Field(default=None, description="Task category key")
    cost_of_wrong: CostOfWrong | None = Field(
        default=None, description="Damage done if the route is wrong"
    )
