"""Quality gate schemas.

A gate run produces one GateCheck per enabled check. Hard checks send a
failing output straight to escalation; soft checks earn it one retry.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from tiergate.schemas.escalation import FailureSignal


class GateCheck(BaseModel):
    """Outcome of a single gate check."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(description="Check identifier, e.g. completeness")
    passed: bool = Field(description="Whether the output passed the check")
    reason: str | None = Field(default=None, description="Why the check failed")
    hard: bool = Field(description="Hard checks escalate on failure, soft ones retry")


class QualityGateResult(BaseModel):
    """Aggregate verdict of a gate run."""

    model_config = ConfigDict(frozen=True)

    accepted: bool = Field(description="True only when every check passed")
    hard_failures: list[GateCheck] = Field(default_factory=list)
    soft_failures: list[GateCheck] = Field(default_factory=list)
    all_checks: list[GateCheck] = Field(default_factory=list)
    checks_passed: int = Field(ge=0, description="Number of passing checks")
    checks_total: int = Field(ge=0, description="Number of checks run")
    should_retry: bool = Field(description="Only soft checks failed")
    should_escalate: bool = Field(description="A hard check failed")
    failure_signals: list[FailureSignal] = Field(
        default_factory=list, description="Signals from the escalation evaluator"
    )
