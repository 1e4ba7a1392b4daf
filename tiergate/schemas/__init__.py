"""Pydantic schemas shared across the tiergate engine."""

from tiergate.schemas.chat import ChatResult
from tiergate.schemas.config import (
    HistorySettings,
    LocalModelConfig,
    QualityGateSettings,
    RoutingSettings,
    TierGateConfig,
)
from tiergate.schemas.decomposition import DecompositionResult, Subtask
from tiergate.schemas.escalation import EscalationResult, FailureSignal, Severity
from tiergate.schemas.learning import HistoricalRecord, LearnerRecommendation, Outcome
from tiergate.schemas.quality_gate import GateCheck, QualityGateResult
from tiergate.schemas.routing import (
    ClassificationLayer,
    EscalationPolicy,
    LevelConfig,
    PatternMatch,
    PatternRule,
    Route,
    RoutingDecision,
)
from tiergate.schemas.signals import (
    CostOfWrong,
    Novelty,
    OutputType,
    Reversibility,
    Scope,
    TaskSignals,
)
from tiergate.schemas.triage import TriageCategory, TriageResponse, TriageResult

__all__ = [
    "ChatResult",
    "ClassificationLayer",
    "CostOfWrong",
    "DecompositionResult",
    "EscalationPolicy",
    "EscalationResult",
    "FailureSignal",
    "GateCheck",
    "HistoricalRecord",
    "HistorySettings",
    "LearnerRecommendation",
    "LevelConfig",
    "LocalModelConfig",
    "Novelty",
    "Outcome",
    "OutputType",
    "PatternMatch",
    "PatternRule",
    "QualityGateResult",
    "QualityGateSettings",
    "Reversibility",
    "Route",
    "RoutingDecision",
    "RoutingSettings",
    "Scope",
    "Severity",
    "Subtask",
    "TaskSignals",
    "TierGateConfig",
    "TriageCategory",
    "TriageResponse",
    "TriageResult",
]
