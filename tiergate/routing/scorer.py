"""Complexity scorer — layer 2 of the classification pipeline."""

from __future__ import annotations

from tiergate.schemas.signals import CostOfWrong, Novelty, Scope, TaskSignals

SCOPE_WEIGHTS: dict[Scope, float] = {
    Scope.FUNCTION: 0.1,
    Scope.FILE: 0.3,
    Scope.MODULE: 0.6,
    Scope.SYSTEM: 0.9,
}

NOVELTY_WEIGHTS: dict[Novelty, float] = {
    Novelty.BOILERPLATE: 0.0,
    Novelty.KNOWN_PATTERN: 0.1,
    Novelty.ADAPTATION: 0.4,
    Novelty.NOVEL: 0.8,
}

COST_WEIGHTS: dict[CostOfWrong, float] = {
    CostOfWrong.TRIVIAL: 0.0,
    CostOfWrong.LOW: 0.1,
    CostOfWrong.MEDIUM: 0.3,
    CostOfWrong.HIGH: 0.6,
    CostOfWrong.CRITICAL: 0.9,
}

TOOL_CHAIN_WEIGHT = 0.3
CONTEXT_WINDOW_TOKENS = 32_000
MAX_CONTEXT_PENALTY = 0.4

# Scores inside this closed band are handed to local triage when enabled
AMBIGUOUS_LOW = 0.50
AMBIGUOUS_HIGH = 0.65

# Exclusive upper bounds of levels 1-5; anything above is level 6
_LEVEL_BOUNDS: list[tuple[float, int]] = [
    (0.15, 1),
    (0.30, 2),
    (0.50, 3),
    (0.65, 4),
    (0.80, 5),
]


def compute_complexity_score(signals: TaskSignals) -> float:
    """Collapse a TaskSignals vector into a complexity score in [0, 1]."""
    score = SCOPE_WEIGHTS[signals.scope]
    score += signals.reasoning_depth
    if signals.requires_tool_chain:
        score += TOOL_CHAIN_WEIGHT
    score += NOVELTY_WEIGHTS[signals.novelty]
    score += COST_WEIGHTS[signals.cost_of_wrong]

    context_ratio = signals.estimated_context_tokens / CONTEXT_WINDOW_TOKENS
    score += min(context_ratio * 0.5, MAX_CONTEXT_PENALTY)

    score -= signals.language_familiarity * 0.1
    if signals.has_examples:
        score -= 0.1
    if signals.has_tests:
        score -= 0.1

    return max(0.0, min(1.0, score))


def score_to_level(score: float) -> int:
    """Map a complexity score onto complexity levels 1-6 (monotonic)."""
    for bound, level in _LEVEL_BOUNDS:
        if score < bound:
            return level
    return 6


def is_ambiguous(score: float) -> bool:
    """Whether ``score`` falls in the band reserved for local triage."""
    return AMBIGUOUS_LOW <= score <= AMBIGUOUS_HIGH
