"""Tests for tiergate.routing.scorer — complexity scoring and level mapping."""

from __future__ import annotations

import pytest

from tiergate.routing.scorer import (
    compute_complexity_score,
    is_ambiguous,
    score_to_level,
)
from tiergate.routing.signals import extract_signals
from tiergate.schemas.signals import (
    CostOfWrong,
    Novelty,
    OutputType,
    Reversibility,
    Scope,
    TaskSignals,
)


def _make_signals(**overrides) -> TaskSignals:
    """Create TaskSignals for a minimal, low-risk task."""
    defaults = {
        "files_referenced": 0,
        "estimated_context_tokens": 0,
        "scope": Scope.FUNCTION,
        "reasoning_depth": 0.0,
        "requires_tool_chain": False,
        "output_type": OutputType.CODE_GEN,
        "novelty": Novelty.BOILERPLATE,
        "cost_of_wrong": CostOfWrong.TRIVIAL,
        "reversibility": Reversibility.EASY_UNDO,
        "language_familiarity": 0.0,
        "has_examples": False,
        "has_tests": False,
    }
    defaults.update(overrides)
    return TaskSignals(**defaults)


# ── Score ────────────────────────────────────────────────────


class TestComputeComplexityScore:
    def test_baseline_is_scope_weight(self):
        assert compute_complexity_score(_make_signals()) == pytest.approx(0.1)

    @pytest.mark.parametrize("scope, weight", [
        (Scope.FUNCTION, 0.1),
        (Scope.FILE, 0.3),
        (Scope.MODULE, 0.6),
        (Scope.SYSTEM, 0.9),
    ])
    def test_scope_weights(self, scope, weight):
        assert compute_complexity_score(_make_signals(scope=scope)) == pytest.approx(weight)

    def test_weighted_sum(self):
        signals = _make_signals(
            reasoning_depth=0.2,
            requires_tool_chain=True,
            novelty=Novelty.KNOWN_PATTERN,
            cost_of_wrong=CostOfWrong.LOW,
        )
        # 0.1 + 0.2 + 0.3 + 0.1 + 0.1
        assert compute_complexity_score(signals) == pytest.approx(0.8)

    def test_context_penalty_capped(self):
        small = _make_signals(estimated_context_tokens=6400)
        huge = _make_signals(estimated_context_tokens=10_000_000)
        assert compute_complexity_score(small) == pytest.approx(0.1 + 0.1)
        assert compute_complexity_score(huge) == pytest.approx(0.1 + 0.4)

    def test_bonuses_subtract(self):
        signals = _make_signals(
            scope=Scope.MODULE,
            language_familiarity=1.0,
            has_examples=True,
            has_tests=True,
        )
        # 0.6 - 0.1 - 0.1 - 0.1
        assert compute_complexity_score(signals) == pytest.approx(0.3)

    def test_clamped_at_zero(self):
        signals = _make_signals(language_familiarity=1.0, has_examples=True, has_tests=True)
        assert compute_complexity_score(signals) == 0.0

    def test_clamped_at_one(self):
        signals = _make_signals(
            scope=Scope.SYSTEM,
            reasoning_depth=1.0,
            requires_tool_chain=True,
            novelty=Novelty.NOVEL,
            cost_of_wrong=CostOfWrong.CRITICAL,
        )
        assert compute_complexity_score(signals) == 1.0

    @pytest.mark.parametrize("text", [
        "",
        "add a helper",
        "refactor the auth system across the codebase, then deploy, if it works iterate",
        "first analyze then refactor a.py b.py c.py d.py e.py with a novel approach",
    ])
    def test_real_descriptions_in_unit_interval(self, text):
        score = compute_complexity_score(extract_signals(text))
        assert 0.0 <= score <= 1.0


# ── Level Mapping ────────────────────────────────────────────


class TestScoreToLevel:
    @pytest.mark.parametrize("score, level", [
        (0.0, 1),
        (0.20, 2),
        (0.35, 3),
        (0.55, 4),
        (0.70, 5),
        (0.85, 6),
    ])
    def test_reference_points(self, score, level):
        assert score_to_level(score) == level

    @pytest.mark.parametrize("score, level", [
        (0.1499, 1),
        (0.15, 2),
        (0.30, 3),
        (0.50, 4),
        (0.65, 5),
        (0.80, 6),
        (1.0, 6),
    ])
    def test_band_edges(self, score, level):
        assert score_to_level(score) == level

    def test_monotonic(self):
        levels = [score_to_level(i / 1000) for i in range(1001)]
        assert all(a <= b for a, b in zip(levels, levels[1:]))


class TestAmbiguousBand:
    @pytest.mark.parametrize("score, expected", [
        (0.49, False),
        (0.50, True),
        (0.58, True),
        (0.65, True),
        (0.66, False),
    ])
    def test_band_is_closed(self, score, expected):
        assert is_ambiguous(score) is expected
