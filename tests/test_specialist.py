"""Tests for tiergate.routing.specialist — category detection and model selection."""

from __future__ import annotations

import pytest

from tiergate.routing.specialist import (
    CAPABILITY_LADDER,
    TASK_CATEGORIES,
    detect_category,
    ladder_examples,
    ladder_size,
    select_model,
    suggest_model,
)
from tiergate.schemas.config import TierGateConfig


def _make_config(**specialists: str) -> TierGateConfig:
    return TierGateConfig(specialist_models=specialists)


class TestDetectCategory:
    @pytest.mark.parametrize("text, expected", [
        ("implement a rate limiter", "codegen"),
        ("add a docstring", "docs"),
        ("add a fixture for the db", "tests"),
        ("refactor the parser", "refactor"),
        ("audit the config loader", "analysis"),
        ("draft a commit message", "commit_messages"),
        ("sort imports", "formatting"),
        ("update the dockerfile", "devops"),
        ("describe this screenshot", "vision"),
    ])
    def test_each_category(self, text, expected):
        assert detect_category(text) == expected

    def test_none_when_nothing_matches(self):
        assert detect_category("hello there") is None

    def test_earlier_category_wins(self):
        # "explain" is listed under docs before analysis
        assert detect_category("explain and summarize the module") == "docs"

    def test_short_keywords_need_whole_words(self):
        # "ci" inside "decide" does not count
        assert detect_category("decide on a name") is None

    def test_ci_as_word_is_devops(self):
        assert detect_category("fix the ci pipeline") == "devops"

    def test_categories_listed_once(self):
        assert len(set(TASK_CATEGORIES)) == len(TASK_CATEGORIES) == 9


class TestLadder:
    def test_ladder_covers_all_levels(self):
        assert sorted(CAPABILITY_LADDER) == [0, 1, 2, 3, 4, 5, 6]

    @pytest.mark.parametrize("level, size", [
        (0, "none"),
        (1, "1b-3b"),
        (2, "7b-8b"),
        (3, "12b-32b"),
        (4, "32b-70b"),
        (5, "cloud-sonnet"),
        (6, "cloud-opus"),
    ])
    def test_sizes(self, level, size):
        assert ladder_size(level) == size

    def test_unknown_level(self):
        assert ladder_size(9) is None

    def test_examples_for_local_rung(self):
        assert ladder_examples(2) == ["qwen3:8b", "llama3.1:8b", "gemma3:4b"]

    def test_no_examples_below_ladder(self):
        assert ladder_examples(0) == []
        assert ladder_examples(9) == []

    def test_examples_are_a_copy(self):
        ladder_examples(1).clear()
        assert ladder_examples(1) == ["llama3.2:1b", "qwen3:1.7b", "gemma3:1b"]


class TestSelectModel:
    def test_specialist_override_wins(self):
        config = _make_config(docs="llama3.2:3b")
        assert select_model(1, "docs", config) == ("llama3.2:3b", "specialist")

    def test_specialist_wins_even_for_cloud_levels(self):
        config = _make_config(analysis="qwen3:32b")
        assert select_model(6, "analysis", config) == ("qwen3:32b", "specialist")

    @pytest.mark.parametrize("level", [1, 2, 3, 4])
    def test_local_levels_use_ladder(self, level):
        assert select_model(level, None, _make_config()) == (None, "ladder")

    @pytest.mark.parametrize("level", [0, 5, 6])
    def test_other_levels_use_default(self, level):
        assert select_model(level, "docs", _make_config()) == (None, "default")

    def test_empty_override_ignored(self):
        config = _make_config(docs="")
        assert select_model(2, "docs", config) == (None, "ladder")


class TestSuggestModel:
    def test_specialist_model_suggested(self):
        config = _make_config(tests="qwen3:8b")
        assert suggest_model(2, "tests", config) == "qwen3:8b"

    def test_ladder_tag_otherwise(self):
        assert suggest_model(3, "tests", _make_config()) == "12b-32b"
        assert suggest_model(0, None, _make_config()) == "none"
