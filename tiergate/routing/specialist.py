"""Specialist model selection.

Maps a task description to a category key and a complexity level to a
model: a configured specialist override for the category wins, otherwise
the capability ladder tells the caller what size of model the level
calls for.
"""

from __future__ import annotations

import re
from typing import Literal

from tiergate.schemas.config import TierGateConfig

ModelSource = Literal["specialist", "ladder", "default"]

TASK_CATEGORIES: tuple[str, ...] = (
    "codegen",
    "docs",
    "tests",
    "refactor",
    "analysis",
    "commit_messages",
    "formatting",
    "devops",
    "vision",
)

# Minimum model size per complexity level, with example models
CAPABILITY_LADDER: dict[int, tuple[str, list[str]]] = {
    0: ("none", []),
    1: ("1b-3b", ["llama3.2:1b", "qwen3:1.7b", "gemma3:1b"]),
    2: ("7b-8b", ["qwen3:8b", "llama3.1:8b", "gemma3:4b"]),
    3: ("12b-32b", ["qwen3:32b", "deepseek-coder-v2:16b", "codestral:22b"]),
    4: ("32b-70b", ["qwen2.5:72b", "llama3.3:70b", "deepseek-coder:33b"]),
    5: ("cloud-sonnet", ["claude-sonnet"]),
    6: ("cloud-opus", ["claude-opus"]),
}

# Checked in TASK_CATEGORIES order; the first category with a hit wins
CATEGORY_PATTERNS: dict[str, list[str]] = {
    "codegen": ["implement", "write function", "create class", "generate code",
                "build", "code for"],
    "docs": ["docstring", "documentation", "readme", "jsdoc", "comment", "explain"],
    "tests": ["test", "spec", "assertion", "mock", "fixture", "coverage"],
    "refactor": ["refactor", "rename", "extract", "inline", "simplify", "restructure"],
    "analysis": ["review", "analyze", "audit", "explain", "summarize", "find bugs"],
    "commit_messages": ["commit message", "changelog", "pr description", "release notes"],
    "formatting": ["format", "lint", "indent", "sort imports", "prettier", "convert"],
    "devops": ["dockerfile", "docker", "ci", "github action", "makefile",
               "terraform", "deploy"],
    "vision": ["screenshot", "image", "diagram", "ui", "visual", "layout"],
}


def _keyword_re(keyword: str) -> re.Pattern[str]:
    # Short keywords ("ci", "ui") must stand alone; longer ones may prefix a word
    tail = r"\b" if len(keyword) <= 3 else ""
    return re.compile(rf"\b{re.escape(keyword)}{tail}")


_CATEGORY_RES: list[tuple[str, list[re.Pattern[str]]]] = [
    (category, [_keyword_re(k) for k in CATEGORY_PATTERNS[category]])
    for category in TASK_CATEGORIES
]


def detect_category(description: str) -> str | None:
    """Return the first category whose keywords occur in ``description``."""
    lower = description.lower()
    for category, patterns in _CATEGORY_RES:
        if any(p.search(lower) for p in patterns):
            return category
    return None


def ladder_size(level: int) -> str | None:
    """Capability-ladder size tag for a complexity level."""
    entry = CAPABILITY_LADDER.get(level)
    return entry[0] if entry else None


def ladder_examples(level: int) -> list[str]:
    """Example models that fit a complexity level's ladder rung."""
    entry = CAPABILITY_LADDER.get(level)
    return list(entry[1]) if entry else []


def _is_local_size(size: str | None) -> bool:
    return size is not None and size != "none" and not size.startswith("cloud")


def select_model(
    complexity: int,
    category: str | None,
    config: TierGateConfig,
) -> tuple[str | None, ModelSource]:
    """Pick a model for a task.

    Returns ``(model, source)``. A configured specialist model for the
    category is returned with source ``"specialist"``. Local ladder
    levels return ``(None, "ladder")`` and everything else
    ``(None, "default")``; in both cases the caller's default model runs.
    """
    if category and config.specialist_models.get(category):
        return config.specialist_models[category], "specialist"

    if _is_local_size(ladder_size(complexity)):
        return None, "ladder"

    return None, "default"


def suggest_model(complexity: int, category: str | None, config: TierGateConfig) -> str | None:
    """Model hint for a routing decision: specialist override, else ladder tag."""
    model, source = select_model(complexity, category, config)
    if source == "specialist":
        return model
    return ladder_size(complexity)
