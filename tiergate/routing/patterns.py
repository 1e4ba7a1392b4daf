"""Static pattern table — layer 1 of the classification pipeline.

An ordered list of keyword rules mapping a task description straight to a
route and complexity level. Rules are evaluated top to bottom and the
first rule with any matching pattern wins; there is no backtracking and
no union of matches. Ordering therefore matters: within a tier, narrower
phrases sit above the broad ones they would otherwise be shadowed by,
and tier 0 rules precede everything so pure filesystem questions never
reach a model.
"""

from __future__ import annotations

import logging

from tiergate.schemas.routing import PatternMatch, PatternRule, Route
from tiergate.schemas.signals import CostOfWrong

logger = logging.getLogger(__name__)


def _rule(
    patterns: list[str],
    route: Route,
    level: int,
    confidence: float,
    cost_of_wrong: CostOfWrong,
    category: str,
) -> PatternRule:
    return PatternRule(
        patterns=patterns,
        route=route,
        level=level,
        confidence=confidence,
        cost_of_wrong=cost_of_wrong,
        category=category,
    )


# Built from PatternRule, so an empty pattern list, a level outside 0–6
# or a confidence outside (0, 1] fails at import time.
STATIC_PATTERNS: list[PatternRule] = [
    # ── Tier 0: no LLM needed ────────────────────────────────────
    _rule(
        ["list files", "show directory", "project structure",
         "folder structure", "what files", "tree"],
        Route.NO_LLM, 0, 0.95, CostOfWrong.TRIVIAL, "filesystem",
    ),
    _rule(
        ["file size", "line count", "how many lines", "how many files",
         "disk usage", "file type", "permissions", "file exists"],
        Route.NO_LLM, 0, 0.95, CostOfWrong.TRIVIAL, "filesystem",
    ),
    _rule(
        ["git status", "git log", "what changed", "recent commits",
         "which files changed", "git diff names", "branch list"],
        Route.NO_LLM, 0, 0.90, CostOfWrong.TRIVIAL, "filesystem",
    ),
    _rule(
        ["what does this import", "show imports", "show exports",
         "function signatures", "list functions", "list classes"],
        Route.NO_LLM, 0, 0.85, CostOfWrong.TRIVIAL, "filesystem",
    ),

    # ── Level 1: micro local model (1-3B) ────────────────────────
    _rule(
        ["write docstring", "add docstrings", "document this function",
         "add jsdoc", "add type hints", "add comments"],
        Route.LOCAL, 1, 0.90, CostOfWrong.TRIVIAL, "docs",
    ),
    _rule(
        ["commit message", "changelog entry", "pr description",
         "release notes", "version bump"],
        Route.LOCAL, 1, 0.90, CostOfWrong.TRIVIAL, "commit_messages",
    ),
    _rule(
        ["format this", "fix indentation", "sort imports",
         "fix whitespace", "convert tabs to spaces", "prettier"],
        Route.LOCAL, 1, 0.95, CostOfWrong.TRIVIAL, "formatting",
    ),
    _rule(
        ["simple regex", "write a regex", "regex for",
         "regular expression for", "glob pattern for"],
        Route.LOCAL, 1, 0.85, CostOfWrong.LOW, "codegen",
    ),
    _rule(
        ["rename variable", "rename function", "rename class",
         "find and replace"],
        Route.LOCAL, 1, 0.85, CostOfWrong.LOW, "refactor",
    ),

    # ── Level 2: small local model (7-8B) ────────────────────────
    _rule(
        ["convert json to yaml", "convert yaml to json", "csv to json",
         "convert format", "parse this", "serialize", "deserialize"],
        Route.LOCAL, 2, 0.90, CostOfWrong.LOW, "formatting",
    ),
    _rule(
        ["explain this function", "what does this do", "explain this code",
         "summarize this file", "what is this class for"],
        Route.LOCAL, 2, 0.85, CostOfWrong.TRIVIAL, "analysis",
    ),
    _rule(
        ["write a unit test for", "add test for", "test scaffold",
         "mock this", "create fixture", "test template"],
        Route.LOCAL, 2, 0.80, CostOfWrong.LOW, "tests",
    ),
    _rule(
        ["add error handling", "add try catch", "add validation",
         "add input validation", "null check"],
        Route.LOCAL, 2, 0.80, CostOfWrong.LOW, "codegen",
    ),
    _rule(
        ["create interface", "create type", "type definition",
         "create enum", "create model", "create schema"],
        Route.LOCAL, 2, 0.85, CostOfWrong.LOW, "codegen",
    ),

    # ── Level 3: medium local model (12-32B) ─────────────────────
    _rule(
        ["crud endpoint", "rest api endpoint", "create route",
         "api handler", "express route", "fastapi endpoint"],
        Route.LOCAL, 3, 0.80, CostOfWrong.MEDIUM, "codegen",
    ),
    _rule(
        ["implement function", "write function", "utility function",
         "helper function", "create class"],
        Route.LOCAL, 3, 0.70, CostOfWrong.MEDIUM, "codegen",
    ),
    _rule(
        ["simple refactor", "extract function", "extract method",
         "inline variable", "simplify this"],
        Route.LOCAL, 3, 0.70, CostOfWrong.MEDIUM, "refactor",
    ),
    _rule(
        ["add logging", "add metrics", "add monitoring",
         "add telemetry", "instrument"],
        Route.LOCAL, 3, 0.80, CostOfWrong.LOW, "codegen",
    ),
    _rule(
        ["readme", "documentation", "api docs", "usage example",
         "getting started guide"],
        Route.LOCAL, 3, 0.85, CostOfWrong.LOW, "docs",
    ),
    _rule(
        ["dockerfile", "docker compose", "makefile", "github action",
         "ci config", "yaml config", "terraform"],
        Route.LOCAL, 3, 0.75, CostOfWrong.MEDIUM, "devops",
    ),

    # ── Level 5+: cloud ──────────────────────────────────────────
    _rule(
        ["architect", "system design", "design pattern for",
         "how should i structure", "best approach for"],
        Route.CLOUD, 5, 0.80, CostOfWrong.HIGH, "analysis",
    ),
    _rule(
        ["security audit", "vulnerability", "penetration test",
         "threat model", "security review"],
        Route.CLOUD, 5, 0.90, CostOfWrong.CRITICAL, "analysis",
    ),
    _rule(
        ["refactor entire", "rewrite module", "migrate from",
         "major refactor", "redesign"],
        Route.CLOUD, 5, 0.75, CostOfWrong.HIGH, "refactor",
    ),
    _rule(
        ["optimize algorithm", "performance optimization",
         "reduce complexity", "big-o", "time complexity"],
        Route.CLOUD, 5, 0.70, CostOfWrong.HIGH, "analysis",
    ),
    _rule(
        ["debug this", "why is this failing", "trace this bug",
         "root cause", "investigate"],
        Route.CLOUD, 5, 0.65, CostOfWrong.HIGH, "analysis",
    ),
]


def match_patterns(
    description: str,
    rules: list[PatternRule] | None = None,
) -> PatternMatch:
    """Return the first rule with a pattern contained in ``description``.

    Matching is a case-insensitive substring test. ``rules`` defaults to
    STATIC_PATTERNS; passing another ordered list is mainly for tests.
    """
    lower = description.lower()
    table = STATIC_PATTERNS if rules is None else rules

    for rule in table:
        for pattern in rule.patterns:
            if pattern.lower() in lower:
                logger.debug(
                    "Pattern %r matched (level %d, %s)",
                    pattern, rule.level, rule.route.value,
                )
                return PatternMatch(
                    matched=True,
                    rule=rule,
                    matched_pattern=pattern,
                    confidence=rule.confidence,
                )

    return PatternMatch(matched=False)
