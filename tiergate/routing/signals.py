"""Signal extraction — feature vector for the heuristic scorer.

Every field of TaskSignals comes from an independent keyword or regex
heuristic over the lowercased task description. Nothing here calls a
model, reads a file or raises.
"""

from __future__ import annotations

import re
from typing import TypeVar

from tiergate.schemas.signals import (
    CostOfWrong,
    Novelty,
    OutputType,
    Reversibility,
    Scope,
    TaskSignals,
)

# Rough context cost of one referenced file
TOKENS_PER_FILE = 500

# Per-language quality of local models (higher = better local output)
LANGUAGE_FAMILIARITY: dict[str, float] = {
    "python": 0.9, "javascript": 0.85, "typescript": 0.85, "java": 0.8,
    "go": 0.75, "rust": 0.6, "cpp": 0.65, "c": 0.65, "csharp": 0.7,
    "ruby": 0.7, "php": 0.7, "swift": 0.55, "kotlin": 0.65,
    "sql": 0.8, "html": 0.9, "css": 0.85, "bash": 0.75, "shell": 0.75,
    "yaml": 0.9, "json": 0.95, "markdown": 0.9, "toml": 0.85,
}

DEFAULT_FAMILIARITY = 0.5

_EXTENSION_LANGUAGES: dict[str, str] = {
    "py": "python", "js": "javascript", "ts": "typescript",
    "go": "go", "rs": "rust", "java": "java", "rb": "ruby",
    "php": "php", "c": "c", "cpp": "cpp", "cs": "csharp",
}

_FILE_REF_PATTERNS = [
    re.compile(r"\b[\w/.-]+\.\w{1,5}\b"),  # path/to/file.ext
    re.compile(r"@[\w/.-]+"),  # @mentions
    re.compile(r"`[^`]*\.\w{1,5}`"),  # `name.ext`
]

_SCOPE_TIERS: list[tuple[Scope, re.Pattern[str]]] = [
    (Scope.SYSTEM, re.compile(
        r"across the (codebase|project|repo)|entire (codebase|project)|all files|everywhere"
    )),
    (Scope.MODULE, re.compile(
        r"this module|this package|this directory|multiple files|several files"
    )),
    (Scope.FILE, re.compile(r"this file|single file|in this file|the file")),
]

_STEP_WORDS_RE = re.compile(
    r"\b(then|next|after that|followed by|finally|first|second|third)\b"
)
_CONDITIONAL_WORDS_RE = re.compile(
    r"\b(if|unless|when|while|depending|consider|ensure|make sure)\b"
)

# Multi-clause phrasings and question forms, with their depth bonus
_DEPTH_BONUSES: list[tuple[re.Pattern[str], float]] = [
    (re.compile(r"analyze.*then.*refactor"), 0.2),
    (re.compile(r"debug.*fix.*test"), 0.2),
    (re.compile(r"understand.*implement"), 0.15),
    (re.compile(r"\bwhy\b"), 0.1),
    (re.compile(r"\bhow.*should\b"), 0.15),
]

# Iterative fix cycles only; a one-shot "fix the typo" must not match
_TOOL_CHAIN_RE = re.compile(
    r"\b(make it work|until|iterate|keep trying|back and forth"
    r"|test.*fix|fix.*test|debug.*fix|try.*different)\b"
)

_OUTPUT_TYPE_TIERS: list[tuple[OutputType, re.Pattern[str]]] = [
    (OutputType.DATA_TRANSFORM, re.compile(
        r"\b(convert|format|transform|parse|serialize|deserialize|json|yaml|csv)\b"
    )),
    (OutputType.ANALYSIS, re.compile(
        r"\b(explain|summarize|analyze|review|describe|what does)\b"
    )),
    (OutputType.CODE_MOD, re.compile(
        r"\b(refactor|rename|move|extract|inline|modify|update|change|fix)\b"
    )),
    (OutputType.TEXT, re.compile(
        r"\b(docstring|comment|readme|documentation|message|note|changelog)\b"
    )),
]

_NOVELTY_TIERS: list[tuple[Novelty, re.Pattern[str]]] = [
    (Novelty.BOILERPLATE, re.compile(
        r"\b(boilerplate|template|scaffold|skeleton|stub|placeholder)\b"
    )),
    (Novelty.KNOWN_PATTERN, re.compile(
        r"\b(crud|rest|api endpoint|config|env|setup|init)\b"
    )),
    (Novelty.NOVEL, re.compile(
        r"\b(novel|unique|custom|from scratch|new approach|innovative)\b"
    )),
    (Novelty.ADAPTATION, re.compile(
        r"\b(adapt|modify|extend|customize|adjust|tweak)\b"
    )),
]

# Security and compliance outrank refactoring, which outranks doc/style work
_COST_TIERS: list[tuple[CostOfWrong, re.Pattern[str]]] = [
    (CostOfWrong.CRITICAL, re.compile(
        r"\b(security|auth|password|credential|secret|encrypt|vulnerability"
        r"|compliance|production deploy)\b"
    )),
    (CostOfWrong.HIGH, re.compile(
        r"\b(database migration|schema change|deploy|infrastructure|payment|billing)\b"
    )),
    (CostOfWrong.MEDIUM, re.compile(
        r"\b(refactor|api change|interface change|breaking change|public api)\b"
    )),
    (CostOfWrong.TRIVIAL, re.compile(
        r"\b(test|doc|comment|format|style|lint|readme)\b"
    )),
]

_REVERSIBILITY_TIERS: list[tuple[Reversibility, re.Pattern[str]]] = [
    (Reversibility.HARD_TO_REVERSE, re.compile(
        r"\b(migration|deploy|publish|release|delete|drop|remove.*permanently)\b"
    )),
    (Reversibility.NEEDS_REVIEW, re.compile(
        r"\b(refactor|rename across|change api|modify interface)\b"
    )),
]

_LANGUAGE_RES: list[tuple[re.Pattern[str], float]] = [
    (re.compile(rf"\b{re.escape(lang)}\b"), score)
    for lang, score in LANGUAGE_FAMILIARITY.items()
]
_EXTENSION_RE = re.compile(r"\.(py|js|ts|go|rs|java|rb|php|c|cpp|cs)\b")

T = TypeVar("T")

# Word phrases need a word boundary on both sides; "e.g." and "pattern:"
# end in punctuation, so they match wherever they start a word
_EXAMPLES_RE = re.compile(
    r"\b(?:example|like this|such as|for instance|similar to)\b|\b(?:e\.g\.|pattern:)"
)
_TESTS_RE = re.compile(
    r"\b(test exists|has tests|test file|spec file|test suite|coverage)\b"
)


def _first_tier(text: str, tiers: list[tuple[T, re.Pattern[str]]], default: T) -> T:
    for value, pattern in tiers:
        if pattern.search(text):
            return value
    return default


def count_file_references(text: str) -> int:
    """Count distinct file-like references across all three pattern families."""
    found: set[str] = set()
    for pattern in _FILE_REF_PATTERNS:
        found.update(pattern.findall(text))
    return len(found)


def compute_reasoning_depth(text: str) -> float:
    """Estimate multi-step reasoning load in [0, 1]."""
    depth = min(len(_STEP_WORDS_RE.findall(text)) * 0.15, 0.45)
    depth += min(len(_CONDITIONAL_WORDS_RE.findall(text)) * 0.1, 0.3)
    for pattern, bonus in _DEPTH_BONUSES:
        if pattern.search(text):
            depth += bonus
    return min(depth, 1.0)


def detect_language_familiarity(text: str) -> float:
    """Look up the first named language, else infer one from a file extension."""
    for pattern, score in _LANGUAGE_RES:
        if pattern.search(text):
            return score
    ext_match = _EXTENSION_RE.search(text)
    if ext_match:
        lang = _EXTENSION_LANGUAGES[ext_match.group(1)]
        return LANGUAGE_FAMILIARITY.get(lang, DEFAULT_FAMILIARITY)
    return DEFAULT_FAMILIARITY


def extract_signals(description: str) -> TaskSignals:
    """Derive the TaskSignals feature vector from a task description."""
    text = description.lower()
    files = count_file_references(text)

    return TaskSignals(
        files_referenced=files,
        estimated_context_tokens=files * TOKENS_PER_FILE,
        scope=_first_tier(text, _SCOPE_TIERS, Scope.FUNCTION),
        reasoning_depth=compute_reasoning_depth(text),
        requires_tool_chain=bool(_TOOL_CHAIN_RE.search(text)),
        output_type=_first_tier(text, _OUTPUT_TYPE_TIERS, OutputType.CODE_GEN),
        novelty=_first_tier(text, _NOVELTY_TIERS, Novelty.KNOWN_PATTERN),
        cost_of_wrong=_first_tier(text, _COST_TIERS, CostOfWrong.LOW),
        reversibility=_first_tier(text, _REVERSIBILITY_TIERS, Reversibility.EASY_UNDO),
        language_familiarity=detect_language_familiarity(text),
        has_examples=bool(_EXAMPLES_RE.search(text)),
        has_tests=bool(_TESTS_RE.search(text)),
    )
