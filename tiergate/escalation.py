"""Escalation evaluator — quality gate for local model output.

Scans a produced output for failure signals (empty output, refusals,
repetition loops, truncation, wrong language, hedging, placeholders,
broken syntax) and turns the signal list into an accept/reject verdict.
A critical signal or any two signals reject the output; a single minor
signal is accepted with a warning.
"""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Iterable

from tiergate.schemas.escalation import EscalationResult, FailureSignal, Severity

logger = logging.getLogger(__name__)

CRITICAL_SIGNALS: frozenset[FailureSignal] = frozenset({
    FailureSignal.EMPTY_OUTPUT,
    FailureSignal.REFUSAL,
    FailureSignal.REPETITION_LOOP,
})

MIN_OUTPUT_CHARS = 10
HEDGE_THRESHOLD = 3

# Allowed net bracket drift before output counts as broken
_MAX_DEPTH_DRIFT = 2

_REFUSAL_RE = re.compile(
    r"as an ai|i cannot|i'm not able|i can't help|i apologize but", re.IGNORECASE,
)

# A 50+ character run repeated at least three times back to back
_REPETITION_RE = re.compile(r"(.{50,})\1{2,}")

_HEDGE_RE = re.compile(
    r"\b(i think|maybe|possibly|not sure|might|perhaps|i believe)\b", re.IGNORECASE,
)

# Case-sensitive: lowercase "todo" in prose is not a marker
_PLACEHOLDER_RE = re.compile(r"\b(TODO|TBD|FIXME|PLACEHOLDER|XXX|HACK)\b")

_CODE_BLOCK_RE = re.compile(r"```[\w]*\n([\s\S]*?)```")

LANGUAGE_INDICATORS: dict[str, list[re.Pattern[str]]] = {
    "python": [
        re.compile(r"\bdef\s+\w+\("),
        re.compile(r"\bimport\s+\w+"),
        re.compile(r"\bclass\s+\w+:"),
        re.compile(r"^\s*#.*$", re.MULTILINE),
    ],
    "javascript": [
        re.compile(r"\bfunction\s+\w+\("),
        re.compile(r"\bconst\s+\w+\s*="),
        re.compile(r"=>\s*\{"),
        re.compile(r"\brequire\("),
    ],
    "typescript": [
        re.compile(r":\s*(string|number|boolean)\b"),
        re.compile(r"\binterface\s+"),
        re.compile(r"\btype\s+\w+\s*="),
    ],
    "java": [
        re.compile(r"\bpublic\s+(class|static|void)"),
        re.compile(r"System\.out\.print"),
    ],
    "go": [
        re.compile(r"\bfunc\s+\w+\("),
        re.compile(r"\bpackage\s+\w+"),
        re.compile(r"\bfmt\.\w+"),
    ],
    "rust": [
        re.compile(r"\bfn\s+\w+\("),
        re.compile(r"\blet\s+mut\s+"),
        re.compile(r"\bimpl\s+"),
    ],
}


def _indicator_hits(output: str, language: str) -> int:
    return sum(1 for p in LANGUAGE_INDICATORS[language] if p.search(output))


def _has_repetition(output: str) -> bool:
    # "." never crosses a newline, so every match lives inside one line
    return any(_REPETITION_RE.search(line) for line in output.splitlines())


def _looks_incomplete(trimmed: str) -> bool:
    if trimmed.endswith("..."):
        return True
    if trimmed.count("{") - trimmed.count("}") > _MAX_DEPTH_DRIFT:
        return True
    return trimmed.count("(") - trimmed.count(")") > _MAX_DEPTH_DRIFT


def is_wrong_language(output: str, expected_language: str) -> bool:
    """Whether another known language dominates the expected one.

    Only languages with indicator patterns can be judged; for any other
    expected language this returns False.
    """
    expected = expected_language.lower()
    if expected not in LANGUAGE_INDICATORS:
        return False

    expected_hits = _indicator_hits(output, expected)
    for language in LANGUAGE_INDICATORS:
        if language == expected:
            continue
        hits = _indicator_hits(output, language)
        if hits >= 2 and hits > expected_hits:
            logger.debug("Output looks like %s (%d hits), expected %s", language, hits, expected)
            return True
    return False


def has_unmatched_brackets(code: str) -> bool:
    """Whether ``()`` or ``[]`` drift more than two levels out of balance."""
    parens = brackets = 0
    for ch in code:
        if ch == "(":
            parens += 1
        elif ch == ")":
            parens -= 1
        elif ch == "[":
            brackets += 1
        elif ch == "]":
            brackets -= 1
        if parens < -_MAX_DEPTH_DRIFT or brackets < -_MAX_DEPTH_DRIFT:
            return True
    return abs(parens) > _MAX_DEPTH_DRIFT or abs(brackets) > _MAX_DEPTH_DRIFT


def has_unmatched_braces(code: str) -> bool:
    """Whether ``{}`` drift more than two levels out of balance."""
    braces = 0
    for ch in code:
        if ch == "{":
            braces += 1
        elif ch == "}":
            braces -= 1
        if braces < -_MAX_DEPTH_DRIFT:
            return True
    return abs(braces) > _MAX_DEPTH_DRIFT


def first_code_block(output: str) -> str:
    """Body of the first fenced code block, or the whole output if there is none."""
    code_match = _CODE_BLOCK_RE.search(output)
    return code_match.group(1) if code_match else output


def has_obvious_syntax_errors(output: str, language: str) -> bool:
    """Cheap syntax sanity check over the first fenced block (or the whole output)."""
    code = first_code_block(output)

    language = language.lower()
    if language == "json":
        try:
            json.loads(code)
        except (ValueError, RecursionError):
            return True
        return False
    if language == "python":
        return has_unmatched_brackets(code)
    return has_unmatched_brackets(code) or has_unmatched_braces(code)


def detect_failure_signals(
    output: str,
    expected_language: str | None = None,
) -> list[FailureSignal]:
    """Collect failure signals from a model output, in detection order.

    Near-empty output short-circuits to ``[EMPTY_OUTPUT]``. Language and
    syntax checks only run when ``expected_language`` is given.
    """
    trimmed = output.strip()
    if len(trimmed) < MIN_OUTPUT_CHARS:
        return [FailureSignal.EMPTY_OUTPUT]

    signals: list[FailureSignal] = []

    if _REFUSAL_RE.search(output):
        signals.append(FailureSignal.REFUSAL)

    if _has_repetition(output):
        signals.append(FailureSignal.REPETITION_LOOP)

    if _looks_incomplete(trimmed):
        signals.append(FailureSignal.INCOMPLETE)

    if expected_language and is_wrong_language(output, expected_language):
        signals.append(FailureSignal.WRONG_LANGUAGE)

    if len(_HEDGE_RE.findall(output)) >= HEDGE_THRESHOLD:
        signals.append(FailureSignal.CONFIDENCE_CAVEAT)

    if _PLACEHOLDER_RE.search(output):
        signals.append(FailureSignal.PLACEHOLDER_MARKERS)

    if expected_language and has_obvious_syntax_errors(output, expected_language):
        signals.append(FailureSignal.SYNTAX_ERROR)

    return signals


def _coerce_signals(signals: Iterable[FailureSignal | str]) -> list[FailureSignal]:
    coerced: list[FailureSignal] = []
    for signal in signals:
        try:
            coerced.append(FailureSignal(signal))
        except ValueError:
            logger.warning("Ignoring unknown failure signal: %r", signal)
    return coerced


def evaluate_escalation(signals: Iterable[FailureSignal | str]) -> EscalationResult:
    """Turn detected signals into an accept/reject verdict."""
    found = _coerce_signals(signals)
    if not found:
        return EscalationResult(accept=True, signals=[], severity=Severity.NONE)

    if len(found) >= 2 or any(s in CRITICAL_SIGNALS for s in found):
        return EscalationResult(
            accept=False,
            signals=found,
            severity=Severity.MAJOR,
            escalation_context="Local model failed: " + ", ".join(s.value for s in found),
        )

    return EscalationResult(accept=True, signals=found, severity=Severity.MINOR)
