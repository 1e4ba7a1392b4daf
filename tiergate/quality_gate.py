"""Quality gate — structured acceptance checks for local model output.

Runs the escalation evaluator first; a major rejection there ends the
run with a single ``escalation_signals`` check. Otherwise the enabled
checks run in a fixed order. Hard checks (completeness, code_parse,
scope_compliance, required_sections, length) escalate on failure. Soft
checks (no_hedging, proportionality) ask for one retry instead.
"""

from __future__ import annotations

import logging
import math
import re

from tiergate.escalation import (
    HEDGE_THRESHOLD,
    detect_failure_signals,
    evaluate_escalation,
    first_code_block,
    has_unmatched_braces,
    has_unmatched_brackets,
)
from tiergate.schemas.config import QualityGateSettings
from tiergate.schemas.escalation import Severity
from tiergate.schemas.quality_gate import GateCheck, QualityGateResult

logger = logging.getLogger(__name__)

# Narrower than the evaluator's marker list: HACK does not count here
_PLACEHOLDER_RE = re.compile(r"\b(TODO|TBD|FIXME|PLACEHOLDER|XXX)\b")

_HEDGE_RE = re.compile(
    r"\b(i think|maybe|possibly|not sure|might|perhaps|i believe|could be|it seems)\b",
    re.IGNORECASE,
)

# Relative paths with at least one directory part, optionally quoted
_FILE_REF_RE = re.compile(r"""(?:["'`])?(?:\./|[\w-]+/)+[\w.-]+\.\w{1,6}(?:["'`])?""")

# Bounds on actual/expected output tokens before proportionality fails
_MIN_TOKEN_RATIO = 0.2
_MAX_TOKEN_RATIO = 5.0

_CHARS_PER_TOKEN = 4


# ── Hard Checks ──────────────────────────────────────────────


def check_completeness(output: str) -> GateCheck:
    match = _PLACEHOLDER_RE.search(output)
    return GateCheck(
        name="completeness",
        passed=match is None,
        reason=f"Found placeholder marker: {match.group(0)}" if match else None,
        hard=True,
    )


def check_code_parse(output: str) -> GateCheck:
    code = first_code_block(output)
    if has_unmatched_brackets(code):
        reason = "Unmatched brackets"
    elif has_unmatched_braces(code):
        reason = "Unmatched braces"
    else:
        reason = None
    return GateCheck(name="code_parse", passed=reason is None, reason=reason, hard=True)


def _normalize_path(path: str) -> str:
    return path.replace("\\", "/")


def check_scope_compliance(output: str, allowed_files: list[str] | None = None) -> GateCheck:
    """Fail when the output references files outside ``allowed_files``.

    A reference is in scope when it equals an allowed path or either one
    is a suffix of the other, so ``./src/app.py`` matches ``src/app.py``.
    """
    if not allowed_files:
        return GateCheck(name="scope_compliance", passed=True, hard=True)

    allowed = {_normalize_path(f) for f in allowed_files}
    out_of_scope = []
    for ref in _FILE_REF_RE.findall(output):
        path = _normalize_path(re.sub(r"[\"'`]", "", ref))
        if path in allowed:
            continue
        if any(path.endswith(a) or a.endswith(path) for a in allowed):
            continue
        out_of_scope.append(path)

    return GateCheck(
        name="scope_compliance",
        passed=not out_of_scope,
        reason=f"Files outside scope: {', '.join(out_of_scope)}" if out_of_scope else None,
        hard=True,
    )


def check_required_sections(output: str, required_sections: list[str] | None = None) -> GateCheck:
    if not required_sections:
        return GateCheck(name="required_sections", passed=True, hard=True)

    missing = [
        section for section in required_sections
        if not re.search(rf"\b{re.escape(section)}\b", output, re.IGNORECASE)
    ]
    return GateCheck(
        name="required_sections",
        passed=not missing,
        reason=f"Missing sections: {', '.join(missing)}" if missing else None,
        hard=True,
    )


def check_length(output: str, min_length: int, max_length: int) -> GateCheck:
    length = len(output.strip())
    if length < min_length:
        reason = f"Output too short: {length} chars (min {min_length})"
    elif length > max_length:
        reason = f"Output too long: {length} chars (max {max_length})"
    else:
        reason = None
    return GateCheck(name="length", passed=reason is None, reason=reason, hard=True)


# ── Soft Checks ──────────────────────────────────────────────


def check_no_hedging(output: str) -> GateCheck:
    count = len(_HEDGE_RE.findall(output))
    excessive = count >= HEDGE_THRESHOLD
    return GateCheck(
        name="no_hedging",
        passed=not excessive,
        reason=f"Excessive hedging: {count} instances" if excessive else None,
        hard=False,
    )


def check_proportionality(output: str, expected_tokens: int | None = None) -> GateCheck:
    """Compare a rough token count (4 chars per token) with the expected one."""
    if not expected_tokens or expected_tokens <= 0:
        return GateCheck(name="proportionality", passed=True, hard=False)

    actual = math.ceil(len(output) / _CHARS_PER_TOKEN)
    ratio = actual / expected_tokens
    if ratio < _MIN_TOKEN_RATIO:
        reason = f"Output disproportionately short: {actual} tokens vs {expected_tokens} expected"
    elif ratio > _MAX_TOKEN_RATIO:
        reason = f"Output disproportionately long: {actual} tokens vs {expected_tokens} expected"
    else:
        reason = None
    return GateCheck(name="proportionality", passed=reason is None, reason=reason, hard=False)


# ── Gate ─────────────────────────────────────────────────────


def run_quality_gate(
    output: str,
    settings: QualityGateSettings | None = None,
    *,
    expected_language: str | None = None,
    allowed_files: list[str] | None = None,
    required_sections: list[str] | None = None,
    expected_output_tokens: int | None = None,
) -> QualityGateResult:
    """Run the quality gate over a model output.

    Args:
        output: Text produced by the model.
        settings: Which checks to run and the length window. Defaults
            to QualityGateSettings().
        expected_language: Enables the evaluator's language and syntax
            checks.
        allowed_files: Paths the output may reference. Empty or None
            disables the scope check.
        required_sections: Terms that must appear as whole words,
            case-insensitively.
        expected_output_tokens: Expected output size for the
            proportionality check.

    Returns:
        QualityGateResult. ``should_escalate`` is set by any hard
        failure and ``should_retry`` only when every failure is soft.
    """
    settings = settings or QualityGateSettings()

    signals = detect_failure_signals(output, expected_language)
    escalation = evaluate_escalation(signals)
    if not escalation.accept and escalation.severity == Severity.MAJOR:
        check = GateCheck(
            name="escalation_signals",
            passed=False,
            reason=escalation.escalation_context,
            hard=True,
        )
        logger.info("Quality gate short-circuited: %s", escalation.escalation_context)
        return QualityGateResult(
            accepted=False,
            hard_failures=[check],
            all_checks=[check],
            checks_passed=0,
            checks_total=1,
            should_retry=False,
            should_escalate=True,
            failure_signals=signals,
        )

    checks: list[GateCheck] = []
    if settings.check_completeness:
        checks.append(check_completeness(output))
    if settings.check_code_parse:
        checks.append(check_code_parse(output))
    if settings.check_scope:
        checks.append(check_scope_compliance(output, allowed_files))
    checks.append(check_required_sections(output, required_sections))
    checks.append(check_length(output, settings.min_output_length, settings.max_output_length))
    if settings.check_hedging:
        checks.append(check_no_hedging(output))
    if settings.check_proportionality:
        checks.append(check_proportionality(output, expected_output_tokens))

    hard_failures = [c for c in checks if c.hard and not c.passed]
    soft_failures = [c for c in checks if not c.hard and not c.passed]
    if hard_failures or soft_failures:
        logger.debug(
            "Quality gate failures: %s",
            ", ".join(c.name for c in hard_failures + soft_failures),
        )

    return QualityGateResult(
        accepted=not hard_failures and not soft_failures,
        hard_failures=hard_failures,
        soft_failures=soft_failures,
        all_checks=checks,
        checks_passed=sum(1 for c in checks if c.passed),
        checks_total=len(checks),
        should_retry=not hard_failures and bool(soft_failures),
        should_escalate=bool(hard_failures),
        failure_signals=signals,
    )
