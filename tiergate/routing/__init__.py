"""Layered task classification: patterns, signals, triage and the level gate."""

from tiergate.routing.engine import LEVEL_CONFIGS, TaskRouter, classify_task, resolve_level
from tiergate.routing.patterns import STATIC_PATTERNS, match_patterns
from tiergate.routing.scorer import compute_complexity_score, is_ambiguous, score_to_level
from tiergate.routing.signals import extract_signals
from tiergate.routing.specialist import detect_category, select_model
from tiergate.routing.triage import TriageClassifier, parse_triage_response

__all__ = [
    "LEVEL_CONFIGS",
    "STATIC_PATTERNS",
    "TaskRouter",
    "TriageClassifier",
    "classify_task",
    "compute_complexity_score",
    "detect_category",
    "extract_signals",
    "is_ambiguous",
    "match_patterns",
    "parse_triage_response",
    "resolve_level",
    "score_to_level",
    "select_model",
]
