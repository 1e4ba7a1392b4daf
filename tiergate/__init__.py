"""tiergate — delegation-level routing of coding tasks between no model, a local model and the cloud."""

__version__ = "0.1.0"

from .decomposer import TaskDecomposer, decompose_task
from .escalation import detect_failure_signals, evaluate_escalation
from .learning import HistoricalLearner, build_record, get_recommendation
from .routing import TaskRouter, classify_task

__all__ = [
    "HistoricalLearner",
    "TaskDecomposer",
    "TaskRouter",
    "build_record",
    "classify_task",
    "decompose_task",
    "detect_failure_signals",
    "evaluate_escalation",
    "get_recommendation",
]
