"""Outcome history and the historical learner."""

from tiergate.learning.history import (
    HistoryStore,
    InMemoryHistoryStore,
    JsonlHistoryStore,
    build_record,
    fingerprint,
    normalize_task,
)
from tiergate.learning.learner import HistoricalLearner, get_recommendation

__all__ = [
    "HistoricalLearner",
    "HistoryStore",
    "InMemoryHistoryStore",
    "JsonlHistoryStore",
    "build_record",
    "fingerprint",
    "get_recommendation",
    "normalize_task",
]
