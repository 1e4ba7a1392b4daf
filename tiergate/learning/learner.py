"""Historical learner — adjusts heuristic levels from recorded outcomes.

Looks at how tasks of the same type fared at the proposed level and
proposes a cheaper tier when they nearly always succeed, or a safer tier
when they mostly fail. Every sample-size gate must pass first; an unmet
gate yields a zero adjustment whose ``sample_size`` is the count that
fell short.
"""

from __future__ import annotations

import logging

from tiergate.config_loader import load_config
from tiergate.learning.history import HistoryStore, JsonlHistoryStore
from tiergate.schemas.config import TierGateConfig
from tiergate.schemas.learning import LearnerRecommendation, Outcome

logger = logging.getLogger(__name__)

MIN_TYPE_RECORDS = 10
MIN_LEVEL_RECORDS = 5

DEMOTE_THRESHOLD = 0.85
PROMOTE_THRESHOLD = 0.5

# Promotion stops here; level 6 is only reached by the scorer itself
MAX_PROMOTED_LEVEL = 5


class HistoricalLearner:
    """Turns outcome history into level recommendations.

    Args:
        store: History to read. The learner never writes to it.
        config: Configuration bundle (feature flag and minimum records).
    """

    def __init__(self, store: HistoryStore, config: TierGateConfig) -> None:
        self._store = store
        self._config = config

    def recommend(self, task_type: str, proposed_level: int) -> LearnerRecommendation:
        routing = self._config.routing
        if not routing.use_historical_learning:
            return LearnerRecommendation(reason="Historical learning disabled", sample_size=0)

        history = self._store.load()
        min_records = routing.learner_min_records
        if len(history) < min_records:
            return LearnerRecommendation(
                reason=f"Insufficient data ({len(history)}/{min_records} records)",
                sample_size=len(history),
            )

        relevant = [r for r in history if r.task_type == task_type]
        if len(relevant) < MIN_TYPE_RECORDS:
            return LearnerRecommendation(
                reason=f'Insufficient data for task type "{task_type}"',
                sample_size=len(relevant),
            )

        at_level = [r for r in relevant if r.level_used == proposed_level]
        if len(at_level) < MIN_LEVEL_RECORDS:
            return LearnerRecommendation(
                reason=f"Insufficient data at level {proposed_level}",
                sample_size=len(at_level),
            )

        successes = sum(1 for r in at_level if r.outcome == Outcome.SUCCESS)
        success_rate = successes / len(at_level)
        adjustment = (success_rate - 0.5) * 0.4

        adjusted_level: int | None = None
        if success_rate > DEMOTE_THRESHOLD and proposed_level > 1:
            adjusted_level = proposed_level - 1
        elif success_rate < PROMOTE_THRESHOLD and proposed_level < MAX_PROMOTED_LEVEL:
            adjusted_level = proposed_level + 1

        reason = (
            f"{task_type} at level {proposed_level}: "
            f"{success_rate * 100:.0f}% success ({len(at_level)} samples)"
        )
        logger.debug("Learner: %s -> %s", reason, adjusted_level)
        return LearnerRecommendation(
            adjusted_level=adjusted_level,
            confidence_adjustment=adjustment,
            reason=reason,
            sample_size=len(at_level),
        )


def get_recommendation(
    task_type: str,
    level: int,
    *,
    config: TierGateConfig | None = None,
    store: HistoryStore | None = None,
) -> LearnerRecommendation:
    """Recommend a level for ``task_type`` from recorded outcomes.

    Uses the default configuration and the configured JSONL history file
    when ``config`` or ``store`` are omitted.
    """
    if config is None:
        config = load_config()
    if store is None:
        store = JsonlHistoryStore(config.history.path)
    return HistoricalLearner(store, config).recommend(task_type, level)
