"""Routing engine — level gate and layered task classification.

Decides, per task, whether it needs no model at all, a local model or
the cloud tier. The delegation level gates everything: level 0 sends
every task to the cloud and level 5 keeps every task local without
classifying it. Levels 1-4 run the classification layers in order:

1. static pattern table,
2. heuristic signal scoring (adjusted by outcome history when enabled),
3. local model triage for scores in the ambiguous band.

Whatever layer resolves the complexity level, a level above the
delegation level's ceiling forces the cloud route.
"""

from __future__ import annotations

import logging

from tiergate.config_loader import load_config
from tiergate.learning.history import HistoryStore, JsonlHistoryStore
from tiergate.learning.learner import HistoricalLearner
from tiergate.providers.base import ChatClient
from tiergate.routing.patterns import match_patterns
from tiergate.routing.scorer import compute_complexity_score, is_ambiguous, score_to_level
from tiergate.routing.signals import extract_signals
from tiergate.routing.specialist import detect_category, suggest_model
from tiergate.routing.triage import TriageClassifier
from tiergate.schemas.config import TierGateConfig
from tiergate.schemas.routing import (
    ClassificationLayer,
    EscalationPolicy,
    LevelConfig,
    Route,
    RoutingDecision,
)
from tiergate.schemas.signals import CostOfWrong

logger = logging.getLogger(__name__)

LEVEL_CONFIGS: dict[int, LevelConfig] = {
    0: LevelConfig(ceiling=-1, escalation=EscalationPolicy.NONE,
                   skip_classification=True, try_local_first=False),
    1: LevelConfig(ceiling=2, escalation=EscalationPolicy.IMMEDIATE,
                   skip_classification=False, try_local_first=False),
    2: LevelConfig(ceiling=3, escalation=EscalationPolicy.STANDARD,
                   skip_classification=False, try_local_first=False),
    3: LevelConfig(ceiling=5, escalation=EscalationPolicy.TOLERANT,
                   skip_classification=False, try_local_first=True),
    4: LevelConfig(ceiling=6, escalation=EscalationPolicy.MINIMAL,
                   skip_classification=False, try_local_first=True),
    5: LevelConfig(ceiling=6, escalation=EscalationPolicy.NEVER,
                   skip_classification=True, try_local_first=True),
}

# Used when a caller passes a level outside 0-5
FALLBACK_LEVEL = 2

# Heuristic confidence before the learner's adjustment
_HEURISTIC_BASE_CONFIDENCE = 0.6


def resolve_level(level: int) -> tuple[int, LevelConfig]:
    """Return ``(level, config)``, substituting level 2 for unknown levels."""
    if level not in LEVEL_CONFIGS:
        logger.warning(
            "Delegation level %r out of range, using level %d", level, FALLBACK_LEVEL,
        )
        level = FALLBACK_LEVEL
    return level, LEVEL_CONFIGS[level]


class TaskRouter:
    """Classifies tasks into routes for one configuration.

    Args:
        config: Configuration bundle.
        client: Chat client used for triage. Built from
            ``config.local_model`` on first use when omitted.
        history: Outcome history read by the learner. Defaults to the
            configured JSONL file when learning is enabled.
    """

    def __init__(
        self,
        config: TierGateConfig,
        client: ChatClient | None = None,
        history: HistoryStore | None = None,
    ) -> None:
        self._config = config
        self._client = client
        if history is None and config.routing.use_historical_learning:
            history = JsonlHistoryStore(config.history.path)
        self._learner = HistoricalLearner(history, config) if history is not None else None

    @property
    def config(self) -> TierGateConfig:
        return self._config

    def _chat_client(self) -> ChatClient:
        if self._client is None:
            from tiergate.providers.litellm_provider import LiteLLMChatClient

            self._client = LiteLLMChatClient(self._config.local_model)
        return self._client

    async def classify(self, description: str, level: int | None = None) -> RoutingDecision:
        """Route ``description`` at ``level`` (defaults to the configured level)."""
        level, level_config = resolve_level(
            self._config.delegation_level if level is None else level
        )

        if level == 0:
            decision = RoutingDecision(
                route=Route.CLOUD,
                delegation_level=0,
                task_complexity=0,
                confidence=1.0,
                reason="Level 0 (Off) - manual delegation only",
                classification_layer="level_gate",
                escalation_policy=level_config.escalation,
            )
        elif level == 5:
            decision = RoutingDecision(
                route=Route.LOCAL,
                delegation_level=5,
                task_complexity=0,
                confidence=1.0,
                reason="Level 5 (Offline) - all tasks routed local",
                classification_layer="level_gate",
                escalation_policy=level_config.escalation,
            )
        else:
            decision = await self._classify_layers(description, level, level_config)

        logger.info(
            "Routed task: layer=%s route=%s complexity=%d level=%d",
            decision.classification_layer, decision.route.value,
            decision.task_complexity, decision.delegation_level,
        )
        return decision

    async def _classify_layers(
        self,
        description: str,
        level: int,
        level_config: LevelConfig,
    ) -> RoutingDecision:
        # Layer 1: static patterns
        match = match_patterns(description)
        if match.matched and match.rule is not None:
            rule = match.rule
            if rule.level > level_config.ceiling:
                reason = (
                    f'Pattern matched "{match.matched_pattern}" (Level {rule.level}) '
                    f"exceeds ceiling ({level_config.ceiling})"
                )
            else:
                reason = f'Pattern matched "{match.matched_pattern}" -> {rule.route.value}'
            return self._decide(
                route=rule.route,
                complexity=rule.level,
                confidence=match.confidence,
                reason=reason,
                layer=1,
                level=level,
                level_config=level_config,
                category=rule.category,
                cost_of_wrong=rule.cost_of_wrong,
            )

        # Layer 2: heuristic signals
        signals = extract_signals(description)
        score = compute_complexity_score(signals)
        complexity = score_to_level(score)
        category = detect_category(description)
        logger.debug("Heuristic score %.2f -> level %d", score, complexity)

        # Layer 3: triage preempts the heuristic level inside the ambiguous band
        if self._config.routing.use_local_triage and is_ambiguous(score):
            triage = await TriageClassifier(self._chat_client(), self._config).triage(description)
            if triage.level > level_config.ceiling:
                reason = (
                    f"Triage classified as Level {triage.level}, "
                    f"exceeds ceiling ({level_config.ceiling})"
                )
            else:
                reason = f"Triage classified as Level {triage.level} -> local"
            return self._decide(
                route=Route.LOCAL,
                complexity=triage.level,
                confidence=triage.confidence,
                reason=reason,
                layer=3,
                level=level,
                level_config=level_config,
                category=category,
                cost_of_wrong=signals.cost_of_wrong,
            )

        # Historical outcomes may move the heuristic level one step
        layer: ClassificationLayer = 2
        effective = complexity
        adjustment = 0.0
        learner_note = ""
        if self._learner is not None:
            recommendation = self._learner.recommend(signals.output_type.value, complexity)
            adjustment = recommendation.confidence_adjustment
            if (recommendation.adjusted_level is not None
                    and recommendation.adjusted_level != complexity):
                effective = recommendation.adjusted_level
                layer = 5
                learner_note = (
                    f", adjusted to {effective} by learner ({recommendation.reason})"
                )

        confidence = min(1.0, max(0.1, _HEURISTIC_BASE_CONFIDENCE + adjustment))
        prefix = f"Heuristic score {score:.2f} -> Level {complexity}{learner_note}"
        if effective > level_config.ceiling:
            reason = f"{prefix}, exceeds ceiling ({level_config.ceiling})"
        else:
            reason = f"{prefix} -> local"
        return self._decide(
            route=Route.NO_LLM if effective == 0 else Route.LOCAL,
            complexity=effective,
            confidence=confidence,
            reason=reason,
            layer=layer,
            level=level,
            level_config=level_config,
            category=category,
            cost_of_wrong=signals.cost_of_wrong,
        )

    def _decide(
        self,
        *,
        route: Route,
        complexity: int,
        confidence: float,
        reason: str,
        layer: ClassificationLayer,
        level: int,
        level_config: LevelConfig,
        category: str | None,
        cost_of_wrong: CostOfWrong,
    ) -> RoutingDecision:
        """Build a decision, forcing the cloud route above the ceiling."""
        over_ceiling = complexity > level_config.ceiling
        return RoutingDecision(
            route=Route.CLOUD if over_ceiling else route,
            delegation_level=level,
            task_complexity=complexity,
            confidence=confidence,
            reason=reason,
            classification_layer=layer,
            escalation_policy=level_config.escalation,
            suggested_model=None if over_ceiling else suggest_model(
                complexity, category, self._config,
            ),
            specialist_key=category,
            cost_of_wrong=cost_of_wrong,
        )


async def classify_task(
    description: str,
    level: int | None = None,
    *,
    config: TierGateConfig | None = None,
    client: ChatClient | None = None,
    history: HistoryStore | None = None,
) -> RoutingDecision:
    """Classify ``description`` into a RoutingDecision.

    Loads the default configuration when ``config`` is omitted. ``level``
    overrides the configured delegation level for this call only.
    """
    if config is None:
        config = load_config()
    return await TaskRouter(config, client=client, history=history).classify(description, level)
