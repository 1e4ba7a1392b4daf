"""Configuration schemas.

Defines the configuration bundle passed explicitly into every component:
the delegation level, routing feature flags, the local model backend,
specialist model overrides and the output quality gate. Loaded from defaults.toml by config_loader.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class LocalModelConfig(BaseModel):
    """Connection settings for the local model backend."""

    base_url: str = Field(
        default="http://localhost:11434", description="Base URL of the local Ollama server"
    )
    provider_prefix: str = Field(
        default="ollama_chat", description="LiteLLM provider prefix for local models"
    )
    default_model: str = Field(
        default="qwen2.5-coder:7b", description="Model used when none is requested"
    )
    fallback_model: str = Field(
        default="", description="Model tried once when the default fails (empty = none)"
    )
    timeout: float = Field(
        default=120.0, gt=0, description="Default timeout in seconds per model call"
    )


class RoutingSettings(BaseModel):
    """Feature flags and thresholds for the classification pipeline."""

    use_local_triage: bool = Field(
        default=True, description="Consult the local model in the ambiguous zone"
    )
    use_historical_learning: bool = Field(
        default=False, description="Let outcome history adjust heuristic levels"
    )
    enable_decomposition: bool = Field(
        default=False, description="Allow tasks to be split into subtasks"
    )
    triage_model: str = Field(
        default="", description="Model override for triage (empty = default model)"
    )
    learner_min_records: int = Field(
        default=50, ge=0, description="Total history required before the learner acts"
    )
    triage_timeout: float = Field(
        default=5.0, gt=0, description="Timeout in seconds for a triage call"
    )
    decompose_timeout: float = Field(
        default=10.0, gt=0, description="Timeout in seconds for a decomposition call"
    )


class HistorySettings(BaseModel):
    """Location of the append-only outcome log."""

    path: str = Field(
        default="~/.tiergate/history.jsonl", description="Path to the JSONL history file"
    )


class QualityGateSettings(BaseModel):
    """Which output checks the quality gate runs, and the length window."""

    enabled: bool = Field(default=True, description="Run the gate in the gate command")
    check_completeness: bool = Field(
        default=True, description="Reject outputs with placeholder markers"
    )
    check_code_parse: bool = Field(
        default=True, description="Reject code with unbalanced brackets or braces"
    )
    check_scope: bool = Field(
        default=True, description="Reject references to files outside the allowed set"
    )
    check_hedging: bool = Field(
        default=True, description="Flag excessive hedging for a retry"
    )
    check_proportionality: bool = Field(
        default=True, description="Flag outputs far off the expected token count"
    )
    min_output_length: int = Field(
        default=20, ge=0, description="Minimum trimmed output length in characters"
    )
    max_output_length: int = Field(
        default=10000, gt=0, description="Maximum trimmed output length in characters"
    )


class TierGateConfig(BaseModel):
    """Top-level configuration bundle."""

    delegation_level: int = Field(
        default=2, ge=0, le=5, description="User risk tolerance (0 = off, 5 = offline)"
    )
    routing: RoutingSettings = Field(
        default_factory=RoutingSettings, description="Classification settings"
    )
    local_model: LocalModelConfig = Field(
        default_factory=LocalModelConfig, description="Local backend settings"
    )
    specialist_models: dict[str, str] = Field(
        default_factory=dict, description="Model override per task category"
    )
    history: HistorySettings = Field(
        default_factory=HistorySettings, description="Outcome log settings"
    )
    quality_gate: QualityGateSettings = Field(
        default_factory=QualityGateSettings, description="Output quality gate settings"
    )

    def with_level(self, level: int) -> TierGateConfig:
        """Return a copy of this configuration at another delegation level."""
        return self.model_copy(update={"delegation_level": level})
