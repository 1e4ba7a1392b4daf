"""TOML configuration loader.

Loads the shipped defaults from tiergate/config/defaults.toml and merges
an optional user file over them section by section. The result is
validated into a TierGateConfig that callers pass explicitly into every
component.
"""

from __future__ import annotations

import logging
import tomllib
from pathlib import Path

from pydantic import ValidationError

from tiergate.schemas.config import TierGateConfig

logger = logging.getLogger(__name__)

# Default config directory relative to the tiergate package
_CONFIG_DIR = Path(__file__).parent / "config"
DEFAULTS_PATH = _CONFIG_DIR / "defaults.toml"

# TOML sections mapped straight onto TierGateConfig fields
_SECTIONS = ("routing", "local_model", "history", "quality_gate", "specialist_models")


class ConfigError(ValueError):
    """Raised when a configuration file cannot be parsed or validated."""


def _read_toml(path: Path) -> dict:
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")
    try:
        with open(path, "rb") as f:
            return tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Invalid TOML in {path}: {e}") from e


def _merge(base: dict, override: dict) -> dict:
    """Merge ``override`` over ``base`` one table level deep."""
    merged = {key: dict(value) if isinstance(value, dict) else value
              for key, value in base.items()}
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key].update(value)
        else:
            merged[key] = value
    return merged


def load_config(config_path: Path | None = None) -> TierGateConfig:
    """Load the tiergate configuration.

    Args:
        config_path: Optional user TOML file merged over the shipped
            defaults. When omitted, only the defaults are used.

    Returns:
        Validated TierGateConfig.

    Raises:
        FileNotFoundError: If ``config_path`` does not exist.
        ConfigError: If a file is not valid TOML or holds invalid values.
    """
    raw = _read_toml(DEFAULTS_PATH)
    if config_path is not None:
        raw = _merge(raw, _read_toml(config_path))
        logger.debug("Merged user config from %s", config_path)

    data: dict = {
        key: raw[key] for key in _SECTIONS if key in raw
    }
    general = raw.get("tiergate", {})
    if "delegation_level" in general:
        data["delegation_level"] = general["delegation_level"]

    try:
        return TierGateConfig.model_validate(data)
    except ValidationError as e:
        source = config_path or DEFAULTS_PATH
        raise ConfigError(f"Invalid configuration in {source}: {e}") from e
