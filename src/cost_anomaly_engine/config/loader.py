"""Configuration loader for the cost anomaly engine."""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Callable

import yaml

from cost_anomaly_engine.config.schema import EngineConfig


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in ("true", "1", "yes", "on")


# Environment variable -> (section, field, converter)
ENV_OVERRIDES: dict[str, tuple[str, str, Callable[[str], Any]]] = {
    "ANOMALY_RANDOM_SEED": ("isolation_forest", "random_seed", int),
    "ANOMALY_PARALLEL": ("execution", "parallel", _parse_bool),
    "ANOMALY_MAX_WORKERS": ("execution", "max_workers", int),
    "ANOMALY_RESTRICT_TO_WINDOW": ("execution", "restrict_to_window", _parse_bool),
}


def _merge_sections(base: dict, override: dict) -> dict:
    """Return ``base`` updated by ``override``; nested sections merge key by key."""
    merged = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merged[key] = _merge_sections(current, value)
        else:
            merged[key] = value
    return merged


def _find_config_dir() -> Path:
    """Locate the directory holding config.yaml."""
    if config_dir := os.environ.get("CONFIG_DIR"):
        return Path(config_dir)

    cwd = Path.cwd()
    for directory in (cwd, *cwd.parents):
        candidate = directory / "config"
        if candidate.is_dir():
            return candidate

    return Path("config")


def _read_yaml(path: Path) -> dict:
    if not path.exists():
        return {}
    with open(path) as f:
        return yaml.safe_load(f) or {}


def load_config(
    config_path: str | Path | None = None,
    environment: str | None = None,
) -> EngineConfig:
    """
    Load configuration from YAML files.

    Loads config.yaml as base, then merges environment-specific overrides
    (e.g., config.dev.yaml, config.prod.yaml). Missing files fall back to
    the schema defaults.

    Args:
        config_path: Path to config directory. If None, searches for config/ directory.
        environment: Environment name (dev, staging, prod). If None, uses CONFIG_ENV
                    environment variable or defaults to 'dev'.

    Returns:
        EngineConfig: Validated configuration object.
    """
    config_dir = Path(config_path) if config_path else _find_config_dir()
    environment = environment or os.environ.get("CONFIG_ENV", "dev")

    config_data = _merge_sections(
        _read_yaml(config_dir / "config.yaml"),
        _read_yaml(config_dir / f"config.{environment}.yaml"),
    )
    config_data = _apply_env_overrides(config_data)
    config_data["environment"] = environment

    return EngineConfig(**config_data)


def _apply_env_overrides(config_data: dict) -> dict:
    """Apply ANOMALY_* environment variables on top of the file settings."""
    for env_var, (section, field, convert) in ENV_OVERRIDES.items():
        value = os.environ.get(env_var)
        if not value:
            continue
        config_data.setdefault(section, {})[field] = convert(value)

    return config_data


@lru_cache(maxsize=1)
def get_cached_config() -> EngineConfig:
    """
    Get cached configuration singleton.

    Avoids re-reading YAML when the engine is invoked repeatedly in one process.
    """
    return load_config()
