"""Configuration management for the cost anomaly engine."""

from cost_anomaly_engine.config.schema import (
    ConsolidationConfig,
    DBSCANConfig,
    EngineConfig,
    ExecutionConfig,
    ForecastConfig,
    IsolationForestConfig,
    SeasonalConfig,
)
from cost_anomaly_engine.config.loader import get_cached_config, load_config

__all__ = [
    "EngineConfig",
    "IsolationForestConfig",
    "DBSCANConfig",
    "ForecastConfig",
    "SeasonalConfig",
    "ConsolidationConfig",
    "ExecutionConfig",
    "load_config",
    "get_cached_config",
]
