"""Pydantic configuration schema for the cost anomaly engine."""

from typing import Literal

from pydantic import BaseModel, Field


class IsolationForestConfig(BaseModel):
    """Isolation Forest detector configuration."""

    enabled: bool = True
    min_observations: int = Field(default=14, ge=2)
    n_trees: int = Field(default=100, ge=1)
    max_samples: int = Field(default=256, ge=2)  # Subsample size per tree
    max_depth: int = Field(default=10, ge=1)
    score_threshold: float = Field(default=0.6, ge=0, le=1)
    high_severity_score: float = Field(default=0.8, ge=0, le=1)
    expected_cost_window: int = Field(default=7, ge=1)  # Trailing days for expected cost
    service_share_threshold: float = Field(default=0.1, ge=0, le=1)  # Share of the day's total
    confidence: float = Field(default=0.85, ge=0, le=1)
    high_confidence: float = Field(default=0.95, ge=0, le=1)
    random_seed: int = Field(default=0, ge=0)  # Tree t uses seed random_seed + t


class DBSCANConfig(BaseModel):
    """DBSCAN density clustering detector configuration."""

    enabled: bool = True
    min_observations: int = Field(default=20, ge=2)
    epsilon_factor: float = Field(default=0.5, gt=0)  # Multiple of the cost std deviation
    min_points: int = Field(default=5, ge=1)
    high_severity_deviation: float = Field(default=0.5, ge=0)  # Relative deviation
    confidence: float = Field(default=0.90, ge=0, le=1)
    top_services: int = Field(default=3, ge=0)


class ForecastConfig(BaseModel):
    """Rolling forecast (ARIMA-like) detector configuration."""

    enabled: bool = True
    min_observations: int = Field(default=30, ge=2)
    window_size: int = Field(default=30, ge=2)
    z_score: float = Field(default=1.96, gt=0)  # 95% band half-width in std deviations
    band_multiplier: float = Field(default=2.0, gt=0)  # Flag beyond this many band widths
    high_severity_multiplier: float = Field(default=1.5, ge=1)
    confidence: float = Field(default=0.92, ge=0, le=1)
    top_services: int = Field(default=3, ge=0)


class SeasonalConfig(BaseModel):
    """Seasonal decomposition detector configuration."""

    enabled: bool = True
    min_observations: int = Field(default=28, ge=2)
    period: int = Field(default=7, ge=2)  # Positional slots, not calendar weekdays
    trend_window: int = Field(default=7, ge=1)
    mad_multiplier: float = Field(default=3.0, ge=0)
    high_severity_multiplier: float = Field(default=1.5, ge=1)
    refinement_passes: int = Field(default=3, ge=1)
    min_residual_ratio: float = Field(default=0.05, ge=0)  # Of the median daily cost
    confidence: float = Field(default=0.88, ge=0, le=1)
    top_services: int = Field(default=3, ge=0)


class ConsolidationConfig(BaseModel):
    """Multi-algorithm consolidation configuration."""

    agreement_boost: float = Field(default=0.05, ge=0, le=1)  # Per additional detector
    max_confidence: float = Field(default=0.99, ge=0, le=1)


class ExecutionConfig(BaseModel):
    """Detector execution configuration."""

    parallel: bool = True
    max_workers: int = Field(default=4, ge=1)
    restrict_to_window: bool = False


class EngineConfig(BaseModel):
    """Root configuration for the cost anomaly engine."""

    environment: Literal["dev", "staging", "prod"] = "dev"
    max_possible_causes: int = Field(default=4, ge=1)

    isolation_forest: IsolationForestConfig = Field(default_factory=IsolationForestConfig)
    dbscan: DBSCANConfig = Field(default_factory=DBSCANConfig)
    forecast: ForecastConfig = Field(default_factory=ForecastConfig)
    seasonal: SeasonalConfig = Field(default_factory=SeasonalConfig)
    consolidation: ConsolidationConfig = Field(default_factory=ConsolidationConfig)
    execution: ExecutionConfig = Field(default_factory=ExecutionConfig)
