"""Seasonal decomposition residual detection."""

from dataclasses import dataclass
from datetime import datetime
from typing import Sequence

import numpy as np

from cost_anomaly_engine.analysis.base import CostAnomalyDetector
from cost_anomaly_engine.analysis.causes import seasonal_possible_causes
from cost_anomaly_engine.analysis.stats import (
    centered_moving_average,
    daily_costs,
    median,
    median_absolute_deviation,
    top_services,
)
from cost_anomaly_engine.config.schema import SeasonalConfig
from cost_anomaly_engine.models.anomaly import AnomalySeverity, AnomalyType, CostAnomaly
from cost_anomaly_engine.models.observation import CostObservation


@dataclass
class Decomposition:
    """Additive split of a series: cost = trend + seasonal + residual."""

    trend: np.ndarray
    seasonal: np.ndarray
    residual: np.ndarray


def decompose(
    costs: np.ndarray,
    period: int = 7,
    trend_window: int = 7,
    passes: int = 1,
) -> Decomposition:
    """
    Decompose a series into trend, repeating seasonal profile and residual.

    Seasonal slots are positional (index mod ``period``), not calendar weekdays.
    Each pass estimates the trend as a centered moving average of the
    deseasonalised series, then rebuilds the seasonal profile from what the
    trend leaves behind. With more than one pass the profile is centred to
    zero mean so trend and seasonal do not trade a constant offset between
    passes; a single pass keeps the plain per-slot means.
    """
    n = len(costs)
    slots = np.arange(n) % period
    seasonal = np.zeros(n)
    trend = np.zeros(n)

    for _ in range(passes):
        trend = centered_moving_average(costs - seasonal, trend_window)
        detrended = costs - trend
        profile = np.array(
            [detrended[slots == slot].mean() if np.any(slots == slot) else 0.0 for slot in range(period)]
        )
        if passes > 1:
            profile -= profile.mean()
        seasonal = profile[slots]

    return Decomposition(trend=trend, seasonal=seasonal, residual=costs - trend - seasonal)


def residual_threshold(residuals: np.ndarray, mad_multiplier: float = 3.0) -> float:
    """Robust cutoff: median(|r|) + k * MAD(r)."""
    return median(np.abs(residuals)) + mad_multiplier * median_absolute_deviation(residuals)


class SeasonalDetector(CostAnomalyDetector):
    """
    Flag days the weekly pattern and local trend cannot explain.

    Residuals must exceed both the robust MAD threshold and a noise floor of
    ``min_residual_ratio`` times the median daily cost.
    """

    detection_method = "Seasonal Decomposition"

    def __init__(self, config: SeasonalConfig | None = None, max_possible_causes: int = 4):
        self.config = config or SeasonalConfig()
        super().__init__(self.config.min_observations, max_possible_causes)

    def _detect(
        self,
        observations: Sequence[CostObservation],
        evaluated_at: datetime,
    ) -> list[CostAnomaly]:
        costs = daily_costs(observations)
        decomposition = decompose(
            costs,
            period=self.config.period,
            trend_window=self.config.trend_window,
            passes=self.config.refinement_passes,
        )

        threshold = max(
            residual_threshold(decomposition.residual, self.config.mad_multiplier),
            self.config.min_residual_ratio * median(costs),
        )
        if threshold <= 0:
            return []

        anomalies = []
        for i, observation in enumerate(observations):
            residual = float(decomposition.residual[i])
            if abs(residual) <= threshold:
                continue

            expected = observation.daily_cost - residual
            high = abs(residual) > threshold * self.config.high_severity_multiplier

            anomalies.append(
                self._build_anomaly(
                    observation,
                    evaluated_at,
                    expected_cost=expected,
                    anomaly_type=(
                        AnomalyType.SEASONAL_DEVIATION
                        if residual > 0
                        else AnomalyType.UNEXPECTED_DECREASE
                    ),
                    severity=AnomalySeverity.HIGH if high else AnomalySeverity.MEDIUM,
                    title=f"Seasonal: Pattern deviation on {observation.date.isoformat()}",
                    description="Cost deviates from expected seasonal pattern",
                    score=min(1.0, abs(residual) / threshold),
                    confidence=self.config.confidence,
                    affected_services=top_services(
                        observation.service_costs, limit=self.config.top_services
                    ),
                    possible_causes=seasonal_possible_causes(self.max_possible_causes),
                    seasonal_component=float(decomposition.seasonal[i]),
                    trend_component=float(decomposition.trend[i]),
                )
            )

        return anomalies
