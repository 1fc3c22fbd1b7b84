"""Rolling forecast (ARIMA-like) deviation detection."""

from dataclasses import dataclass
from datetime import datetime
from typing import Sequence

import numpy as np

from cost_anomaly_engine.analysis.base import CostAnomalyDetector
from cost_anomaly_engine.analysis.causes import generate_possible_causes
from cost_anomaly_engine.analysis.stats import daily_costs, population_std, top_services
from cost_anomaly_engine.config.schema import ForecastConfig
from cost_anomaly_engine.models.anomaly import AnomalySeverity, AnomalyType, CostAnomaly
from cost_anomaly_engine.models.observation import CostObservation


@dataclass
class Forecast:
    """One-step-ahead forecast with its confidence band."""

    expected_value: float
    lower_bound: float
    upper_bound: float
    band_width: float  # Half-width of the confidence band

    @property
    def range_text(self) -> str:
        return f"${self.lower_bound:.2f} - ${self.upper_bound:.2f}"


def rolling_forecasts(
    costs: np.ndarray,
    window_size: int,
    z_score: float = 1.96,
) -> dict[int, Forecast]:
    """
    Forecast each point from the window of days before it.

    forecast = window mean + (last - first) / window size, with a band of
    ``z_score`` population standard deviations. Only indices with a full
    trailing window get a forecast.
    """
    window_size = min(window_size, len(costs))
    forecasts: dict[int, Forecast] = {}

    for i in range(window_size, len(costs)):
        window = costs[i - window_size : i]
        ma = float(np.mean(window))
        trend = (window[-1] - window[0]) / window_size
        expected = ma + trend
        band = z_score * population_std(window)
        forecasts[i] = Forecast(
            expected_value=expected,
            lower_bound=expected - band,
            upper_bound=expected + band,
            band_width=band,
        )

    return forecasts


class ForecastDetector(CostAnomalyDetector):
    """Flag days that fall far outside the rolling forecast band."""

    detection_method = "ARIMA Time Series"

    def __init__(self, config: ForecastConfig | None = None, max_possible_causes: int = 4):
        self.config = config or ForecastConfig()
        super().__init__(self.config.min_observations, max_possible_causes)

    def _detect(
        self,
        observations: Sequence[CostObservation],
        evaluated_at: datetime,
    ) -> list[CostAnomaly]:
        costs = daily_costs(observations)
        forecasts = rolling_forecasts(costs, self.config.window_size, self.config.z_score)

        anomalies = []
        for i, forecast in forecasts.items():
            if forecast.band_width <= 0:
                # Flat window: no spread to measure deviation against
                continue

            observation = observations[i]
            residual = abs(observation.daily_cost - forecast.expected_value)
            threshold = forecast.band_width * self.config.band_multiplier
            if residual <= threshold:
                continue

            anomaly_type = (
                AnomalyType.SPIKE_COST
                if observation.daily_cost > forecast.expected_value
                else AnomalyType.UNEXPECTED_DECREASE
            )
            high = residual > threshold * self.config.high_severity_multiplier

            anomalies.append(
                self._build_anomaly(
                    observation,
                    evaluated_at,
                    expected_cost=forecast.expected_value,
                    anomaly_type=anomaly_type,
                    severity=AnomalySeverity.HIGH if high else AnomalySeverity.MEDIUM,
                    title=f"ARIMA: Forecasting anomaly on {observation.date.isoformat()}",
                    description="Actual cost deviates significantly from time series forecast",
                    score=min(1.0, residual / threshold),
                    confidence=self.config.confidence,
                    affected_services=top_services(
                        observation.service_costs, limit=self.config.top_services
                    ),
                    possible_causes=generate_possible_causes(
                        observation, forecast.expected_value, self.max_possible_causes
                    ),
                    forecasted_range=forecast.range_text,
                )
            )

        return anomalies
