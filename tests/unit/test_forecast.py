"""Tests for rolling forecast detection."""

import numpy as np
import pytest

from cost_anomaly_engine.analysis.forecast import ForecastDetector, rolling_forecasts
from cost_anomaly_engine.config.schema import ForecastConfig
from cost_anomaly_engine.models import AnomalySeverity, AnomalyType


class TestRollingForecasts:
    """Tests for forecast construction."""

    def test_only_points_with_full_window(self, alternating_costs):
        """Test that only indices with a full window are forecast."""
        forecasts = rolling_forecasts(np.array(alternating_costs(32)), window_size=30)
        assert sorted(forecasts) == [30, 31]

    def test_forecast_values(self, alternating_costs):
        """Test forecast mean, trend and band."""
        forecast = rolling_forecasts(np.array(alternating_costs(32)), window_size=30)[30]
        # mean 100, trend (105 - 95) / 30, std 5
        assert forecast.expected_value == pytest.approx(100 + 10 / 30)
        assert forecast.band_width == pytest.approx(1.96 * 5)
        assert forecast.lower_bound == pytest.approx(forecast.expected_value - 9.8)
        assert forecast.upper_bound == pytest.approx(forecast.expected_value + 9.8)


class TestForecastDetector:
    """Tests for ForecastDetector."""

    @pytest.fixture
    def detector(self):
        return ForecastDetector(ForecastConfig())

    def test_insufficient_data(self, detector, make_series, alternating_costs, evaluated_at):
        """Test that fewer than 30 days yields nothing."""
        costs = alternating_costs(29)
        costs[-1] = 1000.0
        assert detector.detect(make_series(costs), evaluated_at) == []

    def test_stable_series_has_no_anomalies(self, detector, make_series, alternating_costs, evaluated_at):
        """Test that steady noise stays inside the band."""
        assert detector.detect(make_series(alternating_costs(40)), evaluated_at) == []

    def test_flat_window_is_skipped(self, detector, make_series, evaluated_at):
        """Test that a zero-spread window is skipped."""
        costs = [100.0] * 35
        costs[32] = 400.0
        # Zero spread in the window before day 32, wide band afterwards
        assert detector.detect(make_series(costs), evaluated_at) == []

    def test_detect_spike(self, detector, make_series, alternating_costs, evaluated_at):
        """Test that a spike far above the band is a high spike."""
        costs = alternating_costs(40)
        costs[35] = 400.0
        series = make_series(costs)

        anomalies = detector.detect(series, evaluated_at)

        assert len(anomalies) == 1
        anomaly = anomalies[0]
        assert anomaly.anomaly_date == series[35].date
        assert anomaly.type == AnomalyType.SPIKE_COST
        assert anomaly.severity == AnomalySeverity.HIGH
        assert anomaly.confidence == 0.92
        assert anomaly.anomaly_score == 1.0
        assert anomaly.expected_cost == pytest.approx(100 - 10 / 30)
        assert anomaly.forecasted_range == "$89.87 - $109.47"
        assert anomaly.detection_method == "ARIMA Time Series"

    def test_detect_drop(self, detector, make_series, alternating_costs, evaluated_at):
        """Test that a drop far below the band is a decrease."""
        costs = alternating_costs(40)
        costs[35] = 10.0
        anomalies = detector.detect(make_series(costs), evaluated_at)

        assert len(anomalies) == 1
        assert anomalies[0].type == AnomalyType.UNEXPECTED_DECREASE
        assert anomalies[0].severity == AnomalySeverity.HIGH

    def test_medium_severity_between_thresholds(self, make_series, alternating_costs, evaluated_at):
        """Test medium severity between the flag and high thresholds."""
        costs = alternating_costs(31)
        # band 9.8, flag above 19.6, high above 29.4
        costs[30] = 100 + 10 / 30 + 25.0
        anomalies = ForecastDetector().detect(make_series(costs), evaluated_at)

        assert len(anomalies) == 1
        assert anomalies[0].severity == AnomalySeverity.MEDIUM
        assert anomalies[0].anomaly_score == 1.0
