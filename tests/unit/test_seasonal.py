"""Tests for seasonal decomposition detection."""

import numpy as np
import pytest

from cost_anomaly_engine.analysis.seasonal import (
    SeasonalDetector,
    decompose,
    residual_threshold,
)
from cost_anomaly_engine.analysis.stats import centered_moving_average
from cost_anomaly_engine.config.schema import SeasonalConfig
from cost_anomaly_engine.models import AnomalySeverity, AnomalyType


class TestDecomposition:
    """Tests for trend/seasonal/residual decomposition."""

    def test_components_add_up(self, weekly_costs):
        """Test that trend + seasonal + residual rebuilds the series."""
        costs = np.array(weekly_costs(35))
        result = decompose(costs, passes=3)
        np.testing.assert_allclose(result.trend + result.seasonal + result.residual, costs)

    def test_single_pass_uses_plain_slot_means(self, weekly_costs):
        """Test that one pass is the uncentred moving-average decomposition."""
        costs = np.array(weekly_costs(35))
        costs[17] = 500.0

        trend = centered_moving_average(costs, 7)
        detrended = costs - trend
        slots = np.arange(len(costs)) % 7
        profile = np.array([detrended[slots == slot].mean() for slot in range(7)])
        residual = costs - trend - profile[slots]

        result = decompose(costs, passes=1)

        np.testing.assert_allclose(result.trend, trend)
        np.testing.assert_allclose(result.seasonal, profile[slots])
        np.testing.assert_allclose(result.residual, residual)

    def test_refined_profile_is_centred(self, weekly_costs):
        """Test that refinement passes keep the seasonal profile at zero mean."""
        result = decompose(np.array(weekly_costs(35)), passes=3)
        assert result.seasonal[:7].mean() == pytest.approx(0.0, abs=1e-9)

    def test_seasonal_profile_repeats(self, weekly_costs):
        """Test that the profile repeats every period with its peak on slot 0."""
        result = decompose(np.array(weekly_costs(35)), passes=3)
        np.testing.assert_allclose(result.seasonal[:7], result.seasonal[7:14])
        assert result.seasonal.argmax() % 7 == 0

    def test_exact_weekly_pattern_leaves_small_residuals(self, weekly_costs):
        """Test that refinement removes boundary residuals of an exact weekly pattern."""
        result = decompose(np.array(weekly_costs(35)), passes=3)
        assert np.max(np.abs(result.residual)) < 1.0

    def test_flat_series(self):
        """Test that a flat series is all trend."""
        result = decompose(np.full(28, 50.0), passes=3)
        np.testing.assert_allclose(result.trend, 50.0)
        np.testing.assert_allclose(result.residual, 0.0, atol=1e-9)

    def test_residual_threshold(self):
        """Test median(|r|) + 3 * MAD."""
        # |r| median 2, r median 1, MAD 1
        assert residual_threshold(np.array([1.0, -1.0, 2.0, -2.0, 10.0])) == 5.0


class TestSeasonalDetector:
    """Tests for SeasonalDetector."""

    @pytest.fixture
    def detector(self):
        return SeasonalDetector(SeasonalConfig())

    def test_insufficient_data(self, detector, make_series, weekly_costs, evaluated_at):
        """Test that fewer than 28 days yields nothing, even with a spike."""
        costs = weekly_costs(27)
        costs[20] = 900.0
        assert detector.detect(make_series(costs), evaluated_at) == []

    def test_weekly_pattern_not_flagged(self, detector, make_series, weekly_costs, evaluated_at):
        """Test that a repeating weekly pattern is not anomalous."""
        assert detector.detect(make_series(weekly_costs(35)), evaluated_at) == []

    def test_flat_series_not_flagged(self, detector, make_series, evaluated_at):
        """Test that a zero threshold series yields nothing."""
        assert detector.detect(make_series([80.0] * 30), evaluated_at) == []

    def test_detect_spike(self, detector, make_series, weekly_costs, evaluated_at):
        """Test that a spike off the weekly pattern is a high seasonal deviation."""
        costs = weekly_costs(35)
        costs[17] = 500.0
        series = make_series(costs)

        anomalies = detector.detect(series, evaluated_at)
        spike = next(a for a in anomalies if a.anomaly_date == series[17].date)

        assert spike.type == AnomalyType.SEASONAL_DEVIATION
        assert spike.severity == AnomalySeverity.HIGH
        assert spike.confidence == 0.88
        assert spike.detection_method == "Seasonal Decomposition"
        assert spike.seasonal_component is not None
        assert spike.trend_component is not None
        # expected = actual - residual
        assert spike.expected_cost == pytest.approx(
            spike.trend_component + spike.seasonal_component
        )
        assert spike.cost_difference > 0
        assert "Deviation from normal weekly/monthly pattern" in spike.possible_causes

    def test_spike_has_largest_deviation(self, detector, make_series, weekly_costs, evaluated_at):
        """Test that the spike day carries the largest residual."""
        costs = weekly_costs(35)
        costs[17] = 500.0
        series = make_series(costs)

        anomalies = detector.detect(series, evaluated_at)
        largest = max(anomalies, key=lambda a: abs(a.cost_difference))
        assert largest.anomaly_date == series[17].date

    def test_detect_drop(self, detector, make_series, weekly_costs, evaluated_at):
        """Test that a drop is reported as an unexpected decrease."""
        costs = weekly_costs(35)
        costs[17] = 10.0
        series = make_series(costs)

        anomalies = detector.detect(series, evaluated_at)
        drop = next(a for a in anomalies if a.anomaly_date == series[17].date)

        assert drop.type == AnomalyType.UNEXPECTED_DECREASE
        assert drop.cost_difference < 0
