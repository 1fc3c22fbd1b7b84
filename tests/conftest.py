"""Pytest configuration and fixtures."""

from datetime import UTC, date, datetime, timedelta

import pytest

from cost_anomaly_engine.models import CostObservation

# A Monday, so index % 7 == 0 lines up with Mondays
SERIES_START = date(2024, 1, 1)


def _split_services(cost: float) -> dict[str, float]:
    """Spread a day's cost over services (70/25/5)."""
    return {
        "Virtual Machines": round(cost * 0.70, 2),
        "Storage": round(cost * 0.25, 2),
        "Bandwidth": round(cost * 0.05, 2),
    }


@pytest.fixture
def make_series():
    """Factory building a daily series from a list of costs."""

    def _make(costs: list[float], start: date = SERIES_START) -> list[CostObservation]:
        return [
            CostObservation(
                date=start + timedelta(days=i),
                daily_cost=cost,
                service_costs=_split_services(cost),
            )
            for i, cost in enumerate(costs)
        ]

    return _make


@pytest.fixture
def evaluated_at():
    """Fixed evaluation timestamp."""
    return datetime(2024, 3, 1, 12, 0, tzinfo=UTC)


@pytest.fixture
def alternating_costs():
    """Factory for a 95/105 alternating series (mean 100, std 5)."""

    def _make(length: int) -> list[float]:
        return [95.0 if i % 2 == 0 else 105.0 for i in range(length)]

    return _make


@pytest.fixture
def weekly_costs():
    """Factory for an exact weekly pattern: 200 on index % 7 == 0, otherwise 100."""

    def _make(length: int) -> list[float]:
        return [200.0 if i % 7 == 0 else 100.0 for i in range(length)]

    return _make


@pytest.fixture
def sample_config_dict():
    """Sample engine configuration dictionary."""
    return {
        "environment": "dev",
        "max_possible_causes": 3,
        "isolation_forest": {
            "n_trees": 50,
            "random_seed": 7,
        },
        "dbscan": {
            "min_points": 4,
        },
        "execution": {
            "parallel": False,
        },
    }
