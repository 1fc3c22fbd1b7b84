"""Shared numeric helpers for the anomaly detectors."""

from typing import Sequence

import numpy as np

from cost_anomaly_engine.models.observation import CostObservation

EULER_GAMMA = 0.5772156649


def daily_costs(observations: Sequence[CostObservation]) -> np.ndarray:
    """Daily totals as a float array, in series order."""
    return np.array([o.daily_cost for o in observations], dtype=float)


def population_std(values: np.ndarray) -> float:
    """Population standard deviation (divide by n)."""
    if len(values) == 0:
        return 0.0
    return float(np.std(values))


def median(values: np.ndarray) -> float:
    if len(values) == 0:
        return 0.0
    return float(np.median(values))


def median_absolute_deviation(values: np.ndarray) -> float:
    """Median of absolute deviations from the median."""
    if len(values) == 0:
        return 0.0
    center = np.median(values)
    return float(np.median(np.abs(values - center)))


def expected_path_length(size: int) -> float:
    """
    Average path length of an unsuccessful search in a binary search tree.

    Used to normalise isolation depths: c(m) = 2(ln(m-1) + gamma) - 2(m-1)/m.
    """
    if size <= 1:
        return 0.0
    return 2.0 * (np.log(size - 1) + EULER_GAMMA) - 2.0 * (size - 1) / size


def trailing_mean(values: np.ndarray, index: int, window: int) -> float:
    """
    Mean of up to ``window`` values before ``index``.

    The first point has no history, so its own value is returned.
    """
    start = max(0, index - window)
    if start == index:
        return float(values[index])
    return float(np.mean(values[start:index]))


def centered_moving_average(values: np.ndarray, window: int) -> np.ndarray:
    """Centered moving average; the window shrinks at both ends of the series."""
    n = len(values)
    half = window // 2
    result = np.empty(n, dtype=float)
    for i in range(n):
        start = max(0, i - half)
        end = min(n, i + half + 1)
        result[i] = np.mean(values[start:end])
    return result


def relative_deviation(actual: float, expected: float) -> float | None:
    """|actual - expected| / expected, or None when expected is not positive."""
    if expected <= 0:
        return None
    return abs(actual - expected) / expected


def percentage_deviation(actual: float, expected: float) -> float:
    """Signed percentage deviation; 0 when there is no positive baseline."""
    if expected <= 0:
        return 0.0
    return (actual - expected) / expected * 100


def clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    return max(low, min(high, float(value)))


def top_services(
    service_costs: dict[str, float],
    limit: int | None = None,
    min_cost: float | None = None,
) -> list[str]:
    """
    Service names ordered by cost, highest first.

    Args:
        service_costs: Spend per service for one day.
        limit: Keep at most this many services.
        min_cost: Only keep services whose cost is strictly above this amount.
    """
    ranked = sorted(service_costs.items(), key=lambda item: item[1], reverse=True)
    if min_cost is not None:
        ranked = [(service, cost) for service, cost in ranked if cost > min_cost]
    if limit is not None:
        ranked = ranked[:limit]
    return [service for service, _ in ranked]
