"""Density-based (DBSCAN) outlier detection on daily costs."""

from collections import deque
from datetime import datetime
from typing import Sequence

import numpy as np

from cost_anomaly_engine.analysis.base import CostAnomalyDetector
from cost_anomaly_engine.analysis.causes import generate_possible_causes
from cost_anomaly_engine.analysis.stats import (
    daily_costs,
    population_std,
    relative_deviation,
    top_services,
)
from cost_anomaly_engine.config.schema import DBSCANConfig
from cost_anomaly_engine.models.anomaly import AnomalySeverity, AnomalyType, CostAnomaly
from cost_anomaly_engine.models.observation import CostObservation

NOISE = -1


def _as_points(points: np.ndarray) -> np.ndarray:
    """Reshape a 1-D series into an (n, 1) feature matrix."""
    points = np.asarray(points, dtype=float)
    if points.ndim == 1:
        return points.reshape(-1, 1)
    return points


def neighbor_graph(points: np.ndarray, epsilon: float) -> list[np.ndarray]:
    """
    Indices of every other point within ``epsilon`` (Euclidean) of each point.

    Works for any number of feature columns; a plain cost series is treated
    as one column.
    """
    features = _as_points(points)
    distances = np.linalg.norm(features[:, None, :] - features[None, :, :], axis=-1)
    within = distances <= epsilon
    np.fill_diagonal(within, False)
    return [np.flatnonzero(row) for row in within]


def dbscan(points: np.ndarray, epsilon: float, min_points: int) -> np.ndarray:
    """
    Label each point with a cluster id, or NOISE (-1).

    A point seeds a cluster when it has at least ``min_points`` neighbors;
    the cluster then grows breadth-first through members that are
    themselves core points. Points never reached stay NOISE.
    """
    neighbors = neighbor_graph(points, epsilon)
    labels = np.full(len(neighbors), NOISE, dtype=int)
    cluster_id = 0

    for i in range(len(neighbors)):
        if labels[i] != NOISE:
            continue
        if len(neighbors[i]) < min_points:
            continue

        labels[i] = cluster_id
        queue = deque(neighbors[i])
        while queue:
            current = queue.popleft()
            if labels[current] != NOISE:
                continue
            labels[current] = cluster_id
            if len(neighbors[current]) >= min_points:
                queue.extend(n for n in neighbors[current] if labels[n] == NOISE)

        cluster_id += 1

    return labels


def largest_cluster_mean(values: np.ndarray, labels: np.ndarray) -> float:
    """Mean of the biggest cluster, or of the whole series when all points are noise."""
    clustered = labels[labels != NOISE]
    if clustered.size == 0:
        return float(np.mean(values))
    ids, counts = np.unique(clustered, return_counts=True)
    largest = ids[np.argmax(counts)]
    return float(np.mean(values[labels == largest]))


class DBSCANDetector(CostAnomalyDetector):
    """Flag days whose cost does not belong to any dense cluster of similar days."""

    detection_method = "DBSCAN Clustering"

    def __init__(self, config: DBSCANConfig | None = None, max_possible_causes: int = 4):
        self.config = config or DBSCANConfig()
        super().__init__(self.config.min_observations, max_possible_causes)

    def _detect(
        self,
        observations: Sequence[CostObservation],
        evaluated_at: datetime,
    ) -> list[CostAnomaly]:
        costs = daily_costs(observations)
        epsilon = population_std(costs) * self.config.epsilon_factor
        labels = dbscan(costs, epsilon, self.config.min_points)

        noise = np.flatnonzero(labels == NOISE)
        if noise.size == 0:
            return []

        expected = largest_cluster_mean(costs, labels)

        anomalies = []
        for i in noise:
            observation = observations[i]
            deviation = relative_deviation(observation.daily_cost, expected)
            if deviation is None:
                # No positive baseline to measure against
                continue

            anomaly_type = (
                AnomalyType.UNEXPECTED_INCREASE
                if observation.daily_cost > expected
                else AnomalyType.UNEXPECTED_DECREASE
            )
            high = deviation > self.config.high_severity_deviation

            anomalies.append(
                self._build_anomaly(
                    observation,
                    evaluated_at,
                    expected_cost=expected,
                    anomaly_type=anomaly_type,
                    severity=AnomalySeverity.HIGH if high else AnomalySeverity.MEDIUM,
                    title=f"DBSCAN: Outlier detected on {observation.date.isoformat()}",
                    description="Density-based clustering identified this as an outlier point",
                    score=min(1.0, deviation),
                    confidence=self.config.confidence,
                    affected_services=top_services(
                        observation.service_costs, limit=self.config.top_services
                    ),
                    possible_causes=generate_possible_causes(
                        observation, expected, self.max_possible_causes
                    ),
                )
            )

        return anomalies
