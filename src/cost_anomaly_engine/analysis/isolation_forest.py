"""Isolation Forest scoring of daily costs."""

from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Sequence

import numpy as np

from cost_anomaly_engine.analysis.base import CostAnomalyDetector
from cost_anomaly_engine.analysis.causes import generate_possible_causes
from cost_anomaly_engine.analysis.stats import (
    daily_costs,
    expected_path_length,
    top_services,
    trailing_mean,
)
from cost_anomaly_engine.config.schema import IsolationForestConfig
from cost_anomaly_engine.models.anomaly import AnomalySeverity, AnomalyType, CostAnomaly
from cost_anomaly_engine.models.observation import CostObservation

# Maps a tree index to the generator used to build that tree
SeedStrategy = Callable[[int], np.random.Generator]


def per_tree_seed(base_seed: int = 0) -> SeedStrategy:
    """Seed tree ``t`` with ``base_seed + t`` so forests are reproducible."""

    def strategy(tree_index: int) -> np.random.Generator:
        return np.random.default_rng(base_seed + tree_index)

    return strategy


@dataclass(frozen=True)
class IsolationTree:
    """
    One randomised isolation tree over a subsample of costs.

    The tree is stored implicitly: ``split_draws[d]`` is the uniform draw used
    to place the split at depth ``d`` between the current node's min and max.
    Following a value down the tree only needs the subsample and the draws.
    """

    sample: np.ndarray
    split_draws: np.ndarray

    @classmethod
    def build(
        cls,
        values: np.ndarray,
        sample_size: int,
        max_depth: int,
        rng: np.random.Generator,
    ) -> "IsolationTree":
        sample = rng.choice(values, size=sample_size, replace=False)
        return cls(sample=sample, split_draws=rng.random(max_depth))

    @property
    def max_depth(self) -> int:
        return len(self.split_draws)

    def path_length(self, value: float) -> float:
        """
        Depth at which ``value`` ends up alone, plus c(size) for unresolved nodes.

        A node that still holds several samples (identical values or the
        depth limit) contributes the expected remaining depth c(size).
        """
        node = self.sample
        depth = 0
        while depth < self.max_depth and node.size > 1:
            low = node.min()
            high = node.max()
            if low == high:
                break
            split = low + (high - low) * self.split_draws[depth]
            node = node[node < split] if value < split else node[node >= split]
            depth += 1
        return depth + expected_path_length(node.size)


class IsolationForest:
    """Ensemble of isolation trees scoring every point of a 1-D series."""

    def __init__(
        self,
        n_trees: int = 100,
        max_samples: int = 256,
        max_depth: int = 10,
        seed_strategy: SeedStrategy | None = None,
    ):
        self.n_trees = n_trees
        self.max_samples = max_samples
        self.max_depth = max_depth
        self.seed_strategy = seed_strategy or per_tree_seed()

    def fit(self, values: np.ndarray) -> list[IsolationTree]:
        sample_size = min(self.max_samples, len(values))
        return [
            IsolationTree.build(values, sample_size, self.max_depth, self.seed_strategy(t))
            for t in range(self.n_trees)
        ]

    def score(self, values: np.ndarray) -> np.ndarray:
        """
        Anomaly score 2^(-E[h(x)] / c(m)) for each value.

        Scores near 1 mean the value is isolated after very few splits.
        """
        values = np.asarray(values, dtype=float)
        if len(values) < 2:
            return np.zeros(len(values))

        trees = self.fit(values)
        normaliser = expected_path_length(min(self.max_samples, len(values)))

        scores = np.empty(len(values))
        for i, value in enumerate(values):
            avg_path = np.mean([tree.path_length(value) for tree in trees])
            scores[i] = 2.0 ** (-avg_path / normaliser)
        return scores


class IsolationForestDetector(CostAnomalyDetector):
    """
    Flag days whose cost is easy to isolate from the rest of the series.

    Expected cost is the mean of up to ``expected_cost_window`` prior days.
    Affected services are those above ``service_share_threshold`` of the
    day's total.
    """

    detection_method = "Isolation Forest"

    def __init__(
        self,
        config: IsolationForestConfig | None = None,
        seed_strategy: SeedStrategy | None = None,
        max_possible_causes: int = 4,
    ):
        self.config = config or IsolationForestConfig()
        super().__init__(self.config.min_observations, max_possible_causes)
        self.forest = IsolationForest(
            n_trees=self.config.n_trees,
            max_samples=self.config.max_samples,
            max_depth=self.config.max_depth,
            seed_strategy=seed_strategy or per_tree_seed(self.config.random_seed),
        )

    def _detect(
        self,
        observations: Sequence[CostObservation],
        evaluated_at: datetime,
    ) -> list[CostAnomaly]:
        costs = daily_costs(observations)
        scores = self.forest.score(costs)

        anomalies = []
        for i, observation in enumerate(observations):
            score = float(scores[i])
            if score <= self.config.score_threshold:
                continue

            expected = trailing_mean(costs, i, self.config.expected_cost_window)
            high = score > self.config.high_severity_score
            anomaly_type = (
                AnomalyType.SPIKE_COST
                if observation.daily_cost > expected
                else AnomalyType.UNEXPECTED_INCREASE
            )
            services = top_services(
                observation.service_costs,
                min_cost=observation.daily_cost * self.config.service_share_threshold,
            )

            anomalies.append(
                self._build_anomaly(
                    observation,
                    evaluated_at,
                    expected_cost=expected,
                    anomaly_type=anomaly_type,
                    severity=AnomalySeverity.HIGH if high else AnomalySeverity.MEDIUM,
                    title=f"Isolation Forest: Cost anomaly on {observation.date.isoformat()}",
                    description=(
                        f"ML algorithm detected unusual cost pattern (isolation score: {score:.3f})"
                    ),
                    score=score,
                    confidence=self.config.high_confidence if high else self.config.confidence,
                    affected_services=services,
                    possible_causes=generate_possible_causes(
                        observation, expected, self.max_possible_causes
                    ),
                )
            )

        return anomalies
