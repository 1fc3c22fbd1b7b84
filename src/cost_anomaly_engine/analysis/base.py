"""Base class for cost anomaly detectors."""

import logging
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Sequence

from cost_anomaly_engine.analysis.causes import recommended_investigations
from cost_anomaly_engine.analysis.stats import clamp, percentage_deviation
from cost_anomaly_engine.models.anomaly import AnomalySeverity, AnomalyType, CostAnomaly
from cost_anomaly_engine.models.observation import CostObservation

logger = logging.getLogger(__name__)


class CostAnomalyDetector(ABC):
    """
    Abstract base class for detectors that scan a daily cost series.

    Detectors are stateless between calls: they only read the series they
    are given, so several detectors can run concurrently on the same input.
    A series shorter than ``min_observations`` is not an error, it simply
    yields no anomalies.
    """

    #: Name written to CostAnomaly.detection_method
    detection_method: str = ""

    def __init__(self, min_observations: int, max_possible_causes: int = 4):
        self.min_observations = min_observations
        self.max_possible_causes = max_possible_causes

    def detect(
        self,
        observations: Sequence[CostObservation],
        evaluated_at: datetime,
    ) -> list[CostAnomaly]:
        """
        Detect anomalous days in the series.

        Args:
            observations: Daily observations ordered by date.
            evaluated_at: Timestamp recorded as detected_at on every anomaly.

        Returns:
            Anomalies in series order (may be empty).
        """
        if len(observations) < self.min_observations:
            logger.debug(
                "%s skipped: %d observations, needs %d",
                self.detection_method,
                len(observations),
                self.min_observations,
            )
            return []

        anomalies = self._detect(observations, evaluated_at)
        logger.info("%s detected %d anomalies", self.detection_method, len(anomalies))
        return anomalies

    @abstractmethod
    def _detect(
        self,
        observations: Sequence[CostObservation],
        evaluated_at: datetime,
    ) -> list[CostAnomaly]:
        """Run the algorithm on a series that has enough data."""
        pass

    def _build_anomaly(
        self,
        observation: CostObservation,
        evaluated_at: datetime,
        expected_cost: float,
        anomaly_type: AnomalyType,
        severity: AnomalySeverity,
        title: str,
        description: str,
        score: float,
        confidence: float,
        affected_services: list[str],
        possible_causes: list[str],
        **context,
    ) -> CostAnomaly:
        """Assemble a CostAnomaly with the derived cost fields filled in."""
        actual = observation.daily_cost
        return CostAnomaly(
            anomaly_date=observation.date,
            detected_at=evaluated_at,
            type=anomaly_type,
            severity=severity,
            title=title,
            description=description,
            expected_cost=expected_cost,
            actual_cost=actual,
            cost_difference=actual - expected_cost,
            percentage_deviation=percentage_deviation(actual, expected_cost),
            anomaly_score=clamp(score),
            detection_method=self.detection_method,
            confidence=clamp(confidence),
            contributing_methods=[self.detection_method],
            affected_services=affected_services,
            possible_causes=possible_causes,
            recommended_investigations=recommended_investigations(observation, affected_services),
            **context,
        )
