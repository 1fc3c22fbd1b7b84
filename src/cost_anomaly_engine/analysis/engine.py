"""Entry point: run every detector on a cost series and consolidate the results."""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from datetime import UTC, date, datetime
from typing import Sequence

from cost_anomaly_engine.analysis.base import CostAnomalyDetector
from cost_anomaly_engine.analysis.consolidator import AnomalyConsolidator
from cost_anomaly_engine.analysis.dbscan import DBSCANDetector
from cost_anomaly_engine.analysis.forecast import ForecastDetector
from cost_anomaly_engine.analysis.isolation_forest import IsolationForestDetector, SeedStrategy
from cost_anomaly_engine.analysis.seasonal import SeasonalDetector
from cost_anomaly_engine.config.schema import EngineConfig
from cost_anomaly_engine.models.anomaly import AnomalySeverity, CostAnomaly
from cost_anomaly_engine.models.observation import CostObservation

logger = logging.getLogger(__name__)


class InvalidSeriesError(ValueError):
    """Observations are not a strictly date-ordered series."""


class DetectionCancelledError(RuntimeError):
    """The caller cancelled detection before it finished."""


def validate_series(observations: Sequence[CostObservation]) -> None:
    """Raise InvalidSeriesError unless dates are strictly increasing."""
    for previous, current in zip(observations, observations[1:]):
        if current.date <= previous.date:
            raise InvalidSeriesError(
                f"Observation dates must be strictly increasing: "
                f"{current.date.isoformat()} follows {previous.date.isoformat()}"
            )


def build_detectors(
    config: EngineConfig,
    seed_strategy: SeedStrategy | None = None,
) -> list[CostAnomalyDetector]:
    """Create the enabled detectors in their fixed reporting order."""
    causes = config.max_possible_causes
    detectors: list[CostAnomalyDetector] = []

    if config.isolation_forest.enabled:
        detectors.append(
            IsolationForestDetector(config.isolation_forest, seed_strategy, causes)
        )
    if config.dbscan.enabled:
        detectors.append(DBSCANDetector(config.dbscan, causes))
    if config.forecast.enabled:
        detectors.append(ForecastDetector(config.forecast, causes))
    if config.seasonal.enabled:
        detectors.append(SeasonalDetector(config.seasonal, causes))

    return detectors


class AnomalyEngine:
    """
    Multi-algorithm cost anomaly detection.

    Detectors share no state, so they fan out onto a thread pool and are
    joined before consolidation. The engine keeps nothing between calls.
    """

    def __init__(
        self,
        config: EngineConfig | None = None,
        detectors: list[CostAnomalyDetector] | None = None,
        consolidator: AnomalyConsolidator | None = None,
        seed_strategy: SeedStrategy | None = None,
    ):
        """
        Initialize the engine.

        Args:
            config: Engine configuration. Defaults to the schema defaults.
            detectors: Detectors to run. Defaults to the enabled built-in detectors.
            consolidator: Consolidation stage. Defaults to one built from config.
            seed_strategy: Generator factory for isolation trees.
        """
        self.config = config or EngineConfig()
        self.detectors = (
            detectors if detectors is not None else build_detectors(self.config, seed_strategy)
        )
        self.consolidator = consolidator or AnomalyConsolidator(self.config.consolidation)

    def detect(
        self,
        observations: Sequence[CostObservation],
        window_start: date | datetime | None = None,
        window_end: date | datetime | None = None,
        cancel_event: threading.Event | None = None,
        evaluated_at: datetime | None = None,
    ) -> list[CostAnomaly]:
        """
        Detect anomalous days in a daily cost series.

        Args:
            observations: Daily observations with strictly increasing dates.
            window_start: Start of the evaluation window.
            window_end: End of the evaluation window.
            cancel_event: Checked between stages; when set, detection stops.
            evaluated_at: Timestamp for detected_at. Defaults to now (UTC).

        Returns:
            Consolidated anomalies sorted by confidence (may be empty).

        Raises:
            InvalidSeriesError: If dates are not strictly increasing.
            DetectionCancelledError: If cancel_event is set before completion.
        """
        observations = list(observations)
        start = _as_date(window_start)
        end = _as_date(window_end)
        logger.info(
            "Starting anomaly detection for period %s to %s (%d observations)",
            start,
            end,
            len(observations),
        )

        if not observations:
            return []

        validate_series(observations)
        evaluated_at = evaluated_at or datetime.now(UTC)

        _check_cancelled(cancel_event)
        if self.config.execution.parallel and len(self.detectors) > 1:
            findings = self._run_parallel(observations, evaluated_at, cancel_event)
        else:
            findings = self._run_sequential(observations, evaluated_at, cancel_event)

        _check_cancelled(cancel_event)
        anomalies = self.consolidator.consolidate(findings)

        if self.config.execution.restrict_to_window:
            anomalies = [
                a
                for a in anomalies
                if (start is None or a.anomaly_date >= start)
                and (end is None or a.anomaly_date <= end)
            ]

        logger.info("Detected %d anomalies using %d algorithms", len(anomalies), len(self.detectors))
        return anomalies

    def _run_sequential(
        self,
        observations: list[CostObservation],
        evaluated_at: datetime,
        cancel_event: threading.Event | None,
    ) -> list[CostAnomaly]:
        findings: list[CostAnomaly] = []
        for detector in self.detectors:
            findings.extend(detector.detect(observations, evaluated_at))
            _check_cancelled(cancel_event)
        return findings

    def _run_parallel(
        self,
        observations: list[CostObservation],
        evaluated_at: datetime,
        cancel_event: threading.Event | None,
    ) -> list[CostAnomaly]:
        findings: list[CostAnomaly] = []
        workers = min(self.config.execution.max_workers, len(self.detectors))

        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="anomaly-detector") as pool:
            futures: list[Future] = [
                pool.submit(detector.detect, observations, evaluated_at)
                for detector in self.detectors
            ]
            try:
                # Joined in detector order so output does not depend on timing
                for future in futures:
                    findings.extend(future.result())
                    _check_cancelled(cancel_event)
            except DetectionCancelledError:
                for future in futures:
                    future.cancel()
                raise

        return findings


def detect_anomalies(
    observations: Sequence[CostObservation],
    window_start: date | datetime | None = None,
    window_end: date | datetime | None = None,
    config: EngineConfig | None = None,
    cancel_event: threading.Event | None = None,
    evaluated_at: datetime | None = None,
) -> list[CostAnomaly]:
    """Run all detectors with the given config and return consolidated anomalies."""
    engine = AnomalyEngine(config)
    return engine.detect(
        observations,
        window_start,
        window_end,
        cancel_event=cancel_event,
        evaluated_at=evaluated_at,
    )


def get_anomaly_summary(anomalies: list[CostAnomaly]) -> str:
    """Generate a summary of detected anomalies."""
    if not anomalies:
        return "No anomalies detected."

    high = [a for a in anomalies if a.severity == AnomalySeverity.HIGH]
    medium = [a for a in anomalies if a.severity == AnomalySeverity.MEDIUM]
    multi = [a for a in anomalies if a.is_multi_algorithm]

    total_impact = sum(a.cost_difference for a in anomalies)

    parts = [f"Detected {len(anomalies)} anomalies:"]

    if high:
        parts.append(f"  - {len(high)} high")
    if medium:
        parts.append(f"  - {len(medium)} medium")
    if multi:
        parts.append(f"  - {len(multi)} confirmed by multiple algorithms")

    method_counts: dict[str, int] = {}
    for anomaly in anomalies:
        for method in anomaly.contributing_methods or [anomaly.detection_method]:
            method_counts[method] = method_counts.get(method, 0) + 1
    for method, count in method_counts.items():
        parts.append(f"  - {method}: {count}")

    parts.append(f"Total impact: ${total_impact:+.2f}")

    return "\n".join(parts)


def _as_date(value: date | datetime | None) -> date | None:
    if isinstance(value, datetime):
        return value.date()
    return value


def _check_cancelled(cancel_event: threading.Event | None) -> None:
    if cancel_event is not None and cancel_event.is_set():
        raise DetectionCancelledError("Anomaly detection was cancelled")
