"""Merge per-detector findings into one anomaly per date."""

from datetime import date

from cost_anomaly_engine.config.schema import ConsolidationConfig
from cost_anomaly_engine.models.anomaly import CostAnomaly


class AnomalyConsolidator:
    """
    Deduplicate anomalies that several detectors reported for the same day.

    The highest-confidence finding represents the date. Its confidence is
    boosted per extra agreeing detector (capped), and its score becomes the
    mean of all contributing scores. Nothing is filtered out.
    """

    def __init__(self, config: ConsolidationConfig | None = None):
        self.config = config or ConsolidationConfig()

    def consolidate(self, anomalies: list[CostAnomaly]) -> list[CostAnomaly]:
        """
        Group anomalies by date and merge each group.

        Args:
            anomalies: Concatenated output of all detectors.

        Returns:
            One anomaly per date, sorted by confidence (highest first).
        """
        grouped: dict[date, list[CostAnomaly]] = {}
        for anomaly in anomalies:
            grouped.setdefault(anomaly.anomaly_date, []).append(anomaly)

        consolidated = [
            items[0] if len(items) == 1 else self._merge(items)
            for items in grouped.values()
        ]

        return sorted(consolidated, key=lambda a: a.confidence, reverse=True)

    def _merge(self, items: list[CostAnomaly]) -> CostAnomaly:
        """Merge several same-date findings into the most confident one."""
        best = max(items, key=lambda a: a.confidence)
        methods = [a.detection_method for a in items]
        method_list = ", ".join(methods)

        boosted = best.confidence + self.config.agreement_boost * (len(items) - 1)
        confidence = max(best.confidence, min(self.config.max_confidence, boosted))

        return best.model_copy(
            update={
                "title": f"Multi-algorithm: Anomaly on {best.anomaly_date.isoformat()}",
                "description": f"Detected by {len(items)} algorithms: {method_list}",
                "detection_method": f"Multi-algorithm ({method_list})",
                "contributing_methods": methods,
                "confidence": confidence,
                "anomaly_score": sum(a.anomaly_score for a in items) / len(items),
            }
        )
