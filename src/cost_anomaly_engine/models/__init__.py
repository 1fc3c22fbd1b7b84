"""Data models for cost observations and detected anomalies."""

from cost_anomaly_engine.models.anomaly import AnomalySeverity, AnomalyType, CostAnomaly
from cost_anomaly_engine.models.observation import CostObservation

__all__ = [
    "AnomalySeverity",
    "AnomalyType",
    "CostAnomaly",
    "CostObservation",
]
