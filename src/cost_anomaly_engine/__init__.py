"""
Cost Anomaly Engine - multi-algorithm anomaly detection for daily cost series.

A stateless detection library for:
- Isolation Forest scoring of daily spend
- DBSCAN density clustering of cost values
- Rolling forecast confidence bands
- Weekly seasonal decomposition
- Consolidation of overlapping findings into one ranked list
"""

__version__ = "0.1.0"

from cost_anomaly_engine.analysis.engine import AnomalyEngine, detect_anomalies
from cost_anomaly_engine.models import (
    AnomalySeverity,
    AnomalyType,
    CostAnomaly,
    CostObservation,
)

__all__ = [
    "AnomalyEngine",
    "detect_anomalies",
    "AnomalySeverity",
    "AnomalyType",
    "CostAnomaly",
    "CostObservation",
]
