"""Anomaly detection algorithms and consolidation for daily cost series."""

from cost_anomaly_engine.analysis.base import CostAnomalyDetector
from cost_anomaly_engine.analysis.consolidator import AnomalyConsolidator
from cost_anomaly_engine.analysis.dbscan import DBSCANDetector, dbscan
from cost_anomaly_engine.analysis.engine import (
    AnomalyEngine,
    DetectionCancelledError,
    InvalidSeriesError,
    detect_anomalies,
    get_anomaly_summary,
)
from cost_anomaly_engine.analysis.forecast import ForecastDetector
from cost_anomaly_engine.analysis.isolation_forest import (
    IsolationForest,
    IsolationForestDetector,
    per_tree_seed,
)
from cost_anomaly_engine.analysis.seasonal import SeasonalDetector, decompose

__all__ = [
    "AnomalyConsolidator",
    "AnomalyEngine",
    "CostAnomalyDetector",
    "DBSCANDetector",
    "DetectionCancelledError",
    "ForecastDetector",
    "InvalidSeriesError",
    "IsolationForest",
    "IsolationForestDetector",
    "SeasonalDetector",
    "dbscan",
    "decompose",
    "detect_anomalies",
    "get_anomaly_summary",
    "per_tree_seed",
]
