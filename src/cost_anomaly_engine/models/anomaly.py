"""Output model for detected cost anomalies."""

from datetime import UTC, date, datetime
from enum import Enum
from uuid import uuid4

from pydantic import BaseModel, Field


def _generate_uuid() -> str:
    return str(uuid4())


def _utc_now() -> datetime:
    return datetime.now(UTC)


class AnomalyType(str, Enum):
    """Kind of deviation a detector reports."""

    SPIKE_COST = "SpikeCost"
    UNEXPECTED_INCREASE = "UnexpectedIncrease"
    UNEXPECTED_DECREASE = "UnexpectedDecrease"
    SEASONAL_DEVIATION = "SeasonalDeviation"


class AnomalySeverity(str, Enum):
    """Severity relative to the detector's own threshold."""

    MEDIUM = "Medium"
    HIGH = "High"


class CostAnomaly(BaseModel):
    """
    A single anomalous day.

    Before consolidation there is one record per detector per date; after
    consolidation there is at most one record per date and
    ``contributing_methods`` lists every detector that flagged it.
    """

    anomaly_id: str = Field(default_factory=_generate_uuid)
    anomaly_date: date
    detected_at: datetime = Field(default_factory=_utc_now)

    type: AnomalyType
    severity: AnomalySeverity
    title: str
    description: str

    expected_cost: float
    actual_cost: float
    cost_difference: float  # actual - expected
    percentage_deviation: float  # cost_difference / expected_cost * 100

    anomaly_score: float = Field(ge=0, le=1)
    detection_method: str
    confidence: float = Field(ge=0, le=1)
    contributing_methods: list[str] = Field(default_factory=list)

    affected_services: list[str] = Field(default_factory=list)
    possible_causes: list[str] = Field(default_factory=list)
    recommended_investigations: list[str] = Field(default_factory=list)

    # Detector-specific context
    forecasted_range: str | None = None  # "$low - $high"
    seasonal_component: float | None = None
    trend_component: float | None = None

    @property
    def is_multi_algorithm(self) -> bool:
        """True when more than one detector flagged this date."""
        return len(self.contributing_methods) > 1

    @property
    def summary(self) -> str:
        """Human-readable one-line summary of the anomaly."""
        direction = "above" if self.cost_difference > 0 else "below"
        return (
            f"{self.anomaly_date.isoformat()}: ${self.actual_cost:.2f} is "
            f"${abs(self.cost_difference):.2f} ({self.percentage_deviation:+.0f}%) {direction} "
            f"expected ${self.expected_cost:.2f} [{self.detection_method}]"
        )
