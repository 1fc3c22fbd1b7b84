"""Human-readable hypotheses and follow-ups attached to anomalies."""

from cost_anomaly_engine.analysis.stats import relative_deviation
from cost_anomaly_engine.models.observation import CostObservation

GENERIC_CAUSES = [
    "Unexpected resource scaling event",
    "Change in usage patterns or workload",
    "New resource provisioning",
    "Pricing or billing rate changes",
]

SEASONAL_CAUSES = [
    "Deviation from normal weekly/monthly pattern",
    "Business activity spike or dip",
    "Seasonal event not matching historical patterns",
    "Calendar effects (holidays, weekends)",
]

MAJOR_CHANGE_DEVIATION = 0.5


def generate_possible_causes(
    observation: CostObservation,
    expected_cost: float,
    limit: int = 4,
) -> list[str]:
    """
    Build a short list of plausible causes for an anomalous day.

    Large deviations and the top service come first, followed by
    generic hypotheses. Mondays get a weekend catch-up hint.
    """
    causes = []

    deviation = relative_deviation(observation.daily_cost, expected_cost)
    if deviation is not None and deviation > MAJOR_CHANGE_DEVIATION:
        causes.append("Major infrastructure change or deployment")

    if top := observation.top_service:
        causes.append(f"High usage in {top} service")

    causes.extend(GENERIC_CAUSES)

    if observation.date.weekday() == 0:
        causes.append("Monday spike (weekend catch-up workload)")

    return causes[:limit]


def seasonal_possible_causes(limit: int = 4) -> list[str]:
    return SEASONAL_CAUSES[:limit]


def recommended_investigations(
    observation: CostObservation,
    affected_services: list[str],
) -> list[str]:
    """Concrete follow-up checks for the affected services on that date."""
    day = observation.date.isoformat()
    steps = [f"Review {service} usage and resource changes on {day}" for service in affected_services]
    steps.append(f"Check deployment and scaling history around {day}")
    return steps
