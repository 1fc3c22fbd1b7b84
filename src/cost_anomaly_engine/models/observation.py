"""Input model for one day of cost data."""

from datetime import date as date_type

from pydantic import BaseModel, ConfigDict, Field, field_validator


class CostObservation(BaseModel):
    """
    Total and per-service spend for a single calendar day.

    Service costs should add up to roughly ``daily_cost`` but this is not
    enforced; providers often report rounding differences or untagged spend.
    """

    model_config = ConfigDict(frozen=True)

    date: date_type
    daily_cost: float = Field(ge=0)
    service_costs: dict[str, float] = Field(default_factory=dict)

    @field_validator("service_costs")
    @classmethod
    def _check_service_costs(cls, value: dict[str, float]) -> dict[str, float]:
        for service, cost in value.items():
            if cost < 0:
                raise ValueError(f"Service cost for {service} must be non-negative, got {cost}")
        return value

    @property
    def top_service(self) -> str | None:
        """Service with the highest spend that day, if any."""
        if not self.service_costs:
            return None
        return max(self.service_costs.items(), key=lambda item: item[1])[0]
