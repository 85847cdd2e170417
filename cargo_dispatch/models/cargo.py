"""Cargo (carrier) data model with capacity tiers and cost rates."""

from pydantic import BaseModel, ConfigDict, Field, model_validator


class Cargo(BaseModel):
    """
    Represents a carrier that can take over shipments from locations.

    Business Rules:
    - Units up to max_capacity are billed at regular_cost
    - Units above max_capacity (up to excess_capacity more) are billed at excess_cost
    - Every unit the carrier falls short of min_capacity is billed at demurrage_cost
    - A carrier may serve at most coverage_rate of any single location's forecast

    Attributes:
        id: Unique carrier identifier (e.g., "YK", "MNG", "TEX")
        min_capacity: Contractual minimum weekly shipments
        max_capacity: Regular maximum weekly shipments
        excess_capacity: Additional weekly shipments above max_capacity
        regular_cost: Cost per regular unit
        excess_cost: Cost per excess unit
        demurrage_cost: Cost per unit below the minimum capacity
        coverage_rate: Maximum fraction of a location's forecast (0-1)
    """
    id: str = Field(..., min_length=1, description="Unique carrier identifier")
    min_capacity: float = Field(..., ge=0, description="Minimum weekly capacity (shipments)")
    max_capacity: float = Field(..., ge=0, description="Regular maximum weekly capacity (shipments)")
    excess_capacity: float = Field(default=0.0, ge=0, description="Excess capacity above maximum (shipments)")
    regular_cost: float = Field(..., ge=0, description="Cost per regular unit")
    excess_cost: float = Field(default=0.0, ge=0, description="Cost per excess unit")
    demurrage_cost: float = Field(default=0.0, ge=0, description="Cost per unit below minimum capacity")
    coverage_rate: float = Field(default=1.0, ge=0, le=1, description="Maximum share of a location's forecast")

    model_config = ConfigDict(frozen=True)

    @model_validator(mode='after')
    def validate_capacity_tiers(self):
        """Validate that min_capacity <= max_capacity."""
        if self.min_capacity > self.max_capacity:
            raise ValueError(
                f"Cargo {self.id}: min_capacity ({self.min_capacity}) "
                f"must be <= max_capacity ({self.max_capacity})"
            )
        return self

    @property
    def total_capacity(self) -> float:
        """Regular plus excess capacity."""
        return self.max_capacity + self.excess_capacity

    def __str__(self) -> str:
        """String representation."""
        return (
            f"{self.id} [{self.min_capacity:.0f}-{self.max_capacity:.0f} "
            f"+{self.excess_capacity:.0f}, coverage {self.coverage_rate:.0%}]"
        )
