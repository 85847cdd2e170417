"""Location data model: a demand point with its weekly forecast."""

from typing import FrozenSet, Union

from pydantic import BaseModel, ConfigDict, Field

from .cargo import Cargo


class Location(BaseModel):
    """
    Represents a location (seller, warehouse) that ships through carriers.

    The eligibility relation is carried by the location itself: a carrier may
    serve this location only if its id is in eligible_cargo_ids.

    Attributes:
        id: Unique location identifier (e.g., "Erguvan", "Seller_1")
        forecast: Weekly forecast of shipments
        eligible_cargo_ids: Ids of carriers working with this location
    """
    id: str = Field(..., min_length=1, description="Unique location identifier")
    forecast: float = Field(..., ge=0, description="Weekly forecast (shipments)")
    eligible_cargo_ids: FrozenSet[str] = Field(
        default_factory=frozenset,
        description="Ids of carriers that may serve this location"
    )

    model_config = ConfigDict(frozen=True)

    def is_eligible(self, cargo: Union[Cargo, str]) -> bool:
        """
        Check if a carrier may serve this location.

        Args:
            cargo: Cargo instance or cargo id

        Returns:
            True if the carrier is in the eligible set
        """
        cargo_id = cargo.id if isinstance(cargo, Cargo) else cargo
        return cargo_id in self.eligible_cargo_ids

    def __str__(self) -> str:
        """String representation."""
        carriers = ", ".join(sorted(self.eligible_cargo_ids)) or "none"
        return f"{self.id} (forecast {self.forecast:,.0f}) [{carriers}]"
