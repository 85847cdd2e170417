"""Pydantic schemas for allocation results.

This module defines the interface contract between the allocation model and
its consumers (reporting, CSV export, CLI). The interpreter MUST return an
AllocationReport conforming to these schemas.

Design Principles:
1. Fail Fast: Inconsistent report data raises ValidationError at the boundary
2. Full Grid: Every (carrier, location) pair is present; no value means 0
3. Warnings, not failures: Numeric noise from the solver is reported, never hidden
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional

import pandas as pd
from pydantic import BaseModel, ConfigDict, Field, model_validator


class AllocationStatus(str, Enum):
    """Solver status as seen by report consumers."""
    OPTIMAL = "optimal"
    FEASIBLE = "feasible"
    INFEASIBLE = "infeasible"
    UNKNOWN = "unknown"


# ============================================================================
# Core Data Structures
# ============================================================================

class PairAllocation(BaseModel):
    """Units of one carrier at one location.

    Ineligible pairs are present with zero units and eligible=False.
    Values are rounded solver output and are not clamped, so a negative value
    signals a solver precision defect (see AllocationReport.warnings).
    """
    cargo_id: str = Field(..., description="Carrier id")
    location_id: str = Field(..., description="Location id")
    regular: int = Field(default=0, description="Regular units (x)")
    excess: int = Field(default=0, description="Excess units (e)")
    eligible: bool = Field(default=True, description="Carrier may serve this location")

    model_config = ConfigDict(frozen=True)

    @property
    def total(self) -> int:
        """Regular plus excess units."""
        return self.regular + self.excess

    @model_validator(mode='after')
    def validate_ineligible_is_zero(self):
        """Ineligible pairs always report the zero sentinel."""
        if not self.eligible and (self.regular or self.excess):
            raise ValueError(
                f"Ineligible pair ({self.cargo_id}, {self.location_id}) has non-zero units"
            )
        return self


class CarrierAllocation(BaseModel):
    """Aggregated units and cost of one carrier."""
    cargo_id: str = Field(..., description="Carrier id")
    regular: int = Field(default=0, description="Regular units over all locations (yR)")
    excess: int = Field(default=0, description="Excess units over all locations (yE)")
    shortfall: int = Field(default=0, description="Units below minimum capacity (m)")
    total_assigned: int = Field(default=0, description="Regular + excess units")
    cost: float = Field(default=0.0, description="Regular + excess + demurrage cost")

    model_config = ConfigDict(frozen=True)

    @model_validator(mode='after')
    def validate_total_assigned(self):
        """Validate that total_assigned equals regular + excess."""
        if self.total_assigned != self.regular + self.excess:
            raise ValueError(
                f"Carrier {self.cargo_id}: total_assigned ({self.total_assigned}) "
                f"!= regular ({self.regular}) + excess ({self.excess})"
            )
        return self


# ============================================================================
# Top-Level Report Schema
# ============================================================================

class AllocationReport(BaseModel):
    """Top-level allocation result.

    Required Fields:
        - status: Terminal solver status
        - feasible: True when an allocation is available (optimal or feasible)
        - total_forecast: Echo of the input forecast (cross-check only)

    Allocation Fields (only populated when feasible):
        - total_cost: Realized objective value
        - carriers: Per-carrier totals, in input carrier order
        - assignments: Full carrier x location grid, in (carrier, location) input order

    Diagnostics:
        - warnings: Numeric inconsistencies found while interpreting
        - message: Human-readable outcome for non-success reports
    """

    status: AllocationStatus = Field(..., description="Terminal solver status")
    feasible: bool = Field(..., description="An allocation is available")
    total_forecast: float = Field(..., ge=0, description="Sum of location forecasts")
    total_cost: Optional[float] = Field(None, description="Realized objective value")
    carriers: List[CarrierAllocation] = Field(default_factory=list)
    assignments: List[PairAllocation] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)
    message: Optional[str] = Field(None)
    solver_name: Optional[str] = Field(None)
    solve_time_seconds: Optional[float] = Field(None, ge=0)
    gap: Optional[float] = Field(None, ge=0)

    model_config = ConfigDict(extra="forbid")

    @model_validator(mode='after')
    def validate_consistency(self):
        """Cross-field consistency validation."""
        has_solution = self.status in (AllocationStatus.OPTIMAL, AllocationStatus.FEASIBLE)
        if self.feasible != has_solution:
            raise ValueError(f"feasible={self.feasible} contradicts status {self.status.value}")
        if not self.feasible and (self.carriers or self.assignments):
            raise ValueError("A report without a feasible allocation must not carry allocations")
        if self.feasible and self.total_cost is None:
            raise ValueError("A feasible report requires total_cost")
        return self

    # ========================================================================
    # Helper Methods
    # ========================================================================

    def get_carrier(self, cargo_id: str) -> Optional[CarrierAllocation]:
        """Carrier totals by id (None if absent or not feasible)."""
        for carrier in self.carriers:
            if carrier.cargo_id == cargo_id:
                return carrier
        return None

    def get_assignment(self, cargo_id: str, location_id: str) -> Optional[PairAllocation]:
        """Pair allocation by ids (None if absent or not feasible)."""
        for pair in self.assignments:
            if pair.cargo_id == cargo_id and pair.location_id == location_id:
                return pair
        return None

    def assignments_for_location(self, location_id: str) -> List[PairAllocation]:
        """All carriers' allocations at one location, in carrier order."""
        return [p for p in self.assignments if p.location_id == location_id]

    @property
    def total_assigned(self) -> int:
        """Units assigned over all carriers."""
        return sum(c.total_assigned for c in self.carriers)

    def to_dataframes(self) -> Dict[str, pd.DataFrame]:
        """
        Tabular view of the report.

        Returns:
            {'carriers': DataFrame, 'assignments': DataFrame}; empty frames
            (with columns) when the report is not feasible
        """
        carrier_columns = list(CarrierAllocation.model_fields)
        pair_columns = list(PairAllocation.model_fields)
        return {
            'carriers': pd.DataFrame(
                [c.model_dump() for c in self.carriers], columns=carrier_columns
            ),
            'assignments': pd.DataFrame(
                [p.model_dump() for p in self.assignments], columns=pair_columns
            ),
        }

    def to_dict_json_safe(self) -> Dict[str, Any]:
        """Convert to a JSON-serializable dict."""
        return self.model_dump(mode='json')
