"""Solution interpreter: from raw solver values to an AllocationReport.

The solver returns floating-point values for integer variables, so every value
is rounded half away from zero before it is reported. Rounding never hides
problems: negative results, aggregate mismatches, objective mismatches and
violated constraints are logged and listed in AllocationReport.warnings.
"""

from typing import List, Sequence
import logging
import math

from ..models import Cargo, Location
from .cargo_model_builder import BuiltModel
from .constants import OBJECTIVE_RELATIVE_TOLERANCE, VALUE_TOLERANCE
from .result_schema import AllocationReport, AllocationStatus, CarrierAllocation, PairAllocation
from .solver_adapter import SolveOutcome
from .validation_utils import check_constraint_satisfaction

logger = logging.getLogger(__name__)

NO_FEASIBLE_ALLOCATION = "No feasible solution exists"

#: Constraint violations listed individually before summarizing
MAX_REPORTED_VIOLATIONS = 5


def round_half_away_from_zero(raw: float) -> int:
    """Round to the nearest integer, ties away from zero (2.5 -> 3, -2.5 -> -3)."""
    return int(math.copysign(math.floor(abs(raw) + 0.5), raw))


class SolutionInterpreter:
    """
    Turns a SolveOutcome into an AllocationReport.

    Example:
        interpreter = SolutionInterpreter()
        report = interpreter.interpret(built, outcome, cargos, locations)
        if report.feasible:
            print(report.get_carrier("YK").total_assigned)
    """

    def __init__(
        self,
        objective_tolerance: float = OBJECTIVE_RELATIVE_TOLERANCE,
        check_constraints: bool = True,
    ):
        """
        Args:
            objective_tolerance: Relative tolerance between the solver objective
                and the cost recomputed from rounded values
            check_constraints: Re-check every constraint row on the raw valuation
        """
        self.objective_tolerance = objective_tolerance
        self.check_constraints = check_constraints

    def interpret(
        self,
        built: BuiltModel,
        outcome: SolveOutcome,
        cargos: Sequence[Cargo],
        locations: Sequence[Location],
    ) -> AllocationReport:
        """
        Interpret one solve outcome.

        Args:
            built: Model the outcome belongs to (not yet released)
            outcome: Adapter result
            cargos: Carriers in report order
            locations: Locations in report order

        Returns:
            AllocationReport; a "no feasible allocation" report when the status
            carries no solution
        """
        total_forecast = sum(loc.forecast for loc in locations)
        status = AllocationStatus(outcome.status.value)

        if not outcome.status.has_solution:
            message = NO_FEASIBLE_ALLOCATION
            if outcome.message:
                message += f" ({outcome.message})"
            logger.info(message)
            return AllocationReport(
                status=status,
                feasible=False,
                total_forecast=total_forecast,
                message=message,
                solver_name=outcome.solver_name,
                solve_time_seconds=outcome.solve_time_seconds,
            )

        warnings: List[str] = []
        valuation = outcome.valuation
        model = built.model

        def rounded(name: str) -> int:
            raw = valuation.get(name)
            if raw is None:
                warnings.append(f"{name}: solver returned no value, reported as 0")
                return 0
            result = round_half_away_from_zero(raw)
            if result < 0:
                warnings.append(f"{name}: rounded value {result} is negative (raw {raw:g})")
            return result

        assignments: List[PairAllocation] = []
        regular_by_cargo = {c.id: 0 for c in cargos}
        excess_by_cargo = {c.id: 0 for c in cargos}

        for cargo in cargos:
            for location in locations:
                if not built.is_eligible(cargo.id, location.id):
                    assignments.append(PairAllocation(
                        cargo_id=cargo.id,
                        location_id=location.id,
                        eligible=False,
                    ))
                    continue
                regular = rounded(model.regular_units[cargo.id, location.id].name)
                excess = rounded(model.excess_units[cargo.id, location.id].name)
                regular_by_cargo[cargo.id] += regular
                excess_by_cargo[cargo.id] += excess
                assignments.append(PairAllocation(
                    cargo_id=cargo.id,
                    location_id=location.id,
                    regular=regular,
                    excess=excess,
                ))

        carriers: List[CarrierAllocation] = []
        for cargo in cargos:
            regular = rounded(model.regular_total[cargo.id].name)
            excess = rounded(model.excess_total[cargo.id].name)
            shortfall = rounded(model.demurrage_units[cargo.id].name)

            if regular != regular_by_cargo[cargo.id]:
                warnings.append(
                    f"Cargo {cargo.id}: regular total {regular} != "
                    f"sum over locations {regular_by_cargo[cargo.id]}"
                )
            if excess != excess_by_cargo[cargo.id]:
                warnings.append(
                    f"Cargo {cargo.id}: excess total {excess} != "
                    f"sum over locations {excess_by_cargo[cargo.id]}"
                )

            carriers.append(CarrierAllocation(
                cargo_id=cargo.id,
                regular=regular,
                excess=excess,
                shortfall=shortfall,
                total_assigned=regular + excess,
                cost=(
                    cargo.regular_cost * regular
                    + cargo.excess_cost * excess
                    + cargo.demurrage_cost * shortfall
                ),
            ))

        recomputed_cost = sum(c.cost for c in carriers)
        total_cost = outcome.objective_value
        if total_cost is None:
            total_cost = recomputed_cost
        elif abs(total_cost - recomputed_cost) > self.objective_tolerance * max(1.0, abs(total_cost)):
            warnings.append(
                f"Objective mismatch: solver reported {total_cost:,.2f}, "
                f"rounded allocation costs {recomputed_cost:,.2f}"
            )

        if self.check_constraints:
            violations = check_constraint_satisfaction(built, valuation, VALUE_TOLERANCE)
            warnings.extend(violations[:MAX_REPORTED_VIOLATIONS])
            if len(violations) > MAX_REPORTED_VIOLATIONS:
                warnings.append(
                    f"... {len(violations) - MAX_REPORTED_VIOLATIONS} more constraint violations"
                )

        for warning in warnings:
            logger.warning(f"Numeric inconsistency: {warning}")

        return AllocationReport(
            status=status,
            feasible=True,
            total_forecast=total_forecast,
            total_cost=total_cost,
            carriers=carriers,
            assignments=assignments,
            warnings=warnings,
            solver_name=outcome.solver_name,
            solve_time_seconds=outcome.solve_time_seconds,
            gap=outcome.gap,
        )
