"""Cargo allocation model: one build -> solve -> interpret -> release cycle.

Example:
    from cargo_dispatch.models import Cargo, Location
    from cargo_dispatch.optimization import CargoAllocationModel

    cargos = [Cargo(id="YK", min_capacity=10, max_capacity=100, excess_capacity=20,
                    regular_cost=3, excess_cost=5, demurrage_cost=50)]
    locations = [Location(id="L1", forecast=50, eligible_cargo_ids={"YK"})]

    report = CargoAllocationModel(cargos, locations).run()
    print(report.total_cost)  # 150.0
"""

from typing import List, Optional, Sequence
import logging

from ..models import Cargo, Location
from .base_model import BaseOptimizationModel
from .cargo_model_builder import BuiltModel, build_allocation_model
from .constants import DEFAULT_TIME_LIMIT_SECONDS
from .result_schema import AllocationReport
from .solution_interpreter import SolutionInterpreter
from .solver_adapter import SolveOutcome, SolverAdapter, SolveStatus

logger = logging.getLogger(__name__)


class CargoAllocationModel(BaseOptimizationModel):
    """
    Weekly cargo allocation across carriers and locations.

    Assigns each location's forecast to eligible carriers in regular and
    excess units, minimizing regular, excess and demurrage cost subject to
    carrier capacities and coverage shares.

    Attributes:
        cargos: Carriers in input order
        locations: Locations in input order
        explicit_nonnegativity: Emit redundant x >= 0 rows
        interpreter: SolutionInterpreter turning outcomes into reports
    """

    def __init__(
        self,
        cargos: Sequence[Cargo],
        locations: Sequence[Location],
        solver: Optional[SolverAdapter] = None,
        time_limit_seconds: float = DEFAULT_TIME_LIMIT_SECONDS,
        explicit_nonnegativity: bool = False,
        interpreter: Optional[SolutionInterpreter] = None,
    ):
        """
        Initialize the allocation model.

        Args:
            cargos: Ordered carrier list
            locations: Ordered location list with eligibility
            solver: SolverAdapter (None = HiGHS through APPSI)
            time_limit_seconds: Wall-clock budget for the solver
            explicit_nonnegativity: Emit explicit non-negativity rows
            interpreter: Custom SolutionInterpreter (None = default tolerances)
        """
        super().__init__(solver=solver, time_limit_seconds=time_limit_seconds)
        self.cargos: List[Cargo] = list(cargos)
        self.locations: List[Location] = list(locations)
        self.explicit_nonnegativity = explicit_nonnegativity
        self.interpreter = interpreter or SolutionInterpreter()

    def build_model(self) -> BuiltModel:
        return build_allocation_model(
            self.cargos,
            self.locations,
            explicit_nonnegativity=self.explicit_nonnegativity,
        )

    def solve_built_model(self, model: BuiltModel) -> SolveOutcome:
        """Solve, unless some location with forecast has no eligible carrier."""
        if model.structurally_infeasible:
            message = (
                f"Locations with forecast but no eligible cargo: "
                f"{', '.join(model.unservable_locations)}"
            )
            logger.info(f"Skipping solver: {message}")
            return SolveOutcome(
                status=SolveStatus.INFEASIBLE,
                solver_name=self.solver.name,
                message=message,
            )
        return super().solve_built_model(model)

    def extract_solution(self, model: BuiltModel, outcome: SolveOutcome) -> AllocationReport:
        return self.interpreter.interpret(model, outcome, self.cargos, self.locations)

    def run(self) -> AllocationReport:
        """
        Run one full allocation cycle.

        The built model is released on every exit path, so no variables or
        constraints outlive the cycle.

        Returns:
            AllocationReport (feasible or "no feasible allocation")

        Raises:
            ModelConfigurationError: If the inputs are inconsistent
        """
        try:
            result = self.solve()
            logger.info(str(result))
            return self.solution
        finally:
            self.release()

    def print_solution_summary(self) -> None:
        """Print the report of the last run."""
        from ..reporting import print_solution_summary

        if self.solution is None:
            print("No solution available. Run the model first.")
            return
        print_solution_summary(self.solution, self.locations)
