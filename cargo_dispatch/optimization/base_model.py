"""Base class for optimization models.

This module provides an abstract base class for models that follow the
build -> solve -> interpret -> release cycle, providing common functionality
for timing, solver error handling and result bookkeeping.

IMPORTANT: extract_solution() must return a Pydantic validated report.
Schema violations are programming errors and are re-raised, never swallowed.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, TYPE_CHECKING
import logging
import time

from pydantic import ValidationError

from .cargo_model_builder import BuiltModel
from .constants import DEFAULT_TIME_LIMIT_SECONDS
from .solver_adapter import (
    SolveOutcome,
    SolverAdapter,
    SolverUnavailableError,
    SolveStatus,
    create_solver_adapter,
)

if TYPE_CHECKING:
    from .result_schema import AllocationReport

logger = logging.getLogger(__name__)


@dataclass
class OptimizationResult:
    """
    Results from optimization model solve.

    Attributes:
        success: Whether the solver returned a usable solution
        status: Terminal solve status
        objective_value: Objective of the returned solution
        solve_time_seconds: Time spent in the solver (seconds)
        build_time_seconds: Time spent building the model (seconds)
        solver_name: Name of solver used
        gap: MIP gap (if applicable)
        num_variables: Number of decision variables
        num_constraints: Number of constraint rows
        infeasibility_message: Why no solution is available (if applicable)
        metadata: Additional result metadata
    """
    success: bool
    status: SolveStatus = SolveStatus.UNKNOWN
    objective_value: Optional[float] = None
    solve_time_seconds: Optional[float] = None
    build_time_seconds: Optional[float] = None
    solver_name: Optional[str] = None
    gap: Optional[float] = None
    num_variables: int = 0
    num_constraints: int = 0
    infeasibility_message: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    def is_optimal(self) -> bool:
        """Check if solution is optimal."""
        return self.success and self.status == SolveStatus.OPTIMAL

    def is_feasible(self) -> bool:
        """Check if solution is usable (optimal, or feasible after hitting the time limit)."""
        return self.success and self.status.has_solution

    def is_infeasible(self) -> bool:
        """Check if model is infeasible."""
        return self.status == SolveStatus.INFEASIBLE

    def __str__(self) -> str:
        """String representation."""
        result = f"OptimizationResult: {self.status.value.upper()}"
        if self.objective_value is not None:
            result += f", objective = {self.objective_value:,.2f}"
        if self.solve_time_seconds is not None:
            result += f", time = {self.solve_time_seconds:.2f}s"
        return result


class BaseOptimizationModel(ABC):
    """
    Abstract base class for optimization models.

    Subclasses implement:
    - build_model(): Construct the BuiltModel
    - extract_solution(): Interpret a SolveOutcome into a validated report

    This base class provides:
    - Solver adapter selection and time budget
    - The solve workflow with timing and error handling
    - Release of the built model
    - Model statistics

    Example:
        model = CargoAllocationModel(cargos, locations, time_limit_seconds=60)
        report = model.run()
        if report.feasible:
            print(f"Total cost: {report.total_cost:,.2f}")
    """

    def __init__(
        self,
        solver: Optional[SolverAdapter] = None,
        time_limit_seconds: float = DEFAULT_TIME_LIMIT_SECONDS,
    ):
        """
        Initialize optimization model.

        Args:
            solver: SolverAdapter instance. If None, uses the default HiGHS adapter.
            time_limit_seconds: Wall-clock budget for the solve
        """
        if time_limit_seconds <= 0:
            raise ValueError(f"time_limit_seconds must be positive, got {time_limit_seconds}")

        self.solver = solver or create_solver_adapter()
        self.time_limit_seconds = time_limit_seconds
        self.model: Optional[BuiltModel] = None
        self.result: Optional[OptimizationResult] = None
        self.outcome: Optional[SolveOutcome] = None
        self.solution: Optional['AllocationReport'] = None
        self._build_time: Optional[float] = None

    @abstractmethod
    def build_model(self) -> BuiltModel:
        """
        Build and return the optimization model.

        Returns:
            BuiltModel with variables, constraints, and objective
        """
        raise NotImplementedError("Subclass must implement build_model()")

    @abstractmethod
    def extract_solution(self, model: BuiltModel, outcome: SolveOutcome) -> 'AllocationReport':
        """
        Interpret a solve outcome.

        Args:
            model: Solved (not yet released) BuiltModel
            outcome: Adapter result

        Returns:
            AllocationReport (Pydantic model)

        Raises:
            ValidationError: If report data doesn't conform to schema
        """
        raise NotImplementedError("Subclass must implement extract_solution()")

    def solve_built_model(self, model: BuiltModel) -> SolveOutcome:
        """Run the adapter on a built model. Subclasses may short-circuit."""
        return self.solver.solve(model, self.time_limit_seconds)

    def solve(self) -> OptimizationResult:
        """
        Build, solve and interpret the model once.

        The built model stays in self.model until release() is called.

        Returns:
            OptimizationResult with solve status and objective value
        """
        build_start = time.time()
        self.model = self.build_model()
        self._build_time = time.time() - build_start

        try:
            outcome = self.solve_built_model(self.model)
        except SolverUnavailableError as e:
            logger.warning(f"Solver unavailable: {e}")
            outcome = SolveOutcome(
                status=SolveStatus.UNKNOWN,
                solver_name=self.solver.name,
                message=str(e),
            )
        self.outcome = outcome

        result = OptimizationResult(
            success=outcome.status.has_solution,
            status=outcome.status,
            objective_value=outcome.objective_value,
            solve_time_seconds=outcome.solve_time_seconds,
            build_time_seconds=self._build_time,
            solver_name=outcome.solver_name,
            gap=outcome.gap,
            num_variables=self.model.num_variables(),
            num_constraints=self.model.num_constraints(),
        )
        if outcome.status == SolveStatus.INFEASIBLE:
            result.infeasibility_message = (
                "Model is infeasible. Constraints cannot all be satisfied simultaneously."
            )
        elif not outcome.status.has_solution:
            result.infeasibility_message = f"Solver failed - {outcome.message}"
        self.result = result

        try:
            self.solution = self.extract_solution(self.model, outcome)
        except ValidationError as ve:
            # Report schema violations are bugs in extract_solution()
            logger.error(f"CRITICAL: Model violates AllocationReport schema: {ve}")
            raise

        result.metadata['warnings'] = list(self.solution.warnings)
        return result

    def release(self) -> None:
        """Release the built model (its variables and constraints)."""
        if self.model is not None and not self.model.is_released:
            self.model.release()

    def get_solution(self) -> Optional['AllocationReport']:
        """
        Get the report from the last solve.

        Returns:
            AllocationReport, or None if not solved
        """
        return self.solution

    def get_model_statistics(self) -> Dict[str, Any]:
        """
        Get statistics about the model.

        Returns:
            Dictionary with model statistics
        """
        if self.model is None or self.model.is_released:
            return {
                'built': False,
                'num_variables': 0,
                'num_constraints': 0,
            }

        return {
            'built': True,
            'build_time_seconds': self._build_time,
            'num_variables': self.model.num_variables(),
            'num_constraints': self.model.num_constraints(),
            'constraints_by_component': self.model.constraint_counts(),
        }

    def get_build_time(self) -> Optional[float]:
        """
        Get model build time in seconds.

        Returns:
            Build time in seconds, or None if model not built
        """
        return self._build_time

    def reset(self):
        """
        Reset the model state.

        Releases the built model and clears results and solution.
        """
        self.release()
        self.model = None
        self.result = None
        self.outcome = None
        self.solution = None
        self._build_time = None
