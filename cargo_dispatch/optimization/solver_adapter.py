"""Solver adapters: the boundary between the allocation model and MILP engines.

An adapter accepts a built linear model and a time budget, runs one blocking
solve, and returns a SolveOutcome with a status and a variable valuation. The
allocation model never sees solver internals, so backends can be swapped
without touching the builder or the interpreter.

Available adapters:
- AppsiHighsAdapter: HiGHS through Pyomo's APPSI interface (default)
- PyomoSolverAdapter: any legacy SolverFactory backend (Gurobi, CPLEX, CBC, GLPK)
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional
import logging
import math
import os
import time

from pyomo.contrib.appsi.base import TerminationCondition as AppsiTC
from pyomo.contrib.appsi.solvers import Highs
from pyomo.environ import Var, value
from pyomo.opt import TerminationCondition

from .cargo_model_builder import BuiltModel
from .constants import DEFAULT_SOLVER_NAME, HIGHS_OPTIONS
from .solver_config import TIME_LIMIT_OPTION, SolverConfig, get_global_config

logger = logging.getLogger(__name__)


class SolverUnavailableError(RuntimeError):
    """Raised by adapters when their backend cannot be created."""
    pass


class SolveStatus(str, Enum):
    """Terminal outcome of one solve attempt."""
    OPTIMAL = "optimal"
    FEASIBLE = "feasible"
    INFEASIBLE = "infeasible"
    UNKNOWN = "unknown"

    @property
    def has_solution(self) -> bool:
        """True if the outcome carries a usable valuation."""
        return self in (SolveStatus.OPTIMAL, SolveStatus.FEASIBLE)


@dataclass
class SolveOutcome:
    """
    Result of one adapter solve.

    Attributes:
        status: Terminal solve status
        valuation: Variable name -> value (only populated when status has a solution)
        objective_value: Objective of the returned valuation
        solve_time_seconds: Wall-clock time spent in the solver
        solver_name: Backend that produced the outcome
        gap: Relative MIP gap (if known)
        message: Solver or adapter message for non-success outcomes
    """
    status: SolveStatus
    valuation: Dict[str, float] = field(default_factory=dict)
    objective_value: Optional[float] = None
    solve_time_seconds: Optional[float] = None
    solver_name: Optional[str] = None
    gap: Optional[float] = None
    message: Optional[str] = None


def _relative_gap(objective: Optional[float], bound: Optional[float]) -> Optional[float]:
    if objective is None or bound is None:
        return None
    if not (math.isfinite(objective) and math.isfinite(bound)) or abs(objective) <= 1e-10:
        return None
    return abs((objective - bound) / objective)


class SolverAdapter(ABC):
    """
    Capability interface for an external MILP engine.

    Implementations must be synchronous, honour the time limit, and return the
    best incumbent (FEASIBLE) or UNKNOWN when the limit expires. Each call
    creates its own native solver instance.
    """

    name: str = "abstract"

    @abstractmethod
    def solve(self, built: BuiltModel, time_limit_seconds: float) -> SolveOutcome:
        """
        Solve the built model within a time budget.

        Args:
            built: Model produced by build_allocation_model()
            time_limit_seconds: Wall-clock budget for the search

        Returns:
            SolveOutcome with status and valuation
        """
        raise NotImplementedError("Subclass must implement solve()")

    @staticmethod
    def read_valuation(built: BuiltModel) -> Dict[str, float]:
        """Collect loaded variable values keyed by variable name."""
        return {
            var.name: float(var.value)
            for var in built.model.component_data_objects(Var, descend_into=True)
            if var.value is not None
        }


class AppsiHighsAdapter(SolverAdapter):
    """
    HiGHS through Pyomo's APPSI (Advanced Persistent Solver Interface).

    Solutions are loaded into the model only when HiGHS reports an incumbent,
    so infeasible or empty time-limited runs never leave partial values behind.
    """

    name = "appsi_highs"

    def __init__(self, highs_options: Optional[Dict[str, Any]] = None, tee: bool = False):
        """
        Args:
            highs_options: Extra HiGHS options (override the defaults)
            tee: Stream solver output
        """
        self.highs_options = dict(HIGHS_OPTIONS)
        self.highs_options['threads'] = os.cpu_count() or 4
        self.highs_options.update(highs_options or {})
        self.tee = tee

    def available(self) -> bool:
        """True if the highspy bindings can be loaded."""
        return int(Highs().available()) > 0

    def solve(self, built: BuiltModel, time_limit_seconds: float) -> SolveOutcome:
        solver = Highs()
        if int(solver.available()) <= 0:
            raise SolverUnavailableError(
                f"Solver {self.name} is not available. Install highspy: pip install highspy"
            )
        solver.config.time_limit = time_limit_seconds
        solver.config.load_solution = False
        solver.config.stream_solver = self.tee
        for key, option_value in self.highs_options.items():
            solver.highs_options[key] = option_value

        logger.info(f"Solver {self.name} starts (time limit {time_limit_seconds}s)")
        solve_start = time.time()
        results = solver.solve(built.model)
        solve_time = time.time() - solve_start

        termination = results.termination_condition
        incumbent = results.best_feasible_objective
        has_incumbent = incumbent is not None and math.isfinite(incumbent)

        if termination == AppsiTC.optimal:
            status = SolveStatus.OPTIMAL
        elif termination in (AppsiTC.infeasible, AppsiTC.infeasibleOrUnbounded):
            status = SolveStatus.INFEASIBLE
        elif has_incumbent and termination in (
            AppsiTC.maxTimeLimit,
            AppsiTC.maxIterations,
            AppsiTC.interrupted,
            AppsiTC.objectiveLimit,
        ):
            status = SolveStatus.FEASIBLE
        else:
            status = SolveStatus.UNKNOWN

        outcome = SolveOutcome(
            status=status,
            solve_time_seconds=solve_time,
            solver_name=self.name,
            message=f"Termination: {termination}",
        )

        if status.has_solution:
            results.solution_loader.load_vars()
            outcome.valuation = self.read_valuation(built)
            outcome.objective_value = incumbent if has_incumbent else value(built.model.obj)
            outcome.gap = _relative_gap(outcome.objective_value, results.best_objective_bound)

        logger.info(f"Solver {self.name} stops after {solve_time:.2f}s: {status.value} ({termination})")
        return outcome


class PyomoSolverAdapter(SolverAdapter):
    """
    Any legacy Pyomo SolverFactory backend managed by SolverConfig.

    The backend-specific time-limit option (TimeLimit, timelimit, seconds, tmlim)
    is set from the requested budget.
    """

    FEASIBLE_TERMINATIONS = (
        TerminationCondition.feasible,
        TerminationCondition.maxTimeLimit,
        TerminationCondition.maxIterations,
        TerminationCondition.maxEvaluations,
        TerminationCondition.userInterrupt,
        TerminationCondition.intermediateNonInteger,
    )

    INFEASIBLE_TERMINATIONS = (
        TerminationCondition.infeasible,
        TerminationCondition.infeasibleOrUnbounded,
    )

    def __init__(
        self,
        solver_name: Optional[str] = None,
        solver_config: Optional[SolverConfig] = None,
        options: Optional[Dict[str, Any]] = None,
        tee: bool = False,
    ):
        """
        Args:
            solver_name: Backend name (None = best available)
            solver_config: SolverConfig to create solvers from (None = global config)
            options: Extra solver options
            tee: Stream solver output
        """
        self.solver_name = solver_name
        self.solver_config = solver_config
        self.options = dict(options or {})
        self.tee = tee

    @property
    def name(self) -> str:
        return self.solver_name or "pyomo"

    def solve(self, built: BuiltModel, time_limit_seconds: float) -> SolveOutcome:
        config = self.solver_config or get_global_config()
        try:
            solver_name = self.solver_name or config.get_best_available_solver(test_if_needed=False)
            options = dict(self.options)
            option_key = TIME_LIMIT_OPTION.get(solver_name)
            if option_key is not None:
                options[option_key] = time_limit_seconds
            solver = config.create_solver(solver_name, options)
        except RuntimeError as e:
            raise SolverUnavailableError(str(e)) from e

        logger.info(f"Solver {solver_name} starts (time limit {time_limit_seconds}s)")
        solve_start = time.time()
        results = solver.solve(built.model, tee=self.tee, load_solutions=False)
        solve_time = time.time() - solve_start

        termination = results.solver.termination_condition
        has_solution = len(results.solution) > 0

        if termination == TerminationCondition.optimal:
            status = SolveStatus.OPTIMAL
        elif termination in self.INFEASIBLE_TERMINATIONS:
            status = SolveStatus.INFEASIBLE
        elif has_solution and termination in self.FEASIBLE_TERMINATIONS:
            status = SolveStatus.FEASIBLE
        else:
            status = SolveStatus.UNKNOWN

        message = f"Status: {results.solver.status}, Termination: {termination}"
        if getattr(results.solver, 'message', None):
            message += f", Message: {results.solver.message}"

        outcome = SolveOutcome(
            status=status,
            solve_time_seconds=solve_time,
            solver_name=solver_name,
            message=message,
        )

        if status.has_solution:
            built.model.solutions.load_from(results)
            outcome.valuation = self.read_valuation(built)
            outcome.objective_value = value(built.model.obj)
            outcome.gap = _relative_gap(
                getattr(results.problem, 'upper_bound', None),
                getattr(results.problem, 'lower_bound', None),
            )

        logger.info(f"Solver {solver_name} stops after {solve_time:.2f}s: {status.value} ({termination})")
        return outcome


def create_solver_adapter(
    solver_name: Optional[str] = None,
    solver_config: Optional[SolverConfig] = None,
    tee: bool = False,
) -> SolverAdapter:
    """
    Create the adapter for a solver name.

    Args:
        solver_name: 'appsi_highs' or None for HiGHS, otherwise a SolverFactory name
        solver_config: SolverConfig for legacy backends
        tee: Stream solver output

    Returns:
        SolverAdapter instance
    """
    if solver_name is None or solver_name == DEFAULT_SOLVER_NAME:
        return AppsiHighsAdapter(tee=tee)
    return PyomoSolverAdapter(solver_name=solver_name, solver_config=solver_config, tee=tee)
