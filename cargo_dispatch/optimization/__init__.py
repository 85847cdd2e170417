"""Optimization module for weekly cargo allocation.

This module provides the Pyomo-based MILP that assigns each location's
forecast to eligible carriers in regular and excess units, minimizing regular,
excess and demurrage cost. The default solver is HiGHS through Pyomo's APPSI
interface; legacy SolverFactory backends are available through SolverConfig.
"""

from .solver_config import (
    SolverConfig,
    SolverType,
    SolverInfo,
    get_global_config,
    get_solver,
)
from .cargo_model_builder import (
    BuiltModel,
    ConstraintRow,
    ModelConfigurationError,
    build_allocation_model,
)
from .solver_adapter import (
    AppsiHighsAdapter,
    PyomoSolverAdapter,
    SolveOutcome,
    SolverAdapter,
    SolverUnavailableError,
    SolveStatus,
    create_solver_adapter,
)
from .result_schema import (
    AllocationReport,
    AllocationStatus,
    CarrierAllocation,
    PairAllocation,
)
from .solution_interpreter import SolutionInterpreter
from .validation_utils import check_constraint_satisfaction
from .base_model import (
    BaseOptimizationModel,
    OptimizationResult,
)
from .cargo_allocation_model import (
    CargoAllocationModel,
)

__all__ = [
    # Solver configuration
    "SolverConfig",
    "SolverType",
    "SolverInfo",
    "get_global_config",
    "get_solver",
    # Model builder
    "BuiltModel",
    "ConstraintRow",
    "ModelConfigurationError",
    "build_allocation_model",
    # Solver adapters
    "AppsiHighsAdapter",
    "PyomoSolverAdapter",
    "SolveOutcome",
    "SolverAdapter",
    "SolverUnavailableError",
    "SolveStatus",
    "create_solver_adapter",
    # Results
    "AllocationReport",
    "AllocationStatus",
    "CarrierAllocation",
    "PairAllocation",
    "SolutionInterpreter",
    "check_constraint_satisfaction",
    # Base model
    "BaseOptimizationModel",
    "OptimizationResult",
    # Allocation model
    "CargoAllocationModel",
]
