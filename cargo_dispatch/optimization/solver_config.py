"""Solver configuration for legacy Pyomo solver backends.

Detects which MILP solvers are installed, picks the best available one and
creates configured SolverFactory instances. HiGHS is reached through the APPSI
interface (see solver_adapter.AppsiHighsAdapter) and is not managed here.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional
import logging
import platform
import sys

from pyomo.environ import ConcreteModel, Constraint, Objective, SolverFactory, Var, minimize, value
from pyomo.opt import SolverStatus

logger = logging.getLogger(__name__)


class SolverType(str, Enum):
    """Legacy solver backends known to SolverConfig."""
    GUROBI = "gurobi"
    CPLEX = "cplex"
    ASL_CBC = "asl:cbc"
    CBC = "cbc"
    GLPK = "glpk"


#: Name of the time-limit option for each backend
TIME_LIMIT_OPTION = {
    SolverType.GUROBI.value: 'TimeLimit',
    SolverType.CPLEX.value: 'timelimit',
    SolverType.ASL_CBC.value: 'sec',
    SolverType.CBC.value: 'seconds',
    SolverType.GLPK.value: 'tmlim',
}


@dataclass
class SolverInfo:
    """
    Detection and test status of one solver backend.

    Attributes:
        name: Solver name as passed to SolverFactory
        available: Whether Pyomo can find the solver executable/library
        version: Solver version (if known)
        path: Executable path (if known)
        tested: Whether test_solver() has been run
        works: Whether the test solve succeeded
    """
    name: str
    available: bool
    version: Optional[str] = None
    path: Optional[str] = None
    tested: bool = False
    works: bool = False

    def __str__(self) -> str:
        """String representation."""
        if not self.available:
            return f"{self.name.upper()}: ✗ unavailable"
        result = f"{self.name.upper()}: ✓ available"
        if self.tested:
            result += " (tested)" if self.works else " (test failed)"
        return result


class SolverConfig:
    """
    Cross-platform solver detection and creation.

    Example:
        config = SolverConfig()
        print(config.get_available_solvers())
        solver = config.create_solver('cbc', options={'seconds': 30})
    """

    #: Preference order when no solver is named explicitly
    SOLVER_PREFERENCE = [
        SolverType.GUROBI,
        SolverType.CPLEX,
        SolverType.ASL_CBC,
        SolverType.CBC,
        SolverType.GLPK,
    ]

    def __init__(self):
        """Detect all known solvers."""
        self._solver_info: Dict[str, SolverInfo] = {}
        self._detect_solvers()

    def _detect_solvers(self) -> None:
        for solver_type in SolverType:
            name = solver_type.value
            try:
                available = bool(SolverFactory(name).available(exception_flag=False))
            except Exception as e:
                logger.debug(f"Solver detection failed for {name}: {e}")
                available = False
            self._solver_info[name] = SolverInfo(name=name, available=available)

    def get_available_solvers(self) -> List[str]:
        """Names of solvers Pyomo can find, in preference order."""
        return [
            s.value for s in self.SOLVER_PREFERENCE
            if self._solver_info[s.value].available
        ]

    def get_working_solvers(self) -> List[str]:
        """Names of solvers whose test solve succeeded."""
        return [
            s.value for s in self.SOLVER_PREFERENCE
            if self._solver_info[s.value].works
        ]

    def get_solver_info(self, solver_name: str) -> Optional[SolverInfo]:
        """Detection info for a solver, or None if it is not known."""
        return self._solver_info.get(solver_name)

    def get_best_available_solver(self, test_if_needed: bool = True) -> str:
        """
        Pick the most preferred available solver.

        Args:
            test_if_needed: Run a test solve and skip solvers that fail it

        Returns:
            Solver name

        Raises:
            RuntimeError: If no solver is available (or none passes its test)
        """
        for solver_name in self.get_available_solvers():
            if not test_if_needed:
                return solver_name
            info = self._solver_info[solver_name]
            if not info.tested:
                self.test_solver(solver_name)
            if info.works:
                return solver_name

        raise RuntimeError(
            "No optimization solver available. Install highspy (default backend) "
            "or one of: " + ", ".join(s.value for s in self.SOLVER_PREFERENCE)
        )

    def create_solver(self, solver_name: Optional[str] = None, options: Optional[Dict[str, Any]] = None):
        """
        Create a configured SolverFactory instance.

        Args:
            solver_name: Solver to create (None = best available)
            options: Solver options to set

        Returns:
            Pyomo solver instance

        Raises:
            RuntimeError: If the solver is unknown or not available
        """
        if solver_name is None:
            solver_name = self.get_best_available_solver(test_if_needed=False)

        if solver_name not in self._solver_info:
            raise RuntimeError(
                f"Unknown solver '{solver_name}'. Known solvers: {sorted(self._solver_info)}"
            )

        solver = SolverFactory(solver_name)
        if not solver.available(exception_flag=False):
            raise RuntimeError(f"Solver '{solver_name}' is not available on this system")

        for key, option_value in (options or {}).items():
            solver.options[key] = option_value

        return solver

    def test_solver(self, solver_name: str) -> bool:
        """
        Solve a one-variable model to check the solver actually works.

        Args:
            solver_name: Solver to test

        Returns:
            True if the test solve returned the expected value
        """
        info = self._solver_info.get(solver_name)
        if info is None:
            return False

        model = ConcreteModel()
        model.x = Var(bounds=(0, 10))
        model.c = Constraint(expr=model.x >= 1)
        model.obj = Objective(expr=model.x, sense=minimize)

        works = False
        try:
            solver = self.create_solver(solver_name)
            results = solver.solve(model)
            works = (
                results.solver.status == SolverStatus.ok
                and abs(value(model.x) - 1.0) < 1e-6
            )
        except Exception as e:
            logger.warning(f"Solver test failed for {solver_name}: {e}")

        info.tested = True
        info.works = works
        return works

    def test_all_solvers(self) -> Dict[str, bool]:
        """Test every available solver; unavailable ones report False."""
        return {
            name: (self.test_solver(name) if info.available else False)
            for name, info in self._solver_info.items()
        }

    def get_platform_info(self) -> Dict[str, str]:
        """Platform details useful when diagnosing solver installs."""
        return {
            'system': platform.system(),
            'release': platform.release(),
            'machine': platform.machine(),
            'python_version': sys.version.split()[0],
        }

    def print_solver_status(self) -> None:
        """Print detection status of every solver."""
        print("Solver status:")
        for solver_type in self.SOLVER_PREFERENCE:
            print(f"  {self._solver_info[solver_type.value]}")

    def print_platform_info(self) -> None:
        """Print platform details."""
        for key, item in self.get_platform_info().items():
            print(f"  {key}: {item}")


_global_config: Optional[SolverConfig] = None


def get_global_config() -> SolverConfig:
    """Process-wide SolverConfig, created on first use."""
    global _global_config
    if _global_config is None:
        _global_config = SolverConfig()
    return _global_config


def get_solver(solver_name: Optional[str] = None, options: Optional[Dict[str, Any]] = None):
    """Create a solver from the global configuration (None = best working solver)."""
    config = get_global_config()
    if solver_name is None:
        solver_name = config.get_best_available_solver(test_if_needed=True)
    return config.create_solver(solver_name, options)
