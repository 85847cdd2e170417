"""Tests for solver adapters.

Both adapters are tested against mocked backends; real HiGHS runs live in
test_cargo_allocation_model.py.
"""

from unittest.mock import Mock, patch

import pytest
from pyomo.contrib.appsi.base import TerminationCondition as AppsiTC
from pyomo.opt import TerminationCondition

from cargo_dispatch.optimization.cargo_model_builder import build_allocation_model
from cargo_dispatch.optimization.solver_adapter import (
    AppsiHighsAdapter,
    PyomoSolverAdapter,
    SolverUnavailableError,
    SolveStatus,
    create_solver_adapter,
)
from tests.fixtures.solver_mocks import create_mock_highs_class, create_mock_solver_config

OPTIMAL_50 = {
    "regular_units[A,L]": 50.0,
    "regular_total[A]": 50.0,
}


@pytest.fixture
def built_50(carrier_a, location_50):
    return build_allocation_model([carrier_a], [location_50])


class TestSolveStatus:
    """Tests for SolveStatus."""

    def test_has_solution(self):
        assert SolveStatus.OPTIMAL.has_solution
        assert SolveStatus.FEASIBLE.has_solution
        assert not SolveStatus.INFEASIBLE.has_solution
        assert not SolveStatus.UNKNOWN.has_solution


class TestAppsiHighsAdapter:
    """Tests for the APPSI HiGHS adapter with a mocked Highs class."""

    def test_optimal(self, built_50):
        highs = create_mock_highs_class(AppsiTC.optimal, objective=150.0, bound=150.0, values=OPTIMAL_50)
        with patch('cargo_dispatch.optimization.solver_adapter.Highs', highs):
            outcome = AppsiHighsAdapter().solve(built_50, 30.0)

        assert outcome.status == SolveStatus.OPTIMAL
        assert outcome.objective_value == 150.0
        assert outcome.gap == 0.0
        assert outcome.solver_name == "appsi_highs"
        assert outcome.valuation["regular_units[A,L]"] == 50.0
        assert outcome.valuation["demurrage_units[A]"] == 0.0

    def test_time_limit_with_incumbent_is_feasible(self, built_50):
        highs = create_mock_highs_class(AppsiTC.maxTimeLimit, objective=160.0, bound=150.0, values=OPTIMAL_50)
        with patch('cargo_dispatch.optimization.solver_adapter.Highs', highs):
            outcome = AppsiHighsAdapter().solve(built_50, 7.5)

        instance = highs.return_value
        assert instance.config.time_limit == 7.5
        assert instance.config.load_solution is False
        assert outcome.status == SolveStatus.FEASIBLE
        assert outcome.objective_value == 160.0
        assert outcome.gap == pytest.approx(10.0 / 160.0)

    @pytest.mark.parametrize("termination", [
        AppsiTC.maxTimeLimit,
        AppsiTC.maxIterations,
        AppsiTC.interrupted,
        AppsiTC.objectiveLimit,
    ])
    def test_limit_stop_with_incumbent_is_feasible(self, built_50, termination):
        """Every early stop that leaves an incumbent hands it back as FEASIBLE."""
        highs = create_mock_highs_class(termination, objective=150.0, bound=140.0, values=OPTIMAL_50)
        with patch('cargo_dispatch.optimization.solver_adapter.Highs', highs):
            outcome = AppsiHighsAdapter().solve(built_50, 1.0)

        assert outcome.status == SolveStatus.FEASIBLE
        assert outcome.valuation["regular_units[A,L]"] == 50.0
        assert outcome.objective_value == 150.0
        highs.return_value.last_results.solution_loader.load_vars.assert_called_once()

    @pytest.mark.parametrize("termination", [
        AppsiTC.maxTimeLimit,
        AppsiTC.maxIterations,
        AppsiTC.interrupted,
        AppsiTC.objectiveLimit,
    ])
    @pytest.mark.parametrize("objective", [None, float('inf')])
    def test_limit_stop_without_incumbent_is_unknown(self, built_50, termination, objective):
        highs = create_mock_highs_class(termination, objective=objective)
        with patch('cargo_dispatch.optimization.solver_adapter.Highs', highs):
            outcome = AppsiHighsAdapter().solve(built_50, 1.0)

        assert outcome.status == SolveStatus.UNKNOWN
        assert outcome.valuation == {}
        assert outcome.objective_value is None
        highs.return_value.last_results.solution_loader.load_vars.assert_not_called()

    @pytest.mark.parametrize("termination", [AppsiTC.error, AppsiTC.unknown, AppsiTC.unbounded])
    def test_other_terminations_are_unknown(self, built_50, termination):
        highs = create_mock_highs_class(termination, objective=150.0, values=OPTIMAL_50)
        with patch('cargo_dispatch.optimization.solver_adapter.Highs', highs):
            outcome = AppsiHighsAdapter().solve(built_50, 1.0)

        assert outcome.status == SolveStatus.UNKNOWN
        assert outcome.valuation == {}

    @pytest.mark.parametrize("termination", [AppsiTC.infeasible, AppsiTC.infeasibleOrUnbounded])
    def test_infeasible(self, built_50, termination):
        highs = create_mock_highs_class(termination)
        with patch('cargo_dispatch.optimization.solver_adapter.Highs', highs):
            outcome = AppsiHighsAdapter().solve(built_50, 1.0)

        assert outcome.status == SolveStatus.INFEASIBLE
        assert outcome.valuation == {}
        assert outcome.objective_value is None

    def test_unavailable_raises(self, built_50):
        highs = create_mock_highs_class(AppsiTC.optimal, available=False)
        with patch('cargo_dispatch.optimization.solver_adapter.Highs', highs):
            with pytest.raises(SolverUnavailableError, match="not available"):
                AppsiHighsAdapter().solve(built_50, 1.0)

    def test_highs_options(self, built_50):
        highs = create_mock_highs_class(AppsiTC.optimal, objective=150.0, values=OPTIMAL_50)
        with patch('cargo_dispatch.optimization.solver_adapter.Highs', highs):
            AppsiHighsAdapter(highs_options={'presolve': 'off', 'mip_rel_gap': 0.01}).solve(built_50, 1.0)

        options = highs.return_value.highs_options
        assert options['presolve'] == 'off'
        assert options['mip_rel_gap'] == 0.01
        assert options['threads'] >= 1


class TestPyomoSolverAdapter:
    """Tests for the legacy SolverFactory adapter with a mocked SolverConfig."""

    def test_optimal(self, built_50):
        config = create_mock_solver_config(values=OPTIMAL_50)
        outcome = PyomoSolverAdapter('cbc', solver_config=config).solve(built_50, 12.0)

        assert outcome.status == SolveStatus.OPTIMAL
        assert outcome.solver_name == 'cbc'
        assert outcome.objective_value == pytest.approx(150.0)
        assert outcome.valuation["regular_total[A]"] == 50.0

    @pytest.mark.parametrize("solver_name, option_key", [
        ('cbc', 'seconds'),
        ('asl:cbc', 'sec'),
        ('gurobi', 'TimeLimit'),
        ('cplex', 'timelimit'),
        ('glpk', 'tmlim'),
    ])
    def test_time_limit_option(self, built_50, solver_name, option_key):
        config = create_mock_solver_config(values=OPTIMAL_50)
        PyomoSolverAdapter(solver_name, solver_config=config).solve(built_50, 12.0)

        assert config.created_solvers[0].options[option_key] == 12.0

    def test_best_available_when_unnamed(self, built_50):
        config = create_mock_solver_config(values=OPTIMAL_50)
        outcome = PyomoSolverAdapter(solver_config=config).solve(built_50, 5.0)

        config.get_best_available_solver.assert_called_once()
        assert outcome.solver_name == 'cbc'

    def test_time_limit_with_solution_is_feasible(self, built_50):
        config = create_mock_solver_config(TerminationCondition.maxTimeLimit, values=OPTIMAL_50)
        outcome = PyomoSolverAdapter('cbc', solver_config=config).solve(built_50, 1.0)

        assert outcome.status == SolveStatus.FEASIBLE
        assert outcome.valuation["regular_units[A,L]"] == 50.0

    def test_time_limit_without_solution_is_unknown(self, built_50):
        config = create_mock_solver_config(TerminationCondition.maxTimeLimit, has_solution=False)
        outcome = PyomoSolverAdapter('cbc', solver_config=config).solve(built_50, 1.0)

        assert outcome.status == SolveStatus.UNKNOWN
        assert outcome.valuation == {}

    def test_infeasible(self, built_50):
        config = create_mock_solver_config(TerminationCondition.infeasible, has_solution=False)
        outcome = PyomoSolverAdapter('cbc', solver_config=config).solve(built_50, 1.0)

        assert outcome.status == SolveStatus.INFEASIBLE
        assert "infeasible" in outcome.message

    def test_unavailable_backend_raises(self, built_50):
        config = Mock()
        config.create_solver.side_effect = RuntimeError("Solver 'cbc' is not available on this system")

        with pytest.raises(SolverUnavailableError, match="not available"):
            PyomoSolverAdapter('cbc', solver_config=config).solve(built_50, 1.0)


class TestCreateSolverAdapter:
    """Tests for create_solver_adapter."""

    @pytest.mark.parametrize("name", [None, "appsi_highs"])
    def test_highs_default(self, name):
        adapter = create_solver_adapter(name)
        assert isinstance(adapter, AppsiHighsAdapter)
        assert adapter.name == "appsi_highs"

    def test_legacy_backend(self):
        adapter = create_solver_adapter("glpk")
        assert isinstance(adapter, PyomoSolverAdapter)
        assert adapter.name == "glpk"
