"""Tests for the solution interpreter.

Outcomes come from ScriptedSolverAdapter, so no solver is needed.
"""

import logging

import pytest

from cargo_dispatch.optimization.cargo_model_builder import build_allocation_model
from cargo_dispatch.optimization.result_schema import AllocationStatus
from cargo_dispatch.optimization.solution_interpreter import (
    MAX_REPORTED_VIOLATIONS,
    NO_FEASIBLE_ALLOCATION,
    SolutionInterpreter,
    round_half_away_from_zero,
)
from cargo_dispatch.optimization.solver_adapter import SolveStatus
from tests.fixtures.solver_mocks import ScriptedSolverAdapter

#: Optimal allocation of carrier A at a location with forecast 50
OPTIMAL_50 = {
    "regular_units[A,L]": 50.0,
    "regular_total[A]": 50.0,
}


def interpret(cargos, locations, adapter, interpreter=None):
    built = build_allocation_model(cargos, locations)
    outcome = adapter.solve(built, 30.0)
    return (interpreter or SolutionInterpreter()).interpret(built, outcome, cargos, locations)


class TestRounding:
    """Tests for round_half_away_from_zero."""

    @pytest.mark.parametrize("raw, expected", [
        (0.0, 0),
        (2.5, 3),
        (-2.5, -3),
        (49.9999996, 50),
        (0.4999, 0),
        (1e-7, 0),
        (-0.6, -1),
        (7.0, 7),
    ])
    def test_round(self, raw, expected):
        assert round_half_away_from_zero(raw) == expected


class TestFeasibleReport:
    """Tests for reports built from a solution."""

    def test_optimal_single_carrier(self, carrier_a, location_50):
        """Test the canonical single-carrier solution is reported exactly."""
        report = interpret([carrier_a], [location_50], ScriptedSolverAdapter(values=OPTIMAL_50))

        assert report.status == AllocationStatus.OPTIMAL
        assert report.feasible
        assert report.total_cost == pytest.approx(150.0)
        assert report.total_forecast == 50
        assert report.warnings == []

        carrier = report.get_carrier("A")
        assert carrier.regular == 50
        assert carrier.excess == 0
        assert carrier.shortfall == 0
        assert carrier.total_assigned == 50
        assert carrier.cost == pytest.approx(150.0)

        pair = report.get_assignment("A", "L")
        assert pair.regular == 50
        assert pair.excess == 0
        assert pair.eligible

    def test_feasible_status_preserved(self, carrier_a, location_50):
        """Test a time-limited FEASIBLE outcome is reported as feasible."""
        adapter = ScriptedSolverAdapter(status=SolveStatus.FEASIBLE, values=OPTIMAL_50)
        report = interpret([carrier_a], [location_50], adapter)

        assert report.status == AllocationStatus.FEASIBLE
        assert report.feasible

    def test_near_integer_values_rounded_without_warnings(self, carrier_a, location_50):
        """Test solver noise within tolerance rounds silently."""
        values = {
            "regular_units[A,L]": 49.9999996,
            "regular_total[A]": 49.9999996,
        }
        report = interpret([carrier_a], [location_50], ScriptedSolverAdapter(values=values))

        assert report.get_carrier("A").regular == 50
        assert report.get_assignment("A", "L").regular == 50
        assert report.warnings == []

    def test_full_grid_with_zero_sentinel(self, turkish_carriers, turkish_locations):
        """Test every carrier x location pair is reported, ineligible ones as 0."""
        interpreter = SolutionInterpreter(check_constraints=False)
        report = interpret(turkish_carriers, turkish_locations, ScriptedSolverAdapter(), interpreter)

        assert len(report.assignments) == len(turkish_carriers) * len(turkish_locations)
        assert [(p.cargo_id, p.location_id) for p in report.assignments[:4]] == [
            ("YK", "Erguvan"), ("YK", "Lale"), ("YK", "Menekse"), ("YK", "Papatya"),
        ]

        ineligible = report.get_assignment("TEX", "Erguvan")
        assert ineligible.eligible is False
        assert ineligible.regular == 0
        assert ineligible.excess == 0

        assert [c.cargo_id for c in report.carriers] == ["YK", "MNG", "TEX"]
        assert len(report.assignments_for_location("Lale")) == 3

    def test_demurrage_cost_included(self, carrier_a):
        """Test shortfall below the minimum is charged at the demurrage rate."""
        from cargo_dispatch.models import Location

        location = Location(id="L", forecast=5, eligible_cargo_ids={"A"})
        values = {
            "regular_units[A,L]": 5.0,
            "regular_total[A]": 5.0,
            "demurrage_units[A]": 5.0,
        }
        report = interpret([carrier_a], [location], ScriptedSolverAdapter(values=values))

        assert report.total_cost == pytest.approx(265.0)
        assert report.get_carrier("A").shortfall == 5
        assert report.warnings == []


class TestNumericWarnings:
    """Tests for inconsistencies surfaced as warnings."""

    def test_negative_value_not_clamped(self, carrier_a, location_50):
        """Test a negative rounded value is reported and warned about."""
        values = dict(OPTIMAL_50)
        values["excess_units[A,L]"] = -0.6
        report = interpret([carrier_a], [location_50], ScriptedSolverAdapter(values=values))

        assert report.get_assignment("A", "L").excess == -1
        assert any("negative" in w and "excess_units[A,L]" in w for w in report.warnings)

    def test_aggregate_mismatch(self, carrier_a, location_50):
        """Test a carrier total differing from its pair sum is warned about."""
        values = {"regular_units[A,L]": 50.0, "regular_total[A]": 40.0}
        report = interpret([carrier_a], [location_50], ScriptedSolverAdapter(values=values))

        assert any("regular total 40 != sum over locations 50" in w for w in report.warnings)
        assert report.get_carrier("A").regular == 40

    def test_objective_mismatch(self, carrier_a, location_50):
        """Test a solver objective far from the recomputed cost is warned about."""
        adapter = ScriptedSolverAdapter(values=OPTIMAL_50, objective_value=999.0)
        report = interpret([carrier_a], [location_50], adapter)

        assert report.total_cost == 999.0
        assert any(w.startswith("Objective mismatch") for w in report.warnings)

    def test_missing_value(self, carrier_a, location_50):
        """Test variables without a value are reported as 0 with a warning."""
        adapter = ScriptedSolverAdapter(values={"regular_units[A,L]": 50.0}, omit_missing=True)
        report = interpret([carrier_a], [location_50], adapter)

        assert report.get_carrier("A").regular == 0
        assert any("regular_total[A]: solver returned no value" in w for w in report.warnings)

    def test_constraint_violations_capped(self, turkish_carriers, turkish_locations):
        """Test constraint violations are listed up to a limit, then summarized."""
        adapter = ScriptedSolverAdapter(values={"regular_total[TEX]": 0.5})
        report = interpret(turkish_carriers, turkish_locations, adapter)

        # 3 forecast rows, 2 minimums, 1 aggregation row and 1 fractional value
        assert any(w.startswith("forecast_satisfaction_con[") for w in report.warnings)
        assert any(w.startswith("... ") and "more constraint violations" in w for w in report.warnings)
        listed = [w for w in report.warnings if "_con[" in w]
        assert len(listed) == MAX_REPORTED_VIOLATIONS

    def test_warnings_are_logged(self, carrier_a, location_50, caplog):
        """Test each warning is also logged at WARNING level."""
        adapter = ScriptedSolverAdapter(values=OPTIMAL_50, objective_value=999.0)
        with caplog.at_level(logging.WARNING, logger="cargo_dispatch"):
            interpret([carrier_a], [location_50], adapter)

        assert any("Objective mismatch" in r.getMessage() for r in caplog.records)


class TestNoSolution:
    """Tests for outcomes without a solution."""

    @pytest.mark.parametrize("status", [SolveStatus.INFEASIBLE, SolveStatus.UNKNOWN])
    def test_no_feasible_allocation(self, carrier_a, location_50, status):
        adapter = ScriptedSolverAdapter(status=status, message="Termination: infeasible")
        report = interpret([carrier_a], [location_50], adapter)

        assert report.status.value == status.value
        assert not report.feasible
        assert report.message == f"{NO_FEASIBLE_ALLOCATION} (Termination: infeasible)"
        assert report.total_cost is None
        assert report.carriers == []
        assert report.assignments == []
        assert report.total_forecast == 50
