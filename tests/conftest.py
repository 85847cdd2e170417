"""Pytest configuration and shared fixtures."""

import pytest

from cargo_dispatch.models import Cargo, Location
from cargo_dispatch.optimization.solver_adapter import AppsiHighsAdapter
from tests.fixtures.solver_mocks import create_mock_solver_config


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "solver_required: test needs a working HiGHS installation (highspy)")
    config.addinivalue_line("markers", "integration: end-to-end allocation cycle")
    config.addinivalue_line("markers", "slow: test takes more than a few seconds")


def pytest_collection_modifyitems(config, items):
    """Skip solver_required tests when HiGHS is not installed."""
    if AppsiHighsAdapter().available():
        return
    skip_solver = pytest.mark.skip(reason="HiGHS not available (pip install highspy)")
    for item in items:
        if "solver_required" in item.keywords:
            item.add_marker(skip_solver)


@pytest.fixture
def carrier_a():
    """Fixture for a carrier with min 10, max 100, excess 20, costs 3/5/50."""
    return Cargo(
        id="A",
        min_capacity=10,
        max_capacity=100,
        excess_capacity=20,
        regular_cost=3,
        excess_cost=5,
        demurrage_cost=50,
        coverage_rate=1.0,
    )


@pytest.fixture
def location_50():
    """Fixture for a location with forecast 50 served by carrier A."""
    return Location(id="L", forecast=50, eligible_cargo_ids={"A"})


@pytest.fixture
def turkish_carriers():
    """Fixture for a realistic carrier set with mixed coverage rates."""
    return [
        Cargo(id="YK", min_capacity=100, max_capacity=400, excess_capacity=100,
              regular_cost=10, excess_cost=14, demurrage_cost=6, coverage_rate=0.8),
        Cargo(id="MNG", min_capacity=50, max_capacity=300, excess_capacity=50,
              regular_cost=9, excess_cost=13, demurrage_cost=5, coverage_rate=0.6),
        Cargo(id="TEX", min_capacity=0, max_capacity=200, excess_capacity=0,
              regular_cost=12, excess_cost=12, demurrage_cost=0, coverage_rate=1.0),
    ]


@pytest.fixture
def turkish_locations():
    """Fixture for locations with partial eligibility over turkish_carriers."""
    return [
        Location(id="Erguvan", forecast=120, eligible_cargo_ids={"YK", "MNG"}),
        Location(id="Lale", forecast=200, eligible_cargo_ids={"YK", "MNG", "TEX"}),
        Location(id="Menekse", forecast=80, eligible_cargo_ids={"MNG", "TEX"}),
        Location(id="Papatya", forecast=0, eligible_cargo_ids={"TEX"}),
    ]


@pytest.fixture
def mock_solver_config():
    """
    Fixture for mock solver configuration.

    Provides a mock SolverConfig whose solvers return an all-zero optimal
    solution without requiring actual solver binaries.

    Returns:
        Mock SolverConfig object with create_solver() method
    """
    return create_mock_solver_config()
