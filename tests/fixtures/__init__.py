"""Test fixtures for allocation model testing."""

from .solver_mocks import ScriptedSolverAdapter, create_mock_solver_config, create_mock_solver

__all__ = ['ScriptedSolverAdapter', 'create_mock_solver_config', 'create_mock_solver']
