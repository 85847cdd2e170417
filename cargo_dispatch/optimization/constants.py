"""Centralized constants for the cargo allocation model.

This module contains the hardcoded values used across the optimization
package: solver time budget, variable bounds and numeric tolerances.
"""

# ============================================================================
# SOLVER CONSTANTS
# ============================================================================

#: Default wall-clock budget for one solve (seconds)
DEFAULT_TIME_LIMIT_SECONDS = 30.0

#: Default solver backend (Pyomo APPSI interface to HiGHS)
DEFAULT_SOLVER_NAME = "appsi_highs"

#: HiGHS options applied on every solve
HIGHS_OPTIONS = {
    'presolve': 'on',
    'parallel': 'on',
    'mip_detect_symmetry': True,
}


# ============================================================================
# VARIABLE DOMAIN CONSTANTS
# ============================================================================

#: Finite upper bound for every integer decision variable
#: (largest 32-bit signed integer)
INTEGER_UPPER_BOUND = 2**31 - 1


# ============================================================================
# NUMERIC TOLERANCES
# ============================================================================

#: Absolute tolerance when comparing solver values against constraint bounds
VALUE_TOLERANCE = 1e-5

#: Relative tolerance when comparing the solver objective to recomputed costs
OBJECTIVE_RELATIVE_TOLERANCE = 1e-6
