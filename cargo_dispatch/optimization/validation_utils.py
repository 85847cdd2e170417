"""Validation utilities for allocation solutions.

Provides checks that catch solver precision problems BEFORE they reach the
report consumers.

Design Philosophy: DETECT and DESCRIBE
- Check values against the constraint rows actually built
- Provide actionable messages naming the row and the violation
- Never modify the values being checked
"""

from typing import Dict, List, Optional
import logging

from .cargo_model_builder import BuiltModel, ConstraintRow
from .constants import VALUE_TOLERANCE

logger = logging.getLogger(__name__)


def _row_label(row: ConstraintRow) -> str:
    index = ",".join(str(i) for i in row.index)
    return f"{row.component}[{index}]"


def find_constraint_violations(
    rows: List[ConstraintRow],
    valuation: Dict[str, float],
    tolerance: float = VALUE_TOLERANCE,
) -> List[str]:
    """Check constraint rows against a valuation.

    Args:
        rows: Constraint rows (from BuiltModel.describe_constraints())
        valuation: Variable name -> value; missing variables count as 0
        tolerance: Absolute tolerance on each bound

    Returns:
        List of violation messages (empty if every row holds)
    """
    violations = []
    for row in rows:
        body = row.evaluate(valuation)
        if row.lower is not None and body < row.lower - tolerance:
            violations.append(
                f"{_row_label(row)}: {body:g} < lower bound {row.lower:g}"
            )
        if row.upper is not None and body > row.upper + tolerance:
            violations.append(
                f"{_row_label(row)}: {body:g} > upper bound {row.upper:g}"
            )
    return violations


def check_constraint_satisfaction(
    built: BuiltModel,
    valuation: Dict[str, float],
    tolerance: float = VALUE_TOLERANCE,
) -> List[str]:
    """Check every hard constraint and variable domain of a built model.

    Args:
        built: Model the valuation belongs to
        valuation: Variable name -> value
        tolerance: Absolute tolerance for bounds and integrality

    Returns:
        List of violation messages (empty if the valuation is feasible)
    """
    violations = find_constraint_violations(built.describe_constraints(), valuation, tolerance)

    for name in built.variable_names():
        val: Optional[float] = valuation.get(name)
        if val is None:
            violations.append(f"{name}: no value")
            continue
        if val < -tolerance:
            violations.append(f"{name}: {val:g} is negative")
        if abs(val - round(val)) > tolerance:
            violations.append(f"{name}: {val:g} is not integral")

    if violations:
        logger.debug(f"Valuation violates {len(violations)} checks, first: {violations[0]}")
    return violations
