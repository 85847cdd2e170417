"""Cargo allocation MILP builder.

This module translates carriers, locations and their eligibility into a
Pyomo mixed-integer program that minimizes weekly distribution cost.

Decision Variables:
- regular_units[cargo, location]: Regular units of a carrier at a location (x)
- excess_units[cargo, location]: Excess units of a carrier at a location (e)
- regular_total[cargo]: Regular units of a carrier over all locations (yR)
- excess_total[cargo]: Excess units of a carrier over all locations (yE)
- demurrage_units[cargo]: Units a carrier falls short of its minimum (m)

Pair variables exist only for eligible (cargo, location) pairs, so an
ineligible pair can never receive volume.

Constraints:
- Forecast satisfaction: Eligible carriers cover each location's forecast
- Regular aggregation: Pair regular units sum to the carrier total
- Excess aggregation: Pair excess units sum to the carrier total
- Coverage: A carrier serves at most coverage_rate of a location's forecast
- Capacity: regular <= max, regular + excess + demurrage >= min, excess <= excess capacity
- Non-negativity: Optional, already implied by the variable domains

Objective:
- Minimize: regular cost + excess cost + demurrage cost over all carriers
"""

from dataclasses import dataclass, field
from typing import Dict, FrozenSet, List, Optional, Sequence, Tuple
import logging
import time

from pyomo.environ import (
    ConcreteModel,
    Constraint,
    ConstraintList,
    NonNegativeIntegers,
    Objective,
    Set,
    Var,
    minimize,
)
from pyomo.repn import generate_standard_repn

from ..models import Cargo, Location
from .constants import INTEGER_UPPER_BOUND

logger = logging.getLogger(__name__)

#: (cargo_id, location_id)
PairKey = Tuple[str, str]

#: Constraint components in generation order
CONSTRAINT_COMPONENTS = (
    'forecast_satisfaction_con',
    'regular_aggregation_con',
    'excess_aggregation_con',
    'coverage_con',
    'max_capacity_con',
    'min_capacity_con',
    'excess_capacity_con',
    'nonnegativity_con',
)


class ModelConfigurationError(ValueError):
    """Raised when carriers and locations cannot form an allocation model."""
    pass


@dataclass(frozen=True)
class ConstraintRow:
    """Canonical, order-independent view of one linear constraint.

    Attributes:
        component: Constraint component name (e.g., 'coverage_con')
        index: Constraint index as a tuple
        coefficients: (variable name, coefficient) pairs sorted by name
        lower: Lower bound after moving constants to the bounds (None = unbounded)
        upper: Upper bound after moving constants to the bounds (None = unbounded)
    """
    component: str
    index: Tuple
    coefficients: Tuple[Tuple[str, float], ...]
    lower: Optional[float]
    upper: Optional[float]

    def evaluate(self, valuation: Dict[str, float]) -> float:
        """Evaluate the constraint body for a variable valuation (missing = 0)."""
        return sum(coef * valuation.get(name, 0.0) for name, coef in self.coefficients)


@dataclass(frozen=True, eq=False)
class BuiltModel:
    """
    Immutable result of one model build.

    Holds the Pyomo model together with the index sets it was built from.
    The Pyomo model is owned by this value for one build/solve/release cycle
    and must be released with release() once the solution has been read.

    Attributes:
        model: Pyomo ConcreteModel with variables, objective and constraints
        cargo_ids: Carrier ids in input order
        location_ids: Location ids in input order
        eligible_pairs: (cargo_id, location_id) pairs carrying variables
        unservable_locations: Locations with positive forecast and no eligible carrier
        forecast_by_location: Forecast per location id
        explicit_nonnegativity: Whether explicit x >= 0 rows were emitted
    """
    model: ConcreteModel
    cargo_ids: Tuple[str, ...]
    location_ids: Tuple[str, ...]
    eligible_pairs: Tuple[PairKey, ...]
    unservable_locations: Tuple[str, ...]
    forecast_by_location: Dict[str, float]
    explicit_nonnegativity: bool = False
    _eligible_set: FrozenSet[PairKey] = field(default=frozenset(), repr=False)

    @property
    def total_forecast(self) -> float:
        """Sum of all location forecasts."""
        return sum(self.forecast_by_location.values())

    @property
    def structurally_infeasible(self) -> bool:
        """True if some location has forecast but nobody may serve it."""
        return bool(self.unservable_locations)

    @property
    def is_released(self) -> bool:
        """True once release() has removed the model components."""
        return next(iter(self.model.component_objects(descend_into=False)), None) is None

    def is_eligible(self, cargo_id: str, location_id: str) -> bool:
        """Check if a (cargo, location) pair carries decision variables."""
        return (cargo_id, location_id) in self._eligible_set

    def variable_names(self) -> List[str]:
        """Names of all decision variables in declaration order."""
        return [var.name for var in self.model.component_data_objects(Var, descend_into=True)]

    def num_variables(self) -> int:
        """Number of decision variables."""
        return len(self.variable_names())

    def num_constraints(self) -> int:
        """Number of constraint rows over all components."""
        return sum(self.constraint_counts().values())

    def constraint_counts(self) -> Dict[str, int]:
        """
        Count constraint rows per component.

        Returns:
            Dictionary mapping component name to number of rows
            (components that were not generated are reported as 0)
        """
        counts = {}
        for name in CONSTRAINT_COMPONENTS:
            component = self.model.component(name)
            counts[name] = len(component) if component is not None else 0
        return counts

    def describe_constraints(self) -> List[ConstraintRow]:
        """
        Describe every constraint in a canonical form.

        Two builds from identical inputs produce identical descriptions,
        regardless of the order carriers or eligibility were supplied in.

        Returns:
            List of ConstraintRow sorted by (component, index)
        """
        rows: List[ConstraintRow] = []
        for name in CONSTRAINT_COMPONENTS:
            component = self.model.component(name)
            if component is None:
                continue
            for index, con in component.items():
                repn = generate_standard_repn(con.body, compute_values=True)
                coefficients = tuple(sorted(
                    (var.name, float(coef))
                    for var, coef in zip(repn.linear_vars, repn.linear_coefs)
                ))
                constant = float(repn.constant or 0.0)
                lower = None if con.lb is None else float(con.lb) - constant
                upper = None if con.ub is None else float(con.ub) - constant
                rows.append(ConstraintRow(
                    component=name,
                    index=index if isinstance(index, tuple) else (index,),
                    coefficients=coefficients,
                    lower=lower,
                    upper=upper,
                ))
        return sorted(rows, key=lambda r: (r.component, tuple(str(i) for i in r.index)))

    def release(self) -> None:
        """Remove every component from the Pyomo model, dropping its variables."""
        for component in list(self.model.component_objects(descend_into=False)):
            self.model.del_component(component)


@dataclass
class _BuildContext:
    """Working state threaded through the build phases of one model."""
    cargos: Tuple[Cargo, ...]
    locations: Tuple[Location, ...]
    cargo_ids_by_location: Dict[str, Tuple[str, ...]]
    location_ids_by_cargo: Dict[str, Tuple[str, ...]]
    eligible_pairs: Tuple[PairKey, ...]
    unservable_locations: Tuple[str, ...]
    explicit_nonnegativity: bool
    model: ConcreteModel = field(default_factory=lambda: ConcreteModel(name="CargoAllocation"))

    @property
    def cargo_by_id(self) -> Dict[str, Cargo]:
        return {c.id: c for c in self.cargos}

    @property
    def forecast_by_location(self) -> Dict[str, float]:
        return {loc.id: loc.forecast for loc in self.locations}

    def freeze(self) -> BuiltModel:
        """Turn the completed context into an immutable BuiltModel."""
        return BuiltModel(
            model=self.model,
            cargo_ids=tuple(c.id for c in self.cargos),
            location_ids=tuple(loc.id for loc in self.locations),
            eligible_pairs=self.eligible_pairs,
            unservable_locations=self.unservable_locations,
            forecast_by_location=self.forecast_by_location,
            explicit_nonnegativity=self.explicit_nonnegativity,
            _eligible_set=frozenset(self.eligible_pairs),
        )


def _validate_inputs(cargos: Sequence[Cargo], locations: Sequence[Location]) -> None:
    """
    Check the preconditions of a model build.

    Raises:
        ModelConfigurationError: If either input is empty, an id is duplicated,
            or a location references a carrier that was not supplied
    """
    if not cargos:
        raise ModelConfigurationError("At least one cargo is required to build the allocation model")
    if not locations:
        raise ModelConfigurationError("At least one location is required to build the allocation model")

    cargo_ids = [c.id for c in cargos]
    duplicates = sorted({cid for cid in cargo_ids if cargo_ids.count(cid) > 1})
    if duplicates:
        raise ModelConfigurationError(f"Duplicate cargo ids: {duplicates}")

    location_ids = [loc.id for loc in locations]
    duplicates = sorted({lid for lid in location_ids if location_ids.count(lid) > 1})
    if duplicates:
        raise ModelConfigurationError(f"Duplicate location ids: {duplicates}")

    known = set(cargo_ids)
    for location in locations:
        unknown = sorted(location.eligible_cargo_ids - known)
        if unknown:
            raise ModelConfigurationError(
                f"Location {location.id} references unknown cargo ids: {unknown}"
            )


def _create_context(
    cargos: Sequence[Cargo],
    locations: Sequence[Location],
    explicit_nonnegativity: bool,
) -> _BuildContext:
    """Derive the eligibility index sets used by every build phase."""
    cargo_ids_by_location = {
        loc.id: tuple(c.id for c in cargos if loc.is_eligible(c))
        for loc in locations
    }
    location_ids_by_cargo = {
        c.id: tuple(loc.id for loc in locations if loc.is_eligible(c))
        for c in cargos
    }
    eligible_pairs = tuple(
        (c.id, loc.id)
        for c in cargos
        for loc in locations
        if loc.is_eligible(c)
    )
    unservable = tuple(
        loc.id for loc in locations
        if loc.forecast > 0 and not cargo_ids_by_location[loc.id]
    )
    return _BuildContext(
        cargos=tuple(cargos),
        locations=tuple(locations),
        cargo_ids_by_location=cargo_ids_by_location,
        location_ids_by_cargo=location_ids_by_cargo,
        eligible_pairs=eligible_pairs,
        unservable_locations=unservable,
        explicit_nonnegativity=explicit_nonnegativity,
    )


def _create_variables(ctx: _BuildContext) -> None:
    """Create index sets and integer decision variables."""
    model = ctx.model
    domain = dict(within=NonNegativeIntegers, bounds=(0, INTEGER_UPPER_BOUND))

    model.cargos = Set(initialize=[c.id for c in ctx.cargos], doc="Carrier ids")
    model.locations = Set(initialize=[loc.id for loc in ctx.locations], doc="Location ids")
    model.eligible_pairs = Set(
        dimen=2,
        initialize=list(ctx.eligible_pairs),
        doc="(cargo, location) pairs allowed to carry volume"
    )

    model.regular_units = Var(model.eligible_pairs, **domain, doc="Regular units by cargo and location (x)")
    model.excess_units = Var(model.eligible_pairs, **domain, doc="Excess units by cargo and location (e)")
    model.regular_total = Var(model.cargos, **domain, doc="Regular units assigned to cargo (yR)")
    model.excess_total = Var(model.cargos, **domain, doc="Excess units assigned to cargo (yE)")
    model.demurrage_units = Var(model.cargos, **domain, doc="Units below minimum capacity (m)")


def _create_objective(ctx: _BuildContext) -> None:
    """Create the cost objective; costs apply to carrier aggregates only."""
    model = ctx.model

    def objective_rule(model):
        return sum(
            cargo.regular_cost * model.regular_total[cargo.id]
            + cargo.excess_cost * model.excess_total[cargo.id]
            + cargo.demurrage_cost * model.demurrage_units[cargo.id]
            for cargo in ctx.cargos
        )

    model.obj = Objective(
        rule=objective_rule,
        sense=minimize,
        doc="Minimize regular + excess + demurrage cost"
    )


def _create_constraints(ctx: _BuildContext) -> None:
    """Create all constraint families in their presentation order."""
    model = ctx.model
    cargo_by_id = ctx.cargo_by_id
    forecast = ctx.forecast_by_location

    def forecast_satisfaction_rule(model, l):
        eligible = ctx.cargo_ids_by_location[l]
        if not eligible:
            # Zero forecast needs no row; positive forecast is in unservable_locations
            return Constraint.Skip
        return sum(
            model.regular_units[c, l] + model.excess_units[c, l] for c in eligible
        ) == forecast[l]

    model.forecast_satisfaction_con = Constraint(
        model.locations,
        rule=forecast_satisfaction_rule,
        doc="Eligible carriers cover the location forecast"
    )

    def regular_aggregation_rule(model, c):
        return sum(
            model.regular_units[c, l] for l in ctx.location_ids_by_cargo[c]
        ) == model.regular_total[c]

    model.regular_aggregation_con = Constraint(
        model.cargos,
        rule=regular_aggregation_rule,
        doc="Regular units sum to carrier regular total"
    )

    def excess_aggregation_rule(model, c):
        return sum(
            model.excess_units[c, l] for l in ctx.location_ids_by_cargo[c]
        ) == model.excess_total[c]

    model.excess_aggregation_con = Constraint(
        model.cargos,
        rule=excess_aggregation_rule,
        doc="Excess units sum to carrier excess total"
    )

    def coverage_rule(model, c, l):
        rhs = cargo_by_id[c].coverage_rate * forecast[l]
        return model.regular_units[c, l] + model.excess_units[c, l] <= rhs

    model.coverage_con = Constraint(
        model.eligible_pairs,
        rule=coverage_rule,
        doc="Carrier share of a location forecast"
    )

    def max_capacity_rule(model, c):
        return model.regular_total[c] <= cargo_by_id[c].max_capacity

    model.max_capacity_con = Constraint(
        model.cargos,
        rule=max_capacity_rule,
        doc="Regular units within maximum capacity"
    )

    def min_capacity_rule(model, c):
        return (
            model.regular_total[c] + model.excess_total[c] + model.demurrage_units[c]
            >= cargo_by_id[c].min_capacity
        )

    model.min_capacity_con = Constraint(
        model.cargos,
        rule=min_capacity_rule,
        doc="Assigned units plus demurrage reach minimum capacity"
    )

    def excess_capacity_rule(model, c):
        return model.excess_total[c] <= cargo_by_id[c].excess_capacity

    model.excess_capacity_con = Constraint(
        model.cargos,
        rule=excess_capacity_rule,
        doc="Excess units within excess capacity"
    )

    if ctx.explicit_nonnegativity:
        model.nonnegativity_con = ConstraintList(doc="Explicit non-negativity rows")
        for var in model.component_data_objects(Var, descend_into=True):
            model.nonnegativity_con.add(var >= 0)


def build_allocation_model(
    cargos: Sequence[Cargo],
    locations: Sequence[Location],
    explicit_nonnegativity: bool = False,
) -> BuiltModel:
    """
    Build the cargo allocation MILP.

    Args:
        cargos: Ordered carrier list
        locations: Ordered location list (eligibility embedded in each location)
        explicit_nonnegativity: Emit redundant x >= 0 rows for every variable

    Returns:
        BuiltModel holding the Pyomo model and its index sets

    Raises:
        ModelConfigurationError: If the inputs violate the build preconditions

    Example:
        built = build_allocation_model(cargos, locations)
        print(built.constraint_counts())
    """
    _validate_inputs(cargos, locations)

    logger.info(f"Model construction starts: {len(cargos)} cargos, {len(locations)} locations")
    build_start = time.time()

    ctx = _create_context(cargos, locations, explicit_nonnegativity)
    try:
        _create_variables(ctx)
        _create_objective(ctx)
        _create_constraints(ctx)
    except Exception:
        # Drop the partial model so no half-built state escapes
        for component in list(ctx.model.component_objects(descend_into=False)):
            ctx.model.del_component(component)
        raise

    built = ctx.freeze()

    logger.info(
        f"Model construction ends in {time.time() - build_start:.3f}s: "
        f"{len(built.eligible_pairs)} eligible pairs, "
        f"{built.num_variables()} variables, {built.num_constraints()} constraints"
    )
    if built.unservable_locations:
        logger.warning(
            f"Locations with forecast but no eligible cargo: {list(built.unservable_locations)}"
        )

    return built
