"""
Command-line entry point: allocate a week of shipments to carriers.

Usage:
    cargo-dispatch cargo.csv locations.csv [--time-limit 30] [--output-prefix out/week]
    cargo-dispatch network.xlsx

Exit codes:
    0 - a feasible allocation was found
    1 - input error (missing file, malformed table, inconsistent data)
    2 - no feasible allocation (infeasible, or no solution within the time limit)
"""

import argparse
import logging
import sys
from typing import List, Optional

from .optimization import CargoAllocationModel, ModelConfigurationError, create_solver_adapter
from .optimization.constants import DEFAULT_SOLVER_NAME, DEFAULT_TIME_LIMIT_SECONDS
from .parsers import CargoDataParser
from .reporting import export_report, print_solution_summary

EXIT_OK = 0
EXIT_INPUT_ERROR = 1
EXIT_NO_ALLOCATION = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cargo-dispatch",
        description="Allocate weekly location forecasts to carriers at minimum cost",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    cargo-dispatch cargo.csv locations.csv
    cargo-dispatch network.xlsx --time-limit 60
    cargo-dispatch cargo.csv locations.csv --output-prefix results/week42
        """,
    )

    parser.add_argument(
        "cargo_file",
        type=str,
        help="Carrier table (.csv) or workbook with 'Cargo' and 'LocationCargo' sheets",
    )

    parser.add_argument(
        "location_file",
        type=str,
        nargs="?",
        help="Location-carrier table (.csv); optional for workbooks",
    )

    parser.add_argument(
        "--time-limit",
        type=float,
        default=DEFAULT_TIME_LIMIT_SECONDS,
        help=f"Solver time limit in seconds (default: {DEFAULT_TIME_LIMIT_SECONDS:g})",
    )

    parser.add_argument(
        "--solver",
        type=str,
        default=DEFAULT_SOLVER_NAME,
        help=f"Solver backend: {DEFAULT_SOLVER_NAME}, gurobi, cplex, asl:cbc, cbc, glpk "
             f"(default: {DEFAULT_SOLVER_NAME})",
    )

    parser.add_argument(
        "--explicit-nonnegativity",
        action="store_true",
        help="Emit explicit non-negativity constraints",
    )

    parser.add_argument(
        "--output-prefix",
        type=str,
        default=None,
        help="Write <prefix>_carriers.csv and <prefix>_assignments.csv",
    )

    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Verbose output",
    )

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the cargo dispatch CLI."""
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s:%(name)s:%(message)s",
    )

    if args.time_limit <= 0:
        print(f"❌ Error: --time-limit must be positive, got {args.time_limit:g}", file=sys.stderr)
        return EXIT_INPUT_ERROR

    try:
        parser = CargoDataParser(args.cargo_file, args.location_file)
        cargos, locations = parser.parse_all()
    except (FileNotFoundError, ValueError) as e:
        print(f"❌ Error: {e}", file=sys.stderr)
        return EXIT_INPUT_ERROR

    print(f"🔄 Allocating {len(locations)} locations to {len(cargos)} carriers...")

    model = CargoAllocationModel(
        cargos,
        locations,
        solver=create_solver_adapter(args.solver, tee=args.verbose),
        time_limit_seconds=args.time_limit,
        explicit_nonnegativity=args.explicit_nonnegativity,
    )

    try:
        report = model.run()
    except ModelConfigurationError as e:
        print(f"❌ Error: {e}", file=sys.stderr)
        return EXIT_INPUT_ERROR

    print_solution_summary(report, locations)

    if args.output_prefix and report.feasible:
        written = export_report(report, args.output_prefix)
        for path in written.values():
            print(f"💾 Saved: {path}")

    return EXIT_OK if report.feasible else EXIT_NO_ALLOCATION


if __name__ == "__main__":
    sys.exit(main())
