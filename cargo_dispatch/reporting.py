"""Human-readable and tabular output of allocation reports."""

from pathlib import Path
from typing import Dict, List, Sequence
import logging

from .models import Location
from .optimization.result_schema import AllocationReport

logger = logging.getLogger(__name__)


def format_report(report: AllocationReport, locations: Sequence[Location]) -> str:
    """
    Render a report as text.

    Shows the total cost and total weekly forecast, the distribution of each
    location's forecast over its carriers, then shortfall and total assigned
    units per carrier.

    Args:
        report: Allocation report
        locations: Locations in display order

    Returns:
        Multi-line summary
    """
    lines: List[str] = []
    lines.append("=" * 70)
    lines.append("Cargo Allocation Solution")
    lines.append("=" * 70)
    lines.append(f"\nStatus: {report.status.value.upper()}")

    if not report.feasible:
        lines.append(report.message or "No feasible solution exists")
        lines.append(f"Total Weekly Forecast: {report.total_forecast:,.0f}")
        return "\n".join(lines)

    lines.append(f"Total Cost:            {report.total_cost:>12,.2f}")
    lines.append(f"Total Weekly Forecast: {report.total_forecast:>12,.0f}")
    if report.solve_time_seconds is not None:
        lines.append(f"Solve Time:            {report.solve_time_seconds:>11.2f}s")

    lines.append("\nDistribution by Location:")
    for location in locations:
        served = [p for p in report.assignments_for_location(location.id) if p.total != 0]
        lines.append(f"  {location.id} (forecast {location.forecast:,.0f}):")
        if not served:
            lines.append("    -")
        for pair in served:
            lines.append(f"    {pair.cargo_id}: x = {pair.regular:,}, e = {pair.excess:,}")

    lines.append("\nUnder Capacity (m):")
    for carrier in report.carriers:
        lines.append(f"  {carrier.cargo_id}: {carrier.shortfall:,}")

    lines.append("\nTotal Assigned:")
    for carrier in report.carriers:
        lines.append(
            f"  {carrier.cargo_id}: {carrier.total_assigned:,} "
            f"(regular {carrier.regular:,}, excess {carrier.excess:,}, cost {carrier.cost:,.2f})"
        )

    if report.warnings:
        lines.append(f"\n⚠️  Warnings ({len(report.warnings)}):")
        for warning in report.warnings:
            lines.append(f"  - {warning}")

    return "\n".join(lines)


def print_solution_summary(report: AllocationReport, locations: Sequence[Location]) -> None:
    """
    Print summary of an allocation report.

    Example:
        report = CargoAllocationModel(cargos, locations).run()
        print_solution_summary(report, locations)
    """
    print(format_report(report, locations))


def export_report(report: AllocationReport, output_prefix: Path | str) -> Dict[str, Path]:
    """
    Write the report tables as CSV files.

    Args:
        report: Allocation report
        output_prefix: Path prefix; files are <prefix>_carriers.csv and
            <prefix>_assignments.csv

    Returns:
        Dictionary mapping table name to written path
    """
    prefix = Path(output_prefix)
    if prefix.parent and not prefix.parent.exists():
        prefix.parent.mkdir(parents=True, exist_ok=True)

    written = {}
    for name, df in report.to_dataframes().items():
        path = prefix.parent / f"{prefix.name}_{name}.csv"
        df.to_csv(path, index=False)
        written[name] = path
        logger.info(f"Wrote {len(df)} rows to {path}")
    return written
