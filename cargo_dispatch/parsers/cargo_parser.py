"""Parser for carrier and location-carrier tables (.csv, .xlsx or .xlsm)."""

from pathlib import Path
from typing import Optional

import pandas as pd

from ..models import Cargo, Location

#: Supported table file suffixes
CSV_SUFFIXES = {".csv"}
EXCEL_SUFFIXES = {".xlsx", ".xlsm"}


class CargoDataParser:
    """
    Parser for cargo allocation input tables.

    Expected format (CSV files or Excel sheets):
    - Carrier table (sheet 'Cargo'): columns [id, min_capacity, max_capacity,
      excess_capacity, regular_cost, excess_cost, demurrage_cost, coverage_rate]
    - Location table (sheet 'LocationCargo'): columns [id, forecast, <carrier id>...]
      where each carrier column holds 1 if the carrier serves the location, else 0

    With CSV input the two tables live in separate files; with Excel input a
    single workbook may hold both sheets.

    Example:
        parser = CargoDataParser("cargo.csv", "locations.csv")
        cargos, locations = parser.parse_all()
    """

    CARGO_VALUE_COLUMNS = [
        "min_capacity",
        "max_capacity",
        "excess_capacity",
        "regular_cost",
        "excess_cost",
        "demurrage_cost",
        "coverage_rate",
    ]
    REQUIRED_CARGO_COLUMNS = {"id", *CARGO_VALUE_COLUMNS}
    REQUIRED_LOCATION_COLUMNS = {"id", "forecast"}

    def __init__(self, cargo_file: Path | str, location_file: Optional[Path | str] = None):
        """
        Initialize parser with input file paths.

        Args:
            cargo_file: Carrier table (.csv) or workbook with both sheets (.xlsx/.xlsm)
            location_file: Location table; defaults to cargo_file (Excel only)

        Raises:
            FileNotFoundError: If a file does not exist
            ValueError: If a file type is unsupported, or a CSV carrier table
                is given without a location table
        """
        self.cargo_file = self._check_file(cargo_file)
        self.location_file = self._check_file(location_file) if location_file is not None else self.cargo_file

        if self.location_file == self.cargo_file and self.cargo_file.suffix.lower() in CSV_SUFFIXES:
            raise ValueError("CSV input requires separate carrier and location files")

    @staticmethod
    def _check_file(file_path: Path | str) -> Path:
        path = Path(file_path)
        if not path.exists():
            raise FileNotFoundError(f"File not found: {file_path}")
        if path.suffix.lower() not in CSV_SUFFIXES | EXCEL_SUFFIXES:
            raise ValueError(f"File must be .csv, .xlsx or .xlsm: {file_path}")
        return path

    @staticmethod
    def _read_table(path: Path, sheet_name: str) -> pd.DataFrame:
        """Read one table with string ids and stripped column names."""
        if path.suffix.lower() in CSV_SUFFIXES:
            df = pd.read_csv(path, dtype={"id": str})
        else:
            df = pd.read_excel(path, sheet_name=sheet_name, dtype={"id": str}, engine="openpyxl")
        df.columns = [str(col).strip() for col in df.columns]
        return df

    def parse_cargos(self, sheet_name: str = "Cargo") -> list[Cargo]:
        """
        Parse the carrier table.

        Args:
            sheet_name: Sheet holding the carrier table (Excel only)

        Returns:
            List of Cargo objects in table order

        Raises:
            ValueError: If required columns are missing or a row is invalid
        """
        df = self._read_table(self.cargo_file, sheet_name)

        if not self.REQUIRED_CARGO_COLUMNS.issubset(df.columns):
            missing = self.REQUIRED_CARGO_COLUMNS - set(df.columns)
            raise ValueError(f"Missing required columns: {missing}")

        cargos = []
        for _, row in df.iterrows():
            if pd.isna(row["id"]):
                continue
            params = {"id": str(row["id"]).strip()}
            for column in self.CARGO_VALUE_COLUMNS:
                if pd.isna(row[column]):
                    raise ValueError(f"Cargo {params['id']}: missing value for {column}")
                params[column] = float(row[column])
            cargos.append(Cargo(**params))

        return cargos

    def parse_locations(
        self,
        cargos: Optional[list[Cargo]] = None,
        sheet_name: str = "LocationCargo",
    ) -> list[Location]:
        """
        Parse the location-carrier incidence table.

        Args:
            cargos: Known carriers; carrier columns must name one of them
                (None = accept every carrier column)
            sheet_name: Sheet holding the location table (Excel only)

        Returns:
            List of Location objects in table order

        Raises:
            ValueError: If required columns are missing, a carrier column is
                unknown, or a row is invalid
        """
        df = self._read_table(self.location_file, sheet_name)

        if not self.REQUIRED_LOCATION_COLUMNS.issubset(df.columns):
            missing = self.REQUIRED_LOCATION_COLUMNS - set(df.columns)
            raise ValueError(f"Missing required columns: {missing}")

        cargo_columns = [col for col in df.columns if col not in self.REQUIRED_LOCATION_COLUMNS]
        if cargos is not None:
            known = {c.id for c in cargos}
            unknown = [col for col in cargo_columns if col not in known]
            if unknown:
                raise ValueError(f"Location table references unknown cargo ids: {unknown}")

        locations = []
        for _, row in df.iterrows():
            if pd.isna(row["id"]):
                continue
            eligible = frozenset(
                col for col in cargo_columns
                if pd.notna(row[col]) and float(row[col]) > 0
            )
            locations.append(Location(
                id=str(row["id"]).strip(),
                forecast=float(row["forecast"]) if pd.notna(row["forecast"]) else 0.0,
                eligible_cargo_ids=eligible,
            ))

        return locations

    def parse_all(self) -> tuple[list[Cargo], list[Location]]:
        """
        Parse both tables, checking carrier columns against the carrier table.

        Returns:
            Tuple of (cargos, locations)
        """
        cargos = self.parse_cargos()
        locations = self.parse_locations(cargos)
        return cargos, locations
