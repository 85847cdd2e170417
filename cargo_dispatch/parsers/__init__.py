"""Parsers for input data files."""

from .cargo_parser import CargoDataParser

__all__ = [
    "CargoDataParser",
]
