"""Data models for the cargo dispatching application."""

from .cargo import Cargo
from .location import Location

__all__ = [
    "Cargo",
    "Location",
]
