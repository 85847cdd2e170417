"""Cargo dispatching: weekly carrier allocation by mixed-integer optimization."""

__version__ = "1.0.0"
