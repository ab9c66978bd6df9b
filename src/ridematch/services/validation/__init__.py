"""Solution validation exports."""

from .validator import ValidationReport, passengers_requiring_ride, validate_solution

__all__ = ["ValidationReport", "passengers_requiring_ride", "validate_solution"]
