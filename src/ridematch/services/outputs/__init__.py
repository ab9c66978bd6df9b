"""Output serializers."""

from .timetable_formatter import timetable_to_csv

__all__ = ["timetable_to_csv"]
