"""Route group exports."""

from . import geocoding, health, schedule

__all__ = ["schedule", "geocoding", "health"]
