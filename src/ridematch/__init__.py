"""Route timing and resilient directions orchestration for shared rides."""

__version__ = "0.1.0"
