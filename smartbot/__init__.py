"""smartbot: per-instrument signal consensus engine."""

__version__ = "0.3.0"
