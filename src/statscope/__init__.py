"""StatScope - guided exploratory statistics over a single uploaded table."""

__version__ = "1.0.0"
