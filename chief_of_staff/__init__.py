"""Chief of Staff task automation engine."""

__version__ = "0.1.0"
