"""Ritmo: spaced-repetition scheduling and learner progression engine."""

__all__ = ["__version__"]

__version__ = "0.4.0"
