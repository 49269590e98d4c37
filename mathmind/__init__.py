"""MathMind: safe expression calculator with an optional AI assistant."""

__version__ = "1.0.0"
