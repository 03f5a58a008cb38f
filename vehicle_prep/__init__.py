"""Heuristic vehicle / plate / logo / color preprocessing for a capture pipeline."""

__version__ = "0.1.0"
