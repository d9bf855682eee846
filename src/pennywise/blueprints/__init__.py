"""Blueprint exports."""

from . import budgets, goals

__all__ = ["budgets", "goals"]
