"""Service layer orchestrating the budget engine against persistence."""

from . import budgeting, goals, retention, spending

__all__ = ["budgeting", "goals", "retention", "spending"]
