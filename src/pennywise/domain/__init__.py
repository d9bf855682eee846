"""Pure budget and goal computations."""

from .budgets import AllocationSnapshot, BudgetSnapshot, recalculate_budget
from .goals import ContributionSnapshot, GoalSnapshot, add_contribution, recalculate_goal
from .health import BudgetHealth, budget_health
from .performance import BudgetPerformance, calculate_performance, remaining_budget
from .violations import Violation, detect_violations

__all__ = [
    "AllocationSnapshot",
    "BudgetSnapshot",
    "BudgetHealth",
    "BudgetPerformance",
    "ContributionSnapshot",
    "GoalSnapshot",
    "Violation",
    "add_contribution",
    "budget_health",
    "calculate_performance",
    "detect_violations",
    "recalculate_budget",
    "recalculate_goal",
    "remaining_budget",
]
