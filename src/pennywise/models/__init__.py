"""SQLModel table exports."""

from .budget import Budget, BudgetAllocation
from .category import Category
from .goal import Goal, GoalContribution
from .transaction import Transaction
from .user import User

__all__ = [
    "Budget",
    "BudgetAllocation",
    "Category",
    "Goal",
    "GoalContribution",
    "Transaction",
    "User",
]
