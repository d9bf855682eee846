"""Threshold breach detection over a budget's current spend."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Optional

from .budgets import BudgetSnapshot, budget_utilization
from .money import percent

LEVEL_CRITICAL = "critical"
LEVEL_WARNING = "warning"

BUDGET_EXCEEDED = "budget_exceeded"
BUDGET_WARNING = "budget_warning"
CATEGORY_EXCEEDED = "category_exceeded"
CATEGORY_WARNING = "category_warning"


@dataclass(frozen=True, slots=True)
class Violation:
    type: str
    level: str
    message: str
    amount: Optional[float] = None
    percentage: Optional[float] = None
    category_id: Optional[int] = None

    def to_dict(self) -> dict[str, Any]:
        return {key: value for key, value in asdict(self).items() if value is not None}


def detect_violations(budget: BudgetSnapshot) -> list[Violation]:
    """Return the budget-level violation (if any) followed by per-category ones.

    At most one violation is produced per scope and an overage always wins
    over a threshold warning.
    """

    violations: list[Violation] = []
    total = budget.total_amount
    spent = budget.total_spent
    utilization = budget_utilization(spent, total)

    if spent > total:
        overage = spent - total
        violations.append(
            Violation(
                type=BUDGET_EXCEEDED,
                level=LEVEL_CRITICAL,
                amount=overage,
                percentage=percent(overage, total),
                message=f"Budget exceeded by ${overage:.2f}",
            )
        )
    elif utilization >= budget.alert_threshold:
        violations.append(
            Violation(
                type=BUDGET_WARNING,
                level=LEVEL_WARNING,
                percentage=utilization,
                message=f"{utilization:.1f}% of budget used",
            )
        )

    for allocation in budget.allocations:
        if allocation.spent_amount > allocation.adjusted_amount:
            overage = allocation.spent_amount - allocation.adjusted_amount
            violations.append(
                Violation(
                    type=CATEGORY_EXCEEDED,
                    level=LEVEL_CRITICAL,
                    category_id=allocation.category_id,
                    amount=overage,
                    percentage=percent(overage, allocation.adjusted_amount),
                    message=f"Category exceeded by ${overage:.2f}",
                )
            )
        elif allocation.utilization_percentage >= budget.alert_threshold:
            violations.append(
                Violation(
                    type=CATEGORY_WARNING,
                    level=LEVEL_WARNING,
                    category_id=allocation.category_id,
                    percentage=allocation.utilization_percentage,
                    message=f"{allocation.utilization_percentage:.1f}% of category budget used",
                )
            )

    return violations
