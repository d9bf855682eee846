"""Budgeting domain services.

These functions are the callers of the pure engine: they load a budget,
refresh its spend from the ledger, run the calculators and persist the
recomputed snapshot explicitly.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Iterable, Optional

from ..domain import budgets as budget_rules
from ..domain.budgets import BudgetSnapshot
from ..domain.health import BudgetHealth, budget_health
from ..domain.performance import (
    BudgetPerformance,
    RemainingBudget,
    calculate_performance,
    remaining_budget,
)
from ..domain.repositories import BudgetRepository, CategoryRepository, TransactionRepository
from ..domain.violations import Violation, detect_violations
from ..errors import NotFoundError, OwnershipError
from ..logging_config import get_logger
from .spending import refresh_spend

logger = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class BudgetEvaluation:
    """Refreshed budget with its performance report and violations."""

    budget: BudgetSnapshot
    performance: BudgetPerformance
    violations: list[Violation]

    def to_dict(self) -> dict[str, Any]:
        return {
            "budget_id": self.budget.id,
            "version": self.budget.version,
            "performance": self.performance.to_dict(),
            "violations": [violation.to_dict() for violation in self.violations],
        }


def load_budget(
    *, budgets: BudgetRepository, budget_id: int, user_id: int, include_deleted: bool = False
) -> BudgetSnapshot:
    budget = budgets.get(budget_id, user_id=user_id, include_deleted=include_deleted)
    if budget is None:
        raise NotFoundError(f"Budget {budget_id} not found")
    return budget


def verify_categories(
    *, categories: CategoryRepository, user_id: int, category_ids: Iterable[int]
) -> None:
    """Raise OwnershipError if any category is missing or belongs to someone else."""

    wanted = set(category_ids)
    found = {category.id: category for category in categories.get_many(wanted)}
    for category_id in sorted(wanted):
        category = found.get(category_id)
        if category is None or category.user_id != user_id:
            raise OwnershipError(f"Category {category_id} not found or access denied")


def create_budget(
    *,
    budgets: BudgetRepository,
    categories: CategoryRepository,
    budget: BudgetSnapshot,
    now: Optional[datetime] = None,
) -> BudgetSnapshot:
    budget_rules.validate_budget(budget)
    verify_categories(categories=categories, user_id=budget.user_id, category_ids=budget.category_ids)
    saved = budgets.save(budget_rules.recalculate_budget(budget, now=now))
    logger.info("Budget created", extra={"budget_id": saved.id, "user_id": saved.user_id})
    return saved


def set_budget_allocation(
    *,
    budgets: BudgetRepository,
    categories: CategoryRepository,
    budget_id: int,
    user_id: int,
    category_id: int,
    amount: float,
    notes: Optional[str] = None,
    now: Optional[datetime] = None,
) -> BudgetSnapshot:
    """Add or update a category allocation and persist the recomputed budget."""

    current = load_budget(budgets=budgets, budget_id=budget_id, user_id=user_id)
    verify_categories(categories=categories, user_id=user_id, category_ids=[category_id])
    updated = budget_rules.set_allocation(current, category_id, amount, notes)
    return budgets.save(budget_rules.recalculate_budget(updated, previous=current, now=now))


def remove_budget_allocation(
    *,
    budgets: BudgetRepository,
    budget_id: int,
    user_id: int,
    category_id: int,
    now: Optional[datetime] = None,
) -> BudgetSnapshot:
    current = load_budget(budgets=budgets, budget_id=budget_id, user_id=user_id)
    updated = budget_rules.remove_allocation(current, category_id)
    return budgets.save(budget_rules.recalculate_budget(updated, previous=current, now=now))


def evaluate_budget(
    *,
    budgets: BudgetRepository,
    transactions: TransactionRepository,
    budget_id: int,
    user_id: int,
    now: Optional[datetime] = None,
    persist: bool = True,
) -> BudgetEvaluation:
    """Refresh spend, recompute the budget, and report performance and violations."""

    now = now or datetime.now()
    current = load_budget(budgets=budgets, budget_id=budget_id, user_id=user_id)
    refreshed = budget_rules.recalculate_budget(
        refresh_spend(repository=transactions, budget=current), previous=current, now=now
    )
    if persist:
        refreshed = budgets.save(refreshed)

    evaluation = BudgetEvaluation(
        budget=refreshed,
        performance=calculate_performance(refreshed, now=now),
        violations=detect_violations(refreshed),
    )
    logger.info(
        "Budget evaluated",
        extra={
            "budget_id": refreshed.id,
            "total_spent": refreshed.total_spent,
            "status": evaluation.performance.variance.status,
            "violations": len(evaluation.violations),
        },
    )
    return evaluation


def budget_remaining(
    *,
    budgets: BudgetRepository,
    transactions: TransactionRepository,
    budget_id: int,
    user_id: int,
    now: Optional[datetime] = None,
    persist: bool = False,
) -> RemainingBudget:
    evaluation = evaluate_budget(
        budgets=budgets,
        transactions=transactions,
        budget_id=budget_id,
        user_id=user_id,
        now=now,
        persist=persist,
    )
    return remaining_budget(evaluation.budget, now=evaluation.performance.calculated_at)


def budget_health_report(
    *,
    budgets: BudgetRepository,
    transactions: TransactionRepository,
    budget_id: int,
    user_id: int,
    now: Optional[datetime] = None,
    persist: bool = False,
) -> BudgetHealth:
    evaluation = evaluate_budget(
        budgets=budgets,
        transactions=transactions,
        budget_id=budget_id,
        user_id=user_id,
        now=now,
        persist=persist,
    )
    return budget_health(evaluation.performance)


def rollover_budget(
    *,
    budgets: BudgetRepository,
    transactions: TransactionRepository,
    budget_id: int,
    previous_budget_id: int,
    user_id: int,
    now: Optional[datetime] = None,
) -> BudgetSnapshot:
    """Carry unspent allocations from a prior budget into this one."""

    current = load_budget(budgets=budgets, budget_id=budget_id, user_id=user_id)
    previous = budgets.get(previous_budget_id, user_id=user_id)
    if previous is None:
        raise NotFoundError(f"Previous budget {previous_budget_id} not found")

    previous = refresh_spend(repository=transactions, budget=previous)
    updated = budget_rules.apply_rollover(current, previous)
    saved = budgets.save(budget_rules.recalculate_budget(updated, previous=current, now=now))
    logger.info(
        "Rollover applied",
        extra={"budget_id": saved.id, "previous_budget_id": previous_budget_id},
    )
    return saved


def duplicate_budget(
    *,
    budgets: BudgetRepository,
    template_id: int,
    user_id: int,
    now: Optional[datetime] = None,
    **overrides: Any,
) -> BudgetSnapshot:
    """Create a new budget from an existing one, typically for the next period."""

    template = load_budget(budgets=budgets, budget_id=template_id, user_id=user_id)
    fresh = budget_rules.budget_from_template(template, **overrides)
    budget_rules.validate_budget(fresh)
    return budgets.save(budget_rules.recalculate_budget(fresh, now=now))


def delete_budget(
    *, budgets: BudgetRepository, budget_id: int, user_id: int, now: Optional[datetime] = None
) -> BudgetSnapshot:
    current = load_budget(budgets=budgets, budget_id=budget_id, user_id=user_id)
    saved = budgets.save(budget_rules.soft_delete_budget(current, now=now))
    logger.info("Budget soft-deleted", extra={"budget_id": budget_id, "user_id": user_id})
    return saved


def restore_budget(*, budgets: BudgetRepository, budget_id: int, user_id: int) -> BudgetSnapshot:
    current = load_budget(
        budgets=budgets, budget_id=budget_id, user_id=user_id, include_deleted=True
    )
    return budgets.save(budget_rules.restore_budget(current))
