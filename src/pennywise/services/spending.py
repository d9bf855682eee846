"""Spend aggregation over the ledger for budget windows."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Optional

from ..domain.budgets import BudgetSnapshot, apply_spend
from ..domain.money import to_cents
from ..domain.repositories import TransactionRepository


@dataclass(frozen=True, slots=True)
class SpendSummary:
    """Spend per category plus the grand total."""

    by_category: dict[int, float]
    total: float


def aggregate_spend(
    *,
    repository: TransactionRepository,
    user_id: int,
    start_date: datetime,
    end_date: datetime,
    category_ids: Optional[Iterable[int]] = None,
) -> SpendSummary:
    """Sum completed expenses in ``[start_date, end_date]`` grouped by category.

    When ``category_ids`` is given every listed category appears in the result,
    with zero for categories that had no matching transactions.
    """

    ids = list(category_ids) if category_ids is not None else None
    totals = repository.sum_completed_expenses(
        user_id=user_id, start_date=start_date, end_date=end_date, category_ids=ids
    )
    if ids is not None:
        totals = {category_id: totals.get(category_id, 0.0) for category_id in ids}
    by_category = {category_id: to_cents(amount) for category_id, amount in totals.items()}
    return SpendSummary(by_category=by_category, total=to_cents(sum(by_category.values())))


def spent_for_category(
    *, repository: TransactionRepository, budget: BudgetSnapshot, category_id: int
) -> float:
    """Spend for a single category within the budget window."""

    summary = aggregate_spend(
        repository=repository,
        user_id=budget.user_id,
        start_date=budget.start_date,
        end_date=budget.end_date,
        category_ids=[category_id],
    )
    return summary.total


def refresh_spend(*, repository: TransactionRepository, budget: BudgetSnapshot) -> BudgetSnapshot:
    """Return ``budget`` with allocation spend and ``total_spent`` re-aggregated.

    The result is not persisted.
    """

    summary = aggregate_spend(
        repository=repository,
        user_id=budget.user_id,
        start_date=budget.start_date,
        end_date=budget.end_date,
        category_ids=budget.category_ids,
    )
    return apply_spend(budget, summary.by_category)
