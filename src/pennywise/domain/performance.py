"""Budget performance report: utilization, pacing and variance."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Any, Optional

from .budgets import AllocationSnapshot, BudgetSnapshot, budget_utilization
from .money import ceil_days, floor_days, percent

STATUS_OVER_BUDGET = "over-budget"
STATUS_WARNING = "warning"
STATUS_ON_TRACK = "on-track"


@dataclass(frozen=True, slots=True)
class PeriodMetrics:
    total_days: int
    days_elapsed: int
    days_remaining: int
    period_progress: float


@dataclass(frozen=True, slots=True)
class BudgetTotals:
    total: float
    spent: float
    remaining: float
    utilization_percentage: float


@dataclass(frozen=True, slots=True)
class DailyRates:
    budget_per_day: float
    average_spent_per_day: float
    projected_spending: float


@dataclass(frozen=True, slots=True)
class Variance:
    amount: float
    percentage: float
    expected_spending: float
    time_variance: float
    time_variance_percentage: float
    status: str


@dataclass(frozen=True, slots=True)
class CategoryPerformance:
    category_id: int
    category_name: Optional[str]
    allocated: float
    spent: float
    remaining: float
    overspent: float
    utilization_percentage: float
    status: str


@dataclass(frozen=True, slots=True)
class BudgetPerformance:
    """Full performance report for one budget at one instant."""

    budget: BudgetTotals
    period: PeriodMetrics
    daily: DailyRates
    variance: Variance
    categories: tuple[CategoryPerformance, ...]
    calculated_at: datetime

    def to_dict(self) -> dict[str, Any]:
        payload = asdict(self)
        payload["categories"] = list(payload["categories"])
        payload["calculated_at"] = self.calculated_at.isoformat()
        return payload


@dataclass(frozen=True, slots=True)
class CategoryRemaining:
    allocated: float
    spent: float
    remaining: float
    daily_remaining: float


@dataclass(frozen=True, slots=True)
class RemainingBudget:
    total: float
    daily: float
    categories: dict[int, CategoryRemaining]

    def to_dict(self) -> dict[str, Any]:
        return {
            "total": self.total,
            "daily": self.daily,
            "categories": {str(cid): asdict(item) for cid, item in self.categories.items()},
        }


def period_metrics(start: datetime, end: datetime, now: datetime) -> PeriodMetrics:
    """Compute elapsed/remaining whole days for ``[start, end]`` as seen at ``now``.

    Days elapsed is clamped to ``[0, total_days]``; once ``now`` passes the end
    the whole period counts as elapsed.
    """

    total_days = max(0, ceil_days(start, end))

    if now >= end:
        days_elapsed = total_days
    elif now < start:
        days_elapsed = 0
    else:
        days_elapsed = min(total_days, max(0, floor_days(start, now)))

    if now > end:
        days_remaining = 0
    elif now < start:
        days_remaining = total_days
    else:
        days_remaining = max(0, ceil_days(now, end))

    if total_days == 0:
        progress = 100.0
    else:
        progress = min(100.0, percent(days_elapsed, total_days))

    return PeriodMetrics(
        total_days=total_days,
        days_elapsed=days_elapsed,
        days_remaining=days_remaining,
        period_progress=progress,
    )


def classify(spent: float, limit: float, utilization: float, alert_threshold: float) -> str:
    """Single status label: over-budget beats warning beats on-track."""

    if spent > limit:
        return STATUS_OVER_BUDGET
    if utilization >= alert_threshold:
        return STATUS_WARNING
    return STATUS_ON_TRACK


def _category_performance(
    allocation: AllocationSnapshot, alert_threshold: float
) -> CategoryPerformance:
    utilization = allocation.utilization_percentage
    return CategoryPerformance(
        category_id=allocation.category_id,
        category_name=allocation.category_name,
        allocated=allocation.adjusted_amount,
        spent=allocation.spent_amount,
        remaining=allocation.remaining_amount,
        overspent=allocation.overspent_amount,
        utilization_percentage=utilization,
        status=classify(
            allocation.spent_amount, allocation.adjusted_amount, utilization, alert_threshold
        ),
    )


def calculate_performance(
    budget: BudgetSnapshot, *, now: Optional[datetime] = None
) -> BudgetPerformance:
    """Build the performance report from a budget with current spend figures."""

    now = now or datetime.now()
    total = budget.total_amount
    spent = budget.total_spent
    utilization = budget_utilization(spent, total)
    period = period_metrics(budget.start_date, budget.end_date, now)

    average_per_day = spent / period.days_elapsed if period.days_elapsed > 0 else 0.0
    daily = DailyRates(
        budget_per_day=total / period.total_days if period.total_days > 0 else 0.0,
        average_spent_per_day=average_per_day,
        projected_spending=average_per_day * period.total_days,
    )

    expected = (period.period_progress / 100) * total
    variance = Variance(
        amount=spent - total,
        percentage=percent(spent - total, total),
        expected_spending=expected,
        time_variance=spent - expected,
        time_variance_percentage=percent(spent - expected, expected),
        status=classify(spent, total, utilization, budget.alert_threshold),
    )

    return BudgetPerformance(
        budget=BudgetTotals(
            total=total,
            spent=spent,
            remaining=total - spent,
            utilization_percentage=utilization,
        ),
        period=period,
        daily=daily,
        variance=variance,
        categories=tuple(
            _category_performance(allocation, budget.alert_threshold)
            for allocation in budget.allocations
        ),
        calculated_at=now,
    )


def remaining_budget(budget: BudgetSnapshot, *, now: Optional[datetime] = None) -> RemainingBudget:
    """Money left overall and per category, spread across the remaining days."""

    now = now or datetime.now()
    days_remaining = period_metrics(budget.start_date, budget.end_date, now).days_remaining
    total_remaining = budget.total_amount - budget.total_spent

    def per_day(amount: float) -> float:
        return amount / days_remaining if days_remaining > 0 else 0.0

    return RemainingBudget(
        total=total_remaining,
        daily=per_day(total_remaining),
        categories={
            allocation.category_id: CategoryRemaining(
                allocated=allocation.adjusted_amount,
                spent=allocation.spent_amount,
                remaining=allocation.remaining_amount,
                daily_remaining=per_day(allocation.remaining_amount),
            )
            for allocation in budget.allocations
        },
    )
