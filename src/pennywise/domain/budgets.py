"""Budget aggregate: allocations, derived totals, rollover and soft deletion.

Every function here is pure. It receives a frozen snapshot and returns a new
one, leaving persistence to the caller.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Iterable, Mapping, Optional

from ..errors import StateError, ValidationError
from .money import ALLOCATION_TOLERANCE, PERCENT_CAP, percent, to_cents, validate_amount

PERIODS = ("daily", "weekly", "monthly", "quarterly", "yearly")
DEFAULT_ALERT_THRESHOLD = 80.0


@dataclass(frozen=True, slots=True)
class AllocationSnapshot:
    """Portion of a budget assigned to one category."""

    category_id: int
    allocated_amount: float
    spent_amount: float = 0.0
    rollover_amount: float = 0.0
    percentage: float = 0.0
    notes: str = ""
    category_name: Optional[str] = None

    @property
    def adjusted_amount(self) -> float:
        return self.allocated_amount + self.rollover_amount

    @property
    def remaining_amount(self) -> float:
        return max(0.0, self.adjusted_amount - self.spent_amount)

    @property
    def overspent_amount(self) -> float:
        return max(0.0, self.spent_amount - self.adjusted_amount)

    @property
    def utilization_percentage(self) -> float:
        """Share of the adjusted amount spent, capped at 100 and 0 when nothing is allocated."""
        if self.adjusted_amount == 0:
            return 0.0
        return min(100.0, percent(self.spent_amount, self.adjusted_amount))


@dataclass(frozen=True, slots=True)
class BudgetSnapshot:
    """Immutable view of a budget and its cached derived fields."""

    user_id: int
    name: str
    period: str
    start_date: datetime
    end_date: datetime
    total_amount: float
    allocations: tuple[AllocationSnapshot, ...] = ()
    id: Optional[int] = None
    alert_threshold: float = DEFAULT_ALERT_THRESHOLD
    rollover_enabled: bool = False
    is_active: bool = True
    currency: str = "USD"
    description: str = ""
    total_spent: float = 0.0
    total_remaining: float = 0.0
    utilization_percentage: float = 0.0
    version: int = 1
    last_calculated: Optional[datetime] = None
    is_deleted: bool = False
    deleted_at: Optional[datetime] = None
    tags: tuple[str, ...] = field(default_factory=tuple)

    @property
    def category_ids(self) -> list[int]:
        return [allocation.category_id for allocation in self.allocations]

    def allocation_for(self, category_id: int) -> Optional[AllocationSnapshot]:
        for allocation in self.allocations:
            if allocation.category_id == category_id:
                return allocation
        return None


def budget_utilization(total_spent: float, total_amount: float) -> float:
    """Spent share of the total, capped at 200%."""

    if total_amount <= 0:
        return 0.0
    return min(PERCENT_CAP, percent(total_spent, total_amount))


def validate_allocations(
    total_amount: float, allocations: Iterable[AllocationSnapshot]
) -> None:
    """Raise ValidationError unless allocations are unique and fit the total."""

    allocations = list(allocations)
    if not allocations:
        raise ValidationError("At least one category allocation is required")

    category_ids = [allocation.category_id for allocation in allocations]
    if len(category_ids) != len(set(category_ids)):
        raise ValidationError("Duplicate categories are not allowed in budget allocations")

    for allocation in allocations:
        validate_amount(allocation.allocated_amount, field="Allocated amount", allow_zero=True)
        if allocation.spent_amount < 0:
            raise ValidationError("Spent amount cannot be negative")
        if len(allocation.notes or "") > 500:
            raise ValidationError("Notes cannot exceed 500 characters")

    total_allocated = sum(allocation.allocated_amount for allocation in allocations)
    if total_allocated > total_amount + ALLOCATION_TOLERANCE:
        raise ValidationError("Total category allocations cannot exceed budget amount")


def validate_budget(budget: BudgetSnapshot) -> None:
    """Validate identity fields, amounts, the date range and allocations."""

    errors: list[str] = []
    name = (budget.name or "").strip()
    if not 2 <= len(name) <= 100:
        errors.append("Budget name must be between 2 and 100 characters")
    if budget.period not in PERIODS:
        errors.append(f"Period must be one of: {', '.join(PERIODS)}")
    if budget.end_date <= budget.start_date:
        errors.append("End date must be after start date")
    if not 50 <= budget.alert_threshold <= 100:
        errors.append("Alert threshold must be between 50% and 100%")
    if len(budget.currency or "") != 3:
        errors.append("Currency code must be 3 characters")
    if errors:
        raise ValidationError("Invalid budget", details=errors)

    validate_amount(budget.total_amount, field="Total amount")
    validate_allocations(budget.total_amount, budget.allocations)


def _allocation_plan(budget: BudgetSnapshot) -> tuple:
    return tuple(
        (allocation.category_id, allocation.allocated_amount, allocation.rollover_amount)
        for allocation in budget.allocations
    )


def _with_totals(budget: BudgetSnapshot) -> BudgetSnapshot:
    total_spent = to_cents(sum(allocation.spent_amount for allocation in budget.allocations))
    return replace(
        budget,
        total_spent=total_spent,
        total_remaining=to_cents(budget.total_amount - total_spent),
        utilization_percentage=budget_utilization(total_spent, budget.total_amount),
    )


def recalculate_budget(
    budget: BudgetSnapshot,
    *,
    previous: Optional[BudgetSnapshot] = None,
    now: Optional[datetime] = None,
) -> BudgetSnapshot:
    """Return ``budget`` with every derived field recomputed.

    ``previous`` is the last persisted state; the version advances when the
    total amount or the allocation plan differ from it.
    """

    now = now or datetime.now()
    allocations = tuple(
        replace(
            allocation,
            percentage=percent(allocation.allocated_amount, budget.total_amount)
            if budget.total_amount > 0
            else allocation.percentage,
        )
        for allocation in budget.allocations
    )
    updated = _with_totals(replace(budget, allocations=allocations, last_calculated=now))

    if updated.is_deleted and updated.deleted_at is None:
        updated = replace(updated, deleted_at=now)
    elif not updated.is_deleted and updated.deleted_at is not None:
        updated = replace(updated, deleted_at=None)

    if previous is not None and (
        previous.total_amount != updated.total_amount
        or _allocation_plan(previous) != _allocation_plan(updated)
    ):
        updated = replace(updated, version=previous.version + 1)
    return updated


def apply_spend(budget: BudgetSnapshot, spend_by_category: Mapping[int, float]) -> BudgetSnapshot:
    """Overwrite allocation spend from aggregated figures; absent categories spent nothing."""

    allocations = tuple(
        replace(allocation, spent_amount=to_cents(spend_by_category.get(allocation.category_id, 0.0)))
        for allocation in budget.allocations
    )
    return _with_totals(replace(budget, allocations=allocations))


def set_allocation(
    budget: BudgetSnapshot, category_id: int, amount: float, notes: Optional[str] = None
) -> BudgetSnapshot:
    """Add an allocation for ``category_id`` or update the existing one.

    ``notes=None`` keeps the existing notes; an empty string clears them.
    """

    validate_amount(amount, field="Allocated amount", allow_zero=True)
    allocations = list(budget.allocations)
    for index, allocation in enumerate(allocations):
        if allocation.category_id == category_id:
            allocations[index] = replace(
                allocation,
                allocated_amount=amount,
                notes=allocation.notes if notes is None else notes,
            )
            break
    else:
        allocations.append(
            AllocationSnapshot(category_id=category_id, allocated_amount=amount, notes=notes or "")
        )

    validate_allocations(budget.total_amount, allocations)
    return replace(budget, allocations=tuple(allocations))


def remove_allocation(budget: BudgetSnapshot, category_id: int) -> BudgetSnapshot:
    allocations = tuple(a for a in budget.allocations if a.category_id != category_id)
    validate_allocations(budget.total_amount, allocations)
    return _with_totals(replace(budget, allocations=allocations))


def apply_rollover(budget: BudgetSnapshot, previous: BudgetSnapshot) -> BudgetSnapshot:
    """Carry each category's unspent amount from ``previous`` into ``budget``.

    ``previous`` must carry up-to-date spend figures.
    """

    if not budget.rollover_enabled:
        raise StateError("Rollover is not enabled for this budget")
    if previous.user_id != budget.user_id:
        raise StateError("Cannot roll over from a budget owned by another user")

    allocations = []
    for allocation in budget.allocations:
        prior = previous.allocation_for(allocation.category_id)
        carried = prior.remaining_amount if prior is not None and prior.remaining_amount > 0 else 0.0
        allocations.append(replace(allocation, rollover_amount=to_cents(carried)))
    return replace(budget, allocations=tuple(allocations))


def budget_from_template(template: BudgetSnapshot, **overrides) -> BudgetSnapshot:
    """Copy ``template`` into a fresh budget with spend and rollover cleared."""

    allocations = tuple(
        replace(allocation, spent_amount=0.0, rollover_amount=0.0)
        for allocation in template.allocations
    )
    fresh = replace(
        template,
        id=None,
        allocations=allocations,
        total_spent=0.0,
        total_remaining=template.total_amount,
        utilization_percentage=0.0,
        version=1,
        last_calculated=None,
        is_deleted=False,
        deleted_at=None,
    )
    return _with_totals(replace(fresh, **overrides))


def soft_delete_budget(budget: BudgetSnapshot, *, now: Optional[datetime] = None) -> BudgetSnapshot:
    return replace(budget, is_deleted=True, deleted_at=now or datetime.now())


def restore_budget(budget: BudgetSnapshot) -> BudgetSnapshot:
    return replace(budget, is_deleted=False, deleted_at=None)
