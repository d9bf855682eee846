"""Savings goal progress, projections and status transitions."""

from __future__ import annotations

import math
from calendar import monthrange
from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from typing import Any, Optional

from ..errors import StateError, ValidationError
from .money import (
    DAYS_PER_MONTH,
    PERCENT_CAP,
    SECONDS_PER_DAY,
    ceil_days,
    floor_days,
    percent,
    to_cents,
    validate_amount,
)

STATUS_ACTIVE = "active"
STATUS_COMPLETED = "completed"
STATUS_PAUSED = "paused"
STATUS_CANCELLED = "cancelled"
STATUSES = (STATUS_ACTIVE, STATUS_COMPLETED, STATUS_PAUSED, STATUS_CANCELLED)

PRIORITIES = ("low", "medium", "high")
CONTRIBUTION_METHODS = ("manual", "automatic", "transfer", "external")
REMINDER_FREQUENCIES = ("none", "daily", "weekly", "monthly")

# (minimum contribution ratio, base probability), checked top-down.
PROBABILITY_BREAKPOINTS = (
    (1.2, 95),
    (1.0, 85),
    (0.8, 65),
    (0.6, 45),
    (0.4, 25),
)
FLOOR_PROBABILITY = 10
NO_HISTORY_PROBABILITY = 50
AHEAD_OF_SCHEDULE_BONUS = 10
BEHIND_SCHEDULE_PENALTY = 15
BEHIND_SCHEDULE_RATIO = 0.7


@dataclass(frozen=True, slots=True)
class ContributionSnapshot:
    amount: float
    date: datetime
    method: str = "manual"
    notes: Optional[str] = None
    source: Optional[str] = None
    transaction_id: Optional[int] = None
    id: Optional[int] = None


@dataclass(frozen=True, slots=True)
class GoalSnapshot:
    """Immutable view of a savings goal and its cached analytics."""

    user_id: int
    name: str
    target_amount: float
    start_date: datetime
    target_date: datetime
    current_amount: float = 0.0
    id: Optional[int] = None
    category_id: Optional[int] = None
    currency: str = "USD"
    status: str = STATUS_ACTIVE
    priority: str = "medium"
    contributions: tuple[ContributionSnapshot, ...] = ()
    progress_percentage: float = 0.0
    overachievement_amount: float = 0.0
    average_monthly_contribution: float = 0.0
    estimated_completion_date: Optional[datetime] = None
    achievement_probability: Optional[float] = None
    achievement_date: Optional[datetime] = None
    reminder_frequency: str = "monthly"
    last_reminder_sent: Optional[datetime] = None
    next_reminder_date: Optional[datetime] = None
    is_deleted: bool = False
    deleted_at: Optional[datetime] = None
    version: int = 1
    last_calculated: Optional[datetime] = None

    @property
    def remaining_amount(self) -> float:
        return max(0.0, self.target_amount - self.current_amount)

    @property
    def total_contributed(self) -> float:
        return sum(contribution.amount for contribution in self.contributions)


@dataclass(frozen=True, slots=True)
class ContributionStats:
    total_contributions: int
    average_contribution: float
    largest_contribution: float
    last_contribution: Optional[ContributionSnapshot]
    contribution_frequency: float

    def to_dict(self) -> dict[str, Any]:
        last = self.last_contribution
        return {
            "total_contributions": self.total_contributions,
            "average_contribution": self.average_contribution,
            "largest_contribution": self.largest_contribution,
            "last_contribution": None
            if last is None
            else {"amount": last.amount, "date": last.date.isoformat(), "method": last.method},
            "contribution_frequency": self.contribution_frequency,
        }


def add_months(value: datetime, months: int) -> datetime:
    """Shift ``value`` by whole calendar months, clamping the day of month."""

    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    day = min(value.day, monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)


def validate_goal(goal: GoalSnapshot) -> None:
    errors: list[str] = []
    if not 2 <= len((goal.name or "").strip()) <= 100:
        errors.append("Goal name must be between 2 and 100 characters")
    if goal.target_date <= goal.start_date:
        errors.append("Target date must be after start date")
    if goal.status not in STATUSES:
        errors.append(f"Status must be one of: {', '.join(STATUSES)}")
    if goal.priority not in PRIORITIES:
        errors.append(f"Priority must be one of: {', '.join(PRIORITIES)}")
    if goal.reminder_frequency not in REMINDER_FREQUENCIES:
        errors.append(f"Reminder frequency must be one of: {', '.join(REMINDER_FREQUENCIES)}")
    if errors:
        raise ValidationError("Invalid goal", details=errors)
    validate_amount(goal.target_amount, field="Target amount")
    validate_amount(goal.current_amount, field="Current amount", allow_zero=True)


# Timeline ------------------------------------------------------------------


def time_remaining(goal: GoalSnapshot, now: datetime) -> int:
    """Whole days until the target date, 0 once it has passed."""

    if now >= goal.target_date:
        return 0
    return ceil_days(now, goal.target_date)


def time_elapsed(goal: GoalSnapshot, now: datetime) -> int:
    if now <= goal.start_date:
        return 0
    return floor_days(goal.start_date, min(now, goal.target_date))


def total_timeframe(goal: GoalSnapshot) -> int:
    return ceil_days(goal.start_date, goal.target_date)


def timeline_progress(goal: GoalSnapshot, now: datetime) -> float:
    total_days = total_timeframe(goal)
    if total_days <= 0:
        return 100.0
    return min(100.0, percent(time_elapsed(goal, now), total_days))


# Progress ------------------------------------------------------------------


def calculate_progress(goal: GoalSnapshot) -> float:
    if goal.target_amount <= 0:
        return 0.0
    return min(PERCENT_CAP, percent(goal.current_amount, goal.target_amount))


def monthly_contribution_average(goal: GoalSnapshot, now: datetime) -> float:
    """Total contributed divided by months since the start (at least one)."""

    if not goal.contributions:
        return 0.0
    elapsed_seconds = (now - goal.start_date).total_seconds()
    months_elapsed = max(1.0, elapsed_seconds / (SECONDS_PER_DAY * DAYS_PER_MONTH))
    return goal.total_contributed / months_elapsed


def required_monthly_contribution(goal: GoalSnapshot, now: datetime) -> float:
    months_remaining = max(1, math.ceil(time_remaining(goal, now) / DAYS_PER_MONTH))
    return goal.remaining_amount / months_remaining


def estimate_completion_date(goal: GoalSnapshot, now: datetime) -> datetime:
    """Project when the target is reached at the current contribution pace."""

    if goal.current_amount >= goal.target_amount:
        return goal.achievement_date or now

    monthly_average = monthly_contribution_average(goal, now)
    if monthly_average <= 0:
        return add_months(now, math.ceil(time_remaining(goal, now) / DAYS_PER_MONTH))

    return add_months(now, math.ceil(goal.remaining_amount / monthly_average))


def achievement_probability(goal: GoalSnapshot, now: datetime) -> float:
    """Heuristic 0-100 likelihood of hitting the target by the target date."""

    if goal.current_amount >= goal.target_amount:
        return 100.0
    if time_remaining(goal, now) <= 0:
        return 0.0

    monthly_average = monthly_contribution_average(goal, now)
    if monthly_average <= 0:
        return float(NO_HISTORY_PROBABILITY)

    ratio = monthly_average / required_monthly_contribution(goal, now)
    probability = FLOOR_PROBABILITY
    for minimum_ratio, base in PROBABILITY_BREAKPOINTS:
        if ratio >= minimum_ratio:
            probability = base
            break

    goal_progress = calculate_progress(goal)
    timeline = timeline_progress(goal, now)
    if goal_progress > timeline:
        probability += AHEAD_OF_SCHEDULE_BONUS
    elif goal_progress < timeline * BEHIND_SCHEDULE_RATIO:
        probability -= BEHIND_SCHEDULE_PENALTY

    return float(max(0, min(100, probability)))


def next_reminder_date(goal: GoalSnapshot, now: datetime) -> Optional[datetime]:
    if goal.reminder_frequency == "none" or goal.status != STATUS_ACTIVE:
        return None
    anchor = goal.last_reminder_sent or now
    if goal.reminder_frequency == "daily":
        return anchor + timedelta(days=1)
    if goal.reminder_frequency == "weekly":
        return anchor + timedelta(days=7)
    return add_months(anchor, 1)


def record_reminder(goal: GoalSnapshot, *, now: datetime) -> GoalSnapshot:
    sent = replace(goal, last_reminder_sent=now)
    return replace(sent, next_reminder_date=next_reminder_date(sent, now))


def recalculate_goal(goal: GoalSnapshot, *, now: Optional[datetime] = None) -> GoalSnapshot:
    """Return ``goal`` with progress and analytics refreshed."""

    now = now or datetime.now()
    updated = replace(
        goal,
        progress_percentage=calculate_progress(goal),
        overachievement_amount=to_cents(max(0.0, goal.current_amount - goal.target_amount)),
        last_calculated=now,
    )
    if updated.status == STATUS_COMPLETED and updated.achievement_date is None:
        updated = replace(updated, achievement_date=now)
    if updated.is_deleted and updated.deleted_at is None:
        updated = replace(updated, deleted_at=now)
    elif not updated.is_deleted and updated.deleted_at is not None:
        updated = replace(updated, deleted_at=None)

    return replace(
        updated,
        average_monthly_contribution=monthly_contribution_average(updated, now),
        estimated_completion_date=estimate_completion_date(updated, now),
        achievement_probability=achievement_probability(updated, now),
        next_reminder_date=next_reminder_date(updated, now),
    )


def add_contribution(
    goal: GoalSnapshot,
    amount: float,
    *,
    date: Optional[datetime] = None,
    method: str = "manual",
    notes: Optional[str] = None,
    source: Optional[str] = None,
    transaction_id: Optional[int] = None,
    now: Optional[datetime] = None,
) -> GoalSnapshot:
    """Append a contribution and advance progress, completing the goal when met.

    Transaction ownership is the caller's responsibility; see
    ``pennywise.services.goals.contribute``.
    """

    now = now or datetime.now()
    if amount is None or isinstance(amount, bool) or amount <= 0:
        raise ValidationError("Contribution amount must be greater than 0")
    amount = validate_amount(amount, field="Contribution amount")
    contributed_at = date or now
    if contributed_at > now:
        raise ValidationError("Contribution date cannot be in the future")
    if method not in CONTRIBUTION_METHODS:
        raise ValidationError(
            f"Contribution method must be one of: {', '.join(CONTRIBUTION_METHODS)}"
        )
    if notes and len(notes) > 500:
        raise ValidationError("Contribution notes cannot exceed 500 characters")
    if source and len(source) > 100:
        raise ValidationError("Contribution source cannot exceed 100 characters")
    if goal.status == STATUS_CANCELLED:
        raise StateError("Cannot contribute to a cancelled goal")

    contribution = ContributionSnapshot(
        amount=amount,
        date=contributed_at,
        method=method,
        notes=notes.strip() if notes else None,
        source=source.strip() if source else None,
        transaction_id=transaction_id,
    )
    updated = replace(
        goal,
        contributions=goal.contributions + (contribution,),
        current_amount=to_cents(goal.current_amount + amount),
        version=goal.version + 1,
    )
    if updated.current_amount >= updated.target_amount and updated.status == STATUS_ACTIVE:
        updated = replace(updated, status=STATUS_COMPLETED, achievement_date=now)

    return recalculate_goal(updated, now=now)


def contribution_stats(goal: GoalSnapshot, now: datetime) -> ContributionStats:
    if not goal.contributions:
        return ContributionStats(0, 0.0, 0.0, None, 0.0)
    ordered = sorted(goal.contributions, key=lambda c: c.date, reverse=True)
    total = sum(c.amount for c in ordered)
    return ContributionStats(
        total_contributions=len(ordered),
        average_contribution=total / len(ordered),
        largest_contribution=max(c.amount for c in ordered),
        last_contribution=ordered[0],
        contribution_frequency=monthly_contribution_average(goal, now),
    )


# Status machine --------------------------------------------------------------


def pause_goal(goal: GoalSnapshot, *, now: Optional[datetime] = None) -> GoalSnapshot:
    if goal.status != STATUS_ACTIVE:
        raise StateError(f"Cannot pause a goal that is {goal.status}")
    return recalculate_goal(replace(goal, status=STATUS_PAUSED), now=now)


def resume_goal(goal: GoalSnapshot, *, now: Optional[datetime] = None) -> GoalSnapshot:
    if goal.status != STATUS_PAUSED:
        raise StateError(f"Cannot resume a goal that is {goal.status}")
    return recalculate_goal(replace(goal, status=STATUS_ACTIVE), now=now)


def cancel_goal(goal: GoalSnapshot, *, now: Optional[datetime] = None) -> GoalSnapshot:
    if goal.status not in (STATUS_ACTIVE, STATUS_PAUSED):
        raise StateError(f"Cannot cancel a goal that is {goal.status}")
    return recalculate_goal(replace(goal, status=STATUS_CANCELLED), now=now)


TRANSITIONS = {
    STATUS_PAUSED: pause_goal,
    STATUS_ACTIVE: resume_goal,
    STATUS_CANCELLED: cancel_goal,
}


def transition_goal(
    goal: GoalSnapshot, status: str, *, now: Optional[datetime] = None
) -> GoalSnapshot:
    """Apply an explicit user status change; completion is never manual."""

    handler = TRANSITIONS.get(status)
    if handler is None:
        raise ValidationError(f"Status cannot be set to {status!r} directly")
    return handler(goal, now=now)


def soft_delete_goal(goal: GoalSnapshot, *, now: Optional[datetime] = None) -> GoalSnapshot:
    return replace(goal, is_deleted=True, deleted_at=now or datetime.now())


def restore_goal(goal: GoalSnapshot) -> GoalSnapshot:
    return replace(goal, is_deleted=False, deleted_at=None)
