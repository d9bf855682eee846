"""Savings goal services: contributions, progress reports and status changes."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional

from ..domain import goals as goal_rules
from ..domain.goals import ContributionStats, GoalSnapshot
from ..domain.repositories import CategoryRepository, GoalRepository, TransactionRepository
from ..errors import NotFoundError, OwnershipError
from ..logging_config import get_logger
from .budgeting import verify_categories

logger = get_logger(__name__)


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


@dataclass(frozen=True, slots=True)
class GoalProgress:
    """Point-in-time progress estimate for one goal."""

    goal: GoalSnapshot
    remaining_amount: float
    required_monthly_contribution: float
    time_remaining_days: int
    timeline_progress: float
    stats: ContributionStats
    calculated_at: datetime

    def to_dict(self) -> dict[str, Any]:
        goal = self.goal
        return {
            "goal_id": goal.id,
            "status": goal.status,
            "target_amount": goal.target_amount,
            "current_amount": goal.current_amount,
            "remaining_amount": self.remaining_amount,
            "progress_percentage": goal.progress_percentage,
            "overachievement_amount": goal.overachievement_amount,
            "average_monthly_contribution": goal.average_monthly_contribution,
            "required_monthly_contribution": self.required_monthly_contribution,
            "estimated_completion_date": _iso(goal.estimated_completion_date),
            "achievement_probability": goal.achievement_probability,
            "achievement_date": _iso(goal.achievement_date),
            "time_remaining_days": self.time_remaining_days,
            "timeline_progress": self.timeline_progress,
            "next_reminder_date": _iso(goal.next_reminder_date),
            "contributions": self.stats.to_dict(),
            "calculated_at": self.calculated_at.isoformat(),
        }


def load_goal(
    *, goals: GoalRepository, goal_id: int, user_id: int, include_deleted: bool = False
) -> GoalSnapshot:
    goal = goals.get(goal_id, user_id=user_id, include_deleted=include_deleted)
    if goal is None:
        raise NotFoundError(f"Goal {goal_id} not found")
    return goal


def create_goal(
    *,
    goals: GoalRepository,
    categories: CategoryRepository,
    goal: GoalSnapshot,
    now: Optional[datetime] = None,
) -> GoalSnapshot:
    goal_rules.validate_goal(goal)
    if goal.category_id is not None:
        verify_categories(categories=categories, user_id=goal.user_id, category_ids=[goal.category_id])
    saved = goals.save(goal_rules.recalculate_goal(goal, now=now))
    logger.info("Goal created", extra={"goal_id": saved.id, "user_id": saved.user_id})
    return saved


def contribute(
    *,
    goals: GoalRepository,
    transactions: TransactionRepository,
    goal_id: int,
    user_id: int,
    amount: float,
    date: Optional[datetime] = None,
    method: str = "manual",
    notes: Optional[str] = None,
    source: Optional[str] = None,
    transaction_id: Optional[int] = None,
    now: Optional[datetime] = None,
) -> GoalSnapshot:
    """Record a contribution, linking it to one of the user's transactions if given."""

    goal = load_goal(goals=goals, goal_id=goal_id, user_id=user_id)
    if transaction_id is not None:
        transaction = transactions.get(transaction_id)
        if transaction is None or transaction.user_id != user_id:
            raise OwnershipError("Transaction not found or access denied")

    updated = goal_rules.add_contribution(
        goal,
        amount,
        date=date,
        method=method,
        notes=notes,
        source=source,
        transaction_id=transaction_id,
        now=now,
    )
    saved = goals.save(updated)
    logger.info(
        "Goal contribution recorded",
        extra={
            "goal_id": saved.id,
            "amount": amount,
            "progress": saved.progress_percentage,
            "status": saved.status,
        },
    )
    if goal.status != saved.status == goal_rules.STATUS_COMPLETED:
        logger.info("Goal completed", extra={"goal_id": saved.id, "user_id": user_id})
    return saved


def goal_progress(
    *,
    goals: GoalRepository,
    goal_id: int,
    user_id: int,
    now: Optional[datetime] = None,
    persist: bool = True,
) -> GoalProgress:
    """Recompute cached analytics and build the progress report."""

    now = now or datetime.now()
    goal = goal_rules.recalculate_goal(
        load_goal(goals=goals, goal_id=goal_id, user_id=user_id), now=now
    )
    if persist:
        goal = goals.save(goal)

    return GoalProgress(
        goal=goal,
        remaining_amount=goal.remaining_amount,
        required_monthly_contribution=goal_rules.required_monthly_contribution(goal, now),
        time_remaining_days=goal_rules.time_remaining(goal, now),
        timeline_progress=goal_rules.timeline_progress(goal, now),
        stats=goal_rules.contribution_stats(goal, now),
        calculated_at=now,
    )


def change_goal_status(
    *,
    goals: GoalRepository,
    goal_id: int,
    user_id: int,
    status: str,
    now: Optional[datetime] = None,
) -> GoalSnapshot:
    goal = load_goal(goals=goals, goal_id=goal_id, user_id=user_id)
    saved = goals.save(goal_rules.transition_goal(goal, status, now=now))
    logger.info(
        "Goal status changed",
        extra={"goal_id": goal_id, "from_status": goal.status, "to_status": saved.status},
    )
    return saved


def mark_reminder_sent(
    *, goals: GoalRepository, goal_id: int, user_id: int, now: Optional[datetime] = None
) -> GoalSnapshot:
    """Stamp the reminder as sent and schedule the next one."""

    now = now or datetime.now()
    goal = load_goal(goals=goals, goal_id=goal_id, user_id=user_id)
    return goals.save(goal_rules.record_reminder(goal, now=now))


def due_reminders(
    *, goals: GoalRepository, user_id: int, now: Optional[datetime] = None
) -> list[GoalSnapshot]:
    """Active goals whose next reminder date has arrived."""

    now = now or datetime.now()
    return [
        goal
        for goal in goals.list_active(user_id=user_id, status=goal_rules.STATUS_ACTIVE)
        if goal.next_reminder_date is not None and goal.next_reminder_date <= now
    ]


def delete_goal(
    *, goals: GoalRepository, goal_id: int, user_id: int, now: Optional[datetime] = None
) -> GoalSnapshot:
    goal = load_goal(goals=goals, goal_id=goal_id, user_id=user_id)
    saved = goals.save(goal_rules.soft_delete_goal(goal, now=now))
    logger.info("Goal soft-deleted", extra={"goal_id": goal_id, "user_id": user_id})
    return saved


def restore_goal(*, goals: GoalRepository, goal_id: int, user_id: int) -> GoalSnapshot:
    goal = load_goal(goals=goals, goal_id=goal_id, user_id=user_id, include_deleted=True)
    return goals.save(goal_rules.restore_goal(goal))
