"""SQLModel implementation of the Goal repository."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy.orm import selectinload
from sqlmodel import col, select

from ...domain.goals import ContributionSnapshot, GoalSnapshot
from ...errors import NotFoundError
from ...models.goal import Goal, GoalContribution
from ..database import SessionFactory

_SCALAR_FIELDS = (
    "name",
    "category_id",
    "target_amount",
    "current_amount",
    "currency",
    "start_date",
    "target_date",
    "status",
    "priority",
    "progress_percentage",
    "overachievement_amount",
    "average_monthly_contribution",
    "estimated_completion_date",
    "achievement_probability",
    "achievement_date",
    "reminder_frequency",
    "last_reminder_sent",
    "next_reminder_date",
    "version",
    "last_calculated",
    "is_deleted",
    "deleted_at",
)


def to_snapshot(row: Goal) -> GoalSnapshot:
    contributions = tuple(
        ContributionSnapshot(
            id=item.id,
            amount=item.amount,
            date=item.date,
            method=item.method,
            notes=item.notes,
            source=item.source,
            transaction_id=item.transaction_id,
        )
        for item in sorted(row.contributions, key=lambda item: item.id or 0)
    )
    return GoalSnapshot(
        id=row.id,
        user_id=row.user_id,
        contributions=contributions,
        **{name: getattr(row, name) for name in _SCALAR_FIELDS},
    )


class SQLModelGoalRepository:
    """SQLModel-based goal repository implementation."""

    def __init__(self, session_factory: SessionFactory):
        self.session_factory = session_factory

    def _select(self, *, user_id: int, include_deleted: bool = False):
        statement = (
            select(Goal).options(selectinload(Goal.contributions)).where(Goal.user_id == user_id)
        )
        if not include_deleted:
            statement = statement.where(col(Goal.is_deleted).is_(False))
        return statement

    def get(
        self, goal_id: int, *, user_id: int, include_deleted: bool = False
    ) -> Optional[GoalSnapshot]:
        with self.session_factory() as session:
            row = session.exec(
                self._select(user_id=user_id, include_deleted=include_deleted).where(
                    Goal.id == goal_id
                )
            ).first()
            return to_snapshot(row) if row is not None else None

    def list_active(self, *, user_id: int, status: Optional[str] = None) -> list[GoalSnapshot]:
        statement = self._select(user_id=user_id)
        if status:
            statement = statement.where(Goal.status == status)
        statement = statement.order_by(col(Goal.target_date).asc())
        with self.session_factory() as session:
            return [to_snapshot(row) for row in session.exec(statement).all()]

    def save(self, goal: GoalSnapshot) -> GoalSnapshot:
        """Insert or update a goal; contributions without an id are appended."""
        with self.session_factory() as session:
            if goal.id is None:
                row = Goal(
                    user_id=goal.user_id,
                    name=goal.name,
                    target_amount=goal.target_amount,
                    start_date=goal.start_date,
                    target_date=goal.target_date,
                )
                session.add(row)
            else:
                row = session.exec(
                    self._select(user_id=goal.user_id, include_deleted=True).where(
                        Goal.id == goal.id
                    )
                ).first()
                if row is None:
                    raise NotFoundError(f"Goal {goal.id} not found")

            for name in _SCALAR_FIELDS:
                setattr(row, name, getattr(goal, name))
            row.updated_at = datetime.now()

            for contribution in goal.contributions:
                if contribution.id is not None:
                    continue
                row.contributions.append(
                    GoalContribution(
                        amount=contribution.amount,
                        date=contribution.date,
                        method=contribution.method,
                        notes=contribution.notes,
                        source=contribution.source,
                        transaction_id=contribution.transaction_id,
                    )
                )

            session.flush()
            return to_snapshot(row)

    def purge_deleted(self, *, older_than: datetime) -> int:
        with self.session_factory() as session:
            rows = session.exec(
                select(Goal)
                .where(col(Goal.is_deleted).is_(True))
                .where(col(Goal.deleted_at).is_not(None))
                .where(Goal.deleted_at < older_than)
            ).all()
            for row in rows:
                session.delete(row)
            return len(rows)
