"""SQLModel implementation of the Budget repository."""

from __future__ import annotations

from datetime import datetime
from typing import Iterable, Optional

from sqlalchemy.orm import selectinload
from sqlmodel import Session, col, select

from ...domain.budgets import AllocationSnapshot, BudgetSnapshot
from ...errors import NotFoundError
from ...models.budget import Budget, BudgetAllocation
from ...models.category import Category
from ..database import SessionFactory

_SCALAR_FIELDS = (
    "name",
    "period",
    "start_date",
    "end_date",
    "total_amount",
    "currency",
    "description",
    "rollover_enabled",
    "is_active",
    "alert_threshold",
    "total_spent",
    "total_remaining",
    "utilization_percentage",
    "version",
    "last_calculated",
    "is_deleted",
    "deleted_at",
)


def _category_names(session: Session, category_ids: Iterable[int]) -> dict[int, str]:
    ids = list(category_ids)
    if not ids:
        return {}
    rows = session.exec(select(Category.id, Category.name).where(col(Category.id).in_(ids))).all()
    return {category_id: name for category_id, name in rows}


def to_snapshot(row: Budget, names: dict[int, str]) -> BudgetSnapshot:
    allocations = tuple(
        AllocationSnapshot(
            category_id=line.category_id,
            allocated_amount=line.allocated_amount,
            spent_amount=line.spent_amount,
            rollover_amount=line.rollover_amount,
            percentage=line.percentage,
            notes=line.notes or "",
            category_name=names.get(line.category_id),
        )
        for line in sorted(row.allocations, key=lambda line: line.position)
    )
    tags = tuple(tag for tag in (row.tags or "").split(",") if tag)
    return BudgetSnapshot(
        id=row.id,
        user_id=row.user_id,
        allocations=allocations,
        tags=tags,
        **{name: getattr(row, name) for name in _SCALAR_FIELDS},
    )


def _sync_allocations(row: Budget, allocations: tuple[AllocationSnapshot, ...]) -> None:
    """Update rows in place by category so the (budget, category) key never collides."""

    wanted = {allocation.category_id for allocation in allocations}
    for line in list(row.allocations):
        if line.category_id not in wanted:
            row.allocations.remove(line)

    existing = {line.category_id: line for line in row.allocations}
    for position, allocation in enumerate(allocations):
        line = existing.get(allocation.category_id)
        if line is None:
            line = BudgetAllocation(category_id=allocation.category_id, allocated_amount=0.0)
            row.allocations.append(line)
        line.position = position
        line.allocated_amount = allocation.allocated_amount
        line.spent_amount = allocation.spent_amount
        line.rollover_amount = allocation.rollover_amount
        line.adjusted_amount = allocation.adjusted_amount
        line.percentage = allocation.percentage
        line.notes = allocation.notes or ""


class SQLModelBudgetRepository:
    """SQLModel-based budget repository implementation."""

    def __init__(self, session_factory: SessionFactory):
        """Initialize with a session factory."""
        self.session_factory = session_factory

    def _select(self, *, user_id: int, include_deleted: bool = False):
        statement = (
            select(Budget)
            .options(selectinload(Budget.allocations))
            .where(Budget.user_id == user_id)
        )
        if not include_deleted:
            statement = statement.where(col(Budget.is_deleted).is_(False))
        return statement

    def _snapshots(self, session: Session, rows: list[Budget]) -> list[BudgetSnapshot]:
        names = _category_names(
            session, {line.category_id for row in rows for line in row.allocations}
        )
        return [to_snapshot(row, names) for row in rows]

    def get(
        self, budget_id: int, *, user_id: int, include_deleted: bool = False
    ) -> Optional[BudgetSnapshot]:
        """Retrieve a budget by ID."""
        with self.session_factory() as session:
            statement = self._select(user_id=user_id, include_deleted=include_deleted).where(
                Budget.id == budget_id
            )
            row = session.exec(statement).first()
            if row is None:
                return None
            return self._snapshots(session, [row])[0]

    def list_active(
        self,
        *,
        user_id: int,
        period: Optional[str] = None,
        include_expired: bool = False,
        now: Optional[datetime] = None,
    ) -> list[BudgetSnapshot]:
        """List active budgets, newest first."""
        statement = self._select(user_id=user_id).where(col(Budget.is_active).is_(True))
        if period:
            statement = statement.where(Budget.period == period)
        if not include_expired:
            statement = statement.where(Budget.end_date >= (now or datetime.now()))
        statement = statement.order_by(col(Budget.start_date).desc())

        with self.session_factory() as session:
            return self._snapshots(session, list(session.exec(statement).all()))

    def get_current(
        self, *, user_id: int, period: str = "monthly", now: Optional[datetime] = None
    ) -> Optional[BudgetSnapshot]:
        """Return the active budget covering ``now`` for ``period``."""
        now = now or datetime.now()
        statement = (
            self._select(user_id=user_id)
            .where(col(Budget.is_active).is_(True))
            .where(Budget.period == period)
            .where(Budget.start_date <= now)
            .where(Budget.end_date >= now)
            .order_by(col(Budget.start_date).desc())
        )
        with self.session_factory() as session:
            row = session.exec(statement).first()
            if row is None:
                return None
            return self._snapshots(session, [row])[0]

    def save(self, budget: BudgetSnapshot) -> BudgetSnapshot:
        """Insert or update a budget together with its allocations."""
        with self.session_factory() as session:
            if budget.id is None:
                row = Budget(
                    user_id=budget.user_id,
                    name=budget.name,
                    period=budget.period,
                    start_date=budget.start_date,
                    end_date=budget.end_date,
                    total_amount=budget.total_amount,
                )
                session.add(row)
            else:
                row = session.exec(
                    self._select(user_id=budget.user_id, include_deleted=True).where(
                        Budget.id == budget.id
                    )
                ).first()
                if row is None:
                    raise NotFoundError(f"Budget {budget.id} not found")

            for name in _SCALAR_FIELDS:
                setattr(row, name, getattr(budget, name))
            row.tags = ",".join(budget.tags)
            row.updated_at = datetime.now()
            _sync_allocations(row, budget.allocations)

            session.flush()
            return self._snapshots(session, [row])[0]

    def purge_deleted(self, *, older_than: datetime) -> int:
        """Physically delete budgets soft-deleted before ``older_than``."""
        with self.session_factory() as session:
            rows = session.exec(
                select(Budget)
                .where(col(Budget.is_deleted).is_(True))
                .where(col(Budget.deleted_at).is_not(None))
                .where(Budget.deleted_at < older_than)
            ).all()
            for row in rows:
                session.delete(row)
            return len(rows)
