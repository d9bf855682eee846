"""SQLModel implementation of the Transaction repository."""

from __future__ import annotations

from datetime import datetime
from typing import Iterable, Optional

from sqlalchemy import func
from sqlmodel import col, select

from ...models.transaction import Transaction
from ..database import SessionFactory


class SQLModelTransactionRepository:
    """Read access to ledger rows for spend aggregation and ownership checks."""

    def __init__(self, session_factory: SessionFactory):
        self.session_factory = session_factory

    def get(self, transaction_id: int) -> Optional[Transaction]:
        """Retrieve a transaction by ID without scoping to a user."""
        with self.session_factory() as session:
            obj = session.get(Transaction, transaction_id)
            if obj is not None:
                session.expunge(obj)
            return obj

    def sum_completed_expenses(
        self,
        *,
        user_id: int,
        start_date: datetime,
        end_date: datetime,
        category_ids: Optional[Iterable[int]] = None,
    ) -> dict[int, float]:
        """Grouped sum of completed, non-deleted expenses within ``[start_date, end_date]``."""
        statement = (
            select(Transaction.category_id, func.sum(Transaction.amount))
            .where(Transaction.user_id == user_id)
            .where(Transaction.transaction_type == "expense")
            .where(Transaction.status == "completed")
            .where(col(Transaction.is_deleted).is_(False))
            .where(Transaction.occurred_at >= start_date)
            .where(Transaction.occurred_at <= end_date)
            .group_by(Transaction.category_id)
        )
        if category_ids is not None:
            ids = list(category_ids)
            if not ids:
                return {}
            statement = statement.where(col(Transaction.category_id).in_(ids))

        with self.session_factory() as session:
            rows = session.exec(statement).all()
        return {
            category_id: float(total or 0.0)
            for category_id, total in rows
            if category_id is not None
        }
