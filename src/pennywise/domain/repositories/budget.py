"""Budget repository protocol."""

from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol

from ..budgets import BudgetSnapshot


class BudgetRepository(Protocol):
    """Loads and stores budget snapshots."""

    def get(
        self, budget_id: int, *, user_id: int, include_deleted: bool = False
    ) -> Optional[BudgetSnapshot]:
        """Retrieve a budget owned by ``user_id``."""
        ...

    def list_active(
        self,
        *,
        user_id: int,
        period: Optional[str] = None,
        include_expired: bool = False,
        now: Optional[datetime] = None,
    ) -> list[BudgetSnapshot]:
        """List active, non-deleted budgets, newest first."""
        ...

    def get_current(
        self, *, user_id: int, period: str = "monthly", now: Optional[datetime] = None
    ) -> Optional[BudgetSnapshot]:
        """Return the active budget whose window contains ``now``."""
        ...

    def save(self, budget: BudgetSnapshot) -> BudgetSnapshot:
        """Insert or update a budget and its allocations."""
        ...

    def purge_deleted(self, *, older_than: datetime) -> int:
        """Physically remove budgets soft-deleted before ``older_than``."""
        ...
