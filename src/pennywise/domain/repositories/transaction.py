"""Transaction repository protocol."""

from __future__ import annotations

from datetime import datetime
from typing import Iterable, Optional, Protocol

from ...models.transaction import Transaction


class TransactionRepository(Protocol):
    """Read-only access to the ledger used by the budget engine."""

    def get(self, transaction_id: int) -> Optional[Transaction]:
        """Retrieve a transaction regardless of owner."""
        ...

    def sum_completed_expenses(
        self,
        *,
        user_id: int,
        start_date: datetime,
        end_date: datetime,
        category_ids: Optional[Iterable[int]] = None,
    ) -> dict[int, float]:
        """Return spend per category for completed, non-deleted expenses in range."""
        ...
