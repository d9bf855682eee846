"""Physical purge of soft-deleted budgets and goals."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from ..domain.repositories import BudgetRepository, GoalRepository
from ..logging_config import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class PurgeSummary:
    budgets: int
    goals: int
    cutoff: datetime

    @property
    def total(self) -> int:
        return self.budgets + self.goals


def purge_deleted(
    *,
    budgets: BudgetRepository,
    goals: GoalRepository,
    retention_days: int,
    now: Optional[datetime] = None,
) -> PurgeSummary:
    """Remove aggregates soft-deleted more than ``retention_days`` ago."""

    if retention_days < 0:
        raise ValueError("retention_days must be non-negative")
    cutoff = (now or datetime.now()) - timedelta(days=retention_days)
    summary = PurgeSummary(
        budgets=budgets.purge_deleted(older_than=cutoff),
        goals=goals.purge_deleted(older_than=cutoff),
        cutoff=cutoff,
    )
    logger.info(
        "Purged soft-deleted records",
        extra={"budgets": summary.budgets, "goals": summary.goals, "cutoff": cutoff.isoformat()},
    )
    return summary
