"""Goal repository protocol."""

from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol

from ..goals import GoalSnapshot


class GoalRepository(Protocol):
    """Loads and stores goal snapshots."""

    def get(
        self, goal_id: int, *, user_id: int, include_deleted: bool = False
    ) -> Optional[GoalSnapshot]:
        ...

    def list_active(
        self, *, user_id: int, status: Optional[str] = None
    ) -> list[GoalSnapshot]:
        ...

    def save(self, goal: GoalSnapshot) -> GoalSnapshot:
        ...

    def purge_deleted(self, *, older_than: datetime) -> int:
        ...
