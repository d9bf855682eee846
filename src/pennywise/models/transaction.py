"""SQLModel definitions for ledger transactions."""

from __future__ import annotations

from datetime import datetime
from typing import ClassVar, Optional

from sqlmodel import Field, SQLModel

TRANSACTION_TYPES = ("income", "expense", "transfer")
TRANSACTION_STATUSES = ("completed", "pending", "scheduled", "cancelled")


class Transaction(SQLModel, table=True):
    """A single ledger entry; amounts are positive and direction comes from the type."""

    __tablename__: ClassVar[str] = "transaction"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", nullable=False, index=True)
    occurred_at: datetime = Field(nullable=False, index=True)
    amount: float = Field(nullable=False)
    transaction_type: str = Field(default="expense", nullable=False, max_length=16, index=True)
    status: str = Field(default="completed", nullable=False, max_length=16)
    memo: str = Field(default="", max_length=255)
    category_id: Optional[int] = Field(default=None, foreign_key="category.id", index=True)
    currency: str = Field(default="USD", max_length=3, description="ISO-4217 currency code")
    is_deleted: bool = Field(default=False, nullable=False)
