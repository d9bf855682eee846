"""Ledger category definitions."""

from __future__ import annotations

from typing import ClassVar, Optional

from sqlmodel import Field, SQLModel

MAX_CATEGORY_DEPTH = 5


class Category(SQLModel, table=True):
    """User-scoped income or expense category, optionally nested under a parent."""

    __tablename__: ClassVar[str] = "category"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", nullable=False, index=True)
    name: str = Field(index=True, nullable=False, max_length=64)
    slug: str = Field(index=True, nullable=False, max_length=64)
    category_type: str = Field(default="expense", nullable=False, max_length=16)
    parent_id: Optional[int] = Field(default=None, foreign_key="category.id")
    color: Optional[str] = Field(default=None, max_length=7)
