"""Budgeting tables."""

from __future__ import annotations

from datetime import datetime
from typing import ClassVar, Optional

from sqlalchemy import UniqueConstraint
from sqlalchemy.orm import relationship
from sqlmodel import Field, Relationship, SQLModel


class Budget(SQLModel, table=True):
    """A time-boxed budget with cached spend totals."""

    __tablename__: ClassVar[str] = "budget"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", nullable=False, index=True)
    name: str = Field(nullable=False, max_length=100)
    period: str = Field(nullable=False, max_length=16, index=True)
    start_date: datetime = Field(nullable=False, index=True)
    end_date: datetime = Field(nullable=False, index=True)
    total_amount: float = Field(nullable=False)
    currency: str = Field(default="USD", max_length=3)
    description: str = Field(default="", max_length=1000)
    tags: str = Field(default="", max_length=512, description="Comma separated tags")

    rollover_enabled: bool = Field(default=False, nullable=False)
    is_active: bool = Field(default=True, nullable=False, index=True)
    alert_threshold: float = Field(default=80.0, nullable=False)

    total_spent: float = Field(default=0.0, nullable=False)
    total_remaining: float = Field(default=0.0, nullable=False)
    utilization_percentage: float = Field(default=0.0, nullable=False)
    version: int = Field(default=1, nullable=False)
    last_calculated: Optional[datetime] = Field(default=None)

    is_deleted: bool = Field(default=False, nullable=False, index=True)
    deleted_at: Optional[datetime] = Field(default=None)
    created_at: datetime = Field(default_factory=datetime.now, nullable=False)
    updated_at: datetime = Field(default_factory=datetime.now, nullable=False)

    allocations: list["BudgetAllocation"] = Relationship(
        back_populates="budget",
        sa_relationship=relationship(
            "BudgetAllocation",
            back_populates="budget",
            cascade="all, delete-orphan",
            order_by="BudgetAllocation.position",
        ),
    )


class BudgetAllocation(SQLModel, table=True):
    """Share of a budget assigned to one category."""

    __tablename__: ClassVar[str] = "budget_allocation"
    __table_args__ = (UniqueConstraint("budget_id", "category_id"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    budget_id: int = Field(foreign_key="budget.id", nullable=False, index=True)
    category_id: int = Field(foreign_key="category.id", nullable=False)
    position: int = Field(default=0, nullable=False)
    allocated_amount: float = Field(nullable=False)
    spent_amount: float = Field(default=0.0, nullable=False)
    rollover_amount: float = Field(default=0.0, nullable=False)
    adjusted_amount: float = Field(default=0.0, nullable=False)
    percentage: float = Field(default=0.0, nullable=False)
    notes: str = Field(default="", max_length=500)

    budget: "Budget" = Relationship(
        back_populates="allocations",
        sa_relationship=relationship("Budget", back_populates="allocations"),
    )
