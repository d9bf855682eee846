"""Savings goal tables."""

from __future__ import annotations

from datetime import datetime
from typing import ClassVar, Optional

from sqlalchemy.orm import relationship
from sqlmodel import Field, Relationship, SQLModel


class Goal(SQLModel, table=True):
    """A savings target with contribution history and cached analytics."""

    __tablename__: ClassVar[str] = "goal"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", nullable=False, index=True)
    category_id: Optional[int] = Field(default=None, foreign_key="category.id")
    name: str = Field(nullable=False, max_length=100)
    target_amount: float = Field(nullable=False)
    current_amount: float = Field(default=0.0, nullable=False)
    currency: str = Field(default="USD", max_length=3)
    start_date: datetime = Field(nullable=False, index=True)
    target_date: datetime = Field(nullable=False, index=True)
    status: str = Field(default="active", nullable=False, max_length=16, index=True)
    priority: str = Field(default="medium", nullable=False, max_length=16)

    progress_percentage: float = Field(default=0.0, nullable=False)
    overachievement_amount: float = Field(default=0.0, nullable=False)
    average_monthly_contribution: float = Field(default=0.0, nullable=False)
    estimated_completion_date: Optional[datetime] = Field(default=None)
    achievement_probability: Optional[float] = Field(default=None)
    achievement_date: Optional[datetime] = Field(default=None)

    reminder_frequency: str = Field(default="monthly", nullable=False, max_length=16)
    last_reminder_sent: Optional[datetime] = Field(default=None)
    next_reminder_date: Optional[datetime] = Field(default=None)

    version: int = Field(default=1, nullable=False)
    last_calculated: Optional[datetime] = Field(default=None)
    is_deleted: bool = Field(default=False, nullable=False, index=True)
    deleted_at: Optional[datetime] = Field(default=None)
    created_at: datetime = Field(default_factory=datetime.now, nullable=False)
    updated_at: datetime = Field(default_factory=datetime.now, nullable=False)

    contributions: list["GoalContribution"] = Relationship(
        back_populates="goal",
        sa_relationship=relationship(
            "GoalContribution",
            back_populates="goal",
            cascade="all, delete-orphan",
            order_by="GoalContribution.id",
        ),
    )


class GoalContribution(SQLModel, table=True):
    """Append-only record of money put towards a goal."""

    __tablename__: ClassVar[str] = "goal_contribution"

    id: Optional[int] = Field(default=None, primary_key=True)
    goal_id: int = Field(foreign_key="goal.id", nullable=False, index=True)
    amount: float = Field(nullable=False)
    date: datetime = Field(nullable=False)
    method: str = Field(default="manual", nullable=False, max_length=16)
    notes: Optional[str] = Field(default=None, max_length=500)
    source: Optional[str] = Field(default=None, max_length=100)
    transaction_id: Optional[int] = Field(default=None, foreign_key="transaction.id")

    goal: "Goal" = Relationship(
        back_populates="contributions",
        sa_relationship=relationship("Goal", back_populates="contributions"),
    )
