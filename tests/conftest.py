"""Pytest configuration and shared fixtures for Pennywise tests.

This module provides database fixtures, test data factories, and helper utilities
for testing domain logic, repositories, and services without touching the real app database.
"""

from __future__ import annotations

import tempfile
from datetime import datetime, timedelta
from pathlib import Path

import pytest
from sqlmodel import Session, SQLModel, create_engine, select

from pennywise.domain.budgets import AllocationSnapshot, BudgetSnapshot
from pennywise.domain.goals import ContributionSnapshot, GoalSnapshot
from pennywise.infra.database import create_session_factory
from pennywise.infra.repositories import (
    SQLModelBudgetRepository,
    SQLModelCategoryRepository,
    SQLModelGoalRepository,
    SQLModelTransactionRepository,
)

# Import all models to ensure they're registered with SQLModel metadata
from pennywise.models import Category, Transaction, User

# Fixed clock used by time-dependent tests.
NOW = datetime(2026, 3, 16, 12, 0, 0)


# =============================================================================
# Database Fixtures
# =============================================================================


@pytest.fixture(scope="function")
def db_engine():
    """Create an isolated temporary SQLite database for each test.

    Yields:
        Engine: SQLModel engine connected to test database
    """
    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as f:
        db_path = Path(f.name)

    engine = create_engine(f"sqlite:///{db_path}", echo=False)
    SQLModel.metadata.create_all(engine)

    yield engine

    engine.dispose()
    db_path.unlink(missing_ok=True)


@pytest.fixture(scope="function")
def db_session(db_engine):
    """Session used by the data factories; committed after the test."""
    session = Session(db_engine, expire_on_commit=False)
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


@pytest.fixture(scope="function")
def session_factory(db_engine):
    """Session factory with the same commit/rollback semantics as the app."""
    return create_session_factory(db_engine)


@pytest.fixture
def budget_repo(session_factory) -> SQLModelBudgetRepository:
    return SQLModelBudgetRepository(session_factory)


@pytest.fixture
def goal_repo(session_factory) -> SQLModelGoalRepository:
    return SQLModelGoalRepository(session_factory)


@pytest.fixture
def transaction_repo(session_factory) -> SQLModelTransactionRepository:
    return SQLModelTransactionRepository(session_factory)


@pytest.fixture
def category_repo(session_factory) -> SQLModelCategoryRepository:
    return SQLModelCategoryRepository(session_factory)


# =============================================================================
# Test Data Factories
# =============================================================================


def _get_or_create_user(session: Session, username: str) -> User:
    existing = session.exec(select(User).where(User.username == username)).first()
    if existing:
        return existing
    u = User(username=username)
    session.add(u)
    session.commit()
    session.refresh(u)
    return u


@pytest.fixture
def user(db_session) -> User:
    """Create a default user for scoping data."""
    return _get_or_create_user(db_session, "tester")


@pytest.fixture
def other_user(db_session) -> User:
    """A second user for ownership checks."""
    return _get_or_create_user(db_session, "intruder")


@pytest.fixture
def category_factory(db_session, user):
    """Factory for creating test categories.

    Returns:
        Callable: Function that creates and persists Category instances
    """

    def _create_category(
        name: str = "Test Category",
        slug: str | None = None,
        category_type: str = "expense",
        color: str = "#FF5733",
        owner: User | None = None,
    ) -> Category:
        if slug is None:
            slug = name.lower().replace(" ", "-")

        owner = owner or user
        category = Category(
            user_id=owner.id,
            name=name,
            slug=slug,
            category_type=category_type,
            color=color,
        )
        db_session.add(category)
        db_session.commit()
        db_session.refresh(category)
        return category

    return _create_category


@pytest.fixture
def transaction_factory(db_session, user):
    """Factory for creating test ledger transactions.

    Returns:
        Callable: Function that creates and persists Transaction instances
    """

    def _create_transaction(
        amount: float,
        category_id: int | None = None,
        occurred_at: datetime | None = None,
        transaction_type: str = "expense",
        status: str = "completed",
        is_deleted: bool = False,
        memo: str = "Test transaction",
        owner: User | None = None,
    ) -> Transaction:
        """Create a transaction; amounts are positive and typed by ``transaction_type``."""
        owner = owner or user
        transaction = Transaction(
            user_id=owner.id,
            amount=amount,
            category_id=category_id,
            occurred_at=occurred_at or NOW - timedelta(days=1),
            transaction_type=transaction_type,
            status=status,
            is_deleted=is_deleted,
            memo=memo,
        )
        db_session.add(transaction)
        db_session.commit()
        db_session.refresh(transaction)
        return transaction

    return _create_transaction


@pytest.fixture
def seed_categories(category_factory):
    """Create a standard set of expense categories.

    Returns:
        dict: Dictionary mapping category slugs to Category instances
    """
    return {
        "groceries": category_factory(name="Groceries"),
        "rent": category_factory(name="Rent"),
        "fun": category_factory(name="Fun"),
    }


# =============================================================================
# Snapshot Builders
# =============================================================================


def make_budget(
    *allocations: tuple[int, float] | tuple[int, float, float],
    user_id: int = 1,
    total_amount: float = 1000.0,
    start_date: datetime | None = None,
    end_date: datetime | None = None,
    **overrides,
) -> BudgetSnapshot:
    """Build a budget snapshot from ``(category_id, allocated[, spent])`` tuples.

    The default window is 30 days centred on ``NOW``.
    """
    lines = []
    for item in allocations or ((1, total_amount),):
        category_id, allocated = item[0], item[1]
        spent = item[2] if len(item) > 2 else 0.0
        lines.append(
            AllocationSnapshot(category_id=category_id, allocated_amount=allocated, spent_amount=spent)
        )
    return BudgetSnapshot(
        user_id=user_id,
        name=overrides.pop("name", "March budget"),
        period=overrides.pop("period", "monthly"),
        start_date=start_date or NOW - timedelta(days=15),
        end_date=end_date or NOW + timedelta(days=15),
        total_amount=total_amount,
        allocations=tuple(lines),
        total_spent=sum(line.spent_amount for line in lines),
        **overrides,
    )


def make_goal(
    *,
    user_id: int = 1,
    target_amount: float = 1000.0,
    current_amount: float = 0.0,
    start_date: datetime | None = None,
    target_date: datetime | None = None,
    contributions: tuple[tuple[float, datetime], ...] = (),
    **overrides,
) -> GoalSnapshot:
    """Build a goal snapshot; the default timeline is NOW - 60 days to NOW + 60 days."""
    return GoalSnapshot(
        user_id=user_id,
        name=overrides.pop("name", "Emergency fund"),
        target_amount=target_amount,
        current_amount=current_amount,
        start_date=start_date or NOW - timedelta(days=60),
        target_date=target_date or NOW + timedelta(days=60),
        contributions=tuple(
            ContributionSnapshot(amount=amount, date=date) for amount, date in contributions
        ),
        **overrides,
    )


# =============================================================================
# Helper Utilities
# =============================================================================


def assert_float_equal(actual: float, expected: float, tolerance: float = 0.01):
    """Assert that two floats are equal within a tolerance.

    Args:
        actual: Actual value
        expected: Expected value
        tolerance: Maximum allowed difference (default 0.01 = 1 cent)

    Raises:
        AssertionError: If values differ by more than tolerance
    """
    assert (
        abs(actual - expected) < tolerance
    ), f"Expected {expected}, got {actual} (diff: {abs(actual - expected)})"
