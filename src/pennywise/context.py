"""Application context for dependency injection."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from sqlalchemy.engine import Engine

from .config import BaseConfig
from .infra.database import SessionFactory, bootstrap_database
from .infra.repositories import (
    SQLModelBudgetRepository,
    SQLModelCategoryRepository,
    SQLModelGoalRepository,
    SQLModelTransactionRepository,
)


@dataclass
class AppContext:
    """Configuration, session factory and repositories shared by all callers."""

    config: BaseConfig
    engine: Engine
    session_factory: SessionFactory

    transaction_repo: SQLModelTransactionRepository
    category_repo: SQLModelCategoryRepository
    budget_repo: SQLModelBudgetRepository
    goal_repo: SQLModelGoalRepository


def create_app_context(config: Optional[BaseConfig] = None) -> AppContext:
    """Create the engine, ensure the schema exists and build the repositories."""

    if config is None:
        config = BaseConfig()

    engine, session_factory = bootstrap_database(config)

    return AppContext(
        config=config,
        engine=engine,
        session_factory=session_factory,
        transaction_repo=SQLModelTransactionRepository(session_factory),
        category_repo=SQLModelCategoryRepository(session_factory),
        budget_repo=SQLModelBudgetRepository(session_factory),
        goal_repo=SQLModelGoalRepository(session_factory),
    )
