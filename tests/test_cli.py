"""Flask CLI commands."""

from __future__ import annotations

from datetime import datetime, timedelta

import pytest

from pennywise import create_app
from pennywise.domain.budgets import soft_delete_budget
from pennywise.models import Category, Transaction, User
from tests.conftest import make_budget


@pytest.fixture
def app(tmp_path, monkeypatch):
    monkeypatch.setenv("PENNYWISE_DATA_DIR", str(tmp_path))
    monkeypatch.delenv("PENNYWISE_DATABASE_URL", raising=False)
    app = create_app("testing")
    yield app
    app.extensions["pennywise"].engine.dispose()


@pytest.fixture
def owner(app):
    """A user with one category and a recent expense."""
    ctx = app.extensions["pennywise"]
    with ctx.session_factory() as session:
        user = User(username="cli-user")
        session.add(user)
        session.flush()
        category = Category(user_id=user.id, name="Dining", slug="dining")
        session.add(category)
        session.flush()
        session.add(
            Transaction(
                user_id=user.id,
                amount=180.0,
                category_id=category.id,
                occurred_at=datetime.now() - timedelta(hours=1),
            )
        )
        return user.id, category.id


@pytest.fixture
def runner(app):
    return app.test_cli_runner()


def _current_budget(category_id, user_id, **overrides):
    now = datetime.now()
    return make_budget(
        (category_id, 150.0),
        user_id=user_id,
        total_amount=200.0,
        start_date=now - timedelta(days=10),
        end_date=now + timedelta(days=20),
        **overrides,
    )


def test_evaluate_prints_status_and_violations(app, runner, owner):
    user_id, category_id = owner
    ctx = app.extensions["pennywise"]
    budget = ctx.budget_repo.save(_current_budget(category_id, user_id, name="Eating out"))

    result = runner.invoke(args=["pennywise-evaluate", "--user-id", str(user_id)])

    assert result.exit_code == 0
    assert f"[{budget.id}] Eating out: spent 180.00 of 200.00 (warning)" in result.output
    assert "WARNING: 90.0% of budget used" in result.output
    assert "CRITICAL: Category exceeded by $30.00" in result.output
    assert ctx.budget_repo.get(budget.id, user_id=user_id).total_spent == 180.0


def test_evaluate_without_budgets(runner, owner):
    user_id, _ = owner

    result = runner.invoke(args=["pennywise-evaluate", "--user-id", str(user_id)])

    assert result.exit_code == 0
    assert "No active budgets." in result.output


def test_purge_uses_retention_window(app, runner, owner):
    user_id, category_id = owner
    ctx = app.extensions["pennywise"]
    stale = ctx.budget_repo.save(_current_budget(category_id, user_id))
    ctx.budget_repo.save(soft_delete_budget(stale, now=datetime.now() - timedelta(days=10)))

    kept = runner.invoke(args=["pennywise-purge"])
    purged = runner.invoke(args=["pennywise-purge", "--days", "7"])

    assert kept.exit_code == 0
    assert "Purged 0 budget(s) and 0 goal(s)" in kept.output
    assert "Purged 1 budget(s) and 0 goal(s)" in purged.output
    assert ctx.budget_repo.get(stale.id, user_id=user_id, include_deleted=True) is None


def test_purge_rejects_negative_days(runner):
    result = runner.invoke(args=["pennywise-purge", "--days", "-1"])

    assert result.exit_code == 2
    assert "must be non-negative" in result.output
