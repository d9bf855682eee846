"""Background scheduler wiring for the nightly purge."""

from __future__ import annotations

from datetime import datetime, timedelta

import pytest

from pennywise.config import BaseConfig
from pennywise.context import create_app_context
from pennywise.domain.goals import soft_delete_goal
from pennywise.models import User
from pennywise.scheduler import PURGE_JOB_ID, create_scheduler
from tests.conftest import make_goal


@pytest.fixture
def ctx(tmp_path, monkeypatch):
    monkeypatch.setenv("PENNYWISE_DATA_DIR", str(tmp_path))
    monkeypatch.delenv("PENNYWISE_DATABASE_URL", raising=False)
    monkeypatch.setenv("PENNYWISE_PURGE_HOUR", "4")
    context = create_app_context(BaseConfig())
    yield context
    context.engine.dispose()


@pytest.fixture
def scheduler(ctx):
    scheduler = create_scheduler(ctx, auto_start=True)
    yield scheduler
    scheduler.stop()


def test_start_registers_nightly_purge(scheduler):
    job = scheduler.purge_job

    assert scheduler.running
    assert job is not None
    assert job.id == PURGE_JOB_ID
    assert job.name == "Nightly Soft-Delete Purge"
    assert {field.name: str(field) for field in job.trigger.fields}["hour"] == "4"


def test_scheduler_is_not_started_by_default(ctx):
    scheduler = create_scheduler(ctx)

    assert not scheduler.running
    assert scheduler.purge_job is None


def test_second_start_keeps_single_job(scheduler, caplog):
    with caplog.at_level("WARNING", logger="pennywise"):
        scheduler.start()

    assert "Scheduler already running" in caplog.text
    assert len(scheduler.scheduler.get_jobs()) == 1


def test_stop_is_idempotent(ctx):
    scheduler = create_scheduler(ctx, auto_start=True)

    scheduler.stop()
    scheduler.stop()

    assert not scheduler.running


def test_run_purge_uses_configured_retention(ctx):
    with ctx.session_factory() as session:
        user = User(username="sleeper")
        session.add(user)
        session.flush()
        user_id = user.id

    goal = ctx.goal_repo.save(make_goal(user_id=user_id))
    ctx.goal_repo.save(soft_delete_goal(goal, now=datetime.now() - timedelta(days=120)))

    create_scheduler(ctx).run_purge()

    assert ctx.goal_repo.get(goal.id, user_id=user_id, include_deleted=True) is None


def test_run_purge_logs_failures(ctx, caplog):
    ctx.config.RETENTION_DAYS = -1

    with caplog.at_level("ERROR", logger="pennywise"):
        create_scheduler(ctx).run_purge()

    assert "Scheduled purge failed" in caplog.text
