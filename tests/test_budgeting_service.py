"""Budgeting services: load, refresh spend, recompute and persist."""

from __future__ import annotations

from datetime import timedelta

import pytest

from pennywise.domain.performance import STATUS_OVER_BUDGET, STATUS_ON_TRACK
from pennywise.domain.violations import (
    BUDGET_EXCEEDED,
    BUDGET_WARNING,
    CATEGORY_EXCEEDED,
    CATEGORY_WARNING,
)
from pennywise.errors import NotFoundError, OwnershipError, StateError, ValidationError
from pennywise.services import budgeting
from tests.conftest import NOW, make_budget


@pytest.fixture
def services(budget_repo, category_repo, transaction_repo):
    return {"budgets": budget_repo, "categories": category_repo, "transactions": transaction_repo}


@pytest.fixture
def march_budget(services, seed_categories, user):
    budget = make_budget(
        (seed_categories["groceries"].id, 400.0),
        (seed_categories["rent"].id, 500.0),
        user_id=user.id,
        total_amount=1000.0,
    )
    return budgeting.create_budget(
        budgets=services["budgets"], categories=services["categories"], budget=budget, now=NOW
    )


def _evaluate(services, budget, user, **kwargs):
    return budgeting.evaluate_budget(
        budgets=services["budgets"],
        transactions=services["transactions"],
        budget_id=budget.id,
        user_id=user.id,
        now=NOW,
        **kwargs,
    )


class TestCreateBudget:
    def test_persists_recalculated_budget(self, march_budget):
        assert march_budget.id is not None
        assert march_budget.version == 1
        assert march_budget.total_remaining == 1000.0
        assert march_budget.last_calculated == NOW

    def test_rejects_category_of_another_user(self, services, category_factory, other_user, user):
        foreign = category_factory(name="Theirs", owner=other_user)
        budget = make_budget((foreign.id, 100.0), user_id=user.id)

        with pytest.raises(OwnershipError):
            budgeting.create_budget(
                budgets=services["budgets"], categories=services["categories"], budget=budget
            )

    def test_rejects_missing_category(self, services, user):
        with pytest.raises(OwnershipError):
            budgeting.create_budget(
                budgets=services["budgets"],
                categories=services["categories"],
                budget=make_budget((9999, 100.0), user_id=user.id),
            )

    def test_validation_runs_before_persisting(self, services, seed_categories, user):
        budget = make_budget((seed_categories["fun"].id, 2000.0), user_id=user.id, total_amount=1000.0)

        with pytest.raises(ValidationError):
            budgeting.create_budget(
                budgets=services["budgets"], categories=services["categories"], budget=budget
            )

        assert services["budgets"].list_active(user_id=user.id, now=NOW) == []


class TestEvaluateBudget:
    def test_refreshes_spend_and_reports(
        self, services, march_budget, transaction_factory, seed_categories, user
    ):
        transaction_factory(amount=450.0, category_id=seed_categories["groceries"].id)
        transaction_factory(amount=500.0, category_id=seed_categories["rent"].id)

        evaluation = _evaluate(services, march_budget, user)

        assert evaluation.budget.total_spent == 950.0
        assert evaluation.budget.version == march_budget.version
        assert [v.type for v in evaluation.violations] == [
            BUDGET_WARNING,
            CATEGORY_EXCEEDED,
            CATEGORY_WARNING,
        ]
        assert evaluation.performance.categories[0].status == STATUS_OVER_BUDGET

        stored = services["budgets"].get(march_budget.id, user_id=user.id)
        assert stored.total_spent == 950.0
        assert stored.allocation_for(seed_categories["groceries"].id).spent_amount == 450.0

    def test_without_persist_leaves_cache_untouched(
        self, services, march_budget, transaction_factory, seed_categories, user
    ):
        transaction_factory(amount=1200.0, category_id=seed_categories["rent"].id)

        evaluation = _evaluate(services, march_budget, user, persist=False)

        assert evaluation.violations[0].type == BUDGET_EXCEEDED
        assert services["budgets"].get(march_budget.id, user_id=user.id).total_spent == 0.0

    def test_is_idempotent(self, services, march_budget, transaction_factory, seed_categories, user):
        transaction_factory(amount=123.45, category_id=seed_categories["groceries"].id)

        first = _evaluate(services, march_budget, user)
        second = _evaluate(services, march_budget, user)

        assert first.to_dict() == second.to_dict()

    def test_other_users_budget_is_not_found(self, services, march_budget, other_user):
        with pytest.raises(NotFoundError):
            _evaluate(services, march_budget, other_user)

    def test_remaining_and_health(
        self, services, march_budget, transaction_factory, seed_categories, user
    ):
        transaction_factory(amount=100.0, category_id=seed_categories["groceries"].id)
        kwargs = dict(
            budgets=services["budgets"],
            transactions=services["transactions"],
            budget_id=march_budget.id,
            user_id=user.id,
            now=NOW,
        )

        remaining = budgeting.budget_remaining(**kwargs)
        health = budgeting.budget_health_report(**kwargs)

        assert remaining.total == 900.0
        assert remaining.daily == 60.0
        assert 0 <= health.score <= 100
        assert services["budgets"].get(march_budget.id, user_id=user.id).total_spent == 0.0


class TestAllocationChanges:
    def test_set_allocation_bumps_version(self, services, march_budget, seed_categories, user):
        updated = budgeting.set_budget_allocation(
            budgets=services["budgets"],
            categories=services["categories"],
            budget_id=march_budget.id,
            user_id=user.id,
            category_id=seed_categories["fun"].id,
            amount=100.0,
            now=NOW,
        )

        assert updated.version == march_budget.version + 1
        assert updated.allocation_for(seed_categories["fun"].id).allocated_amount == 100.0

    def test_set_allocation_rejects_foreign_category(
        self, services, march_budget, category_factory, other_user, user
    ):
        foreign = category_factory(name="Theirs", owner=other_user)

        with pytest.raises(OwnershipError):
            budgeting.set_budget_allocation(
                budgets=services["budgets"],
                categories=services["categories"],
                budget_id=march_budget.id,
                user_id=user.id,
                category_id=foreign.id,
                amount=10.0,
            )

    def test_remove_allocation(self, services, march_budget, seed_categories, user):
        updated = budgeting.remove_budget_allocation(
            budgets=services["budgets"],
            budget_id=march_budget.id,
            user_id=user.id,
            category_id=seed_categories["rent"].id,
            now=NOW,
        )

        assert updated.category_ids == [seed_categories["groceries"].id]
        assert updated.version == 2


class TestRollover:
    def _previous(self, services, seed_categories, user):
        budget = make_budget(
            (seed_categories["groceries"].id, 400.0),
            (seed_categories["rent"].id, 500.0),
            user_id=user.id,
            name="February budget",
            start_date=NOW - timedelta(days=45),
            end_date=NOW - timedelta(days=16),
        )
        return services["budgets"].save(budget)

    def test_carries_unspent_amounts(
        self, services, seed_categories, transaction_factory, user
    ):
        previous = self._previous(services, seed_categories, user)
        transaction_factory(
            amount=150.0,
            category_id=seed_categories["groceries"].id,
            occurred_at=NOW - timedelta(days=30),
        )
        transaction_factory(
            amount=520.0,
            category_id=seed_categories["rent"].id,
            occurred_at=NOW - timedelta(days=30),
        )
        current = services["budgets"].save(
            make_budget(
                (seed_categories["groceries"].id, 400.0),
                (seed_categories["rent"].id, 500.0),
                user_id=user.id,
                rollover_enabled=True,
            )
        )

        result = budgeting.rollover_budget(
            budgets=services["budgets"],
            transactions=services["transactions"],
            budget_id=current.id,
            previous_budget_id=previous.id,
            user_id=user.id,
            now=NOW,
        )

        assert result.allocation_for(seed_categories["groceries"].id).rollover_amount == 250.0
        assert result.allocation_for(seed_categories["rent"].id).rollover_amount == 0.0
        assert result.version == current.version + 1

    def test_disabled_rollover_is_a_state_error(self, services, march_budget, seed_categories, user):
        previous = self._previous(services, seed_categories, user)

        with pytest.raises(StateError):
            budgeting.rollover_budget(
                budgets=services["budgets"],
                transactions=services["transactions"],
                budget_id=march_budget.id,
                previous_budget_id=previous.id,
                user_id=user.id,
            )

    def test_missing_previous_budget(self, services, march_budget, user):
        with pytest.raises(NotFoundError, match="Previous budget"):
            budgeting.rollover_budget(
                budgets=services["budgets"],
                transactions=services["transactions"],
                budget_id=march_budget.id,
                previous_budget_id=march_budget.id + 50,
                user_id=user.id,
            )


class TestLifecycle:
    def test_duplicate_for_next_period(self, services, march_budget, user):
        copy = budgeting.duplicate_budget(
            budgets=services["budgets"],
            template_id=march_budget.id,
            user_id=user.id,
            now=NOW,
            name="April budget",
            start_date=march_budget.end_date,
            end_date=march_budget.end_date + timedelta(days=30),
        )

        assert copy.id != march_budget.id
        assert copy.name == "April budget"
        assert copy.category_ids == march_budget.category_ids
        assert copy.version == 1

    def test_delete_and_restore(self, services, march_budget, user):
        deleted = budgeting.delete_budget(
            budgets=services["budgets"], budget_id=march_budget.id, user_id=user.id, now=NOW
        )

        assert deleted.is_deleted
        with pytest.raises(NotFoundError):
            budgeting.load_budget(budgets=services["budgets"], budget_id=march_budget.id, user_id=user.id)

        restored = budgeting.restore_budget(
            budgets=services["budgets"], budget_id=march_budget.id, user_id=user.id
        )

        assert not restored.is_deleted
        assert restored.deleted_at is None

    def test_status_stays_on_track_without_spend(self, services, march_budget, user):
        evaluation = _evaluate(services, march_budget, user)

        assert evaluation.performance.variance.status == STATUS_ON_TRACK
        assert evaluation.violations == []
