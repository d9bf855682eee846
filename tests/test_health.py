"""Budget health scoring."""

from __future__ import annotations

from datetime import timedelta

import pytest

from pennywise.domain.health import budget_health
from pennywise.domain.performance import calculate_performance
from tests.conftest import NOW, make_budget

_ENDED = {"start_date": NOW - timedelta(days=40), "end_date": NOW - timedelta(days=10)}


def _health(budget, now=NOW):
    return budget_health(calculate_performance(budget, now=now))


def test_fully_used_balanced_budget_scores_100():
    budget = make_budget((1, 600.0, 600.0), (2, 400.0, 400.0), total_amount=1000.0, **_ENDED)

    health = _health(budget)

    assert health.score == 100
    assert health.level == "Excellent"
    assert health.factors == ()


def test_moderate_overspend():
    budget = make_budget((1, 1000.0, 1100.0), total_amount=1000.0, **_ENDED)

    health = _health(budget)

    assert health.score == 80
    assert health.level == "Good"
    assert [f.factor for f in health.factors] == ["Over Budget"]
    assert health.factors[0].impact == pytest.approx(-20.0)


def test_penalties_stack_and_cap():
    budget = make_budget((1, 1000.0, 1500.0), total_amount=1000.0, **_ENDED)

    health = _health(budget)

    assert [f.factor for f in health.factors] == ["Over Budget", "Poor Pacing", "Category Imbalance"]
    assert [f.impact for f in health.factors] == pytest.approx([-30.0, -20.0, -10.0])
    assert health.score == 40
    assert health.level == "Poor"


def test_under_utilized_late_in_period():
    budget = make_budget(
        (1, 1000.0, 200.0),
        total_amount=1000.0,
        start_date=NOW - timedelta(days=24),
        end_date=NOW + timedelta(days=6),
    )

    health = _health(budget)

    assert [f.factor for f in health.factors] == [
        "Under-Utilized",
        "Poor Pacing",
        "Category Imbalance",
    ]
    assert health.score == 55
    assert health.level == "Poor"
    assert health.factors[1].description == "Spending too slow"


def test_to_dict():
    budget = make_budget((1, 1000.0, 1100.0), total_amount=1000.0, **_ENDED)

    payload = _health(budget).to_dict()

    assert payload["score"] == 80
    factor = payload["factors"][0]
    assert factor["factor"] == "Over Budget"
    assert factor["impact"] == pytest.approx(-20.0)
    assert factor["description"] == "10.0% over budget"
