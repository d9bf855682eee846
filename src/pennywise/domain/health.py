"""Budget health score derived from a performance report."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any

from .performance import BudgetPerformance


@dataclass(frozen=True, slots=True)
class HealthFactor:
    factor: str
    impact: float
    description: str


@dataclass(frozen=True, slots=True)
class BudgetHealth:
    score: int
    level: str
    factors: tuple[HealthFactor, ...]

    def to_dict(self) -> dict[str, Any]:
        return {
            "score": self.score,
            "level": self.level,
            "factors": [asdict(factor) for factor in self.factors],
        }


def _level(score: int) -> str:
    if score >= 90:
        return "Excellent"
    if score >= 75:
        return "Good"
    if score >= 60:
        return "Fair"
    if score >= 40:
        return "Poor"
    return "Critical"


def budget_health(performance: BudgetPerformance) -> BudgetHealth:
    """Score a budget out of 100, deducting for overspend, pacing and imbalance."""

    score = 100.0
    factors: list[HealthFactor] = []
    utilization = performance.budget.utilization_percentage

    if utilization > 100:
        penalty = min(30.0, (utilization - 100) * 2)
        score -= penalty
        factors.append(
            HealthFactor("Over Budget", -penalty, f"{utilization - 100:.1f}% over budget")
        )
    elif utilization < 50 and performance.period.period_progress > 75:
        penalty = 10.0
        score -= penalty
        factors.append(
            HealthFactor("Under-Utilized", -penalty, "Significant unused budget allocation")
        )

    pacing = performance.variance.time_variance_percentage
    if abs(pacing) > 20:
        penalty = min(20.0, abs(pacing) / 2)
        score -= penalty
        direction = "too fast" if pacing > 0 else "too slow"
        factors.append(HealthFactor("Poor Pacing", -penalty, f"Spending {direction}"))

    # Uncapped utilization per category; unfunded categories are ignored.
    spreads = [
        abs(category.spent / category.allocated * 100 - 100)
        for category in performance.categories
        if category.allocated > 0
    ]
    if spreads:
        average_spread = sum(spreads) / len(spreads)
        if average_spread > 25:
            penalty = min(15.0, average_spread / 5)
            score -= penalty
            factors.append(
                HealthFactor("Category Imbalance", -penalty, "Uneven spending across categories")
            )

    final = max(0, round(score))
    return BudgetHealth(score=final, level=_level(final), factors=tuple(factors))
