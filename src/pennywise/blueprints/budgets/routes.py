"""Budget routes: CRUD plus performance, violations and health reports."""

from __future__ import annotations

from typing import Any

from flask import jsonify, request

from ...domain.budgets import AllocationSnapshot, BudgetSnapshot
from ...logging_config import get_logger
from ...services import budgeting
from ..common import (
    app_context,
    current_user_id,
    json_body,
    parse_amount,
    parse_datetime,
    parse_id,
    parse_now,
    require,
)
from . import bp

logger = get_logger(__name__)


def _iso(value):
    return value.isoformat() if value is not None else None


def serialize_budget(budget: BudgetSnapshot) -> dict[str, Any]:
    return {
        "id": budget.id,
        "name": budget.name,
        "period": budget.period,
        "start_date": _iso(budget.start_date),
        "end_date": _iso(budget.end_date),
        "total_amount": budget.total_amount,
        "currency": budget.currency,
        "description": budget.description,
        "alert_threshold": budget.alert_threshold,
        "rollover_enabled": budget.rollover_enabled,
        "is_active": budget.is_active,
        "total_spent": budget.total_spent,
        "total_remaining": budget.total_remaining,
        "utilization_percentage": budget.utilization_percentage,
        "version": budget.version,
        "last_calculated": _iso(budget.last_calculated),
        "is_deleted": budget.is_deleted,
        "deleted_at": _iso(budget.deleted_at),
        "tags": list(budget.tags),
        "allocations": [
            {
                "category_id": allocation.category_id,
                "category_name": allocation.category_name,
                "allocated_amount": allocation.allocated_amount,
                "rollover_amount": allocation.rollover_amount,
                "adjusted_amount": allocation.adjusted_amount,
                "spent_amount": allocation.spent_amount,
                "remaining_amount": allocation.remaining_amount,
                "percentage": allocation.percentage,
                "notes": allocation.notes,
            }
            for allocation in budget.allocations
        ],
    }


def _allocations_from(payload: list[dict[str, Any]]) -> tuple[AllocationSnapshot, ...]:
    allocations = []
    for item in payload or []:
        require(item, "category_id", "allocated_amount")
        allocations.append(
            AllocationSnapshot(
                category_id=parse_id(item["category_id"], field="category_id"),
                allocated_amount=parse_amount(item["allocated_amount"], field="allocated_amount"),
                notes=item.get("notes") or "",
            )
        )
    return tuple(allocations)


@bp.get("/")
def list_budgets():
    """List the caller's active budgets."""

    ctx = app_context()
    budgets = ctx.budget_repo.list_active(
        user_id=current_user_id(),
        period=request.args.get("period"),
        include_expired=request.args.get("include_expired", "").lower() in {"1", "true", "yes"},
        now=parse_now(),
    )
    return jsonify([serialize_budget(budget) for budget in budgets])


@bp.post("/")
def create_budget():
    ctx = app_context()
    payload = json_body()
    require(payload, "name", "period", "start_date", "end_date", "total_amount")

    budget = BudgetSnapshot(
        user_id=current_user_id(),
        name=str(payload["name"]).strip(),
        period=payload["period"],
        start_date=parse_datetime(payload["start_date"], field="start_date"),
        end_date=parse_datetime(payload["end_date"], field="end_date"),
        total_amount=parse_amount(payload["total_amount"], field="total_amount"),
        allocations=_allocations_from(payload.get("allocations", [])),
        alert_threshold=parse_amount(
            payload.get("alert_threshold", ctx.config.ALERT_THRESHOLD), field="alert_threshold"
        ),
        rollover_enabled=bool(payload.get("rollover_enabled", False)),
        currency=str(payload.get("currency", "USD")).upper(),
        description=payload.get("description") or "",
        tags=tuple(str(tag).strip() for tag in payload.get("tags", []) if str(tag).strip()),
    )
    saved = budgeting.create_budget(
        budgets=ctx.budget_repo, categories=ctx.category_repo, budget=budget, now=parse_now()
    )
    return jsonify(serialize_budget(saved)), 201


@bp.get("/<int:budget_id>")
def get_budget(budget_id: int):
    ctx = app_context()
    budget = budgeting.load_budget(
        budgets=ctx.budget_repo, budget_id=budget_id, user_id=current_user_id()
    )
    return jsonify(serialize_budget(budget))


@bp.put("/<int:budget_id>/allocations/<int:category_id>")
def put_allocation(budget_id: int, category_id: int):
    ctx = app_context()
    payload = json_body()
    require(payload, "allocated_amount")
    budget = budgeting.set_budget_allocation(
        budgets=ctx.budget_repo,
        categories=ctx.category_repo,
        budget_id=budget_id,
        user_id=current_user_id(),
        category_id=category_id,
        amount=parse_amount(payload["allocated_amount"], field="allocated_amount"),
        notes=payload.get("notes"),
        now=parse_now(),
    )
    return jsonify(serialize_budget(budget))


@bp.delete("/<int:budget_id>/allocations/<int:category_id>")
def delete_allocation(budget_id: int, category_id: int):
    ctx = app_context()
    budget = budgeting.remove_budget_allocation(
        budgets=ctx.budget_repo,
        budget_id=budget_id,
        user_id=current_user_id(),
        category_id=category_id,
        now=parse_now(),
    )
    return jsonify(serialize_budget(budget))


@bp.get("/<int:budget_id>/performance")
def performance(budget_id: int):
    """Performance report computed from live ledger spend."""

    ctx = app_context()
    evaluation = budgeting.evaluate_budget(
        budgets=ctx.budget_repo,
        transactions=ctx.transaction_repo,
        budget_id=budget_id,
        user_id=current_user_id(),
        now=parse_now(),
        persist=False,
    )
    return jsonify(evaluation.performance.to_dict())


@bp.get("/<int:budget_id>/violations")
def violations(budget_id: int):
    ctx = app_context()
    evaluation = budgeting.evaluate_budget(
        budgets=ctx.budget_repo,
        transactions=ctx.transaction_repo,
        budget_id=budget_id,
        user_id=current_user_id(),
        now=parse_now(),
        persist=False,
    )
    return jsonify(
        {
            "budget_id": budget_id,
            "violations": [violation.to_dict() for violation in evaluation.violations],
        }
    )


@bp.get("/<int:budget_id>/remaining")
def remaining(budget_id: int):
    ctx = app_context()
    report = budgeting.budget_remaining(
        budgets=ctx.budget_repo,
        transactions=ctx.transaction_repo,
        budget_id=budget_id,
        user_id=current_user_id(),
        now=parse_now(),
    )
    return jsonify(report.to_dict())


@bp.get("/<int:budget_id>/health")
def health(budget_id: int):
    ctx = app_context()
    report = budgeting.budget_health_report(
        budgets=ctx.budget_repo,
        transactions=ctx.transaction_repo,
        budget_id=budget_id,
        user_id=current_user_id(),
        now=parse_now(),
    )
    return jsonify(report.to_dict())


@bp.post("/<int:budget_id>/recalculate")
def recalculate(budget_id: int):
    """Refresh spend from the ledger and persist the derived totals."""

    ctx = app_context()
    evaluation = budgeting.evaluate_budget(
        budgets=ctx.budget_repo,
        transactions=ctx.transaction_repo,
        budget_id=budget_id,
        user_id=current_user_id(),
        now=parse_now(),
    )
    payload = evaluation.to_dict()
    payload["budget"] = serialize_budget(evaluation.budget)
    return jsonify(payload)


@bp.post("/<int:budget_id>/rollover")
def rollover(budget_id: int):
    ctx = app_context()
    payload = json_body()
    require(payload, "previous_budget_id")
    budget = budgeting.rollover_budget(
        budgets=ctx.budget_repo,
        transactions=ctx.transaction_repo,
        budget_id=budget_id,
        previous_budget_id=parse_id(payload["previous_budget_id"], field="previous_budget_id"),
        user_id=current_user_id(),
        now=parse_now(),
    )
    return jsonify(serialize_budget(budget))


@bp.delete("/<int:budget_id>")
def delete_budget(budget_id: int):
    ctx = app_context()
    budgeting.delete_budget(
        budgets=ctx.budget_repo, budget_id=budget_id, user_id=current_user_id(), now=parse_now()
    )
    return jsonify({"deleted": True, "budget_id": budget_id})


@bp.post("/<int:budget_id>/restore")
def restore_budget(budget_id: int):
    ctx = app_context()
    budget = budgeting.restore_budget(
        budgets=ctx.budget_repo, budget_id=budget_id, user_id=current_user_id()
    )
    logger.info("Budget restored", extra={"budget_id": budget_id})
    return jsonify(serialize_budget(budget))
