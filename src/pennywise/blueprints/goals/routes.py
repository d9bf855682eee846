"""Goal routes."""

from __future__ import annotations

from typing import Any

from flask import jsonify, request

from ...domain.goals import GoalSnapshot
from ...services import goals as goal_service
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


def _iso(value):
    return value.isoformat() if value is not None else None


def serialize_goal(goal: GoalSnapshot) -> dict[str, Any]:
    return {
        "id": goal.id,
        "name": goal.name,
        "category_id": goal.category_id,
        "target_amount": goal.target_amount,
        "current_amount": goal.current_amount,
        "remaining_amount": goal.remaining_amount,
        "currency": goal.currency,
        "start_date": _iso(goal.start_date),
        "target_date": _iso(goal.target_date),
        "status": goal.status,
        "priority": goal.priority,
        "progress_percentage": goal.progress_percentage,
        "overachievement_amount": goal.overachievement_amount,
        "average_monthly_contribution": goal.average_monthly_contribution,
        "estimated_completion_date": _iso(goal.estimated_completion_date),
        "achievement_probability": goal.achievement_probability,
        "achievement_date": _iso(goal.achievement_date),
        "reminder_frequency": goal.reminder_frequency,
        "next_reminder_date": _iso(goal.next_reminder_date),
        "version": goal.version,
        "is_deleted": goal.is_deleted,
        "contributions": [
            {
                "id": contribution.id,
                "amount": contribution.amount,
                "date": _iso(contribution.date),
                "method": contribution.method,
                "notes": contribution.notes,
                "source": contribution.source,
                "transaction_id": contribution.transaction_id,
            }
            for contribution in goal.contributions
        ],
    }


@bp.get("/")
def list_goals():
    ctx = app_context()
    goals = ctx.goal_repo.list_active(user_id=current_user_id(), status=request.args.get("status"))
    return jsonify([serialize_goal(goal) for goal in goals])


@bp.post("/")
def create_goal():
    ctx = app_context()
    payload = json_body()
    require(payload, "name", "target_amount", "start_date", "target_date")
    category_id = payload.get("category_id")

    goal = GoalSnapshot(
        user_id=current_user_id(),
        name=str(payload["name"]).strip(),
        target_amount=parse_amount(payload["target_amount"], field="target_amount"),
        current_amount=parse_amount(payload.get("current_amount", 0), field="current_amount"),
        start_date=parse_datetime(payload["start_date"], field="start_date"),
        target_date=parse_datetime(payload["target_date"], field="target_date"),
        category_id=parse_id(category_id, field="category_id") if category_id is not None else None,
        currency=str(payload.get("currency", "USD")).upper(),
        priority=payload.get("priority", "medium"),
        reminder_frequency=payload.get("reminder_frequency", "monthly"),
    )
    saved = goal_service.create_goal(
        goals=ctx.goal_repo, categories=ctx.category_repo, goal=goal, now=parse_now()
    )
    return jsonify(serialize_goal(saved)), 201


@bp.get("/<int:goal_id>")
def get_goal(goal_id: int):
    ctx = app_context()
    goal = goal_service.load_goal(goals=ctx.goal_repo, goal_id=goal_id, user_id=current_user_id())
    return jsonify(serialize_goal(goal))


@bp.get("/<int:goal_id>/progress")
def progress(goal_id: int):
    """Progress estimate with projections and contribution statistics."""

    ctx = app_context()
    report = goal_service.goal_progress(
        goals=ctx.goal_repo,
        goal_id=goal_id,
        user_id=current_user_id(),
        now=parse_now(),
        persist=False,
    )
    return jsonify(report.to_dict())


@bp.post("/<int:goal_id>/contributions")
def add_contribution(goal_id: int):
    ctx = app_context()
    payload = json_body()
    require(payload, "amount")
    transaction_id = payload.get("transaction_id")

    goal = goal_service.contribute(
        goals=ctx.goal_repo,
        transactions=ctx.transaction_repo,
        goal_id=goal_id,
        user_id=current_user_id(),
        amount=parse_amount(payload["amount"], field="amount"),
        date=parse_datetime(payload.get("date"), field="date"),
        method=payload.get("method", "manual"),
        notes=payload.get("notes"),
        source=payload.get("source"),
        transaction_id=parse_id(transaction_id, field="transaction_id")
        if transaction_id is not None
        else None,
        now=parse_now(),
    )
    return jsonify(serialize_goal(goal)), 201


@bp.post("/<int:goal_id>/status")
def change_status(goal_id: int):
    ctx = app_context()
    payload = json_body()
    require(payload, "status")
    goal = goal_service.change_goal_status(
        goals=ctx.goal_repo,
        goal_id=goal_id,
        user_id=current_user_id(),
        status=str(payload["status"]),
        now=parse_now(),
    )
    return jsonify(serialize_goal(goal))


@bp.post("/<int:goal_id>/reminder")
def reminder_sent(goal_id: int):
    ctx = app_context()
    goal = goal_service.mark_reminder_sent(
        goals=ctx.goal_repo, goal_id=goal_id, user_id=current_user_id(), now=parse_now()
    )
    return jsonify(serialize_goal(goal))


@bp.delete("/<int:goal_id>")
def delete_goal(goal_id: int):
    ctx = app_context()
    goal_service.delete_goal(
        goals=ctx.goal_repo, goal_id=goal_id, user_id=current_user_id(), now=parse_now()
    )
    return jsonify({"deleted": True, "goal_id": goal_id})


@bp.post("/<int:goal_id>/restore")
def restore_goal(goal_id: int):
    ctx = app_context()
    goal = goal_service.restore_goal(goals=ctx.goal_repo, goal_id=goal_id, user_id=current_user_id())
    return jsonify(serialize_goal(goal))
