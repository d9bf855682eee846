"""Flask CLI commands for Pennywise."""

from __future__ import annotations

import click
from flask import current_app

from .errors import PennywiseError


def init_app(app) -> None:
    """Register CLI commands on the Flask app."""

    @app.cli.command("pennywise-purge")
    @click.option(
        "--days",
        type=int,
        default=None,
        help="Retention window in days (defaults to PENNYWISE_RETENTION_DAYS).",
    )
    def pennywise_purge(days: int | None) -> None:
        """Physically delete budgets and goals soft-deleted before the window."""

        from .services.retention import purge_deleted

        ctx = current_app.extensions["pennywise"]
        retention_days = ctx.config.RETENTION_DAYS if days is None else days
        if retention_days < 0:
            raise click.BadParameter("must be non-negative", param_hint="--days")

        summary = purge_deleted(
            budgets=ctx.budget_repo, goals=ctx.goal_repo, retention_days=retention_days
        )
        click.echo(
            f"Purged {summary.budgets} budget(s) and {summary.goals} goal(s) "
            f"deleted before {summary.cutoff:%Y-%m-%d %H:%M}."
        )

    @app.cli.command("pennywise-evaluate")
    @click.option("--user-id", type=int, required=True, help="Owner of the budgets to evaluate.")
    @click.option("--period", default=None, help="Only evaluate budgets for this period.")
    def pennywise_evaluate(user_id: int, period: str | None) -> None:
        """Recompute and persist every active budget for a user."""

        from .services.budgeting import evaluate_budget

        ctx = current_app.extensions["pennywise"]
        budgets = ctx.budget_repo.list_active(user_id=user_id, period=period)
        if not budgets:
            click.echo("No active budgets.")
            return

        for budget in budgets:
            try:
                evaluation = evaluate_budget(
                    budgets=ctx.budget_repo,
                    transactions=ctx.transaction_repo,
                    budget_id=budget.id,
                    user_id=user_id,
                )
            except PennywiseError as exc:
                click.echo(f"[{budget.id}] {budget.name}: error: {exc.message}", err=True)
                continue

            status = evaluation.performance.variance.status
            click.echo(
                f"[{budget.id}] {budget.name}: spent {evaluation.budget.total_spent:.2f} "
                f"of {evaluation.budget.total_amount:.2f} ({status})"
            )
            for violation in evaluation.violations:
                click.echo(f"    {violation.level.upper()}: {violation.message}")
