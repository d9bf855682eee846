"""Background task scheduler for periodic maintenance."""

from __future__ import annotations

from typing import TYPE_CHECKING

from apscheduler.schedulers.background import BackgroundScheduler as APScheduler
from apscheduler.triggers.cron import CronTrigger

from .logging_config import get_logger
from .services.retention import purge_deleted

if TYPE_CHECKING:
    from .context import AppContext

logger = get_logger("pennywise.scheduler")

PURGE_JOB_ID = "nightly_purge"


class BackgroundScheduler:
    """Runs the nightly retention purge."""

    def __init__(self, ctx: AppContext):
        """Initialize the scheduler with app context.

        Args:
            ctx: Application context with repositories and config
        """
        self.ctx = ctx
        self.scheduler = None

    @property
    def running(self) -> bool:
        return self.scheduler is not None

    def start(self) -> None:
        """Start the background scheduler."""
        if self.scheduler is not None:
            logger.warning("Scheduler already running")
            return

        self.scheduler = APScheduler()
        hour = self.ctx.config.PURGE_HOUR
        self.scheduler.add_job(
            func=self.run_purge,
            trigger=CronTrigger(hour=hour, minute=0),
            id=PURGE_JOB_ID,
            name="Nightly Soft-Delete Purge",
            replace_existing=True,
        )
        logger.info("Scheduled nightly purge", extra={"hour": hour})

        self.scheduler.start()
        logger.info("Background scheduler started")

    def stop(self) -> None:
        """Stop the background scheduler gracefully."""
        if self.scheduler is not None:
            self.scheduler.shutdown(wait=True)
            self.scheduler = None
            logger.info("Background scheduler stopped")

    def run_purge(self) -> None:
        """Purge soft-deleted budgets and goals past the retention window."""
        try:
            purge_deleted(
                budgets=self.ctx.budget_repo,
                goals=self.ctx.goal_repo,
                retention_days=self.ctx.config.RETENTION_DAYS,
            )
        except Exception as exc:
            logger.error(f"Scheduled purge failed: {exc}", exc_info=True)

    @property
    def purge_job(self):
        """The scheduled purge job, or None when the scheduler is stopped."""
        if self.scheduler is None:
            return None
        return self.scheduler.get_job(PURGE_JOB_ID)


def create_scheduler(ctx: AppContext, *, auto_start: bool = False) -> BackgroundScheduler:
    """Create and optionally start a background scheduler.

    Args:
        ctx: Application context
        auto_start: Whether to start the scheduler immediately

    Returns:
        BackgroundScheduler instance
    """
    scheduler = BackgroundScheduler(ctx)
    if auto_start:
        scheduler.start()
    return scheduler
