from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from signalist.core.models import WorkflowResult

logger = logging.getLogger(__name__)


class WorkflowScheduler:
    """Cron-driven runner for the hourly alert and daily news workflows."""

    def __init__(
        self,
        hourly_alerts: Callable[[], Awaitable[WorkflowResult]],
        daily_news: Callable[[], Awaitable[WorkflowResult]],
        hourly_cron: str = "0 * * * *",
        daily_cron: str = "0 12 * * *",
    ) -> None:
        self._jobs = {
            "hourly-alerts": (hourly_alerts, hourly_cron),
            "daily-news": (daily_news, daily_cron),
        }
        self._scheduler: AsyncIOScheduler | None = None
        self._locks = {name: asyncio.Lock() for name in self._jobs}
        self._status: dict[str, dict[str, Any]] = {
            name: {"last_run_at": None, "last_status": "never"} for name in self._jobs
        }

    @property
    def running(self) -> bool:
        return bool(self._scheduler and self._scheduler.running)

    def status_snapshot(self) -> dict[str, dict[str, Any]]:
        return {name: dict(state) for name, state in self._status.items()}

    def start(self) -> None:
        if self.running:
            return
        scheduler = AsyncIOScheduler(timezone="UTC")
        for name, (_, cron) in self._jobs.items():
            scheduler.add_job(
                self.run_job,
                trigger=CronTrigger.from_crontab(cron, timezone="UTC"),
                id=name,
                args=[name],
                max_instances=1,
                coalesce=True,
                replace_existing=True,
            )
        scheduler.start()
        self._scheduler = scheduler
        logger.info("event=workflow_scheduler_started jobs=%s", ",".join(self._jobs))

    def stop(self) -> None:
        if not self._scheduler:
            return
        self._scheduler.shutdown(wait=False)
        self._scheduler = None
        logger.info("event=workflow_scheduler_stopped")

    async def run_job(self, name: str) -> WorkflowResult | None:
        workflow, _ = self._jobs[name]
        async with self._locks[name]:
            state = self._status[name]
            state["last_run_at"] = datetime.now(timezone.utc).isoformat()
            logger.info("event=workflow_run_start job=%s", name)
            try:
                result = await workflow()
            except Exception as exc:
                state["last_status"] = "error"
                logger.warning("Workflow %s failed: %s", name, exc)
                return None
            state["last_status"] = f"ok:{result.sent}" if result.success else f"skipped:{result.message}"
            logger.info("event=workflow_run_complete job=%s sent=%s failed=%s", name, result.sent, result.failed)
            return result
