from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Callable

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from signalist.alerts.service import AlertGroup, get_alert_groups, mark_alerts_sent
from signalist.core.models import StockSnapshot, WorkflowResult
from signalist.notifications.mailer import Mailer
from signalist.notifications.templates import date_label
from signalist.services.market_data import MarketDataAggregator

logger = logging.getLogger(__name__)


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


class AlertDeliveryWorkflow:
    """Hourly job: one price summary email per user with alerts, then stamp the alerts as sent."""

    def __init__(
        self,
        session_factory: Callable[[], Session],
        market_data: MarketDataAggregator,
        mailer: Mailer,
        clock: Callable[[], datetime] = _now_utc,
    ):
        self.session_factory = session_factory
        self.market_data = market_data
        self.mailer = mailer
        self._clock = clock

    async def run(self) -> WorkflowResult:
        groups = await asyncio.to_thread(self._load_groups)
        if not groups:
            logger.info("event=alert_workflow_skipped reason=no_alerts")
            return WorkflowResult(success=False, message="No alerts found")

        summaries = await asyncio.gather(*(self._summarize(group) for group in groups))
        now = self._clock()
        label = date_label(now)

        pending = [(group, snaps) for group, snaps in zip(groups, summaries) if snaps]
        outcomes = await asyncio.gather(
            *(self._send(group, snaps, label) for group, snaps in pending)
        )
        delivered = [group for (group, _), ok in zip(pending, outcomes) if ok]
        failed = len(pending) - len(delivered)

        unmarked: list[str] = []
        if delivered:
            unmarked = await asyncio.to_thread(self._mark_sent, delivered, now.replace(tzinfo=None))

        logger.info(
            "event=alert_workflow_complete users=%s sent=%s failed=%s unmarked=%s",
            len(groups),
            len(delivered),
            failed,
            len(unmarked),
        )
        return WorkflowResult(
            success=True,
            message=f"Sent {len(delivered)} alert emails",
            sent=len(delivered),
            failed=failed,
            unmarked=len(unmarked),
        )

    def _load_groups(self) -> list[AlertGroup]:
        db = self.session_factory()
        try:
            return get_alert_groups(db)
        finally:
            db.close()

    async def _summarize(self, group: AlertGroup) -> list[StockSnapshot]:
        try:
            return await self.market_data.get_stock_snapshots(group.symbols)
        except Exception as exc:
            logger.warning("event=alert_summary_failed user_id=%s error=%s", group.user_id, exc)
            return []

    async def _send(self, group: AlertGroup, snapshots: list[StockSnapshot], label: str) -> bool:
        try:
            await asyncio.to_thread(
                self.mailer.send_alert_summary_email,
                group.email,
                group.name,
                snapshots,
                label,
            )
        except Exception as exc:
            logger.error("event=alert_email_failed user_id=%s email=%s error=%s", group.user_id, group.email, exc)
            return False
        return True

    def _mark_sent(self, groups: list[AlertGroup], stamp: datetime) -> list[str]:
        """Stamp each delivered group independently. Returns the user ids that could not be stamped."""
        unmarked: list[str] = []
        db = self.session_factory()
        try:
            for group in groups:
                try:
                    mark_alerts_sent(db, group.user_id, group.symbols, now=stamp)
                except SQLAlchemyError as exc:
                    logger.error("event=alert_mark_sent_failed user_id=%s error=%s", group.user_id, exc)
                    unmarked.append(group.user_id)
            return unmarked
        finally:
            db.close()
