from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable

from sqlalchemy.orm import Session

from signalist.core.models import NewsArticle, WorkflowResult
from signalist.models.user import User
from signalist.notifications.mailer import Mailer
from signalist.notifications.templates import day_label
from signalist.services.news_selector import NewsSelector
from signalist.watchlist.service import get_watchlist_symbols_by_email

logger = logging.getLogger(__name__)


@dataclass
class DigestRecipient:
    email: str
    name: str
    symbols: list[str]


class NewsDigestWorkflow:
    def __init__(
        self,
        session_factory: Callable[[], Session],
        news: NewsSelector,
        mailer: Mailer,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        self.session_factory = session_factory
        self.news = news
        self.mailer = mailer
        self._clock = clock

    async def run(self) -> WorkflowResult:
        recipients = await asyncio.to_thread(self._load_recipients)
        if not recipients:
            logger.info("event=news_digest_skipped reason=no_users")
            return WorkflowResult(success=False, message="No users found for news email")

        per_user = await asyncio.gather(*(self._articles_for(r) for r in recipients))
        label = day_label(self._clock())

        pending = [(r, articles) for r, articles in zip(recipients, per_user) if articles]
        outcomes = await asyncio.gather(*(self._send(r, articles, label) for r, articles in pending))
        sent = sum(1 for ok in outcomes if ok)

        logger.info(
            "event=news_digest_complete users=%s sent=%s failed=%s",
            len(recipients),
            sent,
            len(pending) - sent,
        )
        return WorkflowResult(
            success=True,
            message=f"Daily news summary emails sent to {sent} users",
            sent=sent,
            failed=len(pending) - sent,
        )

    def _load_recipients(self) -> list[DigestRecipient]:
        db = self.session_factory()
        try:
            users = db.query(User).filter(User.email != "").all()
            recipients = []
            for user in users:
                if not user.email or not user.name:
                    continue
                symbols = get_watchlist_symbols_by_email(db, user.email)
                recipients.append(DigestRecipient(email=user.email, name=user.name, symbols=symbols))
            return recipients
        finally:
            db.close()

    async def _articles_for(self, recipient: DigestRecipient) -> list[NewsArticle]:
        try:
            # Empty watchlists fall through to general market news.
            articles = await self.news.get_news(recipient.symbols)
        except Exception as exc:
            logger.warning("event=news_digest_fetch_failed email=%s error=%s", recipient.email, exc)
            return []
        return articles[: self.news.max_articles]

    async def _send(self, recipient: DigestRecipient, articles: list[NewsArticle], label: str) -> bool:
        try:
            await asyncio.to_thread(self.mailer.send_news_summary_email, recipient.email, label, articles)
        except Exception as exc:
            logger.error("event=news_digest_email_failed email=%s error=%s", recipient.email, exc)
            return False
        return True
