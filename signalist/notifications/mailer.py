from __future__ import annotations

import logging
import smtplib
from email.message import EmailMessage
from email.utils import formataddr
from typing import Sequence

from signalist.config.settings import AppSettings
from signalist.core.models import NewsArticle, StockSnapshot
from signalist.notifications import templates

logger = logging.getLogger(__name__)


class MailerConfigError(RuntimeError):
    """Raised when SMTP credentials are not configured."""


class Mailer:
    def __init__(
        self,
        host: str = "",
        port: int = 587,
        user: str = "",
        password: str = "",
        sender_name: str = "Signalist",
        timeout: float = 30.0,
    ):
        self.host = host
        self.port = port
        self.user = user
        self.password = password
        self.sender_name = sender_name
        self.timeout = timeout

    @classmethod
    def from_settings(cls, settings: AppSettings) -> "Mailer":
        return cls(
            host=settings.smtp_host,
            port=settings.smtp_port,
            user=settings.smtp_user,
            password=settings.smtp_password,
            sender_name=settings.mail_sender_name,
        )

    @property
    def configured(self) -> bool:
        return bool(self.host and self.user and self.password)

    def send(self, to_email: str, subject: str, html_body: str, sender_label: str | None = None) -> None:
        if not self.configured:
            raise MailerConfigError("SMTP configuration missing")

        msg = EmailMessage()
        msg["From"] = formataddr((sender_label or self.sender_name, self.user))
        msg["To"] = to_email
        msg["Subject"] = subject
        msg.set_content("This message requires an HTML capable email client.")
        msg.add_alternative(html_body, subtype="html")

        with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as smtp:
            smtp.starttls()
            smtp.login(self.user, self.password)
            smtp.send_message(msg)
        logger.info("event=email_sent to=%s subject=%r", to_email, subject)

    def send_welcome_email(self, email: str, name: str, intro: str | None = None) -> None:
        body = templates.render_welcome(name, intro or templates.WELCOME_INTRO)
        self.send(email, templates.WELCOME_SUBJECT, body, sender_label=self.sender_name)

    def send_news_summary_email(self, email: str, date: str, articles: Sequence[NewsArticle]) -> None:
        body = templates.render_news_summary(articles, date)
        self.send(
            email,
            f"\U0001F4C8 Market News Summary Today - {date}",
            body,
            sender_label=f"{self.sender_name} News",
        )

    def send_alert_summary_email(self, email: str, name: str, snapshots: Sequence[StockSnapshot], date: str) -> None:
        body = templates.render_alert_summary(name, snapshots, date)
        self.send(
            email,
            f"Hourly Stock Alert - {date}",
            body,
            sender_label=f"{self.sender_name} Alerts",
        )
