from __future__ import annotations

import logging
import smtplib

from signalist.notifications.mailer import Mailer, MailerConfigError

logger = logging.getLogger(__name__)


def send_welcome(mailer: Mailer, email: str, name: str) -> bool:
    """Background task run after sign-up; a failed send never fails the registration."""
    try:
        mailer.send_welcome_email(email, name)
    except MailerConfigError as exc:
        logger.info("event=welcome_email_skipped email=%s reason=%s", email, exc)
        return False
    except (smtplib.SMTPException, OSError) as exc:
        logger.error("event=welcome_email_failed email=%s error=%s", email, exc)
        return False
    return True
