from __future__ import annotations

from signalist.notifications.mailer import Mailer, MailerConfigError

__all__ = ["Mailer", "MailerConfigError"]
