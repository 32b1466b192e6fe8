"""Mailer that only records messages in the log (development default)."""

from __future__ import annotations

import logging

from portfolio_api.adapters.mail.base import AbstractMailer, MailMessage
from portfolio_api.core.logging import hash_identity

logger = logging.getLogger(__name__)


class LogMailer(AbstractMailer):
    def __init__(self, from_email: str) -> None:
        self.from_email = from_email

    def send(self, message: MailMessage) -> None:
        logger.info(
            "mail.logged",
            extra={
                "from_email": self.from_email,
                "recipient_hash": hash_identity(message.to),
                "subject": message.subject,
                "body_length": len(message.body),
            },
        )
