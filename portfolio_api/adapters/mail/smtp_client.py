"""SMTP mailer built on the standard library client."""

from __future__ import annotations

import logging
import smtplib
from email.message import EmailMessage

from portfolio_api.adapters.mail.base import AbstractMailer, MailMessage
from portfolio_api.core.errors import SendAppError
from portfolio_api.core.logging import hash_identity

logger = logging.getLogger(__name__)


class SmtpMailer(AbstractMailer):
    """Deliver messages through an SMTP relay.

    A new connection is opened per message.
    """

    def __init__(
        self,
        host: str,
        port: int,
        *,
        from_email: str,
        username: str | None = None,
        password: str | None = None,
        starttls: bool = True,
        timeout_seconds: float = 10.0,
    ) -> None:
        self.host = host
        self.port = port
        self.from_email = from_email
        self._username = username
        self._password = password
        self._starttls = starttls
        self._timeout = timeout_seconds

    def _build(self, message: MailMessage) -> EmailMessage:
        email = EmailMessage()
        email["From"] = self.from_email
        email["To"] = message.to
        email["Subject"] = message.subject
        if message.reply_to:
            email["Reply-To"] = message.reply_to
        email.set_content(message.body, charset="utf-8")
        return email

    def send(self, message: MailMessage) -> None:
        try:
            email = self._build(message)
            with smtplib.SMTP(self.host, self.port, timeout=self._timeout) as server:
                if self._starttls:
                    server.starttls()
                if self._username and self._password:
                    server.login(self._username, self._password)
                server.send_message(email)
        except (smtplib.SMTPException, OSError, ValueError) as exc:
            # ValueError: header values the email package refuses (line breaks).
            logger.error(
                "mail.send_failed",
                extra={
                    "smtp_host": self.host,
                    "recipient_hash": hash_identity(message.to),
                    "error_type": type(exc).__name__,
                    "error_msg": str(exc),
                },
            )
            raise SendAppError(
                code="mail_send_failed",
                message="Failed to send email. Please try again later or contact me directly.",
            ) from exc

        logger.info(
            "mail.sent",
            extra={"smtp_host": self.host, "recipient_hash": hash_identity(message.to)},
        )
