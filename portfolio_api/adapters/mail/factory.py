"""Factory for the configured mail transport."""

from portfolio_api.adapters.mail.base import AbstractMailer
from portfolio_api.adapters.mail.log_mailer import LogMailer
from portfolio_api.adapters.mail.smtp_client import SmtpMailer
from portfolio_api.core.config import MailSettings
from portfolio_api.core.errors import ValidationAppError


def create_mailer(mail_settings: MailSettings) -> AbstractMailer:
    """Instantiate the mailer selected by ``MAIL_BACKEND``.

    Raises:
        ValidationAppError: If the backend is unknown or SMTP has no host.
    """
    backend = mail_settings.backend.lower()

    if backend == "log":
        return LogMailer(from_email=mail_settings.from_email)

    if backend == "smtp":
        if not mail_settings.smtp_host:
            raise ValidationAppError(
                code="mail_missing_host",
                message="SMTP backend requires MAIL_SMTP_HOST",
            )
        return SmtpMailer(
            mail_settings.smtp_host,
            mail_settings.smtp_port,
            from_email=mail_settings.from_email,
            username=mail_settings.smtp_user,
            password=mail_settings.smtp_password,
            starttls=mail_settings.smtp_starttls,
            timeout_seconds=mail_settings.smtp_timeout_seconds,
        )

    raise ValidationAppError(
        code="mail_unknown_backend",
        message=f"Unknown mail backend: '{backend}'. Supported backends: smtp, log",
    )
