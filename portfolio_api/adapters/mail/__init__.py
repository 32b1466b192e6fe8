"""Outbound mail adapters."""

from portfolio_api.adapters.mail.base import AbstractMailer, MailMessage
from portfolio_api.adapters.mail.factory import create_mailer
from portfolio_api.adapters.mail.log_mailer import LogMailer
from portfolio_api.adapters.mail.smtp_client import SmtpMailer

__all__ = [
    "AbstractMailer",
    "LogMailer",
    "MailMessage",
    "SmtpMailer",
    "create_mailer",
]
