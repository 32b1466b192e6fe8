"""Tests for the mail transports and their factory."""

import smtplib
from unittest.mock import MagicMock, patch

import pytest

from portfolio_api.adapters.mail import LogMailer, MailMessage, SmtpMailer, create_mailer
from portfolio_api.core.config import MailSettings
from portfolio_api.core.errors import SendAppError, ValidationAppError

MESSAGE = MailMessage(
    to="owner@portfolio.dev",
    subject="[Portfolio Contact] Hello",
    body="Name: Jo\nEmail: a@b.com",
    reply_to="a@b.com",
)


@pytest.fixture
def smtp():
    with patch("portfolio_api.adapters.mail.smtp_client.smtplib.SMTP") as smtp_class:
        server = MagicMock()
        smtp_class.return_value.__enter__.return_value = server
        yield smtp_class, server


class TestSmtpMailer:
    def test_sends_with_starttls_and_login(self, smtp):
        smtp_class, server = smtp
        mailer = SmtpMailer(
            "smtp.test", 587, from_email="noreply@portfolio.dev", username="u", password="p"
        )

        mailer.send(MESSAGE)

        smtp_class.assert_called_once_with("smtp.test", 587, timeout=10.0)
        server.starttls.assert_called_once()
        server.login.assert_called_once_with("u", "p")
        sent = server.send_message.call_args.args[0]
        assert sent["From"] == "noreply@portfolio.dev"
        assert sent["To"] == "owner@portfolio.dev"
        assert sent["Reply-To"] == "a@b.com"
        assert sent["Subject"] == "[Portfolio Contact] Hello"
        assert "Name: Jo" in sent.get_content()

    def test_skips_login_without_credentials(self, smtp):
        _, server = smtp
        mailer = SmtpMailer("smtp.test", 25, from_email="noreply@portfolio.dev", starttls=False)

        mailer.send(MailMessage(to="x@y.dev", subject="s", body="b"))

        server.starttls.assert_not_called()
        server.login.assert_not_called()
        assert server.send_message.call_args.args[0]["Reply-To"] is None

    @pytest.mark.parametrize(
        "failure",
        [smtplib.SMTPAuthenticationError(535, b"bad auth"), ConnectionRefusedError("refused")],
    )
    def test_transport_failures_become_send_errors(self, smtp, failure):
        _, server = smtp
        server.send_message.side_effect = failure
        mailer = SmtpMailer("smtp.test", 587, from_email="noreply@portfolio.dev")

        with pytest.raises(SendAppError) as exc_info:
            mailer.send(MESSAGE)

        assert exc_info.value.code == "mail_send_failed"
        assert exc_info.value.__cause__ is failure

    def test_header_with_line_break_becomes_send_error(self, smtp):
        smtp_class, _ = smtp
        mailer = SmtpMailer("smtp.test", 587, from_email="noreply@portfolio.dev")

        with pytest.raises(SendAppError) as exc_info:
            mailer.send(MailMessage(to="owner@portfolio.dev", subject="[P] Hi\nthere", body="b"))

        assert isinstance(exc_info.value.__cause__, ValueError)
        smtp_class.assert_not_called()


def test_log_mailer_never_fails():
    LogMailer(from_email="noreply@portfolio.dev").send(MESSAGE)


class TestCreateMailer:
    def test_log_backend(self):
        assert isinstance(create_mailer(MailSettings(backend="log")), LogMailer)

    def test_smtp_backend(self):
        mailer = create_mailer(MailSettings(backend="smtp", smtp_host="smtp.test", smtp_port=2525))

        assert isinstance(mailer, SmtpMailer)
        assert (mailer.host, mailer.port) == ("smtp.test", 2525)

    def test_smtp_without_host(self):
        with pytest.raises(ValidationAppError) as exc_info:
            create_mailer(MailSettings(backend="smtp", smtp_host=""))

        assert exc_info.value.code == "mail_missing_host"

    def test_unknown_backend(self):
        with pytest.raises(ValidationAppError) as exc_info:
            create_mailer(MailSettings.model_construct(backend="pigeon"))

        assert exc_info.value.code == "mail_unknown_backend"
