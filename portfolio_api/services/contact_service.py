"""Contact form orchestration.

Order of checks: honeypot, field validation, rate limit, notification email,
persistence. A persistence failure is logged and never changes the response.
"""

from __future__ import annotations

import logging

from portfolio_api.adapters.mail.base import AbstractMailer, MailMessage
from portfolio_api.adapters.rate_limit.base import AbstractRateLimiter
from portfolio_api.adapters.storage.base import AbstractContactRepository
from portfolio_api.core.config import AppSettings, MailSettings
from portfolio_api.core.errors import SendAppError, StorageAppError, ValidationAppError
from portfolio_api.core.logging import hash_identity
from portfolio_api.core.rate_limit import enforce_rate_limit
from portfolio_api.schemas.forms import ContactRequest, ContactSubmission
from portfolio_api.schemas.project import now_timestamp
from portfolio_api.utils.submission_validators import (
    DEFAULT_SUBJECT,
    ContactFields,
    ContactRules,
    check_honeypot,
    validate_contact,
)
from portfolio_api.utils.text import sanitize_text, single_line

logger = logging.getLogger(__name__)

SUCCESS_MESSAGE = "Your message has been sent successfully! I will get back to you soon."


def build_contact_email(
    fields: ContactFields,
    *,
    recipient: str,
    subject_prefix: str,
    client_ip: str,
    host: str | None,
    sent_at: str,
) -> MailMessage:
    """Render the plain-text notification sent to the site owner."""
    body = (
        "You have received a new message from your portfolio contact form.\n\n"
        "Here are the details:\n\n"
        f"Name: {fields.name}\n"
        f"Email: {fields.email}\n"
        f"Subject: {fields.subject}\n\n"
        f"Message:\n{fields.message}\n\n"
        "---\n"
        f"Sent from: {host or 'unknown'}\n"
        f"IP Address: {client_ip}\n"
        f"Time: {sent_at}\n"
    )
    return MailMessage(
        to=recipient,
        subject=f"{subject_prefix}{fields.subject}",
        body=body,
        reply_to=fields.email,
    )


class ContactService:
    """Validate, throttle, deliver and record contact form submissions."""

    def __init__(
        self,
        contacts: AbstractContactRepository,
        mailer: AbstractMailer,
        limiter: AbstractRateLimiter,
        *,
        app_settings: AppSettings,
        mail_settings: MailSettings,
        persist: bool = True,
    ) -> None:
        self.contacts = contacts
        self.mailer = mailer
        self.limiter = limiter
        self.app_settings = app_settings
        self.mail_settings = mail_settings
        self.persist = persist
        self.rules = ContactRules(
            min_name_length=app_settings.min_name_length,
            max_name_length=app_settings.max_name_length,
            min_message_length=app_settings.min_message_length,
            max_message_length=app_settings.max_message_length,
        )

    def _fields(self, request: ContactRequest) -> ContactFields:
        subject = DEFAULT_SUBJECT if request.subject is None else request.subject
        return ContactFields(
            name=sanitize_text(request.name),
            email=sanitize_text(request.email),
            subject=single_line(sanitize_text(subject)),
            message=sanitize_text(request.message),
        )

    def _record(self, fields: ContactFields, client_ip: str, created_at: str) -> None:
        submission = ContactSubmission(
            name=fields.name,
            email=fields.email,
            subject=fields.subject,
            message=fields.message,
            ip=client_ip,
            created_at=created_at,
        )
        try:
            self.contacts.save(submission)
        except StorageAppError as exc:
            logger.warning(
                "contact.persist_failed",
                extra={"error_code": exc.code, "sender_hash": hash_identity(fields.email)},
            )

    def submit(self, request: ContactRequest, *, client_ip: str, host: str | None = None) -> str:
        """Process one submission and return the success message.

        Raises:
            ValidationAppError: Honeypot filled (``spam_detected``) or invalid fields.
            RateLimitAppError: Client exceeded its contact budget.
            SendAppError: Notification email could not be delivered.
        """
        if self.app_settings.honeypot_enabled and not check_honeypot(request.website):
            logger.warning("contact.honeypot_triggered", extra={"client_hash": hash_identity(client_ip)})
            raise ValidationAppError(code="spam_detected", message="Spam detected")

        fields = self._fields(request)
        violations = validate_contact(fields, self.rules)
        if violations:
            logger.info("contact.invalid", extra={"violation_count": len(violations)})
            raise ValidationAppError.from_violations(violations)

        if self.app_settings.rate_limit_enabled:
            enforce_rate_limit(
                self.limiter,
                scope="contact",
                client_ip=client_ip,
                limit=self.app_settings.contact_rate_limit,
                window_seconds=self.app_settings.rate_limit_window_seconds,
            )

        sent_at = now_timestamp()
        message = build_contact_email(
            fields,
            recipient=self.mail_settings.contact_email,
            subject_prefix=self.mail_settings.subject_prefix,
            client_ip=client_ip,
            host=host,
            sent_at=sent_at,
        )

        send_error: SendAppError | None = None
        try:
            self.mailer.send(message)
        except SendAppError as exc:
            send_error = exc

        # Recorded even when delivery failed.
        if self.persist:
            self._record(fields, client_ip, sent_at)

        if send_error is not None:
            logger.error("contact.send_failed", extra={"sender_hash": hash_identity(fields.email)})
            raise send_error

        logger.info("contact.submitted", extra={"sender_hash": hash_identity(fields.email)})
        return SUCCESS_MESSAGE
