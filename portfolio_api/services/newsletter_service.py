"""Newsletter signup orchestration."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from portfolio_api.adapters.mail.base import AbstractMailer, MailMessage
from portfolio_api.adapters.rate_limit.base import AbstractRateLimiter
from portfolio_api.adapters.storage.base import AbstractSubscriberRepository, already_subscribed
from portfolio_api.core.config import AppSettings, MailSettings
from portfolio_api.core.errors import SendAppError, ValidationAppError
from portfolio_api.core.logging import hash_identity
from portfolio_api.core.rate_limit import enforce_rate_limit
from portfolio_api.schemas.forms import NewsletterRequest, Subscriber
from portfolio_api.schemas.project import now_timestamp
from portfolio_api.utils.submission_validators import validate_email_field
from portfolio_api.utils.text import sanitize_text

logger = logging.getLogger(__name__)

SUCCESS_MESSAGE = "Successfully subscribed! Check your email for confirmation."
CONFIRMATION_SUBJECT = "Newsletter Subscription Confirmation"
CONFIRMATION_BODY = (
    "Thank you for subscribing to my newsletter!\n\n"
    "You'll receive updates about my latest projects and blog posts.\n\n"
    "If you didn't subscribe, please ignore this email.\n"
)


@dataclass(frozen=True)
class SubscriptionResult:
    subscriber: Subscriber
    confirmation_sent: bool


class NewsletterService:
    def __init__(
        self,
        subscribers: AbstractSubscriberRepository,
        mailer: AbstractMailer,
        limiter: AbstractRateLimiter,
        *,
        app_settings: AppSettings,
        mail_settings: MailSettings,
    ) -> None:
        self.subscribers = subscribers
        self.mailer = mailer
        self.limiter = limiter
        self.app_settings = app_settings
        self.mail_settings = mail_settings

    def subscribe(self, request: NewsletterRequest, *, client_ip: str) -> SubscriptionResult:
        """Validate, throttle and store a signup, then send the confirmation.

        A failed confirmation email keeps the subscription; it is reported
        through ``SubscriptionResult.confirmation_sent``.

        Raises:
            ValidationAppError: Missing/invalid email, or ``already_subscribed``.
            RateLimitAppError: Client exceeded its newsletter budget.
        """
        email = sanitize_text(request.email)
        violations = validate_email_field(email)
        if violations:
            raise ValidationAppError.from_violations(violations)

        if self.app_settings.rate_limit_enabled:
            enforce_rate_limit(
                self.limiter,
                scope="newsletter",
                client_ip=client_ip,
                limit=self.app_settings.newsletter_rate_limit,
                window_seconds=self.app_settings.rate_limit_window_seconds,
                message="Too many subscription attempts",
            )

        if self.subscribers.exists(email):
            raise already_subscribed()

        subscriber = self.subscribers.add(
            Subscriber(email=email, subscribed_at=now_timestamp(), ip=client_ip)
        )
        logger.info("newsletter.subscribed", extra={"subscriber_hash": hash_identity(email)})

        try:
            self.mailer.send(
                MailMessage(
                    to=email,
                    subject=CONFIRMATION_SUBJECT,
                    body=CONFIRMATION_BODY,
                    reply_to=self.mail_settings.contact_email,
                )
            )
        except SendAppError as exc:
            logger.error(
                "newsletter.confirmation_failed",
                extra={"subscriber_hash": hash_identity(email), "error_code": exc.code},
            )
            return SubscriptionResult(subscriber=subscriber, confirmation_sent=False)

        return SubscriptionResult(subscriber=subscriber, confirmation_sent=True)
