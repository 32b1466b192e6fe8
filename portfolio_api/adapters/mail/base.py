from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class MailMessage:
    """A plain-text email."""

    to: str
    subject: str
    body: str
    reply_to: str | None = None


class AbstractMailer(ABC):
    """Interface for delivering plain-text notifications."""

    @abstractmethod
    def send(self, message: MailMessage) -> None:
        """Deliver ``message``.

        Raises:
            SendAppError: If the message could not be handed to the transport.
        """
        ...
