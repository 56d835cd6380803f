"""Data models and exceptions for the notification dispatcher.

This module defines the message kinds, the delivery result handed back to
callers, and the errors mail-sending collaborators raise to tell the
dispatcher whether a failure is worth retrying.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from jobboard.errors import (
    BlockedUnverifiedDomain,
    DeliveryFailed,
    MailConfigurationError,
    NotificationError,
    NotificationTemplateError,
)


class MessageKind(str, Enum):
    """Transactional message kinds."""

    WELCOME = "welcome"
    APPLICATION_CONFIRMATION = "application-confirmation"
    STATUS_UPDATE = "status-update"
    PASSWORD_RESET = "password-reset"
    EMPLOYER_NEW_APPLICATION = "employer-new-application"

    @property
    def template_stem(self) -> str:
        """Template file prefix, e.g. ``status_update``."""
        return self.value.replace("-", "_")


class DeliveryOutcome(str, Enum):
    SENT = "sent"
    DEV_LOGGED = "dev-logged"
    BLOCKED_UNVERIFIED = "blocked-unverified"
    FAILED = "failed"


class TransientDeliveryError(Exception):
    """Raised by a mail collaborator when a retry may succeed."""

    pass


class PermanentDeliveryError(Exception):
    """Raised by a mail collaborator when retrying cannot help."""

    pass


@dataclass
class DeliveryResult:
    """Outcome of one dispatch.

    Ephemeral: handed to callers and logged, never persisted.

    Attributes:
        kind: Message kind value (e.g. "status-update")
        recipient: Normalized recipient address
        outcome: One of sent, dev-logged, blocked-unverified, failed
        subject: Rendered subject line, when rendering got that far
        message_id: Provider message id, or a synthetic dev_<ms> id
        attempts: Number of collaborator calls made
        error: Error message when the outcome is not a success
    """

    kind: str
    recipient: str
    outcome: str
    subject: Optional[str] = None
    message_id: Optional[str] = None
    attempts: int = 0
    error: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.is_success()

    def is_success(self) -> bool:
        """True for sent and dev-logged messages."""
        return self.outcome in (DeliveryOutcome.SENT.value, DeliveryOutcome.DEV_LOGGED.value)


__all__ = [
    "BlockedUnverifiedDomain",
    "DeliveryFailed",
    "DeliveryOutcome",
    "DeliveryResult",
    "MailConfigurationError",
    "MessageKind",
    "NotificationError",
    "NotificationTemplateError",
    "PermanentDeliveryError",
    "TransientDeliveryError",
]
