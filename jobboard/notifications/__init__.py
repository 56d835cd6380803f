"""Notification dispatcher for transactional emails.

This package provides the complete notification pipeline:
- NotificationDispatcher: renders, gates and delivers one message
- DeliveryResult: outcome handed back to callers (never persisted)
- TemplateRenderer: Jinja2-based email template rendering
- SMTPClient / HTTPMailClient: mail-sending collaborators
- build_mail_client: picks the collaborator named in configuration
"""

from .dispatcher import NotificationDispatcher, NotifyOptions, is_transient_error
from .factory import MailClient, build_mail_client
from .http_client import HTTPMailClient
from .models import (
    BlockedUnverifiedDomain,
    DeliveryFailed,
    DeliveryOutcome,
    DeliveryResult,
    MailConfigurationError,
    MessageKind,
    NotificationError,
    NotificationTemplateError,
    PermanentDeliveryError,
    TransientDeliveryError,
)
from .payloads import build_notification_context
from .smtp_client import SMTPClient
from .status_copy import STATUS_COPY, StatusCopy, status_copy_for
from .templates import TemplateRenderer

__all__ = [
    # Main service
    "NotificationDispatcher",
    "NotifyOptions",
    # Models and results
    "DeliveryOutcome",
    "DeliveryResult",
    "MessageKind",
    # Exceptions
    "NotificationError",
    "NotificationTemplateError",
    "BlockedUnverifiedDomain",
    "DeliveryFailed",
    "MailConfigurationError",
    "TransientDeliveryError",
    "PermanentDeliveryError",
    # Components
    "MailClient",
    "TemplateRenderer",
    "SMTPClient",
    "HTTPMailClient",
    "STATUS_COPY",
    "StatusCopy",
    # Utilities
    "build_mail_client",
    "build_notification_context",
    "is_transient_error",
    "status_copy_for",
]
