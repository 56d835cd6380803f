"""Business error taxonomy for the application lifecycle and notifications.

Every error carries a stable ``code`` so a presentation layer can map it to a
specific message or HTTP status instead of a generic failure.
"""

from typing import Optional


class JobBoardError(Exception):
    """Base exception for all job board business errors."""

    code = "jobboard_error"

    def __init__(self, message: str, *, reason: Optional[str] = None):
        """Initialize error.

        Args:
            message: Human-readable error message
            reason: Optional machine-friendly detail (e.g. which check failed)
        """
        super().__init__(message)
        self.message = message
        self.reason = reason


class ValidationError(JobBoardError):
    """Malformed input. The caller's fault, never retried."""

    code = "validation_error"


class NotFound(JobBoardError):
    """A referenced posting or application does not exist or is excluded."""

    code = "not_found"


class Forbidden(JobBoardError):
    """The requester is not allowed to perform the operation."""

    code = "forbidden"


class DuplicateSubmission(JobBoardError):
    """The candidate already applied to this posting."""

    code = "duplicate_submission"


class DeadlinePassed(JobBoardError):
    """The posting's application deadline is in the past."""

    code = "deadline_passed"


class InvalidTransition(JobBoardError):
    """The application is in a terminal state and cannot change."""

    code = "invalid_transition"


class ConcurrentModification(InvalidTransition):
    """Another writer changed the application status during the transition."""

    code = "concurrent_modification"


class NotificationError(JobBoardError):
    """Base exception for notification dispatch failures.

    ``result`` carries the DeliveryResult describing the outcome when the
    dispatcher got far enough to classify it.
    """

    code = "notification_error"

    def __init__(self, message: str, *, reason: Optional[str] = None, result=None):
        super().__init__(message, reason=reason)
        self.result = result


class NotificationTemplateError(NotificationError):
    """A template is missing or broken. A developer error, never retried."""

    code = "notification_template_error"


class BlockedUnverifiedDomain(NotificationError):
    """Recipient domain is not verified for production delivery."""

    code = "blocked_unverified_domain"


class DeliveryFailed(NotificationError):
    """Delivery failed permanently or after exhausting retries."""

    code = "delivery_failed"


class MailConfigurationError(DeliveryFailed):
    """Mail provider is not configured (missing host, credentials or API key)."""

    code = "mail_configuration_error"
