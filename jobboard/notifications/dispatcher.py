"""Notification dispatcher for transactional emails.

This module provides the NotificationDispatcher class that orchestrates one
message end to end: recipient validation, template rendering, environment
gating, the verified-domain policy, and delivery with linear-backoff retry.
"""

import logging
import time
from dataclasses import dataclass, field, fields
from typing import Any, Dict, Mapping, Optional, Union

from email_validator import EmailNotValidError, validate_email

from jobboard.config.environment import EnvironmentConfig
from jobboard.config.models import EmailConfig
from jobboard.errors import ValidationError
from jobboard.logging import get_logger
from jobboard.logging.context import log_context

from .factory import MailClient, build_mail_client
from .models import (
    BlockedUnverifiedDomain,
    DeliveryFailed,
    DeliveryOutcome,
    DeliveryResult,
    MailConfigurationError,
    MessageKind,
    NotificationError,
    PermanentDeliveryError,
    TransientDeliveryError,
)
from .payloads import build_notification_context
from .templates import TemplateRenderer

logger = get_logger(__name__, component="notification")

TRANSIENT_SIGNATURES = (
    "network",
    "timeout",
    "timed out",
    "econnreset",
    "connection reset",
    "rate limit",
)


def is_transient_error(error: BaseException) -> bool:
    """Decide whether a collaborator failure is worth retrying.

    Typed collaborator errors decide for themselves; anything else is matched
    against known network, timeout and rate-limit message signatures.
    """
    if isinstance(error, TransientDeliveryError):
        return True
    if isinstance(error, (PermanentDeliveryError, NotificationError)):
        return False
    message = str(error).lower()
    return any(signature in message for signature in TRANSIENT_SIGNATURES)


@dataclass
class NotifyOptions:
    """Per-message switches.

    Attributes:
        skip_domain_check: Send to unverified domains in production anyway
        headers: Extra headers merged over the defaults
    """

    skip_domain_check: bool = False
    headers: Dict[str, str] = field(default_factory=dict)


class NotificationDispatcher:
    """Renders and delivers transactional emails.

    Coordinates the flow for each message:
    1. Validate the kind and the recipient address
    2. Build template context and render subject and body
    3. In development, log the message instead of sending it
    4. In production, block unverified recipient domains
    5. Deliver through the mail client with linear-backoff retry

    The mail client is injected (or built from configuration once, at
    construction); the dispatcher never touches the database.
    """

    def __init__(
        self,
        email_config: EmailConfig,
        env_config: EnvironmentConfig,
        mail_client: Optional[MailClient] = None,
        template_renderer: Optional[TemplateRenderer] = None,
        logger_instance: Optional[logging.Logger] = None,
    ):
        """Initialize dispatcher.

        Args:
            email_config: Retry, branding and verified-domain settings
            env_config: Environment (mode, sender address, frontend URL)
            mail_client: Mail-sending collaborator (built from config if None)
            template_renderer: Template renderer instance (creates default if None)
            logger_instance: Logger instance (uses module logger if None)
        """
        self.email_config = email_config
        self.env_config = env_config
        self.mail_client = mail_client or build_mail_client(email_config, env_config)
        self.template_renderer = template_renderer or TemplateRenderer()
        self.logger = logger_instance or logger

    def notify(
        self,
        kind: Union[MessageKind, str],
        recipient: str,
        template_data: Mapping[str, Any],
        options: Optional[Union[NotifyOptions, Mapping[str, Any]]] = None,
    ) -> DeliveryResult:
        """Render and deliver one message.

        Args:
            kind: Message kind (e.g. "status-update")
            recipient: Recipient email address
            template_data: Kind-specific template fields
            options: NotifyOptions or a mapping of its fields

        Returns:
            DeliveryResult with outcome "sent" or "dev-logged"

        Raises:
            ValidationError: Unknown kind, invalid recipient, missing template
                data, malformed options, or an empty rendered subject or body
            BlockedUnverifiedDomain: Production send to an unverified domain
            DeliveryFailed: Permanent failure or retries exhausted
            MailConfigurationError: Mail provider is not configured
            NotificationTemplateError: A template is missing or broken
        """
        kind = self._resolve_kind(kind)

        with log_context(notification_kind=kind.value):
            try:
                options = self._resolve_options(options)
                address = self._validate_recipient(recipient)
                context = build_notification_context(
                    kind, template_data, self.email_config, self.env_config
                )
                rendered = self.template_renderer.render(kind, context)

                subject = rendered["subject"]
                html_body = rendered["html_body"]
                if not subject.strip():
                    raise ValidationError("Email subject is required", reason="empty_subject")
                if not html_body.strip():
                    raise ValidationError("Email content is required", reason="empty_body")
            except (ValidationError, NotificationError) as e:
                self._log_outcome(
                    DeliveryResult(kind.value, str(recipient), DeliveryOutcome.FAILED.value, error=e.message),
                    reason=e.code,
                    level=logging.ERROR,
                )
                raise

            if self.env_config.dev_mode:
                return self._log_dev_message(kind, address, subject, html_body)

            if (
                not options.skip_domain_check
                and not self.env_config.production_unverified_enabled
                and not self.is_domain_verified(address)
            ):
                domain = address.rpartition("@")[2]
                result = DeliveryResult(
                    kind=kind.value,
                    recipient=address,
                    outcome=DeliveryOutcome.BLOCKED_UNVERIFIED.value,
                    subject=subject,
                    error=f"Email domain not verified for production sending: {domain}",
                )
                self._log_outcome(result, reason="unverified_domain", level=logging.WARNING)
                raise BlockedUnverifiedDomain(result.error, reason="unverified_domain", result=result)

            headers = self._build_headers(options.headers)
            return self._deliver(kind, address, subject, html_body, headers)

    def is_domain_verified(self, address: str) -> bool:
        """True when the address's domain is in ``verified_domains``."""
        domain = address.rpartition("@")[2].lower()
        return bool(domain) and domain in self.email_config.verified_domains

    def send_welcome(
        self,
        email: str,
        name: str,
        dashboard_url: Optional[str] = None,
        options: Optional[NotifyOptions] = None,
    ) -> DeliveryResult:
        return self.notify(
            MessageKind.WELCOME,
            email,
            {"name": name, "dashboard_url": dashboard_url},
            options,
        )

    def send_application_confirmation(
        self,
        email: str,
        candidate_name: str,
        job_title: str,
        company_name: str,
        application_id: Optional[str] = None,
        dashboard_url: Optional[str] = None,
        options: Optional[NotifyOptions] = None,
    ) -> DeliveryResult:
        return self.notify(
            MessageKind.APPLICATION_CONFIRMATION,
            email,
            {
                "candidate_name": candidate_name,
                "job_title": job_title,
                "company_name": company_name,
                "application_id": application_id,
                "dashboard_url": dashboard_url,
            },
            options,
        )

    def send_status_update(
        self,
        email: str,
        candidate_name: str,
        job_title: str,
        company_name: str,
        status: str,
        notes: Optional[str] = None,
        next_steps: Optional[str] = None,
        dashboard_url: Optional[str] = None,
        options: Optional[NotifyOptions] = None,
    ) -> DeliveryResult:
        """Tell a candidate their application moved to ``status``."""
        return self.notify(
            MessageKind.STATUS_UPDATE,
            email,
            {
                "candidate_name": candidate_name,
                "job_title": job_title,
                "company_name": company_name,
                "status": status,
                "notes": notes,
                "next_steps": next_steps,
                "dashboard_url": dashboard_url,
            },
            options,
        )

    def send_password_reset(
        self,
        email: str,
        name: str,
        reset_token: str,
        expiry_hours: int = 1,
        base_url: Optional[str] = None,
        options: Optional[NotifyOptions] = None,
    ) -> DeliveryResult:
        """Send a reset link; the token is URL-encoded into the link."""
        return self.notify(
            MessageKind.PASSWORD_RESET,
            email,
            {
                "name": name,
                "reset_token": reset_token,
                "expiry_hours": expiry_hours,
                "base_url": base_url,
            },
            options,
        )

    def send_employer_new_application(
        self,
        employer_email: str,
        employer_name: str,
        candidate_name: str,
        job_title: str,
        application_id: Optional[str] = None,
        dashboard_url: Optional[str] = None,
        options: Optional[NotifyOptions] = None,
    ) -> DeliveryResult:
        return self.notify(
            MessageKind.EMPLOYER_NEW_APPLICATION,
            employer_email,
            {
                "employer_name": employer_name,
                "candidate_name": candidate_name,
                "job_title": job_title,
                "application_id": application_id,
                "dashboard_url": dashboard_url,
            },
            options,
        )

    @staticmethod
    def _resolve_kind(kind: Union[MessageKind, str]) -> MessageKind:
        try:
            return MessageKind(kind)
        except ValueError as e:
            supported = ", ".join(k.value for k in MessageKind)
            raise ValidationError(
                f"Unknown notification kind: {kind}. Supported kinds: {supported}",
                reason="unknown_kind",
            ) from e

    @staticmethod
    def _resolve_options(options: Optional[Union[NotifyOptions, Mapping[str, Any]]]) -> NotifyOptions:
        if options is None:
            return NotifyOptions()
        if isinstance(options, NotifyOptions):
            return options
        try:
            return NotifyOptions(**options)
        except TypeError as e:
            supported = ", ".join(option.name for option in fields(NotifyOptions))
            raise ValidationError(
                f"Invalid notification options: {e}. Supported options: {supported}",
                reason="invalid_options",
            ) from e

    @staticmethod
    def _validate_recipient(recipient: str) -> str:
        if not recipient or not isinstance(recipient, str):
            raise ValidationError("Valid recipient email address is required", reason="invalid_recipient")
        try:
            return validate_email(
                recipient.strip(), check_deliverability=False, test_environment=True
            ).normalized
        except EmailNotValidError as e:
            raise ValidationError(
                f"Invalid recipient email address: '{recipient}' - {e}",
                reason="invalid_recipient",
            ) from e

    def _build_headers(self, extra: Optional[Mapping[str, str]]) -> Dict[str, str]:
        headers = {
            "X-Entity-Ref-ID": f"jobboard-{int(time.time() * 1000)}",
            "List-Unsubscribe": f"<{self.env_config.frontend_url}/unsubscribe>",
        }
        headers.update(extra or {})
        return headers

    def _log_dev_message(
        self, kind: MessageKind, address: str, subject: str, html_body: str
    ) -> DeliveryResult:
        result = DeliveryResult(
            kind=kind.value,
            recipient=address,
            outcome=DeliveryOutcome.DEV_LOGGED.value,
            subject=subject,
            message_id=f"dev_{int(time.time() * 1000)}",
        )
        self.logger.info(
            f"DEV MODE: email to {address} logged instead of sent: {subject}",
            extra={
                "event": "notification.dev_logged",
                "recipient": address,
                "subject": subject,
                "content_length": len(html_body),
                "sender": self.env_config.email_from,
            },
        )
        self._log_outcome(result, reason="development_mode")
        return result

    def _deliver(
        self,
        kind: MessageKind,
        address: str,
        subject: str,
        html_body: str,
        headers: Dict[str, str],
    ) -> DeliveryResult:
        max_attempts = self.email_config.max_retries + 1
        last_error = None

        for attempt in range(1, max_attempts + 1):
            self.logger.debug(
                f"Sending {kind.value} to {address} (attempt {attempt}/{max_attempts})",
                extra={"event": "notification.send.attempt", "attempt": attempt, "recipient": address},
            )
            try:
                message_id = self.mail_client.send(
                    self.env_config.email_from, address, subject, html_body, headers
                )
            except MailConfigurationError as e:
                result = DeliveryResult(
                    kind=kind.value,
                    recipient=address,
                    outcome=DeliveryOutcome.FAILED.value,
                    subject=subject,
                    attempts=attempt,
                    error=e.message,
                )
                self._log_outcome(result, reason=e.code, level=logging.ERROR)
                e.result = result
                raise
            except Exception as e:
                last_error = str(e)
                transient = is_transient_error(e)
                retry_remaining = transient and attempt < max_attempts

                self.logger.warning(
                    f"Delivery of {kind.value} to {address} failed "
                    f"(attempt {attempt}/{max_attempts}): {e}",
                    extra={
                        "event": "notification.send.failure",
                        "attempt": attempt,
                        "recipient": address,
                        "error_type": type(e).__name__,
                        "transient": transient,
                        "retry_remaining": retry_remaining,
                    },
                )

                if not retry_remaining:
                    reason = "retries_exhausted" if transient else "permanent_failure"
                    result = DeliveryResult(
                        kind=kind.value,
                        recipient=address,
                        outcome=DeliveryOutcome.FAILED.value,
                        subject=subject,
                        attempts=attempt,
                        error=last_error,
                    )
                    self._log_outcome(result, reason=reason, level=logging.ERROR)
                    raise DeliveryFailed(
                        f"Email delivery failed after {attempt} attempt(s): {last_error}",
                        reason=reason,
                        result=result,
                    ) from e

                delay = self.email_config.retry_delay_ms * attempt / 1000.0
                self.logger.info(
                    f"Retrying delivery of {kind.value} to {address} in {delay:.1f}s",
                    extra={"event": "notification.send.retry", "attempt": attempt, "delay_seconds": delay},
                )
                time.sleep(delay)
                continue

            result = DeliveryResult(
                kind=kind.value,
                recipient=address,
                outcome=DeliveryOutcome.SENT.value,
                subject=subject,
                message_id=message_id,
                attempts=attempt,
            )
            self._log_outcome(result, reason="delivered")
            return result

        # max_attempts >= 1, so the loop always returns or raises
        raise DeliveryFailed(f"Email delivery failed: {last_error}")

    def _log_outcome(self, result: DeliveryResult, reason: str, level: int = logging.INFO) -> None:
        self.logger.log(
            level,
            f"Notification {result.kind} to {result.recipient}: {result.outcome} ({reason})",
            extra={
                "event": "notification.outcome",
                "notification_kind": result.kind,
                "recipient": result.recipient,
                "outcome": result.outcome,
                "reason": reason,
                "attempts": result.attempts,
                "message_id": result.message_id,
            },
        )
