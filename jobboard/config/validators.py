"""Non-fatal configuration checks."""

import warnings
from typing import List

from .environment import EnvironmentConfig
from .models import AppConfig


def check_for_warnings(app_config: AppConfig, env_config: EnvironmentConfig) -> List[str]:
    """Return warnings for settings that are valid but probably unintended."""
    warning_messages = []
    email = app_config.email

    if env_config.is_production:
        if not email.verified_domains and not env_config.production_unverified_enabled:
            warning_messages.append(
                "No verified_domains configured in production: every email will be blocked"
            )
        if email.provider == "smtp" and not env_config.smtp_host:
            warning_messages.append("Production mode with provider 'smtp' but SMTP_HOST is unset")
        if email.provider == "http" and not env_config.mail_api_key:
            warning_messages.append("Production mode with provider 'http' but MAIL_API_KEY is unset")

    # Linear backoff: attempt N waits N * base
    total_backoff_ms = email.retry_delay_ms * email.max_retries * (email.max_retries + 1) // 2
    if total_backoff_ms > 60000:
        warning_messages.append(
            f"Retry schedule ({email.max_retries} retries, {email.retry_delay_ms}ms base) "
            "can hold a notification worker for over a minute"
        )

    if app_config.lifecycle.notification_workers == 0:
        warning_messages.append(
            "notification_workers is 0: lifecycle calls will wait for email delivery"
        )

    return warning_messages


def emit_warnings(warning_messages: List[str]) -> None:
    """Emit each message through the warnings module."""
    for message in warning_messages:
        warnings.warn(message, UserWarning, stacklevel=2)
