"""Environment variable loading and validation."""

import os
from email.utils import parseaddr
from typing import Optional

from email_validator import EmailNotValidError, validate_email

from .exceptions import ConfigurationError

PRODUCTION = "production"
KNOWN_ENVIRONMENTS = ("development", "test", "staging", PRODUCTION)

DEFAULT_EMAIL_FROM = "JobBoard <noreply@jobboard.dev>"
DEFAULT_FRONTEND_URL = "http://localhost:5173"
DEFAULT_DATABASE_URL = "sqlite:///./data/jobboard.db"
DEFAULT_MAIL_API_URL = "https://api.resend.com/emails"

_TRUTHY = {"1", "true", "yes", "on"}


class EnvironmentConfig:
    """Environment variable configuration holder.

    Only ``production`` enables live sending; every other environment is
    development-like and logs messages instead.
    """

    def __init__(
        self,
        app_env: str = "development",
        email_from: Optional[str] = None,
        frontend_url: Optional[str] = None,
        database_url: Optional[str] = None,
        log_level: Optional[str] = None,
        production_unverified_enabled: bool = False,
        smtp_host: Optional[str] = None,
        smtp_port: int = 587,
        smtp_user: Optional[str] = None,
        smtp_pass: Optional[str] = None,
        mail_api_key: Optional[str] = None,
        mail_api_url: Optional[str] = None,
    ):
        self.app_env = app_env
        self.email_from = email_from or DEFAULT_EMAIL_FROM
        self.frontend_url = (frontend_url or DEFAULT_FRONTEND_URL).rstrip("/")
        self.database_url = database_url or DEFAULT_DATABASE_URL
        self.log_level = log_level
        self.production_unverified_enabled = production_unverified_enabled
        self.smtp_host = smtp_host
        self.smtp_port = smtp_port
        self.smtp_user = smtp_user
        self.smtp_pass = smtp_pass
        self.mail_api_key = mail_api_key
        self.mail_api_url = mail_api_url or DEFAULT_MAIL_API_URL

    @property
    def is_production(self) -> bool:
        return self.app_env == PRODUCTION

    @property
    def dev_mode(self) -> bool:
        return not self.is_production


def load_environment_config() -> EnvironmentConfig:
    """
    Load and validate environment variables.

    Variables (all optional):
    - APP_ENV: development, test, staging or production (default: development)
    - EMAIL_FROM: sender address, e.g. "JobBoard <noreply@jobboard.dev>"
    - FRONTEND_URL: base URL used for dashboard and unsubscribe links
    - DATABASE_URL: SQLAlchemy URL (default: sqlite:///./data/jobboard.db)
    - LOG_LEVEL: DEBUG, INFO, WARNING, ERROR, CRITICAL
    - RESEND_PRODUCTION_ENABLED: allow production sends to unverified domains
    - SMTP_HOST, SMTP_PORT, SMTP_USER, SMTP_PASS: SMTP collaborator settings
    - MAIL_API_KEY, MAIL_API_URL: HTTP mail API collaborator settings

    Mail credentials are not required here. A missing credential is reported
    by the mail collaborator at first use.

    Returns:
        EnvironmentConfig object with validated values

    Raises:
        ConfigurationError: If any variable is present but invalid
    """
    errors = []

    app_env = (os.getenv("APP_ENV") or "development").strip().lower()
    email_from = os.getenv("EMAIL_FROM")
    frontend_url = os.getenv("FRONTEND_URL")
    log_level = os.getenv("LOG_LEVEL")
    smtp_port_str = os.getenv("SMTP_PORT")
    smtp_user = os.getenv("SMTP_USER")
    smtp_pass = os.getenv("SMTP_PASS")

    if app_env not in KNOWN_ENVIRONMENTS:
        errors.append(
            f"Invalid APP_ENV: '{app_env}'. Must be one of: {', '.join(KNOWN_ENVIRONMENTS)}"
        )

    if email_from:
        _, address = parseaddr(email_from)
        try:
            validate_email(address, check_deliverability=False)
        except EmailNotValidError as e:
            errors.append(f"Invalid EMAIL_FROM address: '{email_from}' - {e}")

    if frontend_url and not frontend_url.startswith(("http://", "https://")):
        errors.append(f"Invalid FRONTEND_URL: '{frontend_url}'. Must start with http:// or https://")

    smtp_port = 587
    if smtp_port_str:
        try:
            smtp_port = int(smtp_port_str)
            if not 1 <= smtp_port <= 65535:
                errors.append(f"Invalid SMTP_PORT: {smtp_port}. Must be between 1 and 65535.")
        except ValueError:
            errors.append(f"Invalid SMTP_PORT: '{smtp_port_str}'. Must be a valid integer.")

    if log_level:
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if log_level.upper() not in valid_levels:
            errors.append(
                f"Invalid LOG_LEVEL: '{log_level}'. Must be one of: {', '.join(valid_levels)}"
            )

    if bool(smtp_user) != bool(smtp_pass):
        errors.append("SMTP_USER and SMTP_PASS must be set together for authentication.")

    if errors:
        raise ConfigurationError(
            "Environment variable validation failed",
            errors=errors,
            suggestions=[
                "Copy .env.example to .env and adjust the values",
                "Unset variables you do not need; all of them are optional",
            ],
        )

    return EnvironmentConfig(
        app_env=app_env,
        email_from=email_from,
        frontend_url=frontend_url,
        database_url=os.getenv("DATABASE_URL"),
        log_level=log_level.upper() if log_level else None,
        production_unverified_enabled=(
            (os.getenv("RESEND_PRODUCTION_ENABLED") or "").strip().lower() in _TRUTHY
        ),
        smtp_host=os.getenv("SMTP_HOST"),
        smtp_port=smtp_port,
        smtp_user=smtp_user,
        smtp_pass=smtp_pass,
        mail_api_key=os.getenv("MAIL_API_KEY"),
        mail_api_url=os.getenv("MAIL_API_URL"),
    )
