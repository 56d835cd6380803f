"""Configuration schema models using Pydantic."""

from enum import Enum
from typing import List

from pydantic import BaseModel, Field, field_validator


class MailProvider(str, Enum):
    """Supported mail-sending collaborators."""

    SMTP = "smtp"
    HTTP = "http"


class LogLevel(str, Enum):
    """Logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LogFormat(str, Enum):
    """Log output formats."""

    JSON = "json"
    KEY_VALUE = "key-value"


class EmailConfig(BaseModel):
    """Transactional email settings."""

    provider: MailProvider = Field(MailProvider.SMTP, description="Mail collaborator to use")
    brand_name: str = Field("JobBoard", min_length=1, description="Brand shown in emails")
    support_email: str = Field("support@jobboard.dev", description="Support contact in footers")
    max_retries: int = Field(
        3, ge=0, le=10, description="Retries after the first attempt on transient failures"
    )
    retry_delay_ms: int = Field(
        1000, ge=0, le=60000, description="Base delay; attempt N waits N times this"
    )
    verified_domains: List[str] = Field(
        default_factory=lambda: ["resend.dev", "jobboard.dev"],
        description="Recipient domains approved for production delivery",
    )
    use_tls: bool = Field(True, description="Use STARTTLS for SMTP on ports other than 465")
    request_timeout: int = Field(
        15, ge=1, le=120, description="Timeout in seconds for HTTP mail API calls"
    )

    @field_validator("verified_domains")
    @classmethod
    def normalize_domains(cls, v: List[str]) -> List[str]:
        """Lowercase, strip and de-duplicate domains, dropping blanks."""
        normalized = []
        for domain in v:
            stripped = domain.strip().lower().lstrip("@")
            if stripped and stripped not in normalized:
                normalized.append(stripped)
        return normalized

    model_config = {"use_enum_values": True}


class LifecycleConfig(BaseModel):
    """Application lifecycle limits."""

    cover_letter_max_length: int = Field(2000, ge=1, description="Cover letter character limit")
    notes_max_length: int = Field(1000, ge=1, description="Reviewer notes character limit")
    notification_workers: int = Field(
        4, ge=0, le=64, description="Background notification threads (0 = send inline)"
    )


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: LogLevel = Field(LogLevel.INFO, description="Log level")
    format: LogFormat = Field(LogFormat.KEY_VALUE, description="json or key-value")

    model_config = {"use_enum_values": True}


class AppConfig(BaseModel):
    """Root configuration object loaded from YAML."""

    email: EmailConfig = Field(default_factory=EmailConfig, description="Email settings")
    lifecycle: LifecycleConfig = Field(
        default_factory=LifecycleConfig, description="Lifecycle limits"
    )
    logging: LoggingConfig = Field(
        default_factory=LoggingConfig, description="Logging configuration"
    )
