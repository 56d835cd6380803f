"""Configuration management for the job board core."""

from .environment import EnvironmentConfig, load_environment_config
from .exceptions import ConfigurationError
from .loader import load_config
from .models import (
    AppConfig,
    EmailConfig,
    LifecycleConfig,
    LogFormat,
    LoggingConfig,
    LogLevel,
    MailProvider,
)

__all__ = [
    "load_config",
    "load_environment_config",
    "AppConfig",
    "EmailConfig",
    "LifecycleConfig",
    "LoggingConfig",
    "EnvironmentConfig",
    "MailProvider",
    "LogLevel",
    "LogFormat",
    "ConfigurationError",
]
