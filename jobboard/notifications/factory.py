"""Factory function for instantiating the mail-sending collaborator."""

import logging
from typing import Protocol

from jobboard.config.environment import EnvironmentConfig
from jobboard.config.models import EmailConfig

from .http_client import HTTPMailClient
from .models import MailConfigurationError
from .smtp_client import SMTPClient

logger = logging.getLogger(__name__)


class MailClient(Protocol):
    """Anything that can deliver one rendered message."""

    def send(self, sender: str, to: str, subject: str, html: str, headers=None) -> str:
        ...


def build_mail_client(email_config: EmailConfig, env_config: EnvironmentConfig) -> MailClient:
    """Create the collaborator selected by ``email.provider``.

    Credentials are not checked here; a client without them raises
    MailConfigurationError on its first send.

    Raises:
        MailConfigurationError: If the provider name is not supported

    Example:
        >>> client = build_mail_client(EmailConfig(provider="http"), load_environment_config())
        >>> client.send("JobBoard <noreply@jobboard.dev>", "a@b.dev", "Hi", "<p>Hi</p>")
    """
    client_map = {
        "smtp": lambda: SMTPClient.from_environment(env_config, use_tls=email_config.use_tls),
        "http": lambda: HTTPMailClient.from_environment(
            env_config, timeout=email_config.request_timeout
        ),
    }

    provider = str(getattr(email_config.provider, "value", email_config.provider)).lower()
    builder = client_map.get(provider)

    if builder is None:
        supported = ", ".join(sorted(client_map))
        raise MailConfigurationError(
            f"Unknown mail provider: {provider}. Supported providers: {supported}"
        )

    logger.debug("Creating mail client", extra={"mail_provider": provider})
    return builder()
