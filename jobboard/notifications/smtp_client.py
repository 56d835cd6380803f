"""SMTP client wrapper for email delivery.

This module provides a thin wrapper around Python's smtplib with support
for TLS/SSL, authentication, and proper connection lifecycle management.
Failures are classified so the dispatcher knows which ones to retry.
"""

import logging
import smtplib
import ssl
from email.message import EmailMessage
from email.utils import make_msgid, parseaddr
from typing import Callable, Mapping, Optional

from jobboard.config.environment import EnvironmentConfig

from .models import MailConfigurationError, PermanentDeliveryError, TransientDeliveryError

logger = logging.getLogger(__name__)


class SMTPClient:
    """Mail-sending collaborator backed by an SMTP server.

    Handles connection lifecycle, TLS/SSL negotiation and authentication.
    Designed to be easily mockable for testing through the factory arguments.
    """

    def __init__(
        self,
        host: Optional[str],
        port: int = 587,
        username: Optional[str] = None,
        password: Optional[str] = None,
        use_tls: bool = True,
        timeout: float = 30,
        smtp_factory: Optional[Callable] = None,
        smtp_ssl_factory: Optional[Callable] = None,
    ):
        """Initialize SMTP client.

        Args:
            host: SMTP server host; a missing host is reported at first send
            port: SMTP port (465 means implicit TLS)
            username: Optional login user
            password: Optional login password
            use_tls: Upgrade with STARTTLS on ports other than 465
            timeout: Socket timeout in seconds
            smtp_factory: Factory for SMTP instances (for mocking)
            smtp_ssl_factory: Factory for SMTP_SSL instances (for mocking)
        """
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.use_tls = use_tls
        self.timeout = timeout
        self.smtp_factory = smtp_factory or smtplib.SMTP
        self.smtp_ssl_factory = smtp_ssl_factory or smtplib.SMTP_SSL

    @classmethod
    def from_environment(cls, env_config: EnvironmentConfig, use_tls: bool = True) -> "SMTPClient":
        return cls(
            host=env_config.smtp_host,
            port=env_config.smtp_port,
            username=env_config.smtp_user,
            password=env_config.smtp_pass,
            use_tls=use_tls,
        )

    def send(
        self,
        sender: str,
        to: str,
        subject: str,
        html: str,
        headers: Optional[Mapping[str, str]] = None,
    ) -> str:
        """Send one HTML message and return its Message-ID.

        Raises:
            MailConfigurationError: If no SMTP host is configured
            TransientDeliveryError: Network errors, disconnects and 4xx replies
            PermanentDeliveryError: Authentication failures, refused
                addresses and other 5xx replies
        """
        if not self.host:
            raise MailConfigurationError("SMTP_HOST is not configured", reason="missing_smtp_host")

        message = self._build_message(sender, to, subject, html, headers or {})

        smtp = None
        try:
            if self.port == 465:
                logger.debug(f"Connecting to {self.host}:{self.port} with implicit TLS")
                context = ssl.create_default_context()
                smtp = self.smtp_ssl_factory(
                    self.host, self.port, timeout=self.timeout, context=context
                )
            else:
                logger.debug(f"Connecting to {self.host}:{self.port}")
                smtp = self.smtp_factory(self.host, self.port, timeout=self.timeout)

                if self.use_tls:
                    logger.debug("Upgrading connection with STARTTLS")
                    context = ssl.create_default_context()
                    smtp.starttls(context=context)

            if self.username and self.password:
                logger.debug(f"Authenticating as {self.username}")
                smtp.login(self.username, self.password)

            smtp.send_message(message)
            logger.debug(f"Message sent successfully to {to}")
            return message["Message-ID"]

        # smtplib exceptions subclass OSError, so they are matched first
        except smtplib.SMTPAuthenticationError as e:
            raise PermanentDeliveryError(f"SMTP authentication failed: {e}") from e
        except smtplib.SMTPRecipientsRefused as e:
            raise PermanentDeliveryError(f"SMTP server refused recipient {to}: {e}") from e
        except smtplib.SMTPResponseException as e:
            if 400 <= e.smtp_code < 500:
                raise TransientDeliveryError(
                    f"SMTP temporary failure {e.smtp_code}: {e.smtp_error!r}"
                ) from e
            raise PermanentDeliveryError(
                f"SMTP permanent failure {e.smtp_code}: {e.smtp_error!r}"
            ) from e
        except smtplib.SMTPServerDisconnected as e:
            raise TransientDeliveryError(f"SMTP connection reset by server: {e}") from e
        except smtplib.SMTPException as e:
            raise PermanentDeliveryError(f"SMTP error during message delivery: {e}") from e
        except OSError as e:
            raise TransientDeliveryError(f"Network error during SMTP connection: {e}") from e
        finally:
            if smtp is not None:
                try:
                    smtp.quit()
                except Exception as e:
                    logger.warning(f"Error closing SMTP connection: {e}")

    @staticmethod
    def _build_message(
        sender: str, to: str, subject: str, html: str, headers: Mapping[str, str]
    ) -> EmailMessage:
        _, sender_address = parseaddr(sender)
        domain = sender_address.rpartition("@")[2] or None

        message = EmailMessage()
        message["Subject"] = subject
        message["From"] = sender
        message["To"] = to
        message["Message-ID"] = make_msgid(domain=domain)
        for name, value in headers.items():
            message[name] = value

        message.set_content(html, subtype="html")
        return message
