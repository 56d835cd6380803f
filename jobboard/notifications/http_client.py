"""HTTP mail API client (Resend-compatible) for email delivery."""

import logging
from typing import Any, Dict, Mapping, Optional

import requests

from jobboard.config.environment import DEFAULT_MAIL_API_URL, EnvironmentConfig
from jobboard.logging import get_logger

from .models import MailConfigurationError, PermanentDeliveryError, TransientDeliveryError

logger = get_logger(__name__, component="mail_api")


class HTTPMailClient:
    """Mail-sending collaborator that posts JSON to a transactional mail API.

    The request body follows the Resend ``POST /emails`` shape:
    ``{"from", "to", "subject", "html", "headers"}`` authenticated with a
    bearer API key. The response's ``id`` is returned as the message id.
    """

    def __init__(
        self,
        api_key: Optional[str],
        api_url: str = DEFAULT_MAIL_API_URL,
        timeout: int = 15,
        user_agent: str = "JobBoard/1.0",
        session: Optional[requests.Session] = None,
    ) -> None:
        """Initialize client.

        Args:
            api_key: Bearer key; a missing key is reported at first send
            api_url: Endpoint receiving the POST
            timeout: Request timeout in seconds
            user_agent: User-Agent header for requests
            session: Optional requests session (for mocking)
        """
        self.api_key = api_key
        self.api_url = api_url
        self.timeout = timeout

        self._session = session or requests.Session()
        self._session.headers.update({"User-Agent": user_agent})

    @classmethod
    def from_environment(cls, env_config: EnvironmentConfig, timeout: int = 15) -> "HTTPMailClient":
        return cls(api_key=env_config.mail_api_key, api_url=env_config.mail_api_url, timeout=timeout)

    def send(
        self,
        sender: str,
        to: str,
        subject: str,
        html: str,
        headers: Optional[Mapping[str, str]] = None,
    ) -> str:
        """Post one message and return the provider's message id.

        Raises:
            MailConfigurationError: If no API key is configured
            TransientDeliveryError: Timeouts, connection errors, 429 and 5xx
            PermanentDeliveryError: Other 4xx responses or an unusable body
        """
        if not self.api_key:
            raise MailConfigurationError("MAIL_API_KEY is not configured", reason="missing_api_key")

        payload: Dict[str, Any] = {
            "from": sender,
            "to": [to],
            "subject": subject,
            "html": html,
            "headers": dict(headers or {}),
        }

        try:
            logger.debug(
                f"HTTP POST request to {self.api_url}",
                extra={"event": "mail_api.request", "url": self.api_url, "timeout": self.timeout},
            )
            response = self._session.post(
                self.api_url,
                json=payload,
                headers={"Authorization": f"Bearer {self.api_key}"},
                timeout=self.timeout,
            )
        except requests.exceptions.Timeout as e:
            raise TransientDeliveryError(f"Mail API request timed out: {e}") from e
        except requests.exceptions.ConnectionError as e:
            raise TransientDeliveryError(f"Mail API network error: {e}") from e
        except requests.exceptions.RequestException as e:
            raise PermanentDeliveryError(f"Mail API request failed: {e}") from e

        if response.status_code >= 400:
            detail = _error_detail(response)
            is_retryable = response.status_code == 429 or response.status_code >= 500
            logger.log(
                logging.WARNING if is_retryable else logging.ERROR,
                f"HTTP {response.status_code} error from mail API",
                extra={
                    "event": "mail_api.retryable_error" if is_retryable else "mail_api.error",
                    "status_code": response.status_code,
                },
            )
            if response.status_code == 429:
                raise TransientDeliveryError(f"Mail API rate limit exceeded: {detail}")
            if is_retryable:
                raise TransientDeliveryError(f"Mail API HTTP {response.status_code}: {detail}")
            if response.status_code in (401, 403):
                raise MailConfigurationError(
                    f"Mail API rejected the API key (HTTP {response.status_code}): {detail}",
                    reason="invalid_api_key",
                )
            raise PermanentDeliveryError(f"Mail API HTTP {response.status_code}: {detail}")

        try:
            data = response.json()
        except ValueError as e:
            raise PermanentDeliveryError(f"Failed to parse mail API response: {e}") from e

        message_id = data.get("id") if isinstance(data, dict) else None
        if not message_id:
            raise PermanentDeliveryError("Mail API response did not include a message id")

        return str(message_id)


def _error_detail(response: requests.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.reason or "no detail"
    if isinstance(body, dict):
        return str(body.get("message") or body.get("error") or body)
    return str(body)
