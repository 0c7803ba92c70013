"""Resend HTTP API client for email delivery.

This module provides a thin wrapper around the Resend ``POST /emails``
endpoint, plus the classification of provider responses into typed
attempt outcomes.
"""

from dataclasses import dataclass
from email.utils import parseaddr
from typing import Any, Optional

import requests

from app.config.environment import SANDBOX_SENDER_ADDRESS
from app.config.models import DEFAULT_RESEND_API_URL
from app.logging import get_logger

from .models import AttemptOutcome, ProviderError

logger = get_logger(__name__, component="provider")

UNVERIFIED_DOMAIN_MARKER = "domain is not verified"


@dataclass(frozen=True)
class ProviderResponse:
    """Status code and parsed JSON body of one provider call."""

    status_code: int
    body: Any = None

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300

    @property
    def error_message(self) -> str:
        """Message from the provider's error payload, or "" if there is none.

        Resend reports errors as {"statusCode", "name", "message"}; some
        gateways nest the same fields under "error".
        """
        if not isinstance(self.body, dict):
            return ""
        message = self.body.get("message")
        if isinstance(message, str):
            return message
        error = self.body.get("error")
        if isinstance(error, dict) and isinstance(error.get("message"), str):
            return error["message"]
        return ""


def classify_response(response: ProviderResponse) -> AttemptOutcome:
    """Map a provider response onto an AttemptOutcome.

    Unrecognised error shapes are OTHER_ERROR; a 403 only counts as an
    unverified sender domain when the structured message says so.
    """
    if response.ok:
        return AttemptOutcome.DELIVERED
    if response.status_code == 429:
        return AttemptOutcome.RATE_LIMITED
    if (
        response.status_code == 403
        and UNVERIFIED_DOMAIN_MARKER in response.error_message.lower()
    ):
        return AttemptOutcome.FORBIDDEN_UNVERIFIED_DOMAIN
    return AttemptOutcome.OTHER_ERROR


def is_sandbox_sender(address: str, sandbox_address: str = SANDBOX_SENDER_ADDRESS) -> bool:
    """Check whether a sender ("Name <addr>" or bare address) is the sandbox sender."""
    _, bare = parseaddr(address or "")
    return bool(bare) and bare.strip().lower() == sandbox_address.strip().lower()


class ResendClient:
    """Wrapper around the Resend send-email endpoint.

    Makes exactly one HTTP call per send(); retry and fallback decisions
    belong to the caller. Designed to be easily mockable for testing via the
    injected session.
    """

    def __init__(
        self,
        api_key: str,
        api_url: str = DEFAULT_RESEND_API_URL,
        timeout: int = 15,
        session: Optional[requests.Session] = None,
    ):
        """Initialize the client.

        Args:
            api_key: Resend API key, sent as a bearer token
            api_url: Base URL of the Resend API
            timeout: Request timeout in seconds
            session: requests.Session to use (for mocking)
        """
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout
        self._session = session or requests.Session()
        self._session.headers.update(
            {
                "Authorization": f"Bearer {api_key}",
                "Content-Type": "application/json",
            }
        )

    @property
    def endpoint(self) -> str:
        return f"{self.api_url}/emails"

    def send(
        self, from_address: str, to_address: str, subject: str, html: str
    ) -> ProviderResponse:
        """Post one message to the provider.

        Args:
            from_address: Sender ("Brand <addr>" or bare address)
            to_address: Single destination address
            subject: Subject line
            html: HTML body

        Returns:
            ProviderResponse for any HTTP status, success or not

        Raises:
            ProviderError: If the request could not be completed (timeout,
                connection failure)
        """
        payload = {
            "from": from_address,
            "to": [to_address],
            "subject": subject,
            "html": html,
        }

        try:
            logger.debug(
                f"HTTP POST request to {self.endpoint}",
                extra={
                    "event": "provider.send.request",
                    "url": self.endpoint,
                    "timeout": self.timeout,
                },
            )
            response = self._session.post(self.endpoint, json=payload, timeout=self.timeout)
        except requests.exceptions.Timeout as e:
            logger.error(
                f"Request to {self.endpoint} timed out after {self.timeout} seconds",
                extra={"event": "provider.send.error", "error_type": "Timeout"},
            )
            raise ProviderError(
                f"Resend API error: request timed out after {self.timeout} seconds"
            ) from e
        except requests.exceptions.RequestException as e:
            logger.error(
                f"Request to {self.endpoint} failed: {e}",
                extra={"event": "provider.send.error", "error_type": type(e).__name__},
            )
            raise ProviderError(f"Resend API error: {e}") from e

        try:
            body = response.json()
        except ValueError:
            body = None

        logger.debug(
            f"HTTP {response.status_code} from {self.endpoint}",
            extra={"event": "provider.send.response", "status_code": response.status_code},
        )

        return ProviderResponse(status_code=response.status_code, body=body)
