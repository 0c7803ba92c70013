"""Secrets and per-deployment overrides read from the process environment.

| variable              | required | effect                                              |
|-----------------------|----------|-----------------------------------------------------|
| RESEND_API_KEY        | yes      | Bearer token for the Resend API                     |
| RESEND_FROM_EMAIL     | no       | Sender, default "<label> <onboarding@resend.dev>"   |
| RESEND_TEST_RECIPIENT | no       | Receives all mail while the sandbox sender is used  |
| RESEND_API_URL        | no       | Replaces provider.api_url from config.yaml          |
| LOG_LEVEL             | no       | Beats logging.level from config.yaml                |
| ENVIRONMENT           | no       | Label stamped on log records (default "local")      |

Blank values count as unset, so ``RESEND_TEST_RECIPIENT=`` in a .env file
turns the redirect off.
"""

import os
from typing import List, Optional

from email_validator import EmailNotValidError, validate_email

from .exceptions import ConfigurationError

SANDBOX_SENDER_ADDRESS = "onboarding@resend.dev"

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class EnvironmentConfig:
    """Values taken from the environment, already validated."""

    def __init__(
        self,
        resend_api_key: str,
        resend_from_email: Optional[str] = None,
        resend_test_recipient: Optional[str] = None,
        resend_api_url: Optional[str] = None,
        log_level: Optional[str] = None,
        environment: Optional[str] = None,
    ):
        self.resend_api_key = resend_api_key
        self.resend_from_email = resend_from_email or None
        self.resend_test_recipient = resend_test_recipient or None
        self.resend_api_url = resend_api_url.rstrip("/") if resend_api_url else None
        # main.load_runtime_config settles the final level (CLI > env > file)
        self.log_level = log_level
        self.environment = environment or "local"


def _getenv(name: str) -> Optional[str]:
    value = os.getenv(name, "").strip()
    return value or None


def _problems(
    api_key: Optional[str],
    test_recipient: Optional[str],
    api_url: Optional[str],
    log_level: Optional[str],
) -> List[str]:
    problems = []

    if not api_key:
        problems.append("Missing required environment variable: RESEND_API_KEY")

    if test_recipient:
        try:
            validate_email(test_recipient, check_deliverability=False)
        except EmailNotValidError as e:
            problems.append(
                f"RESEND_TEST_RECIPIENT is not an email address: '{test_recipient}' ({e})"
            )

    if api_url and not api_url.startswith(("http://", "https://")):
        problems.append(f"RESEND_API_URL must start with http:// or https://, got '{api_url}'")

    if log_level and log_level.upper() not in LOG_LEVELS:
        problems.append(f"LOG_LEVEL '{log_level}' is not one of {', '.join(LOG_LEVELS)}")

    return problems


def load_environment_config() -> EnvironmentConfig:
    """Read and check the notifier's environment variables.

    Every problem is collected before raising, so a misconfigured deployment
    is fixed in one pass.

    Raises:
        ConfigurationError: With source "environment" and one entry per problem
    """
    api_key = _getenv("RESEND_API_KEY")
    test_recipient = _getenv("RESEND_TEST_RECIPIENT")
    api_url = _getenv("RESEND_API_URL")
    log_level = _getenv("LOG_LEVEL")

    problems = _problems(api_key, test_recipient, api_url, log_level)
    if problems:
        raise ConfigurationError(
            "Environment variable validation failed",
            errors=problems,
            suggestions=[
                "Copy .env.example to .env and fill in your credentials",
                "Create an API key at https://resend.com/api-keys",
            ],
            source="environment",
        )

    return EnvironmentConfig(
        resend_api_key=api_key,
        resend_from_email=_getenv("RESEND_FROM_EMAIL"),
        resend_test_recipient=test_recipient,
        resend_api_url=api_url,
        log_level=log_level.upper() if log_level else None,
        environment=_getenv("ENVIRONMENT"),
    )
