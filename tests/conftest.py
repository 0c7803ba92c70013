"""Shared fixtures for notification tests."""

from datetime import datetime, timezone
from unittest.mock import Mock

import pytest

from app.config.environment import EnvironmentConfig
from app.config.models import AppConfig
from app.logging.context import clear_log_context
from app.notifications.dispatcher import NotificationDispatcher
from app.notifications.resend_client import ResendClient
from tests.helpers import SANDBOX_SENDER, TEST_RECIPIENT, VERIFIED_SENDER, ok


@pytest.fixture(autouse=True)
def clean_log_context():
    """Clear logging context before and after each test."""
    clear_log_context()
    yield
    clear_log_context()


@pytest.fixture
def mock_env_vars(monkeypatch):
    """Minimal valid environment for load_config()."""
    monkeypatch.setenv("RESEND_API_KEY", "re_test_key")
    for name in (
        "RESEND_FROM_EMAIL",
        "RESEND_TEST_RECIPIENT",
        "RESEND_API_URL",
        "LOG_LEVEL",
        "ENVIRONMENT",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def app_config():
    """Default application configuration."""
    return AppConfig()


@pytest.fixture
def verified_env():
    """Environment with a verified custom sender and no test recipient."""
    return EnvironmentConfig(
        resend_api_key="re_test_key",
        resend_from_email=VERIFIED_SENDER,
    )


@pytest.fixture
def sandbox_env():
    """Environment using the sandbox sender with a test recipient override."""
    return EnvironmentConfig(
        resend_api_key="re_test_key",
        resend_from_email=SANDBOX_SENDER,
        resend_test_recipient=TEST_RECIPIENT,
    )


@pytest.fixture
def verified_env_with_test_recipient():
    """Verified sender plus a test recipient (used only on fallback)."""
    return EnvironmentConfig(
        resend_api_key="re_test_key",
        resend_from_email=VERIFIED_SENDER,
        resend_test_recipient=TEST_RECIPIENT,
    )


@pytest.fixture
def mock_client():
    """Provider client mock; set send.side_effect per test."""
    client = Mock(spec=ResendClient)
    client.send.return_value = ok()
    return client


@pytest.fixture
def sleeps():
    """List recording backoff delays passed to the dispatcher."""
    return []


@pytest.fixture
def make_dispatcher(app_config, mock_client, sleeps):
    """Factory building a dispatcher around the mock client."""

    def _make(env_config, config=None):
        return NotificationDispatcher(
            config or app_config,
            env_config,
            client=mock_client,
            sleep=sleeps.append,
        )

    return _make


@pytest.fixture
def status_payload():
    """Accepted-status payload in the camelCase wire format."""
    return {
        "recipientEmail": "jane.doe@example.com",
        "recipientName": "Jane Doe",
        "subjectContext": "Senior Python Engineer",
        "decision": "accepted",
    }


@pytest.fixture
def new_application_payload():
    """New-application payload for the recruiter notification."""
    return {
        "recipientEmail": "recruiter@acme.io",
        "recipientName": "Sam Recruiter",
        "jobTitle": "Data Pipeline Engineer",
        "applicantName": "Jane Doe",
        "applicantEmail": "jane.doe@example.com",
        "appliedAt": datetime(2025, 3, 5, 14, 30, tzinfo=timezone.utc).isoformat(),
        "coverLetter": "I have built ETL systems for five years.",
        "requiredSkills": ["Python", "Airflow", "SQL"],
    }
