"""Unit tests for the application status workflow.

Tests ApplicationStatusService for:
- Persisting before notifying
- Duplicate transition suppression
- Notification failures that never undo the status change
- Statuses that carry no email
- New-application notifications
"""

from unittest.mock import Mock

import pytest

from app.notifications.models import (
    Decision,
    DeliveryResult,
    NotificationRequest,
    NotificationValidationError,
    ProviderError,
    RateLimitExceeded,
)
from app.notifications.service import ApplicationStatusService
from tests.helpers import VERIFIED_SENDER, error, rate_limited


@pytest.fixture
def persist_status():
    return Mock()


@pytest.fixture
def service(make_dispatcher, verified_env):
    return ApplicationStatusService(make_dispatcher(verified_env))


class TestChangeStatus:
    def test_persists_then_sends(self, service, persist_status, mock_client, status_payload):
        order = []
        persist_status.side_effect = lambda *args: order.append("persist")
        mock_client.send.side_effect = lambda *args: order.append("send") or mock_client.send.return_value

        outcome = service.change_status(
            "app-1", "pending", "accepted", status_payload, persist_status
        )

        assert order == ["persist", "send"]
        persist_status.assert_called_once_with("app-1", "accepted")
        assert outcome.status == "sent"
        assert outcome.is_success() is True
        assert outcome.attempts == 1
        assert isinstance(outcome.result, DeliveryResult)
        assert outcome.result.actual_sender == VERIFIED_SENDER

    def test_target_status_overrides_payload_decision(
        self, service, persist_status, mock_client, status_payload
    ):
        service.change_status("app-1", "pending", "rejected", status_payload, persist_status)

        subject = mock_client.send.call_args.args[2]
        assert subject.startswith("Update on your application")

    def test_target_status_overrides_request_model(self, service, persist_status, mock_client):
        request = NotificationRequest(
            recipient_email="jane.doe@example.com",
            subject_context="Copywriter",
            decision=Decision.ACCEPTED,
        )

        service.change_status("app-1", "pending", "Rejected", request, persist_status)

        persist_status.assert_called_once_with("app-1", "rejected")
        subject = mock_client.send.call_args.args[2]
        assert subject == "Update on your application for Copywriter"

    @pytest.mark.parametrize("current", ["accepted", "Accepted", " ACCEPTED "])
    def test_duplicate_transition_suppressed(
        self, service, persist_status, mock_client, status_payload, current
    ):
        outcome = service.change_status("app-1", current, "accepted", status_payload, persist_status)

        assert outcome.status == "duplicate"
        assert outcome.attempts == 0
        persist_status.assert_not_called()
        mock_client.send.assert_not_called()

    def test_status_without_email_is_skipped(
        self, service, persist_status, mock_client, status_payload
    ):
        outcome = service.change_status(
            "app-1", "accepted", "pending", status_payload, persist_status
        )

        assert outcome.status == "skipped"
        persist_status.assert_called_once_with("app-1", "pending")
        mock_client.send.assert_not_called()

    def test_persist_failure_propagates_and_nothing_sent(
        self, service, persist_status, mock_client, status_payload
    ):
        persist_status.side_effect = RuntimeError("database unavailable")

        with pytest.raises(RuntimeError, match="database unavailable"):
            service.change_status("app-1", "pending", "accepted", status_payload, persist_status)

        mock_client.send.assert_not_called()

    def test_delivery_failure_reported_not_raised(
        self, service, persist_status, mock_client, status_payload
    ):
        mock_client.send.side_effect = [error(500, "Internal server error")]

        outcome = service.change_status(
            "app-1", "pending", "accepted", status_payload, persist_status
        )

        assert outcome.status == "failed"
        assert outcome.is_success() is False
        assert outcome.error_type == ProviderError.kind
        assert "Internal server error" in outcome.error
        assert outcome.attempts == 1
        # Status change stands
        persist_status.assert_called_once_with("app-1", "accepted")

    def test_rate_limit_exhaustion_reported(
        self, service, persist_status, mock_client, status_payload, sleeps
    ):
        mock_client.send.side_effect = [rate_limited()] * 3

        outcome = service.change_status(
            "app-1", "pending", "accepted", status_payload, persist_status
        )

        assert outcome.status == "failed"
        assert outcome.error_type == RateLimitExceeded.kind
        assert outcome.attempts == 3
        assert len(sleeps) == 3

    def test_invalid_payload_reported_as_failure(self, service, persist_status, status_payload):
        del status_payload["recipientEmail"]

        outcome = service.change_status(
            "app-1", "pending", "accepted", status_payload, persist_status
        )

        assert outcome.status == "failed"
        assert outcome.error_type == NotificationValidationError.__name__
        assert outcome.attempts == 0
        persist_status.assert_called_once()


class TestNotifyNewApplication:
    def test_sends_to_recruiter(self, service, mock_client, new_application_payload):
        outcome = service.notify_new_application("app-2", new_application_payload)

        assert outcome.status == "sent"
        assert outcome.application_id == "app-2"
        assert mock_client.send.call_args.args[1] == "recruiter@acme.io"

    def test_failure_reported(self, service, mock_client, new_application_payload):
        mock_client.send.side_effect = [error(422, "Invalid `to` field")]

        outcome = service.notify_new_application("app-2", new_application_payload)

        assert outcome.status == "failed"
        assert outcome.error_type == "provider_error"
