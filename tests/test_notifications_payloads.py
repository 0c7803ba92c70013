"""Unit tests for notification payload parsing and context building.

Tests parse_request and the context builders for:
- camelCase and legacy field aliases
- Validation errors surfaced before any send
- Placeholder fallbacks for blank names
- Date formatting and skill cleanup
"""

from datetime import datetime, timezone

import pytest

from app.notifications.models import (
    Decision,
    NewApplicationRequest,
    NotificationRequest,
    NotificationValidationError,
)
from app.notifications.payloads import (
    build_new_application_context,
    build_status_context,
    parse_request,
)


class TestParseStatusRequest:
    def test_camel_case_payload(self, status_payload):
        request = parse_request(NotificationRequest, status_payload)

        assert request.recipient_email == "jane.doe@example.com"
        assert request.recipient_name == "Jane Doe"
        assert request.subject_context == "Senior Python Engineer"
        assert request.decision is Decision.ACCEPTED
        assert request.sender_label is None

    def test_legacy_payload_names(self):
        request = parse_request(
            NotificationRequest,
            {
                "freelancerEmail": "jane.doe@example.com",
                "freelancerName": "Jane Doe",
                "jobTitle": "Copywriter",
                "status": "rejected",
                "companyName": "Acme",
            },
        )

        assert request.recipient_email == "jane.doe@example.com"
        assert request.subject_context == "Copywriter"
        assert request.decision is Decision.REJECTED
        assert request.sender_label == "Acme"

    def test_decision_is_case_insensitive(self, status_payload):
        request = parse_request(NotificationRequest, {**status_payload, "decision": " Accepted "})

        assert request.decision is Decision.ACCEPTED

    def test_model_instance_returned_unchanged(self):
        request = NotificationRequest(
            recipient_email="jane.doe@example.com",
            subject_context="Copywriter",
            decision=Decision.ACCEPTED,
        )

        assert parse_request(NotificationRequest, request) is request

    def test_recipient_case_preserved(self, status_payload):
        request = parse_request(
            NotificationRequest, {**status_payload, "recipientEmail": " Jane.Doe@Example.COM "}
        )

        assert request.recipient_email == "Jane.Doe@Example.COM"

    def test_missing_recipient_name_defaults_blank(self, status_payload):
        del status_payload["recipientName"]

        request = parse_request(NotificationRequest, status_payload)

        assert request.recipient_name == ""

    def test_null_recipient_name_defaults_blank(self, status_payload):
        request = parse_request(NotificationRequest, {**status_payload, "recipientName": None})

        assert request.recipient_name == ""

    def test_missing_field_reported(self, status_payload):
        del status_payload["recipientEmail"]

        with pytest.raises(NotificationValidationError) as exc_info:
            parse_request(NotificationRequest, status_payload)

        assert "Missing required field: recipientEmail" in exc_info.value.errors

    @pytest.mark.parametrize("address", ["", "not-an-email", "jane@"])
    def test_invalid_recipient(self, status_payload, address):
        with pytest.raises(NotificationValidationError, match="recipientEmail"):
            parse_request(NotificationRequest, {**status_payload, "recipientEmail": address})

    def test_unknown_decision(self, status_payload):
        with pytest.raises(NotificationValidationError, match="decision"):
            parse_request(NotificationRequest, {**status_payload, "decision": "pending"})

    def test_blank_subject_context(self, status_payload):
        with pytest.raises(NotificationValidationError, match="subjectContext"):
            parse_request(NotificationRequest, {**status_payload, "subjectContext": "  "})

    @pytest.mark.parametrize("payload", [None, "text", ["a", "b"], 42])
    def test_non_object_payload(self, payload):
        with pytest.raises(NotificationValidationError, match="must be a JSON object"):
            parse_request(NotificationRequest, payload)


class TestParseNewApplicationRequest:
    def test_full_payload(self, new_application_payload):
        request = parse_request(NewApplicationRequest, new_application_payload)

        assert request.recipient_email == "recruiter@acme.io"
        assert request.job_title == "Data Pipeline Engineer"
        assert request.applicant_email == "jane.doe@example.com"
        assert request.applied_at == datetime(2025, 3, 5, 14, 30, tzinfo=timezone.utc)
        assert request.required_skills == ["Python", "Airflow", "SQL"]

    def test_blank_skills_dropped(self, new_application_payload):
        payload = {**new_application_payload, "requiredSkills": ["Python", " ", "", " SQL "]}

        request = parse_request(NewApplicationRequest, payload)

        assert request.required_skills == ["Python", "SQL"]

    def test_missing_applicant_email(self, new_application_payload):
        del new_application_payload["applicantEmail"]

        with pytest.raises(NotificationValidationError) as exc_info:
            parse_request(NewApplicationRequest, new_application_payload)

        assert "Missing required field: applicantEmail" in exc_info.value.errors


class TestBuildStatusContext:
    def test_required_keys(self, status_payload):
        request = parse_request(NotificationRequest, status_payload)

        context = build_status_context(request, "SkillConnect")

        assert context == {
            "recipient_name": "Jane Doe",
            "job_title": "Senior Python Engineer",
            "sender_label": "SkillConnect",
            "decision": "accepted",
        }

    def test_blank_name_uses_placeholder(self, status_payload):
        request = parse_request(NotificationRequest, {**status_payload, "recipientName": ""})

        context = build_status_context(request, "SkillConnect")

        assert context["recipient_name"] == "there"

    def test_request_sender_label_wins(self, status_payload):
        request = parse_request(NotificationRequest, {**status_payload, "senderLabel": "Acme"})

        context = build_status_context(request, "SkillConnect")

        assert context["sender_label"] == "Acme"


class TestBuildNewApplicationContext:
    def test_context_values(self, new_application_payload):
        request = parse_request(NewApplicationRequest, new_application_payload)

        context = build_new_application_context(
            request, "SkillConnect", "https://skillconnect.app/dashboard"
        )

        assert context["applied_on"] == "March 5, 2025"
        assert context["applicant_name"] == "Jane Doe"
        assert context["cover_letter"] == "I have built ETL systems for five years."
        assert context["required_skills"] == ["Python", "Airflow", "SQL"]
        assert context["dashboard_url"] == "https://skillconnect.app/dashboard"
        assert context["sender_label"] == "SkillConnect"

    def test_placeholders(self, new_application_payload):
        payload = {
            **new_application_payload,
            "recipientName": "",
            "applicantName": None,
            "coverLetter": None,
        }
        request = parse_request(NewApplicationRequest, payload)

        context = build_new_application_context(request, "SkillConnect", "https://x.test")

        assert context["recipient_name"] == "there"
        assert context["applicant_name"] == "A freelancer"
        assert context["cover_letter"] == ""

    def test_request_dashboard_url_wins(self, new_application_payload):
        payload = {**new_application_payload, "dashboardUrl": "https://acme.io/jobs"}
        request = parse_request(NewApplicationRequest, payload)

        context = build_new_application_context(request, "SkillConnect", "https://x.test")

        assert context["dashboard_url"] == "https://acme.io/jobs"
