"""Payload resolution for notification templates.

This module turns inbound request payloads into validated request models
and builds the context dictionaries used by the email templates.
"""

from typing import Any, Dict, Mapping, Type, TypeVar, Union

from pydantic import BaseModel, ValidationError

from .models import (
    APPLICANT_PLACEHOLDER,
    RECIPIENT_PLACEHOLDER,
    NewApplicationRequest,
    NotificationRequest,
    NotificationValidationError,
)

RequestT = TypeVar("RequestT", bound=BaseModel)


def parse_request(
    model: Type[RequestT], payload: Union[RequestT, Mapping[str, Any]]
) -> RequestT:
    """Validate a raw payload into a request model.

    Args:
        model: NotificationRequest or NewApplicationRequest
        payload: Model instance (returned unchanged) or JSON-like mapping

    Returns:
        Validated request model

    Raises:
        NotificationValidationError: If fields are missing or malformed
    """
    if isinstance(payload, model):
        return payload
    if not isinstance(payload, Mapping):
        raise NotificationValidationError(
            f"Request body must be a JSON object, got {type(payload).__name__}"
        )

    try:
        return model.model_validate(dict(payload))
    except ValidationError as e:
        errors = []
        for error in e.errors():
            field_path = " -> ".join(str(loc) for loc in error["loc"])
            if error["type"] == "missing":
                errors.append(f"Missing required field: {field_path}")
            else:
                errors.append(f"{field_path}: {error['msg']}")
        raise NotificationValidationError(
            f"Invalid {model.__name__}: {'; '.join(errors)}", errors=errors
        ) from e


def build_status_context(request: NotificationRequest, default_sender_label: str) -> Dict:
    """Build template context for an accepted/rejected status email.

    Args:
        request: Validated status-change request
        default_sender_label: Brand name used when the request carries none

    Returns:
        Dictionary with keys recipient_name, job_title, sender_label, decision
    """
    return {
        "recipient_name": request.recipient_name or RECIPIENT_PLACEHOLDER,
        "job_title": request.subject_context,
        "sender_label": request.sender_label or default_sender_label,
        "decision": request.decision.value,
    }


def build_new_application_context(
    request: NewApplicationRequest,
    default_sender_label: str,
    default_dashboard_url: str,
) -> Dict:
    """Build template context for the recruiter's new-application email.

    Args:
        request: Validated new-application request
        default_sender_label: Brand name used when the request carries none
        default_dashboard_url: Link used when the request carries none

    Returns:
        Dictionary of template variables, including the applied date
        formatted like "March 5, 2025"
    """
    applied_at = request.applied_at
    return {
        "recipient_name": request.recipient_name or RECIPIENT_PLACEHOLDER,
        "job_title": request.job_title,
        "applicant_name": request.applicant_name or APPLICANT_PLACEHOLDER,
        "applicant_email": request.applicant_email,
        "applied_on": f"{applied_at:%B} {applied_at.day}, {applied_at.year}",
        "cover_letter": request.cover_letter or "",
        "required_skills": list(request.required_skills),
        "sender_label": request.sender_label or default_sender_label,
        "dashboard_url": request.dashboard_url or default_dashboard_url,
    }
