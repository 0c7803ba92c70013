"""Data models and exceptions for the notification service.

This module defines the inbound request models, the per-attempt and final
delivery records, and the exception taxonomy used throughout the
notification pipeline.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from email_validator import EmailNotValidError, validate_email
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

RECIPIENT_PLACEHOLDER = "there"
APPLICANT_PLACEHOLDER = "A freelancer"


class NotificationError(Exception):
    """Base exception for notification-related errors."""

    pass


class NotificationTemplateError(NotificationError):
    """Raised when template rendering fails due to configuration or missing variables."""

    pass


class NotificationValidationError(NotificationError):
    """Raised when a request is malformed. No network call has been made."""

    def __init__(self, message: str, errors: Optional[List[str]] = None):
        super().__init__(message)
        self.errors = errors or []


class DeliveryError(NotificationError):
    """Raised when the provider did not accept the message.

    Attributes:
        provider_response: Last parsed provider payload (may be None)
        status_code: HTTP status of the last provider call (0 for transport errors)
        attempts: Attempts made before giving up, fallback included
    """

    kind = "provider_error"

    def __init__(
        self,
        message: str,
        provider_response: Any = None,
        status_code: int = 0,
        attempts: Optional[List["DeliveryAttempt"]] = None,
    ):
        super().__init__(message)
        self.provider_response = provider_response
        self.status_code = status_code
        self.attempts = attempts or []


class RateLimitExceeded(DeliveryError):
    """Every attempt in the retry budget was rate limited (HTTP 429)."""

    kind = "rate_limit_exceeded"


class UnverifiedSenderDomain(DeliveryError):
    """The sender domain was not verified and the sandbox fallback also failed."""

    kind = "unverified_sender_domain"


class ProviderError(DeliveryError):
    """Any other non-success provider response, or a transport failure."""

    kind = "provider_error"


class Decision(str, Enum):
    """Outcome of a recruiter's review of an application."""

    ACCEPTED = "accepted"
    REJECTED = "rejected"


class AttemptOutcome(str, Enum):
    """Typed classification of a single provider response."""

    DELIVERED = "delivered"
    RATE_LIMITED = "rate_limited"
    FORBIDDEN_UNVERIFIED_DOMAIN = "forbidden_unverified_domain"
    OTHER_ERROR = "other_error"


def normalize_address(value: str) -> str:
    """Validate an email address and return it as the caller wrote it.

    Only surrounding whitespace is removed. The case of both parts is kept
    so the delivered address matches the one in the request.

    Raises:
        ValueError: If the address is empty or malformed
    """
    stripped = (value or "").strip()
    if not stripped:
        raise ValueError("email address is required")
    try:
        validate_email(stripped, check_deliverability=False)
    except EmailNotValidError as e:
        raise ValueError(f"invalid email address '{stripped}': {e}") from e
    return stripped


class NotificationRequest(BaseModel):
    """Status-change event for a single application.

    JSON callers use camelCase keys. The legacy edge-function payload names
    (freelancerEmail, freelancerName, jobTitle, status, companyName) are
    accepted too.
    """

    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True, frozen=True)

    recipient_email: str = Field(
        validation_alias=AliasChoices("recipientEmail", "recipient_email", "freelancerEmail"),
    )
    recipient_name: str = Field(
        "",
        validation_alias=AliasChoices("recipientName", "recipient_name", "freelancerName"),
    )
    subject_context: str = Field(
        min_length=1,
        validation_alias=AliasChoices("subjectContext", "subject_context", "jobTitle"),
    )
    decision: Decision = Field(validation_alias=AliasChoices("decision", "status"))
    sender_label: Optional[str] = Field(
        None,
        validation_alias=AliasChoices("senderLabel", "sender_label", "companyName"),
    )

    @field_validator("recipient_email")
    @classmethod
    def validate_recipient(cls, v: str) -> str:
        return normalize_address(v)

    @field_validator("recipient_name", mode="before")
    @classmethod
    def none_to_blank(cls, v: Optional[str]) -> str:
        return v or ""

    @field_validator("decision", mode="before")
    @classmethod
    def lowercase_decision(cls, v: Any) -> Any:
        """Accept 'Accepted' / 'ACCEPTED' as well as the enum value."""
        if isinstance(v, str):
            return v.strip().lower()
        return v


class NewApplicationRequest(BaseModel):
    """A freelancer applied to a recruiter's job.

    The caller supplies already-resolved applicant, job and recruiter data;
    nothing is looked up here.
    """

    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True, frozen=True)

    recipient_email: str = Field(
        validation_alias=AliasChoices("recipientEmail", "recipient_email", "recruiterEmail"),
    )
    recipient_name: str = Field(
        "",
        validation_alias=AliasChoices("recipientName", "recipient_name", "recruiterName"),
    )
    job_title: str = Field(min_length=1, validation_alias=AliasChoices("jobTitle", "job_title"))
    applicant_name: str = Field(
        "", validation_alias=AliasChoices("applicantName", "applicant_name", "freelancerName")
    )
    applicant_email: str = Field(
        validation_alias=AliasChoices("applicantEmail", "applicant_email", "freelancerEmail"),
    )
    applied_at: datetime = Field(validation_alias=AliasChoices("appliedAt", "applied_at"))
    cover_letter: Optional[str] = Field(
        None, validation_alias=AliasChoices("coverLetter", "cover_letter")
    )
    required_skills: List[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("requiredSkills", "required_skills"),
    )
    sender_label: Optional[str] = Field(
        None, validation_alias=AliasChoices("senderLabel", "sender_label", "companyName")
    )
    dashboard_url: Optional[str] = Field(
        None, validation_alias=AliasChoices("dashboardUrl", "dashboard_url")
    )

    @field_validator("recipient_email", "applicant_email")
    @classmethod
    def validate_addresses(cls, v: str) -> str:
        return normalize_address(v)

    @field_validator("recipient_name", "applicant_name", mode="before")
    @classmethod
    def none_to_blank(cls, v: Optional[str]) -> str:
        return v or ""

    @field_validator("required_skills")
    @classmethod
    def drop_blank_skills(cls, v: List[str]) -> List[str]:
        return [skill.strip() for skill in v if skill and skill.strip()]


@dataclass(frozen=True)
class RenderedMessage:
    """Subject and HTML body produced by the template renderer."""

    subject: str
    html_body: str


@dataclass(frozen=True)
class Route:
    """Sender and destination chosen for a send.

    Attributes:
        from_address: Sender, possibly with a display label ("Brand <a@b>")
        to_address: Destination address actually used
        original_recipient: Address the message was intended for
        sandboxed: True when to_address differs from original_recipient
    """

    from_address: str
    to_address: str
    original_recipient: str
    sandboxed: bool = False


@dataclass
class DeliveryAttempt:
    """Record of one call to the provider within a single dispatch."""

    attempt_number: int
    from_address: str
    to_address: str
    subject: str
    html_body: str
    outcome: AttemptOutcome
    status_code: int = 0
    provider_response: Any = None
    is_fallback: bool = False


@dataclass
class DeliveryResult:
    """Outcome of a successful dispatch.

    Invariant: sandboxed is True exactly when actual_recipient differs from
    the address the message was intended for.
    """

    delivered: bool
    actual_recipient: str
    actual_sender: str
    sandboxed: bool
    provider_response: Any = None
    attempts: List[DeliveryAttempt] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to the camelCase shape returned to HTTP callers."""
        return {
            "delivered": self.delivered,
            "actualRecipient": self.actual_recipient,
            "actualSender": self.actual_sender,
            "sandboxed": self.sandboxed,
            "providerResponse": self.provider_response,
        }


@dataclass
class NotificationOutcome:
    """Result of the notification step of a workflow, as seen by its caller.

    Captures whether an email went out without raising, so the surrounding
    status change is never affected by delivery problems.

    Attributes:
        application_id: Application the notification belongs to
        status: "sent", "skipped", "duplicate" or "failed"
        attempts: Provider calls made (0 when nothing was sent)
        error: Error message if delivery failed
        error_type: Error kind if delivery failed (rate_limit_exceeded, ...)
        result: DeliveryResult on success
    """

    application_id: str
    status: str
    attempts: int = 0
    error: Optional[str] = None
    error_type: Optional[str] = None
    result: Optional[DeliveryResult] = None

    def is_success(self) -> bool:
        """Check if the notification was delivered."""
        return self.status == "sent"
