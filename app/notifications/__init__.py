"""Transactional email notifications for the job marketplace.

This module provides the complete notification pipeline:
- NotificationDispatcher: Renders and delivers status and new-application emails
- ApplicationStatusService: Status-change workflow with decoupled notification
- TemplateRenderer: Jinja2-based email template rendering
- ResendClient: Resend HTTP API wrapper and response classification
- Payload utilities: Request parsing and template context builders

Delivery applies sandbox routing, exponential backoff on rate limiting and a
single sandbox-sender fallback when the sender domain is not verified.
"""

from .dispatcher import NotificationDispatcher
from .models import (
    AttemptOutcome,
    Decision,
    DeliveryAttempt,
    DeliveryError,
    DeliveryResult,
    NewApplicationRequest,
    NotificationError,
    NotificationOutcome,
    NotificationRequest,
    NotificationTemplateError,
    NotificationValidationError,
    ProviderError,
    RateLimitExceeded,
    UnverifiedSenderDomain,
)
from .payloads import build_new_application_context, build_status_context, parse_request
from .resend_client import ProviderResponse, ResendClient, classify_response, is_sandbox_sender
from .service import ApplicationStatusService
from .templates import TemplateRenderer

__all__ = [
    # Main services
    "NotificationDispatcher",
    "ApplicationStatusService",
    # Models and results
    "Decision",
    "NotificationRequest",
    "NewApplicationRequest",
    "DeliveryAttempt",
    "DeliveryResult",
    "NotificationOutcome",
    "AttemptOutcome",
    # Exceptions
    "NotificationError",
    "NotificationTemplateError",
    "NotificationValidationError",
    "DeliveryError",
    "RateLimitExceeded",
    "UnverifiedSenderDomain",
    "ProviderError",
    # Components
    "TemplateRenderer",
    "ResendClient",
    "ProviderResponse",
    # Utilities
    "build_status_context",
    "build_new_application_context",
    "classify_response",
    "is_sandbox_sender",
    "parse_request",
]
