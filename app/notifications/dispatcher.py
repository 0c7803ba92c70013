"""Email dispatch with sandbox routing, rate-limit backoff and sender fallback.

NotificationDispatcher renders a message, chooses sender and destination,
and delivers it through the Resend API:

1. Pre-flight: a sandbox sender plus a configured test recipient redirects
   the message to the test recipient and appends a visible notice.
2. Up to ``delivery.max_attempts`` sends. Every 429 sleeps
   ``initial_delay_ms * backoff_multiplier ** attempt_index``, the last one too.
3. A 403 for an unverified sender domain triggers exactly one fallback send
   from the provider's sandbox sender, outside the retry budget.
4. Any other failure is raised immediately.

Dispatch holds no state between calls and performs no deduplication.
"""

import json
import logging
import time
from typing import Any, Callable, List, Mapping, Optional, Union

from app.config.environment import EnvironmentConfig
from app.config.models import AppConfig
from app.logging import get_logger
from app.logging.context import log_context

from .models import (
    AttemptOutcome,
    DeliveryAttempt,
    DeliveryResult,
    NewApplicationRequest,
    NotificationRequest,
    ProviderError,
    RateLimitExceeded,
    RenderedMessage,
    Route,
    UnverifiedSenderDomain,
)
from .payloads import build_new_application_context, build_status_context, parse_request
from .resend_client import ResendClient, classify_response
from .routing import annotate_body, resolve_fallback_route, resolve_route
from .templates import TemplateRenderer

logger = get_logger(__name__, component="notification")


def _describe(body: Any) -> str:
    return json.dumps(body, default=str)


class NotificationDispatcher:
    """Delivers marketplace notification emails.

    Args:
        app_config: Application configuration (provider, delivery, branding)
        env_config: Environment configuration (API key, sender, test recipient)
        client: Provider client (creates a ResendClient if None)
        template_renderer: Template renderer (creates default if None)
        sleep: Called with the backoff delay in seconds (time.sleep by default)
        logger_instance: Logger instance (uses module logger if None)
    """

    def __init__(
        self,
        app_config: AppConfig,
        env_config: EnvironmentConfig,
        client: Optional[ResendClient] = None,
        template_renderer: Optional[TemplateRenderer] = None,
        sleep: Callable[[float], None] = time.sleep,
        logger_instance: Optional[logging.Logger] = None,
    ):
        self.app_config = app_config
        self.env_config = env_config
        self.client = client or ResendClient(
            api_key=env_config.resend_api_key,
            api_url=app_config.provider.api_url,
            timeout=app_config.provider.request_timeout,
        )
        self.template_renderer = template_renderer or TemplateRenderer()
        self.sleep = sleep
        self.logger = logger_instance or logger

    def dispatch(
        self, request: Union[NotificationRequest, Mapping[str, Any]]
    ) -> DeliveryResult:
        """Send the accepted/rejected email for one status change.

        Args:
            request: NotificationRequest or its JSON payload

        Returns:
            DeliveryResult describing who actually received the message

        Raises:
            NotificationValidationError: If the request is malformed
            NotificationTemplateError: If rendering fails
            RateLimitExceeded: If every attempt was rate limited
            UnverifiedSenderDomain: If the fallback send also failed
            ProviderError: On any other provider or transport failure
        """
        request = parse_request(NotificationRequest, request)
        context = build_status_context(request, self.app_config.branding.sender_label)

        with log_context(notification_kind="application_status", decision=request.decision.value):
            message = self.template_renderer.render_status(context, request.decision)
            return self.deliver(message, request.recipient_email, context["sender_label"])

    def dispatch_new_application(
        self, request: Union[NewApplicationRequest, Mapping[str, Any]]
    ) -> DeliveryResult:
        """Tell a recruiter that a freelancer applied to their job.

        Same delivery policy and errors as dispatch().
        """
        request = parse_request(NewApplicationRequest, request)
        context = build_new_application_context(
            request,
            self.app_config.branding.sender_label,
            self.app_config.branding.dashboard_url,
        )

        with log_context(notification_kind="new_application"):
            message = self.template_renderer.render_new_application(context)
            return self.deliver(message, request.recipient_email, context["sender_label"])

    def deliver(
        self, message: RenderedMessage, recipient: str, sender_label: str
    ) -> DeliveryResult:
        """Deliver a rendered message, applying routing, retry and fallback.

        Args:
            message: Rendered subject and HTML body (never changed across attempts)
            recipient: Address the message is intended for
            sender_label: Brand label used for the sandbox sender

        Returns:
            DeliveryResult for the attempt that succeeded
        """
        sender = self.env_config.resend_from_email or self.app_config.sandbox_sender_for(
            sender_label
        )
        route = resolve_route(
            recipient,
            sender,
            self.env_config.resend_test_recipient,
            self.app_config.provider.sandbox_sender,
        )
        html_body = self._body_for(route, message.html_body)

        if route.sandboxed:
            self.logger.info(
                "Sandbox sender in use, redirecting to test recipient",
                extra={
                    "event": "notification.route.sandboxed",
                    "original_recipient": route.original_recipient,
                    "to_address": route.to_address,
                },
            )

        delivery = self.app_config.delivery
        attempts: List[DeliveryAttempt] = []

        for attempt_index in range(delivery.max_attempts):
            attempt = self._attempt(attempt_index, route, message.subject, html_body, attempts)

            if attempt.outcome is AttemptOutcome.DELIVERED:
                return self._succeeded(route, attempt, attempts)

            if attempt.outcome is AttemptOutcome.RATE_LIMITED:
                # Every 429 waits, the last one included; no attempt follows it
                delay = delivery.delay_for(attempt_index)
                self.logger.warning(
                    f"Rate limited (attempt {attempt_index + 1}/{delivery.max_attempts}), "
                    f"backing off {delay:.2f}s",
                    extra={
                        "event": "notification.send.rate_limited",
                        "attempt": attempt_index,
                        "delay_seconds": delay,
                        "retry_remaining": attempt_index + 1 < delivery.max_attempts,
                    },
                )
                self.sleep(delay)
                continue

            if attempt.outcome is AttemptOutcome.FORBIDDEN_UNVERIFIED_DOMAIN:
                return self._fallback(route, message, sender_label, attempts)

            self._log_failure(attempt, "provider_error", attempts)
            raise ProviderError(
                f"Resend API error: {_describe(attempt.provider_response)}",
                provider_response=attempt.provider_response,
                status_code=attempt.status_code,
                attempts=attempts,
            )

        last = attempts[-1]
        self._log_failure(last, "rate_limit_exceeded", attempts)
        raise RateLimitExceeded(
            f"Resend API error: rate_limit_exceeded after {len(attempts)} attempts: "
            f"{_describe(last.provider_response)}",
            provider_response=last.provider_response,
            status_code=last.status_code,
            attempts=attempts,
        )

    def _fallback(
        self,
        route: Route,
        message: RenderedMessage,
        sender_label: str,
        attempts: List[DeliveryAttempt],
    ) -> DeliveryResult:
        fallback_route = resolve_fallback_route(
            route,
            self.app_config.sandbox_sender_for(sender_label),
            self.env_config.resend_test_recipient,
        )
        html_body = self._body_for(fallback_route, message.html_body)

        self.logger.warning(
            "Sender domain not verified, retrying once from the sandbox sender",
            extra={
                "event": "notification.send.fallback",
                "from_address": fallback_route.from_address,
                "to_address": fallback_route.to_address,
            },
        )

        attempt = self._attempt(
            len(attempts), fallback_route, message.subject, html_body, attempts, is_fallback=True
        )
        if attempt.outcome is AttemptOutcome.DELIVERED:
            return self._succeeded(fallback_route, attempt, attempts)

        self._log_failure(attempt, "unverified_sender_domain", attempts)
        raise UnverifiedSenderDomain(
            f"Resend API error: {_describe(attempt.provider_response)}",
            provider_response=attempt.provider_response,
            status_code=attempt.status_code,
            attempts=attempts,
        )

    def _attempt(
        self,
        attempt_number: int,
        route: Route,
        subject: str,
        html_body: str,
        attempts: List[DeliveryAttempt],
        is_fallback: bool = False,
    ) -> DeliveryAttempt:
        """Make one provider call and record it in attempts."""
        self.logger.debug(
            f"Sending attempt {attempt_number}",
            extra={
                "event": "notification.send.attempt",
                "attempt": attempt_number,
                "is_fallback": is_fallback,
            },
        )
        try:
            response = self.client.send(route.from_address, route.to_address, subject, html_body)
        except ProviderError as e:
            e.attempts = list(attempts)
            raise

        attempt = DeliveryAttempt(
            attempt_number=attempt_number,
            from_address=route.from_address,
            to_address=route.to_address,
            subject=subject,
            html_body=html_body,
            outcome=classify_response(response),
            status_code=response.status_code,
            provider_response=response.body,
            is_fallback=is_fallback,
        )
        attempts.append(attempt)
        return attempt

    def _body_for(self, route: Route, html_body: str) -> str:
        if not route.sandboxed:
            return html_body
        notice = self.template_renderer.render_sandbox_notice(route.original_recipient)
        return annotate_body(html_body, notice)

    def _succeeded(
        self, route: Route, attempt: DeliveryAttempt, attempts: List[DeliveryAttempt]
    ) -> DeliveryResult:
        self.logger.info(
            f"Email sent successfully (attempts: {len(attempts)})",
            extra={
                "event": "notification.send.success",
                "attempt": attempt.attempt_number,
                "to_address": route.to_address,
                "from_address": route.from_address,
                "sandboxed": route.sandboxed,
                "is_fallback": attempt.is_fallback,
            },
        )
        return DeliveryResult(
            delivered=True,
            actual_recipient=route.to_address,
            actual_sender=route.from_address,
            sandboxed=route.sandboxed,
            provider_response=attempt.provider_response,
            attempts=attempts,
        )

    def _log_failure(
        self, attempt: DeliveryAttempt, error_type: str, attempts: List[DeliveryAttempt]
    ) -> None:
        self.logger.error(
            f"Email delivery failed after {len(attempts)} attempts: HTTP {attempt.status_code}",
            extra={
                "event": "notification.send.failure",
                "error_type": error_type,
                "status_code": attempt.status_code,
                "attempts": len(attempts),
                "retry_remaining": False,
            },
        )
