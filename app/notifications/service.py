"""Application status workflow with decoupled email notification.

This module provides ApplicationStatusService, the caller side of the
notification dispatcher. A status change is two independent steps:

1. Persist the new status through a caller-supplied callable.
2. Notify the applicant. Failures are logged and reported in the returned
   NotificationOutcome; they never raise and never undo step 1.

Repeated identical transitions (current status equals target status) are
suppressed before either step, so no duplicate email is sent.
"""

import logging
from typing import Any, Callable, Mapping, Optional, Union

from app.logging import get_logger
from app.logging.context import log_context

from .dispatcher import NotificationDispatcher
from .models import (
    Decision,
    DeliveryError,
    NewApplicationRequest,
    NotificationError,
    NotificationOutcome,
    NotificationRequest,
)

logger = get_logger(__name__, component="workflow")

PersistStatus = Callable[[str, str], Any]


class ApplicationStatusService:
    """Coordinates application status changes and the emails they trigger.

    The service does not access the data store itself; the caller passes a
    persist_status(application_id, status) callable that commits the change.
    """

    def __init__(
        self,
        dispatcher: NotificationDispatcher,
        logger_instance: Optional[logging.Logger] = None,
    ):
        """Initialize the service.

        Args:
            dispatcher: Dispatcher used for delivery
            logger_instance: Logger instance (uses module logger if None)
        """
        self.dispatcher = dispatcher
        self.logger = logger_instance or logger

    def change_status(
        self,
        application_id: str,
        current_status: str,
        target_status: str,
        request: Union[NotificationRequest, Mapping[str, Any]],
        persist_status: PersistStatus,
    ) -> NotificationOutcome:
        """Persist a status change, then notify the applicant.

        Args:
            application_id: Application being reviewed
            current_status: Status currently stored for the application
            target_status: Status the recruiter selected
            request: Notification payload for the applicant
            persist_status: Commits the new status; exceptions propagate

        Returns:
            NotificationOutcome with status "duplicate" (no-op transition),
            "skipped" (status without an email), "sent" or "failed"
        """
        current = (current_status or "").strip().lower()
        target = (target_status or "").strip().lower()

        with log_context(application_id=application_id, target_status=target):
            # Step 0: suppress repeated identical transitions
            if current == target:
                self.logger.info(
                    f"Skipping status change for application {application_id} - already {target}",
                    extra={"event": "notification.duplicate"},
                )
                return NotificationOutcome(application_id=application_id, status="duplicate")

            # Step 1: commit the status change (errors propagate, nothing is sent)
            persist_status(application_id, target)
            self.logger.info(
                f"Application {application_id} status changed from {current or 'none'} to {target}",
                extra={"event": "application.status.changed", "previous_status": current},
            )

            if target not in {decision.value for decision in Decision}:
                self.logger.info(
                    f"No notification for status {target}",
                    extra={"event": "notification.skip", "reason": "status_without_email"},
                )
                return NotificationOutcome(application_id=application_id, status="skipped")

            # Step 2: notify; failure is reported, never raised
            if isinstance(request, Mapping):
                request = {**request, "decision": target}
            else:
                request = request.model_copy(update={"decision": Decision(target)})

            return self._notify(application_id, lambda: self.dispatcher.dispatch(request))

    def notify_new_application(
        self,
        application_id: str,
        request: Union[NewApplicationRequest, Mapping[str, Any]],
    ) -> NotificationOutcome:
        """Notify the recruiter about a new application (after it is stored)."""
        with log_context(application_id=application_id):
            return self._notify(
                application_id, lambda: self.dispatcher.dispatch_new_application(request)
            )

    def _notify(self, application_id: str, send: Callable) -> NotificationOutcome:
        try:
            result = send()
        except NotificationError as e:
            error_type = getattr(e, "kind", type(e).__name__)
            attempts = len(e.attempts) if isinstance(e, DeliveryError) else 0
            self.logger.error(
                f"Notification for application {application_id} failed: {e}",
                extra={
                    "event": "notification.send.failure",
                    "error_type": error_type,
                    "attempts": attempts,
                    "retry_remaining": False,
                },
            )
            return NotificationOutcome(
                application_id=application_id,
                status="failed",
                attempts=attempts,
                error=str(e),
                error_type=error_type,
            )

        return NotificationOutcome(
            application_id=application_id,
            status="sent",
            attempts=len(result.attempts),
            result=result,
        )
