"""Jinja2 rendering of the marketplace emails.

Each notification kind is a pair of templates: a plain-text subject and an
HTML body. Only the bodies are auto-escaped, so a job title such as
"R&D <Lead>" reads verbatim in the subject and as R&amp;D &lt;Lead&gt; in
the markup. A variable missing from the context is an error, never an
empty string.
"""

import logging
from typing import Dict, Tuple

from jinja2 import (
    Environment,
    PackageLoader,
    StrictUndefined,
    TemplateError,
    select_autoescape,
)

from .models import Decision, NotificationTemplateError, RenderedMessage

logger = logging.getLogger(__name__)

# (subject template, html template) per decision
STATUS_TEMPLATES: Dict[Decision, Tuple[str, str]] = {
    Decision.ACCEPTED: ("status_accepted_subject.j2", "status_accepted_body.html.j2"),
    Decision.REJECTED: ("status_rejected_subject.j2", "status_rejected_body.html.j2"),
}

NEW_APPLICATION_TEMPLATES = ("new_application_subject.j2", "new_application_body.html.j2")

SANDBOX_NOTICE_TEMPLATE = "sandbox_notice.html.j2"


class TemplateRenderer:
    """Renders status, new-application and sandbox-notice templates.

    Jinja2 caches compiled templates on the environment, so one renderer
    per dispatcher is enough.
    """

    def __init__(self, template_dir: str = "email_templates"):
        """Initialize template renderer with Jinja2 environment.

        Args:
            template_dir: Directory name within app.notifications package
        """
        self.env = Environment(
            loader=PackageLoader("app.notifications", template_dir),
            autoescape=select_autoescape(enabled_extensions=("html.j2",), default=False),
            undefined=StrictUndefined,
        )

        logger.debug(f"Initialized TemplateRenderer with templates from {template_dir}")

    def render_status(self, context: Dict, decision: Decision) -> RenderedMessage:
        """Render the accepted or rejected status email.

        Args:
            context: Template variables from build_status_context()
            decision: Selects which template pair is used

        Returns:
            RenderedMessage with subject and html_body

        Raises:
            NotificationTemplateError: If template rendering fails
        """
        try:
            subject_name, html_name = STATUS_TEMPLATES[Decision(decision)]
        except (KeyError, ValueError) as e:
            raise NotificationTemplateError(f"No template for decision: {decision!r}") from e
        return self._render(subject_name, html_name, context)

    def render_new_application(self, context: Dict) -> RenderedMessage:
        """Render the recruiter notification for a new application."""
        subject_name, html_name = NEW_APPLICATION_TEMPLATES
        return self._render(subject_name, html_name, context)

    def render_sandbox_notice(self, original_recipient: str) -> str:
        """Render the visible notice appended to redirected messages."""
        try:
            template = self.env.get_template(SANDBOX_NOTICE_TEMPLATE)
            return template.render(original_recipient=original_recipient)
        except TemplateError as e:
            error_msg = f"Template rendering failed: {e}"
            logger.error(error_msg, exc_info=True)
            raise NotificationTemplateError(error_msg) from e

    def _render(self, subject_name: str, html_name: str, context: Dict) -> RenderedMessage:
        try:
            subject_template = self.env.get_template(subject_name)
            html_template = self.env.get_template(html_name)

            # Subject must be a single line
            subject = subject_template.render(context).strip().replace("\n", " ")
            html_body = html_template.render(context)

            logger.debug(
                f"Rendered templates {subject_name} / {html_name}",
                extra={"event": "notification.render", "template": html_name},
            )

            return RenderedMessage(subject=subject, html_body=html_body)

        except TemplateError as e:
            error_msg = f"Template rendering failed: {e}"
            logger.error(error_msg, exc_info=True)
            raise NotificationTemplateError(error_msg) from e
