"""Sender and recipient resolution, including sandbox redirection."""

from typing import Optional

from .models import Route
from .resend_client import is_sandbox_sender


def resolve_route(
    recipient: str,
    sender: str,
    test_recipient: Optional[str],
    sandbox_address: str,
) -> Route:
    """Choose sender and destination before the first attempt.

    When the configured sender is the provider's sandbox sender and a test
    recipient is configured, mail goes to the test recipient instead.
    """
    to_address = recipient
    if test_recipient and is_sandbox_sender(sender, sandbox_address):
        to_address = test_recipient

    return Route(
        from_address=sender,
        to_address=to_address,
        original_recipient=recipient,
        sandboxed=_differs(to_address, recipient),
    )


def resolve_fallback_route(
    route: Route,
    fallback_sender: str,
    test_recipient: Optional[str],
) -> Route:
    """Route for the single retry after an unverified-domain rejection."""
    to_address = test_recipient or route.to_address
    return Route(
        from_address=fallback_sender,
        to_address=to_address,
        original_recipient=route.original_recipient,
        sandboxed=_differs(to_address, route.original_recipient),
    )


def annotate_body(html_body: str, notice: str) -> str:
    """Append the sandbox notice to an HTML body, once."""
    if notice in html_body:
        return html_body
    return f"{html_body}{notice}"


def _differs(a: str, b: str) -> bool:
    return a.strip().lower() != b.strip().lower()
