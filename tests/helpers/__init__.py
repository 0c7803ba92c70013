"""Test helper utilities for application notifier tests."""

from .provider_responses import (
    RATE_LIMIT_BODY,
    SANDBOX_SENDER,
    TEST_RECIPIENT,
    UNVERIFIED_DOMAIN_BODY,
    VERIFIED_SENDER,
    error,
    ok,
    rate_limited,
    unverified_domain,
)

__all__ = [
    "RATE_LIMIT_BODY",
    "SANDBOX_SENDER",
    "TEST_RECIPIENT",
    "UNVERIFIED_DOMAIN_BODY",
    "VERIFIED_SENDER",
    "error",
    "ok",
    "rate_limited",
    "unverified_domain",
]
