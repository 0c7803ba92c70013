"""Soft checks on raw config.yaml settings.

These flag settings that load fine but probably hurt in production; they
are reported as UserWarning and never block startup.
"""

import warnings
from typing import Any, Dict, List


def check_for_warnings(config_dict: Dict[str, Any]) -> List[str]:
    """Return a message for each risky delivery, provider or CORS setting.

    Runs on the raw mapping before model validation, so every value is
    type-checked before use.
    """
    warning_messages = []

    delivery = config_dict.get("delivery", {})
    if isinstance(delivery, dict):
        max_attempts = delivery.get("max_attempts", 3)
        initial_delay_ms = delivery.get("initial_delay_ms", 500)
        multiplier = delivery.get("backoff_multiplier", 2.0)

        if isinstance(max_attempts, int) and max_attempts == 1:
            warning_messages.append(
                "delivery.max_attempts is 1; rate-limited sends will not be retried"
            )

        # Backoff sleeps block the request handler
        if (
            isinstance(max_attempts, int)
            and isinstance(initial_delay_ms, (int, float))
            and isinstance(multiplier, (int, float))
        ):
            total_ms = sum(initial_delay_ms * multiplier ** i for i in range(max_attempts))
            if total_ms > 30000:
                warning_messages.append(
                    f"Worst-case backoff ({total_ms / 1000:.1f}s) may exceed request timeouts"
                )

    provider = config_dict.get("provider", {})
    if isinstance(provider, dict):
        api_url = provider.get("api_url")
        if isinstance(api_url, str) and api_url.strip().startswith("http://"):
            warning_messages.append(
                f"provider.api_url ({api_url}) is not HTTPS; the API key will be sent in clear text"
            )

    origins = config_dict.get("allowed_origins")
    if isinstance(origins, list) and "*" in origins and len(origins) > 1:
        warning_messages.append(
            "allowed_origins contains '*' alongside explicit origins; '*' wins"
        )

    return warning_messages


def emit_warnings(warning_messages: List[str]) -> None:
    """Report each message as a UserWarning."""
    for message in warning_messages:
        warnings.warn(message, UserWarning, stacklevel=2)
