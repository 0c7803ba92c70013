"""Log output for the notifier: a single stdout handler on the root logger.

Every record first passes ContextualFilter, which does four things:

- stamps the service and environment
- merges the active ``log_context`` scope
- redacts credentials
- masks recipient addresses

One of two formatters then renders it. ``json`` writes one object per line
for log shipping. ``key-value`` is meant for terminals::

    2026-01-05 10:30:00 [INFO] app.notifications.dispatcher: Email sent successfully (attempts: 1) attempt=0 component=notification event=notification.send.success to_address=j***@example.com
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Iterator, Literal, Optional, Tuple

from .context import get_log_context

LogFormat = Literal["json", "key-value"]

SERVICE_NAME = "application-notifier"
REDACTED = "[redacted]"

# Never written out, whatever their value
REDACTED_FIELDS = frozenset({"api_key", "authorization", "resend_api_key"})

# Hold recipient addresses; masked unless mask_recipients is off
EMAIL_FIELDS = frozenset({"recipient", "to_address", "original_recipient", "actual_recipient"})

_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}

# Attributes every LogRecord carries; anything else came from extra or the filter
_RECORD_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime", "taskName"}


def mask_email(address: str) -> str:
    """Keep the first character and the domain of an address.

    >>> mask_email("jane.doe@example.com")
    'j***@example.com'
    """
    local, sep, domain = address.rpartition("@")
    if not sep or not local:
        return "***"
    return f"{local[0]}***@{domain}"


def structured_fields(record: logging.LogRecord) -> Iterator[Tuple[str, Any]]:
    """Yield the (key, value) pairs a record carries beyond the stdlib ones."""
    for key, value in record.__dict__.items():
        if key not in _RECORD_ATTRS and not key.startswith("_"):
            yield key, value


class ContextualFilter(logging.Filter):
    """Prepares records for output. Always returns True.

    Values passed in ``extra`` at the call site win over the same key in the
    active log_context scope. Masking is idempotent, so a record that passes
    two handlers is not damaged.
    """

    def __init__(
        self,
        service: str = SERVICE_NAME,
        environment: str = "local",
        mask_recipients: bool = True,
    ):
        super().__init__()
        self.service = service
        self.environment = environment
        self.mask_recipients = mask_recipients

    def filter(self, record: logging.LogRecord) -> bool:
        record.service = self.service
        record.environment = self.environment

        for key, value in get_log_context().items():
            record.__dict__.setdefault(key, value)

        for key in REDACTED_FIELDS & record.__dict__.keys():
            record.__dict__[key] = REDACTED

        if self.mask_recipients:
            for key in EMAIL_FIELDS & record.__dict__.keys():
                value = record.__dict__[key]
                if isinstance(value, str):
                    record.__dict__[key] = mask_email(value)

        return True


def _utc_timestamp(created: float) -> str:
    """ISO-8601 in UTC with millisecond precision, e.g. 2026-01-05T10:30:00.123Z."""
    stamp = datetime.fromtimestamp(created, tz=timezone.utc)
    return stamp.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _json_default(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value)


class JSONFormatter(logging.Formatter):
    """One JSON object per line: timestamp, level, logger and message, then every field."""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": _utc_timestamp(record.created),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        entry.update(structured_fields(record))

        if record.exc_info:
            entry["exc_info"] = self.formatException(record.exc_info)

        return json.dumps(entry, ensure_ascii=False, default=_json_default)


def _kv_value(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, datetime):
        return value.isoformat()
    text = str(value)
    if not text or any(char in text for char in ' =,"'):
        return json.dumps(text, ensure_ascii=False)
    return text


class KeyValueFormatter(logging.Formatter):
    """Human-readable line followed by ``key=value`` pairs in key order.

    service and environment are the same on every line, so they are left out.
    """

    default_layout = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
    omitted = frozenset({"service", "environment"})

    def __init__(self, fmt: Optional[str] = None, datefmt: str = "%Y-%m-%d %H:%M:%S"):
        super().__init__(fmt or self.default_layout, datefmt=datefmt)

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        pairs = [
            f"{key}={_kv_value(value)}"
            for key, value in sorted(structured_fields(record))
            if key not in self.omitted
        ]
        return " ".join([line, *pairs])


_FORMATTERS = {"json": JSONFormatter, "key-value": KeyValueFormatter}


def configure_logging(
    level: str = "INFO",
    format_type: LogFormat = "key-value",
    environment: str = "local",
    mask_recipients: bool = True,
) -> None:
    """Install the notifier's stdout handler on the root logger.

    Existing root handlers are replaced, so calling this again changes the
    output instead of duplicating it.

    Args:
        level: DEBUG, INFO, WARNING, ERROR or CRITICAL (case-insensitive)
        format_type: "json" or "key-value"
        environment: Label stamped on every record
        mask_recipients: Mask recipient addresses in known fields

    Raises:
        ValueError: If level or format_type is not recognised
    """
    numeric_level = _LEVELS.get(level.upper())
    if numeric_level is None:
        raise ValueError(f"Invalid log level: {level}")

    if format_type not in _FORMATTERS:
        raise ValueError(f"Invalid log format: {format_type}. Must be 'json' or 'key-value'")

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(_FORMATTERS[format_type]())
    handler.addFilter(
        ContextualFilter(environment=environment, mask_recipients=mask_recipients)
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)
    root_logger.handlers.clear()
    root_logger.addHandler(handler)

    logging.getLogger(__name__).info(
        "Logging configured",
        extra={
            "event": "logging.configured",
            "component": "logging",
            "log_level": level.upper(),
            "log_format": format_type,
            "mask_recipients": mask_recipients,
        },
    )
