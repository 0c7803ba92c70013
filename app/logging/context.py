"""Per-notification fields carried by every log record in scope.

The status workflow opens a scope per application and the dispatcher nests
one per message, so attempt, fallback and failure records all name the
application and notification kind without threading them through calls.
Scopes live in a ContextVar and are therefore isolated per thread and per
asyncio task (each FastAPI request gets its own).
"""

from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, Dict, Iterator

_scope: ContextVar[Dict[str, Any]] = ContextVar("notification_log_scope", default={})


def get_log_context() -> Dict[str, Any]:
    """Return a copy of the fields currently in scope."""
    return dict(_scope.get())


def clear_log_context() -> None:
    _scope.set({})


@contextmanager
def log_context(**fields: Any) -> Iterator[Dict[str, Any]]:
    """Add fields to every record logged inside the block.

    Inner scopes override outer values for the same key. Fields passed as
    None are left out, so an optional application id never shows up as
    ``application_id=null``. The previous scope is restored on exit, also
    when the block raises.

    Example:
        >>> with log_context(application_id="app-123", notification_kind="application_status"):
        ...     logger.info("Sending", extra={"event": "notification.send.attempt"})
    """
    present = {key: value for key, value in fields.items() if value is not None}
    token = _scope.set({**_scope.get(), **present})
    try:
        yield get_log_context()
    finally:
        _scope.reset(token)
