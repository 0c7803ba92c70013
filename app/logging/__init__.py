"""Structured logging for the notifier.

Modules log through ``get_logger(__name__, component=...)``. The component
("notification", "api", "cli", ...) tags every record so delivery events can
be told apart from HTTP and CLI output. Records are formatted by the handler
installed in ``configure_logging``.
"""

import logging
from typing import Optional, Union

from .config import configure_logging, mask_email
from .context import log_context

__all__ = ["ComponentLoggerAdapter", "configure_logging", "get_logger", "log_context", "mask_email"]


class ComponentLoggerAdapter(logging.LoggerAdapter):
    """Tags records with a fixed component and keeps the caller's extra fields.

    The stdlib adapter replaces ``extra`` wholesale; here the per-call fields
    are merged over the adapter's, so ``extra={"event": ...}`` survives.
    """

    def process(self, msg, kwargs):
        kwargs["extra"] = {**self.extra, **(kwargs.get("extra") or {})}
        return msg, kwargs


def get_logger(
    name: str, component: Optional[str] = None
) -> Union[logging.Logger, ComponentLoggerAdapter]:
    """Return the named logger, wrapped to tag records when component is given."""
    logger = logging.getLogger(name)
    if component is None:
        return logger
    return ComponentLoggerAdapter(logger, {"component": component})
