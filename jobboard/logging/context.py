"""Scoped logging context built on contextvars.

Fields pushed here (application_id, job_id, notification_kind, ...) are merged
into every record emitted inside the scope by ``ContextualFilter``. Because the
storage is a ContextVar, work handed to a thread pool starts from an empty
context unless the caller copies it with ``contextvars.copy_context()``.
"""

from contextvars import ContextVar, Token
from typing import Any, Dict, Optional

LogContextVar: ContextVar[Dict[str, Any]] = ContextVar("jobboard_log_context", default={})


def get_log_context() -> Dict[str, Any]:
    """Return a copy of the active logging context."""
    return LogContextVar.get().copy()


def push_log_context(**fields) -> Token:
    """Merge fields into the logging context.

    Fields with a value of None are dropped so optional identifiers do not
    show up as ``null`` in every record.

    Returns:
        Token for ``pop_log_context``

    Example:
        >>> token = push_log_context(application_id="a1", job_id="j1")
        >>> pop_log_context(token)
    """
    current = LogContextVar.get()
    merged = {**current, **{k: v for k, v in fields.items() if v is not None}}
    return LogContextVar.set(merged)


def pop_log_context(token: Token) -> None:
    """Restore the context saved by ``push_log_context``."""
    LogContextVar.reset(token)


def clear_log_context() -> None:
    """Drop every context field. Mostly for tests."""
    LogContextVar.set({})


class log_context:
    """Context manager form of push/pop.

    Example:
        >>> with log_context(application_id="a1"):
        ...     logger.info("Status changed")  # record carries application_id
    """

    def __init__(self, **fields):
        self.fields = fields
        self.token: Optional[Token] = None

    def __enter__(self):
        self.token = push_log_context(**self.fields)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self.token is not None:
            pop_log_context(self.token)
            self.token = None
        return False
