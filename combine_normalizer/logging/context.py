"""Request-scoped context for structured logging.

Fields pushed here (request_id, canonical_input, user_id, ...) are copied
onto every log record emitted inside the scope by ``ContextualFilter``.
Backed by contextvars, so concurrent requests on different threads or tasks
never see each other's fields.
"""

from contextvars import ContextVar, Token
from typing import Any, Dict, Optional

LogContextVar: ContextVar[Dict[str, Any]] = ContextVar("normalizer_log_context", default={})


def get_log_context() -> Dict[str, Any]:
    """Return a copy of the active logging context."""
    return LogContextVar.get().copy()


def push_log_context(**fields) -> Token:
    """Merge fields into the active context.

    Returns:
        Token for ``pop_log_context`` to restore the previous state

    Example:
        >>> token = push_log_context(request_id="r-1")
        >>> pop_log_context(token)
    """
    return LogContextVar.set({**LogContextVar.get(), **fields})


def pop_log_context(token: Token) -> None:
    """Restore the context captured by ``push_log_context``."""
    LogContextVar.reset(token)


def clear_log_context() -> None:
    """Drop all context fields. Intended for tests."""
    LogContextVar.set({})


class log_context:
    """Context manager that scopes logging fields to a block.

    Example:
        >>> with log_context(request_id="r-1", canonical_input="jd s 790"):
        ...     logger.info("Resolving")  # record carries both fields
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
