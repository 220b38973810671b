"""
Request correlation IDs.

A short ID is attached to every request so that log lines, Sentry events and
error responses can be matched up when a citizen reports a problem.
"""

import uuid
from contextvars import ContextVar

correlation_id_var: ContextVar[str] = ContextVar("correlation_id", default="")


def generate_correlation_id() -> str:
    """
    Create a new correlation ID.

    Returns:
        8 lowercase hex characters, short enough to read out over the phone.
    """
    return uuid.uuid4().hex[:8]


def get_correlation_id() -> str:
    """Return the ID bound to the current context, or "" outside a request."""
    return correlation_id_var.get()


def set_correlation_id(correlation_id: str) -> None:
    """Bind ``correlation_id`` to the current context."""
    correlation_id_var.set(correlation_id)
