"""Correlation id management for workshop logs.

Every stage-engine tick and every request handler that touches a room runs
under its own correlation id, so all log lines produced by one tick (engine,
reactor, repository) can be grouped together.

The id lives in a contextvar. Timer callbacks each run in their own task,
which copies the context, so a tick's id never leaks into another tick.

Usage:
    # Around a unit of work
    with correlation_scope(generate_correlation_id("tick-")):
        ...

    # In structlog configuration
    processors = [..., correlation_id_processor, ...]
"""

from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any
from uuid import uuid4

# Empty string rather than None keeps the processor branch simple
_correlation_id: ContextVar[str] = ContextVar("correlation_id", default="")


def generate_correlation_id(prefix: str = "") -> str:
    """Generate a new short correlation id.

    Args:
        prefix: Optional label such as ``"tick-"``.

    Returns:
        Prefix followed by 12 hex characters of a UUID4.
    """
    return f"{prefix}{uuid4().hex[:12]}"


def get_correlation_id() -> str:
    """Get the current correlation id, or empty string if none is set."""
    return _correlation_id.get()


def set_correlation_id(correlation_id: str) -> None:
    """Set the correlation id for the rest of the current context."""
    _correlation_id.set(correlation_id)


@contextmanager
def correlation_scope(correlation_id: str) -> Iterator[str]:
    """Bind a correlation id for the duration of a block.

    The previous id is restored on exit, even when the block raises.

    Args:
        correlation_id: Id to bind.

    Yields:
        The bound id.
    """
    token = _correlation_id.set(correlation_id)
    try:
        yield correlation_id
    finally:
        _correlation_id.reset(token)


def correlation_id_processor(
    logger: Any, method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """Structlog processor adding the current correlation id to each entry.

    Entries logged outside any scope are left untouched.
    """
    correlation_id = get_correlation_id()
    if correlation_id:
        event_dict.setdefault("correlation_id", correlation_id)
    return event_dict
