"""
Logging context variables.

Two identifiers follow a request across await points: the HTTP correlation
ID (set by CorrelationMiddleware) and the ask request ID (set by the ask
pipeline for the lifetime of one answer stream).

Dependencies: contextvars
System role: Request tracing for log records
"""

import re
import secrets
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar

correlation_id_ctx: ContextVar[str] = ContextVar("correlation_id", default="")
request_id_ctx: ContextVar[str] = ContextVar("request_id", default="")

# Incoming IDs end up in log lines and response headers
_VALID_ID = re.compile(r"^[A-Za-z0-9._:-]{1,64}$")


def set_correlation_id(candidate: str | None = None) -> str:
    """
    Set the correlation ID for the current context.

    A missing or malformed candidate is replaced by a generated ID.

    Returns:
        str: The correlation ID in effect
    """
    value = candidate if candidate and _VALID_ID.match(candidate) else secrets.token_hex(8)
    correlation_id_ctx.set(value)
    return value


def get_correlation_id() -> str:
    return correlation_id_ctx.get()


def clear_correlation_id() -> None:
    correlation_id_ctx.set("")


def get_request_id() -> str:
    return request_id_ctx.get()


@contextmanager
def request_scope(request_id: str) -> Iterator[str]:
    """Tag log records with request_id until the block exits."""
    previous = request_id_ctx.get()
    request_id_ctx.set(request_id)
    try:
        yield request_id
    finally:
        # set(), not reset(): the block may span yields of an async generator
        request_id_ctx.set(previous)
