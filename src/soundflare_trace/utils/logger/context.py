"""
Logging context for SoundFlare Trace.

Context variables carry the active trace key and request id into log records.
"""

import logging
import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Generator, Optional

request_id_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)
trace_key_var: ContextVar[Optional[str]] = ContextVar("trace_key", default=None)


def get_request_id() -> Optional[str]:
    return request_id_var.get()


def get_trace_key() -> Optional[str]:
    return trace_key_var.get()


def generate_request_id() -> str:
    """Generate a short request id (8 hex characters)."""
    return uuid.uuid4().hex[:8]


@contextmanager
def log_context(
    trace_key: Optional[str] = None,
    request_id: Optional[str] = None,
    auto_request_id: bool = False,
) -> Generator[dict[str, Optional[str]], None, None]:
    """Set trace key and/or request id for the duration of the block.

    Previous values are restored on exit.

    Example:
        with log_context(trace_key="tk_123"):
            logger.info("Loading page")  # record carries trace_key
    """
    old_request_id = request_id_var.get()
    old_trace_key = trace_key_var.get()

    new_request_id = request_id
    if new_request_id is None and auto_request_id:
        new_request_id = generate_request_id()

    if new_request_id is not None:
        request_id_var.set(new_request_id)
    if trace_key is not None:
        trace_key_var.set(trace_key)

    try:
        yield {
            "request_id": request_id_var.get(),
            "trace_key": trace_key_var.get(),
        }
    finally:
        request_id_var.set(old_request_id)
        trace_key_var.set(old_trace_key)


class ContextFilter(logging.Filter):
    """Adds request_id and trace_key attributes to every record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = request_id_var.get()
        record.trace_key = trace_key_var.get()
        return True
