"""
Exceptions raised by SoundFlare Trace.

Malformed input never escapes the tracing core: MalformedSpanError is raised
at the parse boundary and turned into a logged drop there.
"""

from typing import Optional


class TraceError(Exception):
    """Base class for all soundflare_trace errors."""


class MalformedSpanError(TraceError):
    """A collector row cannot be turned into a Span."""

    def __init__(self, message: str, row: Optional[dict] = None):
        super().__init__(message)
        self.row = row


class SourceError(TraceError):
    """A span data source failed to answer a page or count query."""

    def __init__(self, message: str, trace_key: Optional[str] = None):
        super().__init__(message)
        self.trace_key = trace_key


class TraceNotOpenError(TraceError):
    """An operation referenced a trace that has no open session."""

    def __init__(self, trace_key: str):
        super().__init__(f"Trace {trace_key!r} is not open")
        self.trace_key = trace_key
