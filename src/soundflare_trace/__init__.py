"""
SoundFlare Trace - voice-agent trace reconstruction.

Turns the flat, paginated span stream of one voice-agent session into a
parent/child tree, a depth-annotated display order and a sequence of
conversation turns.
"""

from .errors import MalformedSpanError, SourceError, TraceError, TraceNotOpenError
from .models import (
    ConversationTurn,
    FlatSpan,
    Span,
    SpanPage,
    SpanStatus,
    TurnType,
    parse_spans,
)
from .tracing import (
    AsyncTraceLoader,
    PaginationDriver,
    SpanStore,
    TraceSession,
    TraceView,
    TraceViewer,
    recompute,
)

__version__ = "0.1.0"

__all__ = [
    "Span",
    "SpanPage",
    "SpanStatus",
    "FlatSpan",
    "ConversationTurn",
    "TurnType",
    "parse_spans",
    "SpanStore",
    "TraceView",
    "recompute",
    "PaginationDriver",
    "TraceSession",
    "TraceViewer",
    "AsyncTraceLoader",
    "TraceError",
    "MalformedSpanError",
    "SourceError",
    "TraceNotOpenError",
]
