"""
Trace reconstruction - from paged spans to a navigable conversation.

Pipeline, recomputed in full after every merged page:

    SpanStore -> TreeBuilder -> Flattener -> TurnSegmenter -> TraceView

TraceSession owns that state for one trace; TraceViewer and
AsyncTraceLoader drive pagination into it.
"""

from .flatten import Flattener, flatten_tree
from .loader import AsyncTraceLoader
from .pagination import (
    DEFAULT_PAGE_SIZE,
    AsyncPaginationDriver,
    PaginationDriver,
    is_last_page,
)
from .session import TraceSession, TraceState
from .store import SpanStore
from .tree import SpanTree, TreeBuilder, build_tree
from .turns import (
    SENTINEL_NAMES,
    TurnSegmenter,
    find_turn,
    is_sentinel,
    segment_turns,
)
from .view import TraceView, recompute
from .viewer import TraceViewer

__all__ = [
    # Pipeline
    "SpanStore",
    "SpanTree",
    "TreeBuilder",
    "build_tree",
    "Flattener",
    "flatten_tree",
    "TurnSegmenter",
    "segment_turns",
    "find_turn",
    "is_sentinel",
    "SENTINEL_NAMES",
    "TraceView",
    "recompute",
    # Pagination
    "DEFAULT_PAGE_SIZE",
    "PaginationDriver",
    "AsyncPaginationDriver",
    "is_last_page",
    # Per-trace state
    "TraceSession",
    "TraceState",
    "TraceViewer",
    "AsyncTraceLoader",
]
