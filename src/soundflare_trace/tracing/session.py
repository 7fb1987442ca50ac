"""
Trace session - state owned by one open trace.

A session is created when a trace is opened and discarded when its view
closes. It owns the SpanStore, the pagination flags and the current
derived TraceView. Nothing is shared between sessions.
"""

import threading
from enum import Enum
from typing import Optional

from ..models import ConversationTurn, FlatSpan, SpanPage
from ..utils.logger import debug
from .pagination import DEFAULT_PAGE_SIZE
from .store import SpanStore
from .view import TraceView, recompute


class TraceState(Enum):
    IDLE = "idle"  # opened, nothing requested yet
    LOADING = "loading"  # first page in flight
    EMPTY = "empty"  # source exhausted without any span
    PARTIAL = "partial"  # some spans loaded, more available
    COMPLETE = "complete"  # all spans loaded


class TraceSession:
    """Store, pagination flags and derived view for one trace key."""

    def __init__(self, trace_key: str, page_size: int = DEFAULT_PAGE_SIZE):
        self.trace_key = trace_key
        self.page_size = page_size
        self.store = SpanStore(trace_key)
        self.view = TraceView()
        self.has_more = True
        self.pages_loaded = 0
        self.total_count: Optional[int] = None
        self.last_error: Optional[str] = None
        self.closed = False
        self._fetch_lock = threading.Lock()

    # -------------------------------------------------------------------------
    # Fetch coordination
    # -------------------------------------------------------------------------

    @property
    def is_fetching(self) -> bool:
        return self._fetch_lock.locked()

    def try_begin_fetch(self) -> bool:
        """Claim the single fetch slot; False if a fetch is already in flight."""
        if self.closed or not self.has_more:
            return False
        if not self._fetch_lock.acquire(blocking=False):
            debug(f"Fetch already in flight for {self.trace_key}; request ignored")
            return False
        return True

    def end_fetch(self) -> None:
        if self._fetch_lock.locked():
            self._fetch_lock.release()

    # -------------------------------------------------------------------------
    # Ingestion
    # -------------------------------------------------------------------------

    def accept_page(self, trace_key: str, page: SpanPage, has_more: bool) -> bool:
        """Merge a fetched page and recompute the view.

        Pages issued for another trace, or arriving after close(), are
        discarded.

        Returns:
            True if the page was merged.
        """
        if self.closed or trace_key != self.trace_key:
            debug(
                f"Discarding stale page for {trace_key} "
                f"(session {self.trace_key}, closed={self.closed})"
            )
            return False

        added = self.store.ingest(page.spans)
        self.pages_loaded += 1
        self.has_more = has_more
        self.last_error = None

        if added or self.pages_loaded == 1:
            self.view = recompute(self.store.snapshot())

        debug(
            f"Trace {self.trace_key}: page {self.pages_loaded} merged {added} new "
            f"span(s), {len(self.store)} total, more={has_more}"
        )
        return True

    def mark_complete(self) -> None:
        self.has_more = False

    def record_error(self, message: str) -> None:
        self.last_error = message

    def close(self) -> None:
        self.closed = True
        self.has_more = False

    # -------------------------------------------------------------------------
    # Consumer API
    # -------------------------------------------------------------------------

    @property
    def state(self) -> TraceState:
        if len(self.store):
            return TraceState.PARTIAL if self.has_more else TraceState.COMPLETE
        if not self.has_more:
            return TraceState.EMPTY
        if self.is_fetching:
            return TraceState.LOADING
        return TraceState.IDLE

    def get_turns(self) -> list[ConversationTurn]:
        return list(self.view.turns)

    def get_flat_spans(self) -> list[FlatSpan]:
        return list(self.view.flat_spans)

    def status(self) -> dict:
        return {
            "trace_key": self.trace_key,
            "state": self.state.value,
            "spans_loaded": len(self.store),
            "spans_dropped": self.store.dropped_count,
            "total_count": self.total_count,
            "pages_loaded": self.pages_loaded,
            "has_more": self.has_more,
            "is_fetching": self.is_fetching,
            "last_error": self.last_error,
            **self.view.to_dict(),
        }
