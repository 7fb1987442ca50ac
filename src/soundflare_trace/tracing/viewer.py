"""
Trace viewer - the consumer-facing controller for one active trace.

Opening a trace creates a fresh TraceSession and PaginationDriver and
closes whatever was open before; a page that completes for the old trace
afterwards is discarded by the closed session.
"""

from typing import Callable, Optional, Union

from ..errors import SourceError, TraceError
from ..models import ConversationTurn, FlatSpan, Span
from ..sources.base import SpanSource
from ..utils.logger import debug, error, info, log_context
from .pagination import DEFAULT_PAGE_SIZE, PaginationDriver
from .session import TraceSession

SelectionListener = Callable[[FlatSpan], None]


class TraceViewer:
    """Loads one trace page by page and exposes its turns and flat spans.

    Example:
        viewer = TraceViewer(DuckDBSpanSource("spans.duckdb"))
        viewer.open("tk_123")
        viewer.load_all()
        for turn in viewer.get_turns():
            print(turn.title, turn.duration)
    """

    def __init__(
        self,
        source: Optional[SpanSource] = None,
        page_size: int = DEFAULT_PAGE_SIZE,
    ):
        self._source = source
        self._page_size = page_size
        self._session: Optional[TraceSession] = None
        self._driver: Optional[PaginationDriver] = None
        self._listeners: list[SelectionListener] = []
        self.selected_span: Optional[FlatSpan] = None

    @property
    def session(self) -> Optional[TraceSession]:
        return self._session

    @property
    def trace_key(self) -> Optional[str]:
        return self._session.trace_key if self._session else None

    @property
    def page_size(self) -> int:
        return self._page_size

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def open(self, trace_key: str) -> TraceSession:
        """Make `trace_key` the active trace; reopening the active one is a no-op."""
        if self._session is not None and self._session.trace_key == trace_key:
            return self._session

        self.close()
        self._session = TraceSession(trace_key, self._page_size)
        if self._source is not None:
            self._driver = PaginationDriver(self._source, trace_key, self._page_size)
        info(f"Opened trace {trace_key}")
        return self._session

    def close(self) -> None:
        if self._session is None:
            return
        info(f"Closed trace {self._session.trace_key}")
        self._session.close()
        self._session = None
        self._driver = None
        self.selected_span = None

    # -------------------------------------------------------------------------
    # Loading
    # -------------------------------------------------------------------------

    def fetch_next_page(self) -> bool:
        """Pull one page from the source into the active session.

        A request made while another fetch for the same trace is in flight
        is ignored. Source failures are logged and leave the session
        retryable.

        Returns:
            True if a page was merged.
        """
        session = self._session
        driver = self._driver
        if session is None:
            debug("fetch_next_page called with no open trace")
            return False
        if driver is None:
            raise TraceError("TraceViewer has no synchronous span source")

        if not session.try_begin_fetch():
            return False

        with log_context(trace_key=session.trace_key):
            try:
                page = driver.next_page()
            except SourceError as e:
                session.record_error(str(e))
                error(f"Page fetch failed: {e}")
                return False
            finally:
                session.end_fetch()

            if page is None:
                session.mark_complete()
                return False
            return session.accept_page(driver.trace_key, page, has_more=not driver.is_done)

    def load_all(self, max_pages: Optional[int] = None) -> int:
        """Pull pages until the source is exhausted (or max_pages).

        Returns:
            Number of pages merged.
        """
        loaded = 0
        while self._session is not None and self._session.has_more:
            if max_pages is not None and loaded >= max_pages:
                break
            if not self.fetch_next_page():
                break
            loaded += 1
        return loaded

    def refresh_count(self) -> Optional[int]:
        """Refresh the advisory total span count of the active trace."""
        if self._session is None or self._driver is None:
            return None
        count = self._driver.count()
        if count is not None:
            self._session.total_count = count
        return count

    # -------------------------------------------------------------------------
    # Consumer API
    # -------------------------------------------------------------------------

    def get_turns(self) -> list[ConversationTurn]:
        return self._session.get_turns() if self._session else []

    def get_flat_spans(self) -> list[FlatSpan]:
        return self._session.get_flat_spans() if self._session else []

    def add_selection_listener(self, listener: SelectionListener) -> None:
        self._listeners.append(listener)

    def remove_selection_listener(self, listener: SelectionListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def on_span_selected(self, span: Union[FlatSpan, Span]) -> Optional[FlatSpan]:
        """Forward a span chosen in the consumer to selection listeners.

        A bare Span is resolved to its flattened entry so listeners always
        receive the level annotation. Spans not in the active view are ignored.
        """
        if isinstance(span, Span):
            flat = self._session.view.find_span(span.id) if self._session else None
            if flat is None:
                debug(f"Selected span {span.id} is not in the active trace")
                return None
        else:
            flat = span

        self.selected_span = flat
        for listener in list(self._listeners):
            listener(flat)
        return flat
