"""
Pagination drivers - pull-based cursor iteration over a span source.

The caller decides when to pull the next page (scroll, timer, CLI loop,
test); the driver only tracks the cursor and the terminal "all loaded"
state. next_page() returns None once the source is exhausted.
"""

from typing import AsyncIterator, Iterator, Optional

from ..errors import SourceError
from ..models import SpanPage
from ..sources.base import AsyncSpanSource, SpanSource
from ..utils.logger import debug, warn

DEFAULT_PAGE_SIZE = 50


def is_last_page(page: SpanPage, page_size: int) -> bool:
    """A null cursor or a short page both mean no more data."""
    return page.next_cursor is None or page.row_count < page_size


class _CursorState:
    def __init__(self, trace_key: str, page_size: int):
        if page_size < 1:
            raise ValueError(f"page_size must be positive, got {page_size}")
        self.trace_key = trace_key
        self.page_size = page_size
        self.cursor: Optional[int] = None
        self.pages_fetched = 0
        self.spans_fetched = 0
        self._done = False

    @property
    def is_done(self) -> bool:
        return self._done

    def reset(self) -> None:
        self.cursor = None
        self.pages_fetched = 0
        self.spans_fetched = 0
        self._done = False

    def _advance(self, page: SpanPage) -> None:
        self.pages_fetched += 1
        self.spans_fetched += len(page.spans)

        if is_last_page(page, self.page_size):
            self._done = True
            return

        if self.cursor is not None and page.next_cursor <= self.cursor:
            # A source that does not honour the cursor would loop forever
            warn(
                f"Cursor did not advance for trace {self.trace_key} "
                f"({self.cursor} -> {page.next_cursor}); stopping"
            )
            self._done = True
            return

        self.cursor = page.next_cursor


class PaginationDriver(_CursorState):
    """Synchronous cursor iterator over a SpanSource for one trace.

    Example:
        driver = PaginationDriver(source, "tk_123")
        for page in driver:
            store.ingest(page.spans)
    """

    def __init__(
        self, source: SpanSource, trace_key: str, page_size: int = DEFAULT_PAGE_SIZE
    ):
        super().__init__(trace_key, page_size)
        self._source = source

    def next_page(self) -> Optional[SpanPage]:
        """Fetch the next page, or None when all spans are loaded.

        Raises:
            SourceError: the source failed; the cursor is left unchanged
                so the call can be retried.
        """
        if self._done:
            return None
        page = self._source.fetch_span_page(self.trace_key, self.cursor, self.page_size)
        self._advance(page)
        debug(
            f"Fetched page {self.pages_fetched} for {self.trace_key}: "
            f"{len(page.spans)} spans (next cursor {page.next_cursor})"
        )
        return page

    def count(self) -> Optional[int]:
        """Advisory total span count; None if the source cannot tell."""
        try:
            return self._source.fetch_span_count(self.trace_key)
        except SourceError as e:
            warn(f"Span count unavailable for {self.trace_key}: {e}")
            return None

    def __iter__(self) -> Iterator[SpanPage]:
        while True:
            page = self.next_page()
            if page is None:
                return
            yield page


class AsyncPaginationDriver(_CursorState):
    """Asynchronous counterpart of PaginationDriver for AsyncSpanSource."""

    def __init__(
        self,
        source: AsyncSpanSource,
        trace_key: str,
        page_size: int = DEFAULT_PAGE_SIZE,
    ):
        super().__init__(trace_key, page_size)
        self._source = source

    async def next_page(self) -> Optional[SpanPage]:
        if self._done:
            return None
        page = await self._source.fetch_span_page(
            self.trace_key, self.cursor, self.page_size
        )
        self._advance(page)
        debug(
            f"Fetched page {self.pages_fetched} for {self.trace_key}: "
            f"{len(page.spans)} spans (next cursor {page.next_cursor})"
        )
        return page

    async def count(self) -> Optional[int]:
        try:
            return await self._source.fetch_span_count(self.trace_key)
        except SourceError as e:
            warn(f"Span count unavailable for {self.trace_key}: {e}")
            return None

    async def __aiter__(self) -> AsyncIterator[SpanPage]:
        while True:
            page = await self.next_page()
            if page is None:
                return
            yield page
