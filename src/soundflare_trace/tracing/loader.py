"""
Async trace loader - event-driven page fetching for a TraceViewer.

Fetches may be requested from anywhere on the event loop (scroll
proximity, timers). At most one fetch per trace is in flight: a request
made while one is outstanding gets the outstanding task back. Every fetch
is tagged with the session it was issued for and its result is dropped if
the viewer has moved to another trace by the time it arrives.
"""

import asyncio
from typing import Optional

from ..errors import SourceError
from ..sources.base import AsyncSpanSource
from ..utils.logger import debug, error, log_context
from .pagination import AsyncPaginationDriver
from .session import TraceSession
from .viewer import TraceViewer


class AsyncTraceLoader:
    def __init__(self, viewer: TraceViewer, source: AsyncSpanSource):
        self._viewer = viewer
        self._source = source
        self._driver: Optional[AsyncPaginationDriver] = None
        self._driver_session: Optional[TraceSession] = None
        self._inflight: Optional[asyncio.Task] = None
        self._inflight_session: Optional[TraceSession] = None

    @property
    def is_fetching(self) -> bool:
        return self._inflight is not None and not self._inflight.done()

    def _driver_for(self, session: TraceSession) -> AsyncPaginationDriver:
        if self._driver_session is not session:
            self._driver = AsyncPaginationDriver(
                self._source, session.trace_key, session.page_size
            )
            self._driver_session = session
        return self._driver

    def request_next_page(self) -> Optional[asyncio.Task]:
        """Schedule a page fetch for the viewer's active trace.

        Must be called from a running event loop.

        Returns:
            The task that will merge the page (an already outstanding task
            when coalesced), or None when there is nothing to fetch.
        """
        session = self._viewer.session
        if session is None or not session.has_more:
            return None

        if self.is_fetching and self._inflight_session is session:
            return self._inflight

        if not session.try_begin_fetch():
            return None

        driver = self._driver_for(session)
        task = asyncio.get_running_loop().create_task(self._fetch(session, driver))
        # Released on completion even if the task is cancelled before it starts
        task.add_done_callback(lambda _task: session.end_fetch())
        self._inflight = task
        self._inflight_session = session
        return task

    async def _fetch(self, session: TraceSession, driver: AsyncPaginationDriver) -> bool:
        issued_for = session.trace_key
        with log_context(trace_key=issued_for):
            try:
                page = await driver.next_page()
            except SourceError as e:
                session.record_error(str(e))
                error(f"Page fetch failed: {e}")
                return False

            if self._viewer.session is not session:
                debug(f"Trace changed while fetching; discarding page for {issued_for}")
                return False

            if page is None:
                session.mark_complete()
                return False
            return session.accept_page(issued_for, page, has_more=not driver.is_done)

    async def load_all(self, max_pages: Optional[int] = None) -> int:
        """Fetch pages one after another until the active trace is complete."""
        loaded = 0
        while max_pages is None or loaded < max_pages:
            task = self.request_next_page()
            if task is None or not await task:
                break
            loaded += 1
        return loaded

    async def refresh_count(self) -> Optional[int]:
        session = self._viewer.session
        if session is None:
            return None
        count = await self._driver_for(session).count()
        if count is not None and self._viewer.session is session:
            session.total_count = count
        return count

    async def cancel(self) -> None:
        """Cancel an outstanding fetch (e.g. when the view is torn down)."""
        if self._inflight is not None and not self._inflight.done():
            self._inflight.cancel()
            try:
                await self._inflight
            except asyncio.CancelledError:
                pass
        self._inflight = None
        self._inflight_session = None
