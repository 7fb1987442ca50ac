"""
Trace registry - the open traces served by the API.

Each open trace gets its own TraceViewer so traces never share state.
Access to one viewer is serialised with a per-trace lock; the registry
lock only guards the mapping itself.
"""

import threading
from contextlib import contextmanager
from typing import Iterator, Optional

from ..errors import TraceNotOpenError
from ..sources.base import SpanSource
from ..tracing import DEFAULT_PAGE_SIZE, TraceViewer
from ..utils.logger import info


class TraceRegistry:
    def __init__(self, source: SpanSource, page_size: int = DEFAULT_PAGE_SIZE):
        self._source = source
        self._page_size = page_size
        self._viewers: dict[str, TraceViewer] = {}
        self._trace_locks: dict[str, threading.Lock] = {}
        self._lock = threading.Lock()

    def _open_entry(self, trace_key: str) -> tuple[TraceViewer, threading.Lock]:
        with self._lock:
            viewer = self._viewers.get(trace_key)
            if viewer is None:
                viewer = TraceViewer(self._source, self._page_size)
                viewer.open(trace_key)
                self._viewers[trace_key] = viewer
                self._trace_locks[trace_key] = threading.Lock()
            return viewer, self._trace_locks[trace_key]

    def open(self, trace_key: str) -> TraceViewer:
        """Return the viewer for trace_key, opening it if needed."""
        return self._open_entry(trace_key)[0]

    def get(self, trace_key: str) -> TraceViewer:
        """Return the viewer for an open trace.

        Raises:
            TraceNotOpenError: the trace has not been loaded.
        """
        with self._lock:
            viewer = self._viewers.get(trace_key)
        if viewer is None:
            raise TraceNotOpenError(trace_key)
        return viewer

    def _entry(self, trace_key: str) -> tuple[TraceViewer, threading.Lock]:
        with self._lock:
            viewer = self._viewers.get(trace_key)
            trace_lock = self._trace_locks.get(trace_key)
        if viewer is None or trace_lock is None:
            raise TraceNotOpenError(trace_key)
        return viewer, trace_lock

    @contextmanager
    def locked(self, trace_key: str) -> Iterator[TraceViewer]:
        """Hold the per-trace lock while working with its viewer.

        Raises:
            TraceNotOpenError: the trace is not open, or was closed meanwhile.
        """
        viewer, trace_lock = self._entry(trace_key)
        with trace_lock:
            if viewer.session is None:
                raise TraceNotOpenError(trace_key)
            yield viewer

    def load(self, trace_key: str, pages: Optional[int] = 1) -> dict:
        """Open trace_key and pull up to `pages` pages (None loads everything).

        Returns:
            The trace status taken while the trace lock is held.

        Raises:
            TraceNotOpenError: the trace was closed before the load started.
        """
        viewer, trace_lock = self._open_entry(trace_key)
        with trace_lock:
            if viewer.session is None:
                raise TraceNotOpenError(trace_key)
            loaded = viewer.load_all(max_pages=pages)
            if viewer.session.total_count is None:
                viewer.refresh_count()
            status = viewer.session.status()
        info(f"Loaded {loaded} page(s) for {trace_key}")
        return status

    def close(self, trace_key: str) -> bool:
        with self._lock:
            viewer = self._viewers.pop(trace_key, None)
            trace_lock = self._trace_locks.pop(trace_key, None)
        if viewer is None:
            return False
        # Wait for a request still working on this trace
        with trace_lock:
            viewer.close()
        return True

    def close_all(self) -> None:
        for trace_key in self.trace_keys():
            self.close(trace_key)

    def trace_keys(self) -> list[str]:
        with self._lock:
            return sorted(self._viewers)

    def __contains__(self, trace_key: object) -> bool:
        with self._lock:
            return trace_key in self._viewers
