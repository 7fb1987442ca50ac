"""
Span store - cumulative, deduplicated span collection for one trace.
"""

from typing import Iterable, Optional

from ..models import Span
from ..utils.logger import warn


class SpanStore:
    """Cumulative set of spans for a single trace, keyed by storage id.

    Spans are immutable, so a second arrival of the same id is a no-op.
    The store never triggers recomputation; callers rebuild derived views
    after a successful ingest.
    """

    def __init__(self, trace_key: Optional[str] = None):
        self.trace_key = trace_key
        self._spans: dict[str, Span] = {}
        self._ordered: Optional[list[Span]] = None
        self.dropped_count = 0

    def ingest(self, page: Iterable[Span]) -> int:
        """Merge a page into the store.

        Spans without start_time_ns cannot be ordered and are dropped.

        Returns:
            Number of spans newly stored.
        """
        added = 0
        for span in page:
            if span.start_time_ns is None:
                self.dropped_count += 1
                warn(
                    f"Dropping span {span.id} ({span.name or 'unnamed'}): "
                    "missing start_time_ns"
                )
                continue
            if span.id in self._spans:
                continue
            self._spans[span.id] = span
            added += 1

        if added:
            self._ordered = None
        return added

    def snapshot(self) -> list[Span]:
        """All stored spans ordered by (start_time_ns, id)."""
        if self._ordered is None:
            self._ordered = sorted(
                self._spans.values(), key=lambda s: (s.start_time_ns, s.id)
            )
        return list(self._ordered)

    def get(self, span_id: str) -> Optional[Span]:
        return self._spans.get(span_id)

    def clear(self) -> None:
        self._spans.clear()
        self._ordered = None
        self.dropped_count = 0

    def __len__(self) -> int:
        return len(self._spans)

    def __contains__(self, span_id: object) -> bool:
        return span_id in self._spans
