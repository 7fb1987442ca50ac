"""
Span source protocols - the upstream collaborator contract.

A source answers pages of one trace ordered by start_time_ns, starting
strictly after a cursor (the last start_time_ns already seen), plus an
advisory span count.
"""

from typing import Optional, Protocol, Sequence, runtime_checkable

from ..models import SpanPage, coerce_int, parse_spans

DEFAULT_TABLE = "soundflare_spans"


@runtime_checkable
class SpanSource(Protocol):
    def fetch_span_page(
        self, trace_key: str, cursor: Optional[int], page_size: int
    ) -> SpanPage:
        """Return up to page_size spans with start_time_ns > cursor."""
        ...

    def fetch_span_count(self, trace_key: str) -> int:
        """Best-effort total span count for progress display."""
        ...


@runtime_checkable
class AsyncSpanSource(Protocol):
    async def fetch_span_page(
        self, trace_key: str, cursor: Optional[int], page_size: int
    ) -> SpanPage: ...

    async def fetch_span_count(self, trace_key: str) -> int: ...


def next_cursor_for(rows: Sequence[dict], page_size: int) -> Optional[int]:
    """Cursor for the page after `rows`, None when rows is the last page."""
    if len(rows) < page_size:
        return None
    for row in reversed(rows):
        value = coerce_int(row.get("start_time_ns")) if isinstance(row, dict) else None
        if value is not None:
            return value
    return None


def build_page(
    rows: Sequence[dict], trace_key: str, cursor: Optional[int], page_size: int
) -> SpanPage:
    """Turn raw collector rows into a SpanPage."""
    return SpanPage(
        spans=parse_spans(rows),
        cursor=cursor,
        next_cursor=next_cursor_for(rows, page_size),
        row_count=len(rows),
        trace_key=trace_key,
    )
