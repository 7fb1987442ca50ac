"""
Span sources - where pages of spans come from.

- base: SpanSource / AsyncSpanSource protocols and page helpers
- memory: list or JSON-export backed source
- duckdb: read-only DuckDB spans table
- rest: async PostgREST-style HTTP endpoint
"""

from .base import AsyncSpanSource, SpanSource, build_page, next_cursor_for
from .duckdb import DuckDBSpanSource
from .memory import InMemorySpanSource
from .rest import RestSpanSource

__all__ = [
    "SpanSource",
    "AsyncSpanSource",
    "build_page",
    "next_cursor_for",
    "InMemorySpanSource",
    "DuckDBSpanSource",
    "RestSpanSource",
]
