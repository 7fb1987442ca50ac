"""
In-memory span source.

Serves rows held in a list, e.g. a JSON export of the spans table or
fixtures in tests. Paging follows the same cursor rules as the database
sources.
"""

import json
from pathlib import Path
from typing import Iterable, Optional, Union

from ..errors import SourceError
from ..models import SpanPage, coerce_int
from .base import build_page


class InMemorySpanSource:
    def __init__(self, rows: Iterable[dict] = ()):
        self._rows: list[dict] = list(rows)
        self.page_requests = 0

    @classmethod
    def from_json_file(cls, path: Union[str, Path]) -> "InMemorySpanSource":
        """Load rows from a JSON file holding a list or {"spans": [...]}."""
        try:
            with open(path, encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise SourceError(f"Cannot read span export {path}: {e}") from e

        if isinstance(data, dict):
            data = data.get("spans", [])
        if not isinstance(data, list):
            raise SourceError(f"Span export {path} does not contain a list of spans")
        return cls(data)

    def add_rows(self, rows: Iterable[dict]) -> None:
        """Append rows, as a collector would while a trace is still being written."""
        self._rows.extend(rows)

    def _rows_for(self, trace_key: str) -> list[dict]:
        rows = [
            row
            for row in self._rows
            if isinstance(row, dict)
            and row.get("trace_key") == trace_key
            and coerce_int(row.get("start_time_ns")) is not None
        ]
        rows.sort(key=lambda row: coerce_int(row.get("start_time_ns")))
        return rows

    def fetch_span_page(
        self, trace_key: str, cursor: Optional[int], page_size: int
    ) -> SpanPage:
        self.page_requests += 1
        rows = self._rows_for(trace_key)
        if cursor is not None:
            rows = [r for r in rows if coerce_int(r.get("start_time_ns")) > cursor]
        return build_page(rows[:page_size], trace_key, cursor, page_size)

    def fetch_span_count(self, trace_key: str) -> int:
        return sum(
            1
            for row in self._rows
            if isinstance(row, dict) and row.get("trace_key") == trace_key
        )

    def trace_keys(self) -> list[str]:
        keys = {row.get("trace_key") for row in self._rows if isinstance(row, dict)}
        return sorted(k for k in keys if k)
