"""
DuckDB span source.

Reads the spans table written by the voice-agent collector. The source
only ever reads: a file database is opened read-only so it can be shared
with a running collector.
"""

import re
import threading
from pathlib import Path
from typing import Optional, Union

import duckdb

from ..errors import SourceError
from ..models import SPAN_COLUMNS, SpanPage
from ..utils.logger import debug
from .base import DEFAULT_TABLE, build_page

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*(\.[A-Za-z_][A-Za-z0-9_]*)?$")


class DuckDBSpanSource:
    """Span source backed by a DuckDB database.

    Either a database path or an existing connection must be given. A
    connection passed in is borrowed and is not closed by close().
    """

    def __init__(
        self,
        db_path: Optional[Union[str, Path]] = None,
        connection: Optional[duckdb.DuckDBPyConnection] = None,
        table: str = DEFAULT_TABLE,
    ):
        if db_path is None and connection is None:
            raise ValueError("DuckDBSpanSource needs a db_path or a connection")
        if not _IDENTIFIER.match(table):
            raise ValueError(f"Invalid table name: {table!r}")

        self._db_path = Path(db_path) if db_path is not None else None
        self._conn = connection
        self._owns_connection = connection is None
        self._table = table
        self._lock = threading.Lock()

    @property
    def table(self) -> str:
        return self._table

    def connect(self) -> duckdb.DuckDBPyConnection:
        """Get or open the read-only connection (thread-safe)."""
        with self._lock:
            if self._conn is None:
                try:
                    self._conn = duckdb.connect(str(self._db_path), read_only=True)
                except duckdb.Error as e:
                    raise SourceError(f"Cannot open {self._db_path}: {e}") from e
                debug(f"Opened span database {self._db_path}")
            return self._conn

    def close(self) -> None:
        with self._lock:
            if self._conn is not None and self._owns_connection:
                self._conn.close()
                self._conn = None

    def fetch_span_page(
        self, trace_key: str, cursor: Optional[int], page_size: int
    ) -> SpanPage:
        columns = ", ".join(SPAN_COLUMNS)
        where = "trace_key = ? AND start_time_ns IS NOT NULL"
        params: list = [trace_key]
        if cursor is not None:
            where += " AND start_time_ns > ?"
            params.append(cursor)
        params.append(page_size)
        query = f"""
            SELECT {columns}
            FROM {self._table}
            WHERE {where}
            ORDER BY start_time_ns ASC
            LIMIT ?
        """
        try:
            conn = self.connect()
            with self._lock:
                result = conn.execute(query, params)
                rows = [dict(zip(SPAN_COLUMNS, row)) for row in result.fetchall()]
        except duckdb.Error as e:
            raise SourceError(
                f"Span page query failed for {trace_key}: {e}", trace_key=trace_key
            ) from e

        return build_page(rows, trace_key, cursor, page_size)

    def fetch_span_count(self, trace_key: str) -> int:
        try:
            conn = self.connect()
            with self._lock:
                row = conn.execute(
                    f"SELECT COUNT(*) FROM {self._table} WHERE trace_key = ?",
                    [trace_key],
                ).fetchone()
        except duckdb.Error as e:
            raise SourceError(
                f"Span count query failed for {trace_key}: {e}", trace_key=trace_key
            ) from e
        return int(row[0]) if row else 0
