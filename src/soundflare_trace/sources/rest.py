"""
Async REST span source using aiohttp.

Talks to a PostgREST-style endpoint exposing the spans table, the way the
hosted dashboard reads it:

    GET  {base_url}/{table}?trace_key=eq.K&start_time_ns=gt.C
         &order=start_time_ns.asc&limit=N
    HEAD {base_url}/{table}?trace_key=eq.K   (Prefer: count=exact)
"""

import asyncio
from typing import Any, Optional

import aiohttp

from ..errors import SourceError
from ..models import SPAN_COLUMNS, SpanPage
from ..utils.logger import debug
from .base import DEFAULT_TABLE, build_page

# Timeout for HTTP requests (seconds)
REQUEST_TIMEOUT = 10.0


def parse_content_range(value: Optional[str]) -> Optional[int]:
    """Total from a Content-Range header such as "0-49/1234" or "*/0"."""
    if not value or "/" not in value:
        return None
    total = value.rsplit("/", 1)[1].strip()
    if not total.isdigit():
        return None
    return int(total)


class RestSpanSource:
    """Async span source over HTTP.

    Use as an async context manager, or call close() when done:

        async with RestSpanSource("https://db.example.com/rest/v1", api_key) as src:
            page = await src.fetch_span_page("tk_1", None, 50)
    """

    def __init__(
        self,
        base_url: str,
        api_key: Optional[str] = None,
        table: str = DEFAULT_TABLE,
        timeout: float = REQUEST_TIMEOUT,
    ):
        self.base_url = base_url.rstrip("/")
        self._api_key = api_key
        self._table = table
        self._timeout = timeout
        self._session: Optional[aiohttp.ClientSession] = None

    @property
    def url(self) -> str:
        return f"{self.base_url}/{self._table}"

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self._api_key:
            headers["apikey"] = self._api_key
            headers["Authorization"] = f"Bearer {self._api_key}"
        return headers

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            timeout = aiohttp.ClientTimeout(total=self._timeout)
            self._session = aiohttp.ClientSession(timeout=timeout)
        return self._session

    async def close(self) -> None:
        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None

    async def __aenter__(self) -> "RestSpanSource":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    async def fetch_span_page(
        self, trace_key: str, cursor: Optional[int], page_size: int
    ) -> SpanPage:
        params = {
            "select": ",".join(SPAN_COLUMNS),
            "trace_key": f"eq.{trace_key}",
            "order": "start_time_ns.asc",
            "limit": str(page_size),
        }
        if cursor is not None:
            params["start_time_ns"] = f"gt.{cursor}"

        debug(f"GET {self.url} trace={trace_key} cursor={cursor} limit={page_size}")
        try:
            session = await self._get_session()
            async with session.get(
                self.url, params=params, headers=self._headers()
            ) as response:
                response.raise_for_status()
                rows = await response.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise SourceError(
                f"Span page request failed for {trace_key}: {e!r}", trace_key=trace_key
            ) from e
        except ValueError as e:
            raise SourceError(
                f"Span page for {trace_key} is not valid JSON: {e}", trace_key=trace_key
            ) from e

        if not isinstance(rows, list):
            raise SourceError(
                f"Span page for {trace_key} is not a JSON array", trace_key=trace_key
            )
        return build_page(rows, trace_key, cursor, page_size)

    async def fetch_span_count(self, trace_key: str) -> int:
        headers = self._headers()
        headers["Prefer"] = "count=exact"
        try:
            session = await self._get_session()
            async with session.head(
                self.url, params={"trace_key": f"eq.{trace_key}"}, headers=headers
            ) as response:
                response.raise_for_status()
                content_range = response.headers.get("Content-Range")
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise SourceError(
                f"Span count request failed for {trace_key}: {e!r}", trace_key=trace_key
            ) from e

        total = parse_content_range(content_range)
        if total is None:
            raise SourceError(
                f"No usable Content-Range in count response: {content_range!r}",
                trace_key=trace_key,
            )
        return total
