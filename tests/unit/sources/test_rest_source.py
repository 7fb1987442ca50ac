"""
Tests for the aiohttp REST span source.
"""

import asyncio
import re

import aiohttp
import pytest

from soundflare_trace.errors import SourceError
from soundflare_trace.sources import AsyncSpanSource, RestSpanSource
from soundflare_trace.sources.rest import parse_content_range

BASE_URL = "https://db.example.com/rest/v1"
SPANS_URL = re.compile(r"^https://db\.example\.com/rest/v1/soundflare_spans(\?.*)?$")


def _sent_query(mock, method="GET"):
    """Query parameters of the single request sent with `method`."""
    urls = [url for (m, url) in mock.requests if m == method]
    assert len(urls) == 1
    return urls[0].query


class TestParseContentRange:
    @pytest.mark.parametrize(
        "value,expected",
        [("0-49/1234", 1234), ("*/0", 0), ("0-9/*", None), (None, None), ("", None)],
    )
    def test_parse(self, value, expected):
        assert parse_content_range(value) == expected


class TestRestSpanSource:
    def test_satisfies_async_protocol(self):
        assert isinstance(RestSpanSource(BASE_URL), AsyncSpanSource)

    @pytest.mark.asyncio
    async def test_first_page(self, mock_aioresponse, three_turn_rows):
        mock_aioresponse.get(SPANS_URL, payload=three_turn_rows[:4])

        async with RestSpanSource(BASE_URL, api_key="secret") as source:
            page = await source.fetch_span_page("tk_test", None, 4)

        assert [s.span_id for s in page.spans] == ["start", "user", "stt", "eou"]
        assert page.next_cursor == three_turn_rows[3]["start_time_ns"]

        query = _sent_query(mock_aioresponse)
        assert query["trace_key"] == "eq.tk_test"
        assert query["order"] == "start_time_ns.asc"
        assert query["limit"] == "4"
        assert "start_time_ns" not in query

    @pytest.mark.asyncio
    async def test_cursor_becomes_gt_filter(self, mock_aioresponse, three_turn_rows):
        mock_aioresponse.get(SPANS_URL, payload=three_turn_rows[4:])

        async with RestSpanSource(BASE_URL) as source:
            page = await source.fetch_span_page("tk_test", 12345, 4)

        assert page.next_cursor is None
        assert _sent_query(mock_aioresponse)["start_time_ns"] == "gt.12345"

    @pytest.mark.asyncio
    async def test_api_key_headers(self, mock_aioresponse):
        mock_aioresponse.get(SPANS_URL, payload=[])

        async with RestSpanSource(BASE_URL, api_key="secret") as source:
            await source.fetch_span_page("tk_test", None, 50)

        (call,) = [c for calls in mock_aioresponse.requests.values() for c in calls]
        headers = call.kwargs["headers"]
        assert headers["apikey"] == "secret"
        assert headers["Authorization"] == "Bearer secret"

    @pytest.mark.asyncio
    async def test_count_from_content_range(self, mock_aioresponse):
        mock_aioresponse.head(SPANS_URL, headers={"Content-Range": "0-0/7"})

        async with RestSpanSource(BASE_URL) as source:
            assert await source.fetch_span_count("tk_test") == 7

    @pytest.mark.asyncio
    async def test_count_without_content_range_raises(self, mock_aioresponse):
        mock_aioresponse.head(SPANS_URL)

        async with RestSpanSource(BASE_URL) as source:
            with pytest.raises(SourceError):
                await source.fetch_span_count("tk_test")

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "mock_kwargs",
        [
            {"status": 503},
            {"exception": aiohttp.ClientConnectionError("refused")},
            {"exception": asyncio.TimeoutError()},
            {"body": "not json"},
            {"payload": {"message": "not a list"}},
        ],
    )
    async def test_failures_raise_source_error(self, mock_aioresponse, mock_kwargs):
        mock_aioresponse.get(SPANS_URL, **mock_kwargs)

        async with RestSpanSource(BASE_URL) as source:
            with pytest.raises(SourceError) as exc_info:
                await source.fetch_span_page("tk_test", None, 50)

        assert exc_info.value.trace_key == "tk_test"

    @pytest.mark.asyncio
    async def test_close_is_idempotent(self):
        source = RestSpanSource(BASE_URL)

        await source.close()
        await source.close()
