"""
End-to-end: collector DuckDB file -> TraceAPIServer -> JSON turns.

Rows are inserted newest first and one child span sorts ahead of its
parent, so it arrives a page before the parent does.
"""

import json

import duckdb
import pytest

from soundflare_trace.api import TraceAPIServer
from soundflare_trace.models import SPAN_COLUMNS
from soundflare_trace.sources import DuckDBSpanSource

from tests.builders import BASE_TIME_NS, SpanBuilder


def _write_spans(db_path, rows):
    conn = duckdb.connect(str(db_path))
    conn.execute(
        """
        CREATE TABLE soundflare_spans (
            id VARCHAR, span_id VARCHAR, trace_key VARCHAR, name VARCHAR,
            operation_type VARCHAR, start_time_ns BIGINT, end_time_ns BIGINT,
            duration_ms DOUBLE, status VARCHAR, parent_span_id VARCHAR,
            captured_at DOUBLE, attributes JSON, events JSON
        )
        """
    )
    placeholders = ", ".join("?" for _ in SPAN_COLUMNS)
    for row in rows:
        values = [row.get(c) for c in SPAN_COLUMNS]
        values[-2] = json.dumps(row["attributes"])
        values[-1] = json.dumps(row["events"])
        conn.execute(f"INSERT INTO soundflare_spans VALUES ({placeholders})", values)
    conn.close()


def _t(k):
    return BASE_TIME_NS + k * 1_000_000


@pytest.fixture
def conversation_rows():
    """Two exchanges; llm-2 is stamped before its assistant turn and lands a page early."""
    return (
        SpanBuilder(trace_key="tk_call_1")
        .turn("start_agent_activity", span_id="boot", duration_ms=12, start_time_ns=_t(1))
        .turn("user_turn", span_id="user-1", duration_ms=50, start_time_ns=_t(2))
        .add("stt", span_id="stt-1", parent="user-1", duration_ms=40, start_time_ns=_t(3))
        .turn("assistant_turn", span_id="assistant-1", duration_ms=800, start_time_ns=_t(4))
        .add("llm_request", span_id="llm-1", parent="assistant-1", duration_ms=300, start_time_ns=_t(5))
        .add("tts", span_id="tts-1", parent="assistant-1", duration_ms=250, start_time_ns=_t(6))
        .turn("user_turn", span_id="user-2", duration_ms=50, start_time_ns=_t(7))
        .add("llm_request", span_id="llm-2", parent="assistant-2", duration_ms=300, start_time_ns=_t(8))
        .add("stt", span_id="stt-2", parent="user-2", duration_ms=40, start_time_ns=_t(9))
        .turn("assistant_turn", span_id="assistant-2", duration_ms=800, start_time_ns=_t(10))
        .add("tts", span_id="tts-2", parent="assistant-2", duration_ms=250, start_time_ns=_t(11))
        .turn("drain_agent_activity", span_id="drain", duration_ms=3, start_time_ns=_t(12))
        .rows()
    )


@pytest.fixture
def client(tmp_path, conversation_rows):
    db_path = tmp_path / "collector.duckdb"
    _write_spans(db_path, list(reversed(conversation_rows)))
    source = DuckDBSpanSource(db_path)
    server = TraceAPIServer(source, page_size=4)
    yield server.app.test_client()
    server.registry.close_all()
    source.close()


class TestTraceLoading:
    def test_paged_load_converges_on_full_conversation(self, client):
        first = client.post("/api/traces/tk_call_1/load").get_json()["data"]
        assert first["state"] == "partial"
        assert first["spans_loaded"] == 4
        assert first["total_count"] == 12

        final = client.post("/api/traces/tk_call_1/load?pages=all").get_json()["data"]
        assert final["state"] == "complete"
        assert final["spans_loaded"] == 12
        assert final["orphan_count"] == 0

        turns = client.get("/api/traces/tk_call_1/turns").get_json()["data"]
        assert [t["type"] for t in turns] == [
            "session_management",
            "user_turn",
            "assistant_turn",
            "user_turn",
            "assistant_turn",
            "session_management",
        ]
        assert [t["span_count"] for t in turns] == [1, 2, 3, 2, 3, 1]
        assert turns[4]["duration"] == 1350

    def test_early_child_is_reparented_when_its_parent_page_arrives(self, client):
        client.post("/api/traces/tk_call_1/load?pages=2")

        partial = client.get("/api/traces/tk_call_1/status").get_json()["data"]
        spans = client.get("/api/traces/tk_call_1/spans").get_json()["data"]
        assert partial["orphan_count"] == 1
        assert {s["span_id"]: s["level"] for s in spans}["llm-2"] == 0

        client.post("/api/traces/tk_call_1/load?pages=all")

        spans = client.get("/api/traces/tk_call_1/spans").get_json()["data"]
        order = [s["span_id"] for s in spans]
        levels = {s["span_id"]: s["level"] for s in spans}
        assert order.index("assistant-2") < order.index("llm-2") < order.index("tts-2")
        assert levels["llm-2"] == 1
        assert levels["assistant-2"] == 0

    def test_selecting_a_span_reports_its_turn(self, client):
        client.post("/api/traces/tk_call_1/load?pages=all")

        data = client.get("/api/traces/tk_call_1/spans/llm-2").get_json()["data"]

        assert data["turn_id"] == "turn-5-assistant_turn"
        assert data["resolved_parent_span_id"] == "assistant-2"
