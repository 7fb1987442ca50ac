"""
Tests for pure recomputation of the trace view.
"""

from soundflare_trace.models import parse_spans
from soundflare_trace.tracing import SpanStore, TraceView, recompute

from tests.builders import SpanBuilder


class TestRecompute:
    def test_empty_snapshot(self):
        view = recompute([])

        assert view.is_empty is True
        assert view.turns == []
        assert view.to_dict()["span_count"] == 0

    def test_default_view_is_empty(self):
        assert TraceView().is_empty is True

    def test_full_pipeline(self, three_turn_rows):
        view = recompute(parse_spans(three_turn_rows))

        assert view.span_count == 7
        assert len(view.turns) == 3
        assert view.to_dict() == {
            "span_count": 7,
            "root_count": 3,
            "orphan_count": 0,
            "cycles_broken": 0,
            "turn_count": 3,
        }

    def test_recompute_is_deterministic(self, three_turn_rows):
        spans = parse_spans(three_turn_rows)

        first = recompute(spans)
        second = recompute(list(spans))

        assert first.flat_spans == second.flat_spans
        assert [t.id for t in first.turns] == [t.id for t in second.turns]

    def test_recompute_does_not_mutate_input(self, three_turn_rows):
        spans = parse_spans(three_turn_rows)
        before = list(spans)

        recompute(spans)

        assert spans == before

    def test_find_span_by_storage_or_span_id(self, three_turn_rows):
        view = recompute(parse_spans(three_turn_rows))

        assert view.find_span("row-llm").span.span_id == "llm"
        assert view.find_span("llm").span.id == "row-llm"
        assert view.find_span("nope") is None


class TestOrphanReparenting:
    def test_child_page_before_parent_page(self):
        """A child loaded before its parent is a root until the parent arrives."""
        builder = (
            SpanBuilder()
            .turn("assistant_turn", span_id="parent")
            .add("llm_request", span_id="child", parent="parent")
        )
        parent_span, child_span = builder.spans()
        store = SpanStore("tk_test")

        store.ingest([child_span])
        early = recompute(store.snapshot())
        store.ingest([parent_span])
        late = recompute(store.snapshot())

        assert early.tree.orphan_count == 1
        assert early.flat_spans[0].level == 0
        assert early.turns == []

        assert late.tree.orphan_count == 0
        assert [(f.span.span_id, f.level) for f in late.flat_spans] == [
            ("parent", 0),
            ("child", 1),
        ]
        assert late.turns[0].span_count == 2
