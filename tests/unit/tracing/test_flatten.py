"""
Tests for pre-order flattening of span trees.
"""

from soundflare_trace.models import Span
from soundflare_trace.tracing import build_tree, flatten_tree

from tests.builders import SpanBuilder


def _ids(flat_spans):
    return [f.span.logical_id for f in flat_spans]


class TestFlattener:
    def test_empty_tree(self):
        assert flatten_tree(build_tree([])) == []

    def test_parent_precedes_descendants(self):
        spans = (
            SpanBuilder()
            .add("root", span_id="r")
            .add("a", span_id="a", parent="r")
            .add("a1", span_id="a1", parent="a")
            .add("b", span_id="b", parent="r")
            .spans()
        )

        flat = flatten_tree(build_tree(spans))

        assert _ids(flat) == ["r", "a", "a1", "b"]
        assert [f.level for f in flat] == [0, 1, 2, 1]

    def test_siblings_are_chronological_regardless_of_arena_order(self):
        late = Span("row-late", span_id="late", parent_span_id="r", start_time_ns=30)
        early = Span("row-early", span_id="early", parent_span_id="r", start_time_ns=20)
        root = Span("row-r", span_id="r", start_time_ns=10)

        flat = flatten_tree(build_tree([late, root, early]))

        assert _ids(flat) == ["r", "early", "late"]

    def test_captured_at_orders_before_start_time(self):
        a = Span("a", start_time_ns=1, captured_at=200.0)
        b = Span("b", start_time_ns=2, captured_at=100.0)

        assert _ids(flatten_tree(build_tree([a, b]))) == ["b", "a"]

    def test_flat_span_annotations(self):
        spans = SpanBuilder().add("root", span_id="r").add("kid", span_id="k", parent="r").spans()

        root, kid = flatten_tree(build_tree(spans))

        assert root.parent_span_id is None
        assert root.child_count == 1
        assert root.has_children is True
        assert kid.parent_span_id == "r"
        assert kid.child_count == 0

    def test_output_covers_every_span_once(self):
        spans = (
            SpanBuilder()
            .add("a", span_id="a")
            .add("b", span_id="b", parent="a")
            .add("orphan", span_id="o", parent="gone")
            .add("c", span_id="c", parent="b")
            .spans()
        )

        flat = flatten_tree(build_tree(spans))

        assert sorted(_ids(flat)) == ["a", "b", "c", "o"]
