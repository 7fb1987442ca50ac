"""
Trace view - pure recomputation of all derived structures.

recompute() runs TreeBuilder -> Flattener -> TurnSegmenter over a span
snapshot. It performs no I/O and never mutates its input, so callers may
re-run it after every page.
"""

from dataclasses import dataclass, field
from typing import Iterable, Optional

from ..models import ConversationTurn, FlatSpan, Span
from .flatten import Flattener
from .tree import SpanTree, TreeBuilder
from .turns import TurnSegmenter


@dataclass
class TraceView:
    """Derived view of a trace snapshot."""

    tree: SpanTree = field(default_factory=SpanTree)
    flat_spans: list[FlatSpan] = field(default_factory=list)
    turns: list[ConversationTurn] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.flat_spans

    @property
    def span_count(self) -> int:
        return len(self.flat_spans)

    def find_span(self, span_id: str) -> Optional[FlatSpan]:
        """Look a span up by storage id or logical span id."""
        for flat in self.flat_spans:
            if flat.span.id == span_id or flat.span.logical_id == span_id:
                return flat
        return None

    def to_dict(self) -> dict:
        return {
            "span_count": self.span_count,
            "root_count": len(self.tree.root_indices),
            "orphan_count": self.tree.orphan_count,
            "cycles_broken": self.tree.cycles_broken,
            "turn_count": len(self.turns),
        }


def recompute(spans: Iterable[Span]) -> TraceView:
    """Rebuild tree, flat order and turns from scratch."""
    tree = TreeBuilder().build(spans)
    flat_spans = Flattener().flatten(tree)
    turns = TurnSegmenter().segment(flat_spans)
    return TraceView(tree=tree, flat_spans=flat_spans, turns=turns)
