"""
Span tree flattening for linear, indentation-aware display.
"""

from ..models import FlatSpan
from .tree import SpanTree


class Flattener:
    """Pre-order, depth-first flattening of a SpanTree.

    Roots and every child list are ordered by (captured_at or start_time_ns);
    ties keep arena order, which is the store's (start_time_ns, id) order.
    A parent always precedes its descendants and sibling subtrees appear in
    chronological order.
    """

    def flatten(self, tree: SpanTree) -> list[FlatSpan]:
        def sort_key(index: int) -> tuple:
            return (tree.spans[index].sort_time, index)

        result: list[FlatSpan] = []
        stack = sorted(tree.root_indices, key=sort_key, reverse=True)

        while stack:
            index = stack.pop()
            parent = tree.parents[index]
            child_indices = tree.children[index]

            result.append(
                FlatSpan(
                    span=tree.spans[index],
                    level=tree.levels[index],
                    parent_span_id=(
                        tree.spans[parent].logical_id if parent is not None else None
                    ),
                    child_count=len(child_indices),
                )
            )

            # Reverse so the earliest child is popped first
            stack.extend(sorted(child_indices, key=sort_key, reverse=True))

        return result


def flatten_tree(tree: SpanTree) -> list[FlatSpan]:
    return Flattener().flatten(tree)
