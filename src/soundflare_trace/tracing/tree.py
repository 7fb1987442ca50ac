"""
Span Tree Builder - Reconstructs the parent/child hierarchy of a trace.

Spans are kept in a flat arena; the hierarchy is a separate adjacency
table of arena indices, so no span ever references another directly.

    arena:    [s0, s1, s2, s3]
    parents:  [None, 0, 0, 2]
    children: [[1, 2], [], [3], []]
    levels:   [0, 1, 1, 2]
"""

from dataclasses import dataclass, field
from typing import Iterable, Optional

from ..models import Span
from ..utils.logger import debug, warn

# Walk states for the cycle guard
_UNVISITED = 0
_ON_PATH = 1
_DONE = 2


@dataclass
class SpanTree:
    """Reconstructed hierarchy for one snapshot of a trace."""

    spans: list[Span] = field(default_factory=list)
    parents: list[Optional[int]] = field(default_factory=list)
    children: list[list[int]] = field(default_factory=list)
    levels: list[int] = field(default_factory=list)
    root_indices: list[int] = field(default_factory=list)
    # Logical span id -> arena index of its first occurrence
    index_by_id: dict[str, int] = field(default_factory=dict)
    orphan_count: int = 0
    cycles_broken: int = 0

    @property
    def roots(self) -> list[Span]:
        return [self.spans[i] for i in self.root_indices]

    @property
    def by_id(self) -> dict[str, Span]:
        return {key: self.spans[i] for key, i in self.index_by_id.items()}

    def index_of(self, span_id: str) -> Optional[int]:
        return self.index_by_id.get(span_id)

    def parent_of(self, index: int) -> Optional[Span]:
        parent = self.parents[index]
        return self.spans[parent] if parent is not None else None

    def children_of(self, index: int) -> list[Span]:
        return [self.spans[i] for i in self.children[index]]

    def level_of(self, span_id: str) -> Optional[int]:
        index = self.index_by_id.get(span_id)
        return self.levels[index] if index is not None else None

    def __len__(self) -> int:
        return len(self.spans)


class TreeBuilder:
    """Builds a SpanTree from a span collection.

    Every input span ends up in exactly one place: as a root or as the
    child of exactly one parent. Spans whose parent is not (yet) in the
    collection are roots for this pass; rebuilding from a later snapshot
    re-parents them.
    """

    def build(self, spans: Iterable[Span]) -> SpanTree:
        arena = list(spans)
        tree = SpanTree(spans=arena)
        count = len(arena)

        self._index(tree)
        tree.parents = self._resolve_parents(tree)
        tree.cycles_broken = self._break_cycles(tree.parents, arena)

        tree.children = [[] for _ in range(count)]
        for index, parent in enumerate(tree.parents):
            if parent is None:
                tree.root_indices.append(index)
            else:
                tree.children[parent].append(index)

        tree.levels = self._compute_levels(tree)
        return tree

    def _index(self, tree: SpanTree) -> None:
        for index, span in enumerate(tree.spans):
            key = span.logical_id
            if key in tree.index_by_id:
                first = tree.spans[tree.index_by_id[key]]
                warn(
                    f"Duplicate span_id {key} (storage ids {first.id}, {span.id}); "
                    "keeping the first as parent target"
                )
                continue
            tree.index_by_id[key] = index

    def _resolve_parents(self, tree: SpanTree) -> list[Optional[int]]:
        parents: list[Optional[int]] = [None] * len(tree.spans)
        for index, span in enumerate(tree.spans):
            parent_id = span.parent_span_id
            if not parent_id:
                continue
            parent = tree.index_by_id.get(parent_id)
            if parent is None:
                tree.orphan_count += 1
                debug(
                    f"Span {span.logical_id} references unknown parent {parent_id}; "
                    "treating as root"
                )
                continue
            parents[index] = parent
        return parents

    def _break_cycles(self, parents: list[Optional[int]], arena: list[Span]) -> int:
        """Root every span that sits on a parent cycle.

        Walks each parent chain iteratively; a chain that reaches a span
        already on the current path has closed a cycle. All spans of the
        cycle lose their parent link, spans hanging off the cycle keep theirs.

        Returns:
            Number of cycles broken.
        """
        state = [_UNVISITED] * len(parents)
        cycles = 0

        for start in range(len(parents)):
            if state[start] != _UNVISITED:
                continue

            path: list[int] = []
            node: Optional[int] = start
            while node is not None and state[node] == _UNVISITED:
                state[node] = _ON_PATH
                path.append(node)
                node = parents[node]

            if node is not None and state[node] == _ON_PATH:
                cycle = path[path.index(node) :]
                for member in cycle:
                    parents[member] = None
                cycles += 1
                chain = " -> ".join(arena[i].logical_id for i in cycle)
                warn(f"Cyclic parent chain {chain}; rooting {len(cycle)} span(s)")

            for member in path:
                state[member] = _DONE

        return cycles

    def _compute_levels(self, tree: SpanTree) -> list[int]:
        levels = [0] * len(tree.spans)
        stack = list(tree.root_indices)
        while stack:
            index = stack.pop()
            for child in tree.children[index]:
                levels[child] = levels[index] + 1
                stack.append(child)
        return levels


def build_tree(spans: Iterable[Span]) -> SpanTree:
    """Build a SpanTree with a default TreeBuilder."""
    return TreeBuilder().build(spans)
