from __future__ import annotations

import weakref
from typing import Any, Iterable, List, Tuple

from cloudtree.core.coordinates import CoordinatePoint, CoordinateRange
from cloudtree.core.dataset import Dataset, Selection
from cloudtree.core.disjoint import DisjointCursor, DisjointRange
from cloudtree.points.scope import Scope
from cloudtree.queries.kdtree import ScopedKdTree
from cloudtree.tree.node import Node

ViewEntry = Tuple[Node[Any], Dataset, Selection]


class ScopedView:
    """Aggregated point clouds of one scope, plus a k-d tree over them.

    ``nodes``, ``pcs`` and ``selections`` are index-aligned: entry ``i`` is the
    ``i``-th segment of the disjoint range indexed by ``kd``, so a query
    result's major index selects the node and its minor index the row in that
    node's point cloud. Entries are only ever appended. Nodes are held weakly;
    a view is meaningful only while they remain attached.
    """

    def __init__(self, scope: Scope, entries: Iterable[ViewEntry] = (), *, element_type: Any = None) -> None:
        self._scope = scope
        self._nodes: List[weakref.ReferenceType[Node[Any]]] = []
        self._pcs: List[Dataset] = []
        self._selections: List[Selection] = []
        self._disjoint: DisjointRange[CoordinatePoint] = DisjointRange()
        self._valid = True
        for node, pc, selection in entries:
            self._append(node, pc, selection)
        self._kd = ScopedKdTree(
            self._disjoint,
            dimension=scope.dimension,
            element_type=element_type,
        )

    @property
    def scope(self) -> Scope:
        return self._scope

    @property
    def nodes(self) -> Tuple[Node[Any] | None, ...]:
        return tuple(ref() for ref in self._nodes)

    @property
    def pcs(self) -> Tuple[Dataset, ...]:
        return tuple(self._pcs)

    @property
    def selections(self) -> Tuple[Selection, ...]:
        return tuple(self._selections)

    @property
    def kd(self) -> ScopedKdTree:
        return self._kd

    @property
    def disjoint(self) -> DisjointRange[CoordinatePoint]:
        return self._disjoint

    @property
    def is_valid(self) -> bool:
        return self._valid

    @property
    def num_points(self) -> int:
        return len(self._disjoint)

    def __len__(self) -> int:
        return len(self._nodes)

    def node(self, major: int) -> Node[Any] | None:
        return self._nodes[major]()

    def locate(self, cursor: DisjointCursor) -> Tuple[Node[Any] | None, Dataset, int]:
        """Map a query cursor to ``(node, point cloud, row)``."""

        major = self._kd.major_index(cursor)
        return self._nodes[major](), self._pcs[major], self._kd.minor_index(cursor)

    def accepts(self, selection: Selection) -> bool:
        return (
            len(selection) == self._kd.dimension
            and selection.element_type is self._kd.element_type
            and all(array.ndim == 1 for array in selection)
        )

    def references_subtree(self, root: Node[Any]) -> bool:
        """True when any aggregated node is ``root``, below it, or gone."""

        for ref in self._nodes:
            node = ref()
            if node is None or node.is_descendant_of(root):
                return True
        return False

    def _append(self, node: Node[Any], pc: Dataset, selection: Selection) -> None:
        self._nodes.append(weakref.ref(node))
        self._pcs.append(pc)
        self._selections.append(selection)
        self._disjoint.append(CoordinateRange(selection))

    def extend(self, entries: Iterable[ViewEntry]) -> int:
        """Append entries at the end and index their points; returns points added."""

        for node, pc, selection in entries:
            self._append(node, pc, selection)
        return self._kd.extend()

    def release(self) -> None:
        """Mark the view stale and invalidate every cursor issued through it."""

        self._valid = False
        self._disjoint.release()

    def __repr__(self) -> str:
        return f"ScopedView({self._scope}, nodes={len(self._nodes)}, points={self.num_points})"


__all__ = ["ScopedView", "ViewEntry"]
