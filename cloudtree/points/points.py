from __future__ import annotations

import weakref
from typing import Any, Dict, Iterator, List, Mapping, Tuple

from cloudtree.core.dataset import Dataset, Selection
from cloudtree.diagnostics import log_operation
from cloudtree.errors import InvariantError
from cloudtree.logging import get_logger
from cloudtree.points.scope import Scope
from cloudtree.points.view import ScopedView, ViewEntry
from cloudtree.tree.node import EditKind, Node, NodeEvent

LOGGER = get_logger("points")


def _match(node: Node[Any], scope: Scope) -> Tuple[Dataset, Selection] | None:
    value = node.value
    if not isinstance(value, Points):
        return None
    pc = value.get(scope.pcname)
    if pc is None or not pc.has_columns(scope.coords):
        return None
    return pc, pc.selection(scope.coords)


def _collect(root: Node[Any], scope: Scope, *, level: int = 1) -> List[ViewEntry]:
    entries: List[ViewEntry] = []
    for _, node in root.walk(scope.depth, level=level):
        matched = _match(node, scope)
        if matched is not None:
            entries.append((node, matched[0], matched[1]))
    return entries


class Points:
    """Node value holding named point clouds and a cache of scoped views.

    Binding to a node (done by :class:`~cloudtree.tree.node.Node` on
    construction) subscribes the cache to structural edits below that node:
    inserts that fall inside a cached scope are appended to its view, and
    removing any aggregated node discards the view so the next
    :meth:`scoped_view` call rebuilds it. Editing point clouds of nodes that
    are already aggregated is not observed; call :meth:`invalidate` afterwards.
    """

    def __init__(self, local_pcs: Mapping[str, Dataset] | None = None) -> None:
        self._local_pcs: Dict[str, Dataset] = dict(local_pcs or {})
        self._node_ref: weakref.ReferenceType[Node[Any]] | None = None
        self._views: Dict[Scope, ScopedView] = {}

    @property
    def node(self) -> Node[Any] | None:
        if self._node_ref is None:
            return None
        return self._node_ref()

    def bind_node(self, node: Node[Any]) -> None:
        current = self.node
        if current is node:
            return
        if current is not None:
            raise InvariantError("Points value is already carried by another node; use copy().")
        self._node_ref = weakref.ref(node)
        self._views.clear()
        node.subscribe(self._on_tree_event)

    def copy(self) -> "Points":
        """Unbound copy with shallow-copied datasets sharing the same arrays."""

        return Points({name: Dataset(dict(pc.items())) for name, pc in self._local_pcs.items()})

    @property
    def local_pcs(self) -> Dict[str, Dataset]:
        return self._local_pcs

    def add(self, name: str, dataset: Dataset) -> None:
        self._local_pcs[name] = dataset

    def get(self, name: str) -> Dataset | None:
        return self._local_pcs.get(name)

    def __getitem__(self, name: str) -> Dataset:
        pc = self._local_pcs.get(name)
        if pc is None:
            raise KeyError(f"Point cloud '{name}' not found. Available: {self.names()}")
        return pc

    def __contains__(self, name: object) -> bool:
        return name in self._local_pcs

    def __iter__(self) -> Iterator[str]:
        return iter(self._local_pcs)

    def __len__(self) -> int:
        return len(self._local_pcs)

    def names(self) -> Tuple[str, ...]:
        return tuple(self._local_pcs)

    def cached_scopes(self) -> Tuple[Scope, ...]:
        return tuple(self._views)

    def scoped_view(self, scope: Scope) -> ScopedView:
        """Return the memoised view for ``scope``, building it on first use.

        Nodes are visited pre-order from the carrying node, limited by
        ``scope.depth``; nodes without the point cloud or any of the
        coordinate columns are skipped.
        """

        view = self._views.get(scope)
        if view is not None and view.is_valid:
            LOGGER.debug("scoped view cache hit %s", scope)
            return view
        node = self.node
        if node is None:
            raise ValueError("Points value is not attached to a tree node.")
        with log_operation(LOGGER, "scoped_view") as op_log:
            view = ScopedView(scope, _collect(node, scope))
            op_log.add_metadata(
                scope=str(scope),
                nodes=len(view),
                points=view.num_points,
            )
        self._views[scope] = view
        return view

    def invalidate(self, scope: Scope | None = None) -> None:
        """Drop one cached view, or all of them when ``scope`` is None."""

        scopes = tuple(self._views) if scope is None else (scope,)
        for key in scopes:
            self._discard(key)

    def _discard(self, scope: Scope) -> None:
        view = self._views.pop(scope, None)
        if view is None:
            return
        view.release()
        LOGGER.debug("discarded scoped view %s", scope)

    def _on_tree_event(self, event: NodeEvent) -> None:
        if not self._views:
            return
        if event.kind is EditKind.INSERTED:
            self._grow(event)
        else:
            for scope, view in tuple(self._views.items()):
                if view.references_subtree(event.node):
                    self._discard(scope)

    def _grow(self, event: NodeEvent) -> None:
        owner = self.node
        level = 2
        current = event.parent
        while current is not None and current is not owner:
            current = current.parent
            level += 1
        if current is None:
            return
        for scope, view in tuple(self._views.items()):
            if not scope.admits_level(level):
                continue
            entries = _collect(event.node, scope, level=level)
            if not entries:
                continue
            if not all(view.accepts(selection) for _, _, selection in entries):
                self._discard(scope)
                continue
            try:
                with log_operation(LOGGER, "scoped_view_grow") as op_log:
                    op_log.add_metadata(scope=str(scope), appended=len(entries))
                    added = view.extend(entries)
                    op_log.add_metadata(points=added, nodes=len(view))
            except (TypeError, ValueError) as exc:
                LOGGER.warning("cannot grow scoped view %s: %s", scope, exc)
                self._discard(scope)

    def __repr__(self) -> str:
        return f"Points({', '.join(self._local_pcs)})"


__all__ = ["Points"]
