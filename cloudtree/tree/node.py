from __future__ import annotations

import operator
import weakref
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Generic, Iterator, List, Protocol, Tuple, TypeVar

from cloudtree.errors import InvariantError

V = TypeVar("V")


class EditKind(str, Enum):
    INSERTED = "inserted"
    REMOVED = "removed"


@dataclass(frozen=True)
class NodeEvent:
    """Structural edit delivered to the edited node and every ancestor."""

    kind: EditKind
    node: "Node[Any]"
    parent: "Node[Any]"


Observer = Callable[[NodeEvent], None]


class NodeBound(Protocol):
    """Values implementing ``bind_node`` learn which node carries them."""

    def bind_node(self, node: "Node[Any]") -> None:
        ...


class Node(Generic[V]):
    """Ordered n-ary tree node that exclusively owns its children.

    The parent link is a weak reference and never keeps a parent alive. A node
    returned by :meth:`remove` is detached; it (and its subtree) lives only as
    long as the caller keeps it, and may be re-attached anywhere through
    :meth:`insert`. Every ``insert``/``remove`` walks from the edited node up to
    the root, calling each node's observers once with a :class:`NodeEvent`.
    Reordering ``children()`` in place emits nothing.

    ``is_attached`` changes only through ``insert`` and ``remove``. If every
    reference to the root of an attached node is dropped, the node stays
    attached while ``parent`` reports ``None``; such a node may be inserted
    elsewhere.
    """

    __slots__ = ("_value", "_children", "_parent", "_observers", "__weakref__")

    def __init__(self, value: V | None = None) -> None:
        self._children: List[Node[Any]] = []
        self._parent: weakref.ReferenceType[Node[Any]] | None = None
        self._observers: List[Observer] = []
        self._value = value
        bind = getattr(value, "bind_node", None)
        if callable(bind):
            bind(self)

    @property
    def value(self) -> V | None:
        return self._value

    @property
    def parent(self) -> "Node[Any] | None":
        if self._parent is None:
            return None
        return self._parent()

    @property
    def is_attached(self) -> bool:
        return self._parent is not None

    def children(self) -> List["Node[Any]"]:
        """The owned child list; callers may reorder it in place."""

        return self._children

    def child_values(self) -> Iterator[Any]:
        return (child._value for child in self._children)

    def __len__(self) -> int:
        return len(self._children)

    def __iter__(self) -> Iterator["Node[Any]"]:
        return iter(self._children)

    def index_of(self, child: "Node[Any]") -> int:
        for position, candidate in enumerate(self._children):
            if candidate is child:
                return position
        raise ValueError("Node is not a child of this node.")

    def root(self) -> "Node[Any]":
        current: Node[Any] = self
        parent = current.parent
        while parent is not None:
            current = parent
            parent = current.parent
        return current

    def depth(self) -> int:
        """Number of ancestors; a root has depth 0."""

        depth = 0
        parent = self.parent
        while parent is not None:
            depth += 1
            parent = parent.parent
        return depth

    def is_descendant_of(self, ancestor: "Node[Any]") -> bool:
        """True when ``ancestor`` is this node or one of its ancestors."""

        current: Node[Any] | None = self
        while current is not None:
            if current is ancestor:
                return True
            current = current.parent
        return False

    def walk(self, depth: int = 0, *, level: int = 1) -> Iterator[Tuple[int, "Node[Any]"]]:
        """Pre-order ``(level, node)`` pairs, children in sibling order.

        This node is at ``level``; with ``depth > 0`` nodes deeper than
        ``depth`` are neither yielded nor descended into.
        """

        if depth < 0:
            raise ValueError("depth must be non-negative.")
        if depth and level > depth:
            return
        stack: List[Tuple[int, Node[Any]]] = [(level, self)]
        while stack:
            current_level, node = stack.pop()
            yield current_level, node
            if depth and current_level >= depth:
                continue
            for child in reversed(node._children):
                stack.append((current_level + 1, child))

    def subscribe(self, observer: Observer) -> None:
        self._observers.append(observer)

    def unsubscribe(self, observer: Observer) -> None:
        try:
            self._observers.remove(observer)
        except ValueError:
            raise ValueError("Observer is not registered on this node.") from None

    def insert(self, item: Any) -> "Node[Any]":
        """Append a child and return it.

        ``item`` is either a detached :class:`Node` (ownership is transferred)
        or an application value, which is wrapped in a new node.
        """

        if isinstance(item, Node):
            child = item
            if child.parent is not None:
                raise InvariantError("Node is still attached; remove it from its parent first.")
            if self.is_descendant_of(child):
                raise InvariantError("Inserting a node under its own subtree would create a cycle.")
        else:
            child = Node(item)
        child._parent = weakref.ref(self)
        self._children.append(child)
        self._notify(NodeEvent(EditKind.INSERTED, child, self))
        return child

    def remove(self, position: int) -> "Node[Any]":
        """Detach the child at ``position`` and hand its subtree to the caller."""

        position = operator.index(position)
        if position < 0 or position >= len(self._children):
            raise IndexError(
                f"Child position {position} out of range for node with {len(self._children)} children."
            )
        child = self._children.pop(position)
        child._parent = None
        self._notify(NodeEvent(EditKind.REMOVED, child, self))
        return child

    def _notify(self, event: NodeEvent) -> None:
        current: Node[Any] | None = self
        while current is not None:
            for observer in tuple(current._observers):
                observer(event)
            current = current.parent

    def __repr__(self) -> str:
        return f"Node(value={self._value!r}, children={len(self._children)})"


__all__ = ["EditKind", "Node", "NodeBound", "NodeEvent", "Observer"]
