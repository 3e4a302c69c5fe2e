"""Cloudtree: hierarchical point-cloud store with scoped spatial queries.

Quick Start
-----------
>>> import numpy as np
>>> from cloudtree import Dataset, Node, Points, Scope
>>>
>>> root = Node(Points())
>>> cloud = Dataset.from_columns(
...     {"x": [1.0, -1.0], "y": [0.0, 0.0], "z": [0.0, 0.0]}, np.float64
... )
>>> child = root.insert(Points({"3d": cloud}))
>>>
>>> view = root.value.scoped_view(Scope("3d", ["x", "y", "z"], 0))
>>> hits = view.kd.knn(1, [0.9, 0.0, 0.0])
>>> node, pc, row = view.locate(hits[0].cursor)

Classes
-------
Node : Ordered n-ary ownership tree with ancestor change notification.
Points : Node value mapping point-cloud names to datasets; caches scoped views.
Scope : (point-cloud name, coordinate columns, depth) key of a scoped view.
ScopedView : Aggregated nodes/point clouds/selections with a k-d tree.
Dataset, Array : Columnar point clouds over type-tagged numpy buffers.
"""

from importlib.metadata import version as _pkg_version

try:
    __version__ = _pkg_version("cloudtree")
except Exception:  # pragma: no cover - best effort during local development
    __version__ = "0.0.1"

from .core import (
    Array,
    CoordinatePoint,
    CoordinateRange,
    Dataset,
    DisjointCursor,
    DisjointRange,
    ElementType,
    Selection,
)
from .errors import InvariantError, StaleCursorError
from .points import Points, Scope, ScopedView
from .queries import Neighbor, ScopedKdTree
from .tree import EditKind, Node, NodeEvent

__all__ = [
    "__version__",
    "Array",
    "ElementType",
    "Dataset",
    "Selection",
    "CoordinatePoint",
    "CoordinateRange",
    "DisjointCursor",
    "DisjointRange",
    "Node",
    "NodeEvent",
    "EditKind",
    "Points",
    "Scope",
    "ScopedView",
    "ScopedKdTree",
    "Neighbor",
    "InvariantError",
    "StaleCursorError",
]
