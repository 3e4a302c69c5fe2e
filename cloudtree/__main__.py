#!/usr/bin/env python
"""Quick-start guide for cloudtree library usage.

Run with: python -m cloudtree

This module intentionally avoids importing cloudtree internals to provide
a fast, clean startup for displaying help text.
"""

from __future__ import annotations

QUICKSTART = """\
================================================================================
                                CLOUDTREE
        Hierarchical point-cloud store with scoped k-d tree queries
================================================================================

BUILDING A TREE
---------------
    import numpy as np
    from cloudtree import Array, Dataset, Node, Points

    root = Node(Points())
    cloud = Dataset({
        "x": Array([1.0, -1.0, 0.0], np.float64),
        "y": Array([0.0, 0.0, 2.0], np.float64),
        "z": Array([0.0, 0.0, 0.0], np.float64),
    })
    left = root.insert(Points({"3d": cloud}))
    right = root.insert(Points({"3d": cloud}))

SCOPED QUERIES
--------------
    from cloudtree import Scope

    scope = Scope("3d", ["x", "y", "z"], 0)   # depth 0 = whole subtree
    view = root.value.scoped_view(scope)       # memoised per scope

    for hit in view.kd.knn(3, [0.0, 0.0, 0.0]):
        node, pc, row = view.locate(hit.cursor)
        print(hit.distance, view.kd.major_index(hit.cursor), row)

    inside = view.kd.radius(1.5, [0.0, 0.0, 0.0])

TREE EDITS
----------
    root.insert(Points({"3d": cloud}))   # cached views grow in place
    orphan = root.remove(0)              # views covering the node are dropped
    root.insert(orphan)                  # re-attached at the end

CONFIGURATION (environment)
---------------------------
    CLOUDTREE_PRECISION           float64 | float32   (k-d tree element type)
    CLOUDTREE_ENABLE_NUMBA        1 to use numba leaf kernels
    CLOUDTREE_ENABLE_DIAGNOSTICS  0 to skip CPU/RSS sampling in op logs
    CLOUDTREE_LOG_LEVEL           INFO, DEBUG, ...
    CLOUDTREE_KDTREE_LEAF_SIZE    points per k-d tree leaf (default 16)
    CLOUDTREE_KDTREE_INCREMENTAL  0 to rebuild the index on every append

API REFERENCE
-------------
    from cloudtree import Node, Points, Scope, ScopedView, ScopedKdTree
    help(Points.scoped_view)

================================================================================
"""


def main() -> None:
    """Print quick-start guide."""
    print(QUICKSTART)


if __name__ == "__main__":
    main()
