from __future__ import annotations

import heapq
import math
from typing import Any, List, NamedTuple, Tuple

import numpy as np

from cloudtree import config as ct_config
from cloudtree.core.array import ElementType
from cloudtree.core.coordinates import CoordinateRange
from cloudtree.core.disjoint import DisjointCursor, DisjointRange
from cloudtree.diagnostics import log_operation
from cloudtree.errors import StaleCursorError
from cloudtree.logging import get_logger
from cloudtree.queries._kdtree_numba import DistanceKernel, select_distance_kernel

LOGGER = get_logger("queries.kdtree")

_EMPTY_DIST = np.empty(0, dtype=np.float64)
_EMPTY_IDS = np.empty(0, dtype=np.int64)


class Neighbor(NamedTuple):
    cursor: DisjointCursor
    distance: float


def _merge_best(
    dist_sq: np.ndarray, ids: np.ndarray, k: int | None = None
) -> Tuple[np.ndarray, np.ndarray]:
    """Order candidates by (distance, global index) and keep the first ``k``."""

    order = np.lexsort((ids, dist_sq))
    if k is not None:
        order = order[:k]
    return dist_sq[order], ids[order]


class _StaticKdTree:
    """Immutable k-d tree over a block of points tagged with global indices.

    Points are stored in leaf order so every node covers a contiguous slice.
    """

    __slots__ = ("points", "ids", "start", "end", "left", "right", "lo", "hi")

    def __init__(self, points: np.ndarray, ids: np.ndarray, *, leaf_size: int) -> None:
        count = int(points.shape[0])
        perm = np.arange(count, dtype=np.int64)
        starts: List[int] = []
        ends: List[int] = []
        lefts: List[int] = []
        rights: List[int] = []
        los: List[np.ndarray] = []
        his: List[np.ndarray] = []

        def _new_node(start: int, end: int) -> int:
            members = points[perm[start:end]]
            starts.append(start)
            ends.append(end)
            lefts.append(-1)
            rights.append(-1)
            los.append(members.min(axis=0))
            his.append(members.max(axis=0))
            return len(starts) - 1

        stack = [_new_node(0, count)]
        while stack:
            node = stack.pop()
            start, end = starts[node], ends[node]
            size = end - start
            if size <= leaf_size:
                continue
            spread = his[node] - los[node]
            dim = int(np.argmax(spread))
            if spread[dim] <= 0.0:
                continue
            segment = perm[start:end]
            half = size // 2
            order = np.argpartition(points[segment, dim], half)
            perm[start:end] = segment[order]
            split = start + half
            left = _new_node(start, split)
            right = _new_node(split, end)
            lefts[node] = left
            rights[node] = right
            stack.append(right)
            stack.append(left)

        self.points = np.ascontiguousarray(points[perm])
        self.ids = ids[perm]
        self.start = np.asarray(starts, dtype=np.int64)
        self.end = np.asarray(ends, dtype=np.int64)
        self.left = np.asarray(lefts, dtype=np.int64)
        self.right = np.asarray(rights, dtype=np.int64)
        self.lo = np.asarray(los, dtype=np.float64)
        self.hi = np.asarray(his, dtype=np.float64)

    @property
    def size(self) -> int:
        return int(self.points.shape[0])

    def _box_distance_sq(self, node: int, query: np.ndarray) -> float:
        below = self.lo[node] - query
        above = query - self.hi[node]
        gap = np.maximum(below, 0.0) + np.maximum(above, 0.0)
        return float(np.dot(gap, gap))

    def knn(
        self, query: np.ndarray, k: int, kernel: DistanceKernel
    ) -> Tuple[np.ndarray, np.ndarray]:
        best_d = _EMPTY_DIST
        best_ids = _EMPTY_IDS
        heap: List[Tuple[float, int]] = [(self._box_distance_sq(0, query), 0)]
        while heap:
            bound, node = heapq.heappop(heap)
            if best_d.shape[0] >= k and bound > best_d[-1]:
                break
            left = int(self.left[node])
            if left < 0:
                start, end = int(self.start[node]), int(self.end[node])
                leaf_d = kernel(self.points[start:end], query)
                best_d, best_ids = _merge_best(
                    np.concatenate((best_d, leaf_d)),
                    np.concatenate((best_ids, self.ids[start:end])),
                    k,
                )
                continue
            right = int(self.right[node])
            heapq.heappush(heap, (self._box_distance_sq(left, query), left))
            heapq.heappush(heap, (self._box_distance_sq(right, query), right))
        return best_d, best_ids

    def radius(
        self, query: np.ndarray, radius_sq: float, kernel: DistanceKernel
    ) -> Tuple[np.ndarray, np.ndarray]:
        found_d: List[np.ndarray] = []
        found_ids: List[np.ndarray] = []
        stack = [0]
        while stack:
            node = stack.pop()
            if self._box_distance_sq(node, query) > radius_sq:
                continue
            left = int(self.left[node])
            if left >= 0:
                stack.append(int(self.right[node]))
                stack.append(left)
                continue
            start, end = int(self.start[node]), int(self.end[node])
            leaf_d = kernel(self.points[start:end], query)
            mask = leaf_d <= radius_sq
            if np.any(mask):
                found_d.append(leaf_d[mask])
                found_ids.append(self.ids[start:end][mask])
        if not found_d:
            return _EMPTY_DIST, _EMPTY_IDS
        return np.concatenate(found_d), np.concatenate(found_ids)


class ScopedKdTree:
    """Euclidean k-d index over the coordinate ranges of a disjoint range.

    Query results carry cursors into ``source``; :meth:`major_index` and
    :meth:`minor_index` translate them back to a segment (node) ordinal and the
    row inside that segment's point cloud.

    Growth follows the logarithmic method: segments appended to ``source`` are
    indexed by :meth:`extend` as a new small tree, and trees of comparable
    size are merged, so repeated single-segment appends avoid rebuilding the
    whole index. With ``incremental=False`` every extension rebuilds one tree.
    """

    def __init__(
        self,
        source: DisjointRange[Any],
        *,
        dimension: int | None = None,
        element_type: ElementType | Any | None = None,
        leaf_size: int | None = None,
        incremental: bool | None = None,
    ) -> None:
        runtime = ct_config.runtime_config()
        self._source = source
        self._element_type = ElementType.from_dtype(
            element_type if element_type is not None else runtime.precision
        )
        self._leaf_size = int(leaf_size if leaf_size is not None else runtime.kdtree_leaf_size)
        if self._leaf_size < 1:
            raise ValueError("leaf_size must be positive.")
        self._incremental = runtime.kdtree_incremental if incremental is None else bool(incremental)
        self._kernel = select_distance_kernel(runtime.enable_numba)
        self._dimension = dimension
        self._forest: List[_StaticKdTree] = []
        self._indexed_segments = 0
        self.extend()

    @property
    def source(self) -> DisjointRange[Any]:
        return self._source

    @property
    def element_type(self) -> ElementType:
        return self._element_type

    @property
    def dimension(self) -> int | None:
        return self._dimension

    @property
    def size(self) -> int:
        return sum(tree.size for tree in self._forest)

    def __len__(self) -> int:
        return self.size

    @property
    def num_segments(self) -> int:
        return self._indexed_segments

    @property
    def num_trees(self) -> int:
        return len(self._forest)

    def _segment_block(self, major: int) -> np.ndarray:
        segment = self._source.segment(major)
        if not isinstance(segment, CoordinateRange):
            raise TypeError(
                f"ScopedKdTree indexes CoordinateRange segments, got {type(segment).__name__}."
            )
        selection = segment.selection
        found = selection.element_type
        if found is not self._element_type:
            label = found.value if found is not None else "mixed"
            raise TypeError(
                f"Coordinate columns {selection.names} hold '{label}' elements; "
                f"k-d tree expects '{self._element_type.value}'."
            )
        if self._dimension is None:
            self._dimension = segment.dimension
        elif segment.dimension != self._dimension:
            raise ValueError(
                f"Segment {major} has {segment.dimension} coordinates, expected {self._dimension}."
            )
        return segment.to_numpy(np.float64)

    def extend(self) -> int:
        """Index segments appended to the source since the last call.

        Returns the number of newly indexed points.
        """

        if self._source.released:
            raise StaleCursorError("The indexed disjoint range has been released.")
        total_segments = self._source.num_segments
        if total_segments == self._indexed_segments:
            return 0
        with log_operation(LOGGER, "kdtree_build") as op_log:
            first = self._indexed_segments
            blocks = [self._segment_block(major) for major in range(first, total_segments)]
            start = self._source.segment_offsets[first]
            points = np.concatenate(blocks, axis=0) if blocks else np.empty((0, 0))
            added = int(points.shape[0])
            self._indexed_segments = total_segments
            if added:
                ids = np.arange(start, start + added, dtype=np.int64)
                if self._incremental:
                    self._forest.append(_StaticKdTree(points, ids, leaf_size=self._leaf_size))
                    self._merge_tail()
                else:
                    self._rebuild_with(points, ids)
            op_log.add_metadata(
                segments=total_segments - first,
                points=added,
                total_points=self.size,
                trees=len(self._forest),
                incremental=self._incremental,
            )
        return added

    def _merge_tail(self) -> None:
        while len(self._forest) >= 2 and self._forest[-2].size <= self._forest[-1].size:
            upper = self._forest.pop()
            lower = self._forest.pop()
            self._forest.append(
                _StaticKdTree(
                    np.concatenate((lower.points, upper.points), axis=0),
                    np.concatenate((lower.ids, upper.ids)),
                    leaf_size=self._leaf_size,
                )
            )

    def _rebuild_with(self, points: np.ndarray, ids: np.ndarray) -> None:
        blocks = [tree.points for tree in self._forest] + [points]
        id_blocks = [tree.ids for tree in self._forest] + [ids]
        self._forest = [
            _StaticKdTree(
                np.concatenate(blocks, axis=0),
                np.concatenate(id_blocks),
                leaf_size=self._leaf_size,
            )
        ]

    def _prepare_query(self, query_point: Any) -> np.ndarray:
        if self._source.released:
            raise StaleCursorError("The indexed disjoint range has been released.")
        arr = np.asarray(query_point)
        if arr.dtype.kind not in "biuf":
            raise TypeError(f"Query point must be numeric, got dtype '{arr.dtype}'.")
        arr = arr.astype(np.float64).reshape(-1)
        if self._dimension is not None and arr.shape[0] != self._dimension:
            raise ValueError(
                f"Query point has {arr.shape[0]} coordinates, index expects {self._dimension}."
            )
        return arr

    def _to_neighbors(self, dist_sq: np.ndarray, ids: np.ndarray) -> List[Neighbor]:
        return [
            Neighbor(self._source.cursor(int(index)), math.sqrt(float(value)))
            for value, index in zip(dist_sq, ids)
        ]

    def knn(self, k: int, query_point: Any) -> List[Neighbor]:
        """Up to ``k`` nearest points ordered by ascending distance.

        Equal distances are ordered by ascending global index.
        """

        if k <= 0:
            raise ValueError("k must be positive.")
        query = self._prepare_query(query_point)
        with log_operation(LOGGER, "kdtree_knn") as op_log:
            dist_sq, ids = _EMPTY_DIST, _EMPTY_IDS
            for tree in self._forest:
                tree_d, tree_ids = tree.knn(query, int(k), self._kernel)
                dist_sq, ids = _merge_best(
                    np.concatenate((dist_sq, tree_d)),
                    np.concatenate((ids, tree_ids)),
                    int(k),
                )
            results = self._to_neighbors(dist_sq, ids)
            op_log.add_metadata(k=k, returned=len(results), trees=len(self._forest))
        return results

    def radius(self, r: float, query_point: Any) -> List[Neighbor]:
        """All points within distance ``r`` (inclusive)."""

        if r < 0:
            raise ValueError("radius must be non-negative.")
        query = self._prepare_query(query_point)
        radius_sq = float(r) * float(r)
        with log_operation(LOGGER, "kdtree_radius") as op_log:
            found_d: List[np.ndarray] = []
            found_ids: List[np.ndarray] = []
            for tree in self._forest:
                tree_d, tree_ids = tree.radius(query, radius_sq, self._kernel)
                found_d.append(tree_d)
                found_ids.append(tree_ids)
            if found_d:
                dist_sq, ids = _merge_best(np.concatenate(found_d), np.concatenate(found_ids))
            else:
                dist_sq, ids = _EMPTY_DIST, _EMPTY_IDS
            results = self._to_neighbors(dist_sq, ids)
            op_log.add_metadata(radius=float(r), returned=len(results), trees=len(self._forest))
        return results

    def nearest(self, query_point: Any) -> Neighbor | None:
        results = self.knn(1, query_point)
        return results[0] if results else None

    def major_index(self, cursor: DisjointCursor) -> int:
        return self._source.major_index(cursor)

    def minor_index(self, cursor: DisjointCursor) -> int:
        return self._source.minor_index(cursor)

    def __repr__(self) -> str:
        return (
            f"ScopedKdTree(points={self.size}, segments={self._indexed_segments}, "
            f"trees={len(self._forest)}, dtype={self._element_type.value})"
        )


__all__ = ["Neighbor", "ScopedKdTree"]
