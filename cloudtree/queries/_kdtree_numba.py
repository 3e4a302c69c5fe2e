from __future__ import annotations

from typing import Callable

import numpy as np

try:  # pragma: no cover - optional dependency
    from numba import njit  # type: ignore

    NUMBA_KDTREE_AVAILABLE = True
except Exception:  # pragma: no cover - when numba unavailable
    njit = None  # type: ignore
    NUMBA_KDTREE_AVAILABLE = False

DistanceKernel = Callable[[np.ndarray, np.ndarray], np.ndarray]


def squared_distances_numpy(points: np.ndarray, query: np.ndarray) -> np.ndarray:
    """Squared Euclidean distance from ``query`` to every row of ``points``."""

    diff = points - query[None, :]
    return np.einsum("ij,ij->i", diff, diff)


if NUMBA_KDTREE_AVAILABLE:

    @njit(cache=True)
    def _squared_distances_numba(points: np.ndarray, query: np.ndarray) -> np.ndarray:
        count = points.shape[0]
        out = np.empty(count, dtype=np.float64)
        for row in range(count):
            total = 0.0
            for dim in range(query.shape[0]):
                diff = points[row, dim] - query[dim]
                total += diff * diff
            out[row] = total
        return out

    def squared_distances_numba(points: np.ndarray, query: np.ndarray) -> np.ndarray:
        return _squared_distances_numba(
            np.ascontiguousarray(points, dtype=np.float64),
            np.ascontiguousarray(query, dtype=np.float64),
        )

else:  # pragma: no cover - exercised when numba is absent
    squared_distances_numba = None  # type: ignore


def select_distance_kernel(enable_numba: bool) -> DistanceKernel:
    if enable_numba and NUMBA_KDTREE_AVAILABLE:
        return squared_distances_numba  # type: ignore[return-value]
    return squared_distances_numpy


__all__ = [
    "DistanceKernel",
    "NUMBA_KDTREE_AVAILABLE",
    "select_distance_kernel",
    "squared_distances_numba",
    "squared_distances_numpy",
]
