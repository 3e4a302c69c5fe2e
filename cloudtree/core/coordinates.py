from __future__ import annotations

import operator
from typing import Any, Iterator, Tuple

import numpy as np

from cloudtree.core.dataset import Selection


class CoordinatePoint:
    """One row of a selection seen as a point with ``len(selection)`` dimensions.

    ``index`` may be reassigned to retarget the same object at another row.
    ``point[dim]`` skips validation; :meth:`at` checks both dimension and row.
    """

    __slots__ = ("_selection", "_columns", "index")

    def __init__(self, selection: Selection, index: int = 0) -> None:
        self._selection = selection
        self._columns = tuple(array.data for array in selection)
        self.index = index

    @property
    def selection(self) -> Selection:
        return self._selection

    @property
    def size(self) -> int:
        return len(self._columns)

    def __len__(self) -> int:
        return len(self._columns)

    def __getitem__(self, dim: int) -> Any:
        return self._columns[dim][self.index]

    def at(self, dim: int) -> Any:
        dim = operator.index(dim)
        if dim < 0 or dim >= len(self._columns):
            raise IndexError(f"Dimension {dim} out of range for {len(self._columns)}-D point.")
        column = self._columns[dim]
        row = operator.index(self.index)
        if row < 0 or row >= column.shape[0]:
            raise IndexError(f"Row {row} out of range for selection of {column.shape[0]} points.")
        return column[row].item()

    def __iter__(self) -> Iterator[Any]:
        row = self.index
        for column in self._columns:
            yield column[row]

    def to_tuple(self) -> Tuple[Any, ...]:
        return tuple(self.at(dim) for dim in range(len(self._columns)))

    def to_numpy(self, dtype: Any = np.float64) -> np.ndarray:
        return np.asarray([column[self.index] for column in self._columns], dtype=dtype)

    def __repr__(self) -> str:
        return f"CoordinatePoint(index={self.index}, {self._selection.names})"


class CoordinateRange:
    """Restartable sequence of :class:`CoordinatePoint`, one per selection row."""

    __slots__ = ("_selection",)

    def __init__(self, selection: Selection) -> None:
        self._selection = selection

    @property
    def selection(self) -> Selection:
        return self._selection

    @property
    def dimension(self) -> int:
        return len(self._selection)

    def __len__(self) -> int:
        return self._selection.size_major()

    def __getitem__(self, row: int) -> CoordinatePoint:
        row = operator.index(row)
        size = len(self)
        if row < 0 or row >= size:
            raise IndexError(f"Row {row} out of range for coordinate range of {size} points.")
        return CoordinatePoint(self._selection, row)

    def __iter__(self) -> Iterator[CoordinatePoint]:
        for row in range(len(self)):
            yield CoordinatePoint(self._selection, row)

    def to_numpy(self, dtype: Any = np.float64) -> np.ndarray:
        return self._selection.to_numpy(dtype)

    def __repr__(self) -> str:
        return f"CoordinateRange({self._selection.names}; n={len(self)})"


__all__ = ["CoordinatePoint", "CoordinateRange"]
