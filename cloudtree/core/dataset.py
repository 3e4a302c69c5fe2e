from __future__ import annotations

from typing import Any, Dict, Iterable, Iterator, Mapping, Sequence, Tuple

import numpy as np

from cloudtree.core.array import Array, ElementType
from cloudtree.errors import InvariantError


class Selection:
    """Ordered subset of a dataset's arrays chosen by name.

    Column order is the caller's order and defines the dimension order of any
    coordinate view built on top of the selection.
    """

    __slots__ = ("_names", "_arrays")

    def __init__(self, names: Sequence[str], arrays: Sequence[Array]) -> None:
        if len(names) != len(arrays):
            raise ValueError("Selection names must align with selected arrays.")
        self._names: Tuple[str, ...] = tuple(names)
        self._arrays: Tuple[Array, ...] = tuple(arrays)

    @property
    def names(self) -> Tuple[str, ...]:
        return self._names

    @property
    def arrays(self) -> Tuple[Array, ...]:
        return self._arrays

    def size_major(self) -> int:
        if not self._arrays:
            return 0
        return self._arrays[0].size_major()

    @property
    def element_type(self) -> ElementType | None:
        """Common element type of the selected arrays, or ``None`` when mixed."""

        types = {array.element_type for array in self._arrays}
        if len(types) != 1:
            return None
        return next(iter(types))

    def __len__(self) -> int:
        return len(self._arrays)

    def __getitem__(self, position: int) -> Array:
        return self._arrays[position]

    def __iter__(self) -> Iterator[Array]:
        return iter(self._arrays)

    def to_numpy(self, dtype: Any = np.float64) -> np.ndarray:
        """Stack the selected columns into an ``(size_major, len(self))`` matrix."""

        if not self._arrays:
            return np.empty((0, 0), dtype=dtype)
        for name, array in zip(self._names, self._arrays):
            if array.ndim != 1:
                raise ValueError(
                    f"Coordinate column '{name}' must be 1-D, got shape {array.shape}."
                )
        return np.column_stack([array.data for array in self._arrays]).astype(dtype, copy=False)

    def __repr__(self) -> str:
        return f"Selection({', '.join(self._names)}; n={self.size_major()})"


class Dataset:
    """A named point cloud: equally long arrays keyed by unique names.

    Every member array shares the same major-axis size, which is the number of
    points in the cloud. Adding an array of any other size raises
    :class:`~cloudtree.errors.InvariantError`.
    """

    def __init__(self, arrays: Mapping[str, Array] | None = None) -> None:
        self._arrays: Dict[str, Array] = {}
        self._size_major = 0
        if arrays:
            for name, array in arrays.items():
                self.add(name, array)

    @classmethod
    def from_columns(
        cls,
        columns: Mapping[str, Any],
        element_type: ElementType | Any | None = None,
    ) -> "Dataset":
        """Build a dataset from raw column data, wrapping each as an :class:`Array`."""

        return cls({name: Array(values, element_type) for name, values in columns.items()})

    def add(self, name: str, array: Array) -> None:
        """Add or replace the array called ``name``.

        Replacing the only array may change the point count; otherwise the
        array must match the dataset's major-axis size.
        """

        if not isinstance(array, Array):
            raise TypeError(f"Dataset members must be Array instances, got {type(array).__name__}.")
        sole = len(self._arrays) == 1 and name in self._arrays
        if self._arrays and not sole and array.size_major() != self._size_major:
            raise InvariantError(
                f"Array '{name}' has major-axis size {array.size_major()}, "
                f"dataset expects {self._size_major}."
            )
        if not self._arrays or sole:
            self._size_major = array.size_major()
        self._arrays[name] = array

    def remove(self, name: str) -> Array:
        try:
            array = self._arrays.pop(name)
        except KeyError:
            raise KeyError(f"Array '{name}' not found. Available: {self.names()}") from None
        if not self._arrays:
            self._size_major = 0
        return array

    def get(self, name: str) -> Array | None:
        return self._arrays.get(name)

    def __getitem__(self, name: str) -> Array:
        array = self._arrays.get(name)
        if array is None:
            raise KeyError(f"Array '{name}' not found. Available: {self.names()}")
        return array

    def __contains__(self, name: object) -> bool:
        return name in self._arrays

    def __iter__(self) -> Iterator[str]:
        return iter(self._arrays)

    def __len__(self) -> int:
        return len(self._arrays)

    def names(self) -> Tuple[str, ...]:
        return tuple(self._arrays)

    def items(self) -> Iterable[Tuple[str, Array]]:
        return self._arrays.items()

    def has_columns(self, names: Iterable[str]) -> bool:
        return all(name in self._arrays for name in names)

    def selection(self, names: Sequence[str]) -> Selection:
        """Return the arrays called ``names`` in the requested order."""

        arrays = [self[name] for name in names]
        return Selection(names, arrays)

    def size_major(self) -> int:
        return self._size_major

    def __repr__(self) -> str:
        return f"Dataset({self._size_major} points, arrays=[{', '.join(self._arrays)}])"


__all__ = ["Dataset", "Selection"]
