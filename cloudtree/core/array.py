from __future__ import annotations

import operator
from enum import Enum
from typing import Any, Sequence, Tuple

import numpy as np


class ElementType(str, Enum):
    """Tag for the numeric element types an :class:`Array` may hold."""

    FLOAT64 = "float64"
    FLOAT32 = "float32"
    INT8 = "int8"
    INT16 = "int16"
    INT32 = "int32"
    INT64 = "int64"
    UINT8 = "uint8"
    UINT16 = "uint16"
    UINT32 = "uint32"
    UINT64 = "uint64"

    @property
    def dtype(self) -> np.dtype:
        return np.dtype(self.value)

    @property
    def is_floating(self) -> bool:
        return self in (ElementType.FLOAT32, ElementType.FLOAT64)

    @classmethod
    def from_dtype(cls, dtype: Any) -> "ElementType":
        """Resolve an ``ElementType`` from a tag, name, or numpy dtype-like."""

        if isinstance(dtype, ElementType):
            return dtype
        try:
            name = np.dtype(dtype).name
        except TypeError as exc:
            raise TypeError(f"Unsupported element type {dtype!r}") from exc
        try:
            return cls(name)
        except ValueError as exc:
            raise TypeError(f"Unsupported element type '{name}'") from exc


class Array:
    """Contiguous, read-only numeric buffer with an erased element type.

    Producer data is copied once into an owned buffer which is then frozen;
    datasets, selections and views share the same instance without copying.
    The first entry of ``shape`` is the major axis, i.e. the point count.
    """

    __slots__ = ("_data", "_element_type")

    def __init__(
        self,
        data: Any,
        element_type: ElementType | str | Any | None = None,
        *,
        shape: Sequence[int] | None = None,
    ) -> None:
        if element_type is None:
            etype = ElementType.from_dtype(np.asarray(data).dtype)
        else:
            etype = ElementType.from_dtype(element_type)
        buffer = np.array(data, dtype=etype.dtype, copy=True, order="C")
        if shape is not None:
            buffer = buffer.reshape(tuple(int(extent) for extent in shape))
        if buffer.ndim == 0:
            raise ValueError("Array requires at least one dimension.")
        buffer.setflags(write=False)
        self._data = buffer
        self._element_type = etype

    @property
    def element_type(self) -> ElementType:
        return self._element_type

    @property
    def dtype(self) -> np.dtype:
        return self._data.dtype

    @property
    def shape(self) -> Tuple[int, ...]:
        return tuple(int(extent) for extent in self._data.shape)

    @property
    def ndim(self) -> int:
        return int(self._data.ndim)

    def size_major(self) -> int:
        return int(self._data.shape[0])

    @property
    def data(self) -> np.ndarray:
        """Read-only view of the underlying buffer."""

        return self._data

    @property
    def nbytes(self) -> int:
        return int(self._data.nbytes)

    def __len__(self) -> int:
        return self.size_major()

    def element(self, index: int | Tuple[int, ...], element_type: ElementType | Any) -> Any:
        """Return one element, asserting the caller's view of the element type.

        ``index`` is a row number for 1-D arrays or a full index tuple for
        higher-dimensional ones. Raises ``TypeError`` when ``element_type`` does
        not match the stored type and ``IndexError`` when out of bounds.
        """

        expected = ElementType.from_dtype(element_type)
        if expected is not self._element_type:
            raise TypeError(
                f"Array holds '{self._element_type.value}' elements, not '{expected.value}'."
            )
        position = index if isinstance(index, tuple) else (index,)
        if len(position) != self._data.ndim:
            raise IndexError(
                f"Expected {self._data.ndim} indices for array of shape {self.shape}, "
                f"got {len(position)}."
            )
        resolved = []
        for axis, (raw, extent) in enumerate(zip(position, self._data.shape)):
            value = operator.index(raw)
            if value < 0 or value >= extent:
                raise IndexError(
                    f"Index {value} out of range for axis {axis} with size {extent}."
                )
            resolved.append(value)
        return self._data[tuple(resolved)].item()

    def __repr__(self) -> str:
        return f"Array({self._element_type.value}, shape={self.shape})"


__all__ = ["Array", "ElementType"]
