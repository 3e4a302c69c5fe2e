"""Columnar point-cloud model and the views layered on top of it."""

from .array import Array, ElementType
from .coordinates import CoordinatePoint, CoordinateRange
from .dataset import Dataset, Selection
from .disjoint import DisjointCursor, DisjointRange

__all__ = [
    "Array",
    "ElementType",
    "Dataset",
    "Selection",
    "CoordinatePoint",
    "CoordinateRange",
    "DisjointCursor",
    "DisjointRange",
]
