from __future__ import annotations

import operator
from bisect import bisect_right
from dataclasses import dataclass, field
from typing import Any, Generic, Iterator, List, Protocol, Sequence, Tuple, TypeVar

from cloudtree.errors import StaleCursorError

T = TypeVar("T")
T_co = TypeVar("T_co", covariant=True)


class Segment(Protocol[T_co]):
    def __len__(self) -> int:
        ...

    def __getitem__(self, index: int) -> T_co:
        ...


@dataclass(frozen=True)
class DisjointCursor:
    """Position in a :class:`DisjointRange`, resolved to (major, minor)."""

    index: int
    major: int
    minor: int
    generation: int
    source: "DisjointRange[Any]" = field(repr=False, compare=False)

    def get(self) -> Any:
        return self.source.segment(self.source.major_index(self))[self.minor]


class DisjointRange(Generic[T]):
    """Independently stored segments presented as one flat random-access sequence.

    Global positions map to ``(major, minor)``: the segment ordinal and the
    offset inside that segment. Lookups start from the most recently located
    segment and its neighbours before falling back to a binary search over
    segment end offsets, so locality-correlated access stays close to O(1).
    Appending never invalidates cursors into earlier segments; :meth:`release`
    invalidates all of them.
    """

    __slots__ = ("_segments", "_starts", "_ends", "_last", "_generation", "_released")

    def __init__(self, segments: Sequence[Segment[T]] = ()) -> None:
        self._segments: List[Segment[T]] = []
        self._starts: List[int] = []
        self._ends: List[int] = []
        self._last = 0
        self._generation = 0
        self._released = False
        for segment in segments:
            self.append(segment)

    def append(self, segment: Segment[T]) -> int:
        """Append ``segment`` and return its major index."""

        if self._released:
            raise StaleCursorError("Cannot append to a released disjoint range.")
        start = self._ends[-1] if self._ends else 0
        self._segments.append(segment)
        self._starts.append(start)
        self._ends.append(start + len(segment))
        return len(self._segments) - 1

    @property
    def segments(self) -> Tuple[Segment[T], ...]:
        return tuple(self._segments)

    @property
    def segment_offsets(self) -> Tuple[int, ...]:
        return tuple(self._starts)

    @property
    def num_segments(self) -> int:
        return len(self._segments)

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def released(self) -> bool:
        return self._released

    def segment(self, major: int) -> Segment[T]:
        return self._segments[major]

    def size(self) -> int:
        return self._ends[-1] if self._ends else 0

    def __len__(self) -> int:
        return self.size()

    def _contains(self, major: int, index: int) -> bool:
        return 0 <= major < len(self._segments) and self._starts[major] <= index < self._ends[major]

    def locate(self, index: int) -> Tuple[int, int]:
        index = operator.index(index)
        size = self.size()
        if index < 0 or index >= size:
            raise IndexError(f"Index {index} out of range for disjoint range of {size} elements.")
        last = self._last
        for major in (last, last + 1, last - 1):
            if self._contains(major, index):
                break
        else:
            major = bisect_right(self._ends, index)
        self._last = major
        return major, index - self._starts[major]

    def cursor(self, index: int) -> DisjointCursor:
        major, minor = self.locate(index)
        return DisjointCursor(
            index=int(index),
            major=major,
            minor=minor,
            generation=self._generation,
            source=self,
        )

    def _check_cursor(self, cursor: DisjointCursor) -> None:
        if cursor.source is not self:
            raise ValueError("Cursor belongs to a different disjoint range.")
        if self._released or cursor.generation != self._generation:
            raise StaleCursorError("Cursor refers to a released disjoint range.")

    def major_index(self, position: int | DisjointCursor) -> int:
        if isinstance(position, DisjointCursor):
            self._check_cursor(position)
            return position.major
        return self.locate(position)[0]

    def minor_index(self, position: int | DisjointCursor) -> int:
        if isinstance(position, DisjointCursor):
            self._check_cursor(position)
            return position.minor
        return self.locate(position)[1]

    def __getitem__(self, index: int) -> T:
        major, minor = self.locate(index)
        return self._segments[major][minor]

    def __iter__(self) -> Iterator[T]:
        for segment in self._segments:
            for minor in range(len(segment)):
                yield segment[minor]

    def release(self) -> None:
        """Drop every segment and invalidate all outstanding cursors."""

        self._segments.clear()
        self._starts.clear()
        self._ends.clear()
        self._last = 0
        self._generation += 1
        self._released = True

    def __repr__(self) -> str:
        return f"DisjointRange(segments={len(self._segments)}, size={self.size()})"


__all__ = ["DisjointCursor", "DisjointRange", "Segment"]
