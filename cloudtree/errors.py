"""Exception types raised by cloudtree.

Element type mismatches, out-of-range access and unknown names use the
builtin ``TypeError``, ``IndexError`` and ``KeyError`` respectively.
"""

from __future__ import annotations


class InvariantError(ValueError):
    """A structural invariant of a dataset or tree would be violated."""


class StaleCursorError(IndexError):
    """A cursor refers to a disjoint range that has been released."""


__all__ = ["InvariantError", "StaleCursorError"]
