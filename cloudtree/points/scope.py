from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Tuple


@dataclass(frozen=True)
class Scope:
    """Which point clouds, how deep, and which columns a scoped view aggregates.

    ``depth`` 0 means unlimited descent, 1 only the starting node, and ``d``
    the starting node plus ``d - 1`` levels of descendants. Equality and hash
    cover all three fields; coordinate order is significant.
    """

    pcname: str
    coords: Tuple[str, ...]
    depth: int = 0

    def __init__(self, pcname: str, coords: Iterable[str], depth: int = 0) -> None:
        coords_tuple = (coords,) if isinstance(coords, str) else tuple(coords)
        if not coords_tuple:
            raise ValueError("Scope requires at least one coordinate column.")
        if int(depth) < 0:
            raise ValueError(f"Scope depth must be non-negative, got {depth}.")
        object.__setattr__(self, "pcname", str(pcname))
        object.__setattr__(self, "coords", tuple(str(name) for name in coords_tuple))
        object.__setattr__(self, "depth", int(depth))

    @property
    def dimension(self) -> int:
        return len(self.coords)

    def admits_level(self, level: int) -> bool:
        """Whether a node at ``level`` (the starting node is level 1) is in scope."""

        return self.depth == 0 or level <= self.depth

    def __str__(self) -> str:
        return f'<Scope "{self.pcname}" L{self.depth} {",".join(self.coords)}>'


__all__ = ["Scope"]
