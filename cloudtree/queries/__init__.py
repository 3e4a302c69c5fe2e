from .kdtree import Neighbor, ScopedKdTree

__all__ = ["Neighbor", "ScopedKdTree"]
