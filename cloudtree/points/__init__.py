"""Per-node point clouds and scoped aggregation across subtrees."""

from .points import Points
from .scope import Scope
from .view import ScopedView

__all__ = ["Points", "Scope", "ScopedView"]
