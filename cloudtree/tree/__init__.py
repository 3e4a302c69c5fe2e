from .node import EditKind, Node, NodeBound, NodeEvent, Observer

__all__ = ["EditKind", "Node", "NodeBound", "NodeEvent", "Observer"]
