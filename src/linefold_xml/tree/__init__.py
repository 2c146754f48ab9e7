"""Tree data model for line-folded XML documents.

Key Components:
    Node: Element with tag name, attributes, and text or grouped children
    Leaf: Text content variant of a node
    Parent: Children variant of a node, grouped by tag name
"""

from .node import (
    ChildMap,
    Leaf,
    Node,
    Parent,
)

__all__ = [
    "ChildMap",
    "Leaf",
    "Node",
    "Parent",
]
