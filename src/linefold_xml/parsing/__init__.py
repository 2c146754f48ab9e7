"""Parsing layer: cursor-based recursive-descent parsing of folded text."""

from .cursor import Cursor
from .parser import TagParser

__all__ = [
    "Cursor",
    "TagParser",
]
