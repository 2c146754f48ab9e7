"""Serialization layer: indented text output and crash-safe file writes."""

from .atomic import write_text_atomic, write_text_in_place
from .serializer import Serializer

__all__ = [
    "Serializer",
    "write_text_atomic",
    "write_text_in_place",
]
