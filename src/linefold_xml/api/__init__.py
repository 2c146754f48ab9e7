"""Public API for line-folded XML documents.

Provides the progressive-disclosure entry points, the Document class that
owns load and save, and the optional lxml integration adapter.
"""

from .adapters import LxmlAdapter
from .document import Document, parse_declaration
from .parser import dumps, load, loads, parse_string, serialize

__all__ = [
    "Document",
    "LxmlAdapter",
    "dumps",
    "load",
    "loads",
    "parse_declaration",
    "parse_string",
    "serialize",
]
