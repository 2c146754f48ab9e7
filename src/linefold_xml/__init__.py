"""linefold-xml.

Reads, edits and writes a constrained dialect of XML: a declaration line,
then one element per physical line, attributes and leaf text but no
comments, processing instructions, entities or mixed content. Documents
load into a mutable tree of nodes and save back as indented text.

Progressive API Disclosure:
- Level 1: Simple functions - load(), loads(), dumps(), parse_string()
- Level 2: Document, TagParser and Serializer with a LinefoldConfig
- Level 3: Integration adapters - LxmlAdapter
"""

__version__ = "0.1.0"
__author__ = "linefold-xml developers"

# Progressive API disclosure - Level 1: Simple functions
# Progressive API disclosure - Level 2: Configured components
from .api import Document, LxmlAdapter, dumps, load, loads, parse_string, serialize
from .character.folding import FoldedText, LineFolder, fold
from .parsing.parser import TagParser
from .serialization.serializer import Serializer

# Configuration and errors
from .shared.config import ConfigError, ConfigValidationError, LinefoldConfig
from .shared.errors import (
    DuplicateAttributeError,
    InvalidPathError,
    LinefoldXMLError,
    MalformedInputError,
    MissingAttributeError,
    PreconditionViolationError,
    UnboundDestinationError,
    UnsupportedConstructError,
)
from .shared.position import SourcePosition

# Tree objects
from .tree.node import Leaf, Node, Parent

__all__ = [
    # Version and metadata
    "__author__",
    "__version__",

    # Level 1: Simple functions
    "load",
    "loads",
    "dumps",
    "parse_string",
    "serialize",
    "fold",

    # Level 2: Components
    "Document",
    "TagParser",
    "Serializer",
    "LineFolder",
    "FoldedText",

    # Level 3: Adapters
    "LxmlAdapter",

    # Tree objects
    "Node",
    "Leaf",
    "Parent",
    "SourcePosition",

    # Configuration and errors
    "LinefoldConfig",
    "ConfigError",
    "ConfigValidationError",
    "LinefoldXMLError",
    "MalformedInputError",
    "UnsupportedConstructError",
    "PreconditionViolationError",
    "DuplicateAttributeError",
    "MissingAttributeError",
    "UnboundDestinationError",
    "InvalidPathError",
]
