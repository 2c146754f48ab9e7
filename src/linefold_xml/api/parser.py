"""Module-level convenience API for line-folded XML.

Progressive disclosure:
- Level 1: ``load()``, ``loads()``, ``dumps()``, ``parse_string()``
- Level 2: ``Document``, ``TagParser``, ``Serializer`` with a ``LinefoldConfig``
"""

from typing import Optional

from linefold_xml.character.folding import LineFolder
from linefold_xml.parsing.parser import TagParser
from linefold_xml.serialization.serializer import Serializer
from linefold_xml.shared.config import LinefoldConfig
from linefold_xml.shared.logging import get_logger
from linefold_xml.tree.node import Node

from .document import Document, PathType

# Max length for content preview in logs
PREVIEW_LENGTH = 100


def load(path: PathType, config: Optional[LinefoldConfig] = None) -> Document:
    """Load a document from an ``.xml`` file.

    Examples:
        >>> document = load("settings.xml")
        >>> document.root.get_children("entry")[0].get_attribute_value("key")
        'timeout'
    """
    return Document.load(path, config)


def loads(text: str, config: Optional[LinefoldConfig] = None) -> Document:
    """Parse document text (declaration line first) into a Document.

    Examples:
        >>> document = loads('<?xml version="1.0"?>\\n<root>\\n<a>hi</a>\\n</root>\\n')
        >>> document.root.get_children("a")[0].get_text()
        'hi'
        >>> document.encoding
        ''
    """
    config = config or LinefoldConfig()
    logger = get_logger(__name__, config.global_.correlation_id, "loads")
    logger.debug(
        "Starting string load operation",
        extra={
            "content_length": len(text),
            "preview": (
                text[:PREVIEW_LENGTH] + "..." if len(text) > PREVIEW_LENGTH else text
            ),
        }
    )
    return Document.from_string(text, config)


def dumps(document: Document) -> str:
    """Render a document as text, declaration included."""
    return document.to_string()


def parse_string(xml: str, config: Optional[LinefoldConfig] = None) -> Node:
    """Fold and parse element text without a declaration.

    Examples:
        >>> node = parse_string('<a x="1">\\n    <b>hi</b>\\n</a>')
        >>> node.get_attribute_value("x"), node.get_children("b")[0].get_text()
        ('1', 'hi')
    """
    config = config or LinefoldConfig()
    correlation_id = config.global_.correlation_id
    folded = LineFolder(config.folding, correlation_id).fold(xml)
    return TagParser(config.parsing, correlation_id).parse(folded)


def serialize(node: Node, config: Optional[LinefoldConfig] = None) -> str:
    """Render one node and its subtree without a declaration."""
    config = config or LinefoldConfig()
    return Serializer(config.serialization).serialize_node(node)
