"""Integration adapter for lxml.

Converts node trees to ``lxml.etree`` elements and back. lxml is an optional
dependency (``pip install linefold-xml[lxml]``); the adapter raises
``ImportError`` on use when it is missing.
"""

from typing import Any, Optional, Tuple, Union

from linefold_xml.parsing.parser import ENTITY_REFERENCE
from linefold_xml.shared.errors import UnsupportedConstructError
from linefold_xml.shared.logging import get_logger
from linefold_xml.shared.position import SourcePosition
from linefold_xml.tree.node import Node

from .document import Document

# Characters the line-folded format cannot carry without escaping
_TEXT_RESERVED = ("<",)
_ATTRIBUTE_RESERVED = ("<", ">", '"')


class LxmlAdapter:
    """Bidirectional conversion between nodes and ``lxml.etree`` elements."""

    def __init__(self, correlation_id: Optional[str] = None) -> None:
        self.correlation_id = correlation_id
        self._logger = get_logger(__name__, correlation_id, "lxml_adapter")

    @staticmethod
    def is_available() -> bool:
        """Check if lxml is installed."""
        try:
            import lxml.etree  # noqa: F401
        except ImportError:
            return False
        return True

    @staticmethod
    def _etree() -> Any:
        try:
            import lxml.etree as ET
        except ImportError as e:
            raise ImportError(
                "lxml is required for LxmlAdapter: pip install linefold-xml[lxml]"
            ) from e
        return ET

    def to_lxml(self, source: Union[Node, Document]) -> Any:
        """Convert a node (or a document's root) to an ``lxml.etree`` element."""
        ET = self._etree()
        node = source.root if isinstance(source, Document) else source
        element = self._convert_node(node, ET)
        self._logger.debug("Converted node tree to lxml", extra={"root_tag": node.tag})
        return element

    def from_lxml(self, element: Any) -> Node:
        """Convert an ``lxml.etree`` element (or element tree) to a node.

        Raises:
            UnsupportedConstructError: If the element tree uses comments,
                processing instructions, namespaces, mixed content, or
                characters the line-folded format cannot represent.
        """
        if hasattr(element, "getroot"):
            element = element.getroot()
        node = self._convert_element(element)
        self._logger.debug("Converted lxml tree to nodes", extra={"root_tag": node.tag})
        return node

    def _convert_node(self, node: Node, ET: Any) -> Any:
        element = ET.Element(node.tag)
        for key, value in node.attributes.items():
            element.set(key, value)

        if node.has_children():
            for child in node.iter_children():
                element.append(self._convert_node(child, ET))
        elif node.get_text():
            element.text = node.get_text()

        return element

    def _convert_element(self, element: Any) -> Node:
        position = self._position(element)
        if not isinstance(element.tag, str):
            raise UnsupportedConstructError("comment or processing instruction", position)
        if element.tag.startswith("{") or ":" in element.tag:
            raise UnsupportedConstructError(f"namespaced tag name '{element.tag}'", position)

        node = Node(element.tag)
        for key, value in element.attrib.items():
            if key.startswith("{") or ":" in key:
                raise UnsupportedConstructError(f"namespaced attribute name '{key}'", position)
            self._check_representable(value, _ATTRIBUTE_RESERVED, position)
            node.add_attribute(key, value)

        children = list(element)
        if not children:
            text = element.text or ""
            self._check_representable(text, _TEXT_RESERVED, position)
            node.set_text(text)
            return node

        if (element.text or "").strip():
            raise UnsupportedConstructError(
                f"mixed text and element content in <{element.tag}>", position
            )
        for child in children:
            node.add_child(self._convert_element(child))
            if (child.tail or "").strip():
                raise UnsupportedConstructError(
                    f"mixed text and element content in <{element.tag}>",
                    self._position(child),
                )
        return node

    @staticmethod
    def _check_representable(
        value: str,
        reserved: Tuple[str, ...],
        position: Optional[SourcePosition]
    ) -> None:
        for char in reserved:
            if char in value:
                raise UnsupportedConstructError(
                    f"character {char!r} requires escaping", position
                )
        if ENTITY_REFERENCE.search(value):
            raise UnsupportedConstructError("text that reads as an entity reference", position)
        if "\n" in value or "\r" in value:
            raise UnsupportedConstructError("line break inside a value", position)

    @staticmethod
    def _position(element: Any) -> Optional[SourcePosition]:
        line = getattr(element, "sourceline", None)
        if line:
            return SourcePosition(line=line, column=1, offset=0)
        return None
