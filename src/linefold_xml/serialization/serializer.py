"""Indented serializer for node trees.

Output layout, one element per line::

    <?xml version="1.0" encoding="utf-8"?>

    <root>
        <item id="1">text</item>
    </root>

Children are written group by group in the order of the children map, so
siblings with different tag names come out grouped.
"""

import io
from typing import TYPE_CHECKING, Optional, TextIO

from linefold_xml.shared.config import SerializationConfig
from linefold_xml.tree.node import Node

if TYPE_CHECKING:
    from linefold_xml.api.document import Document


class Serializer:
    """Renders nodes and documents as indented text."""

    def __init__(self, config: Optional[SerializationConfig] = None) -> None:
        self.config = config or SerializationConfig()

    def declaration(self, version: str, encoding: str) -> str:
        """The XML declaration line, without a line break."""
        if encoding:
            return f'<?xml version="{version}" encoding="{encoding}"?>'
        return f'<?xml version="{version}"?>'

    def serialize_node(self, node: Node, depth: int = 0) -> str:
        buffer = io.StringIO()
        self.write_node(node, buffer, depth)
        return buffer.getvalue()

    def write_node(self, node: Node, out: TextIO, depth: int = 0) -> None:
        """Write ``node`` and its subtree indented ``depth`` levels."""
        newline = self.config.newline
        indent = " " * (self.config.indent_width * depth)

        out.write(indent)
        out.write(f"<{node.tag}")
        for key, value in node.attributes.items():
            out.write(f' {key}="{value}"')
        out.write(">")

        if node.has_children():
            out.write(newline)
            for child in node.iter_children():
                self.write_node(child, out, depth + 1)
            out.write(f"{indent}</{node.tag}>{newline}")
        else:
            out.write(f"{node.get_text()}</{node.tag}>{newline}")

    def serialize_document(self, document: "Document") -> str:
        buffer = io.StringIO()
        self.write_document(document, buffer)
        return buffer.getvalue()

    def write_document(self, document: "Document", out: TextIO) -> None:
        """Write the declaration, a blank line, then the root element."""
        newline = self.config.newline
        out.write(self.declaration(document.version, document.encoding))
        out.write(newline)
        out.write(newline)
        self.write_node(document.root, out)
