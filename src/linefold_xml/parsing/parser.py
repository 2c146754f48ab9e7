"""Recursive-descent tag parser.

Consumes folded text (see :mod:`linefold_xml.character.folding`) and builds a
:class:`~linefold_xml.tree.node.Node` tree. Each element is read as:

1. the tag header between ``<`` and the next ``>``, split at the first space
   into tag name and attribute text;
2. attributes of the form `` name="value"``;
3. either leaf text up to the next ``<``, or child elements parsed
   recursively until the matching ``</tagName>``.

Syntax outside the supported subset (comments, CDATA, processing
instructions, self-closing tags, namespaces, entity references, mixed
content) raises ``UnsupportedConstructError`` instead of being guessed at.
"""

import re
from typing import Optional

from linefold_xml.character.folding import FoldedText
from linefold_xml.shared.config import ParsingConfig
from linefold_xml.shared.errors import (
    DuplicateAttributeError,
    MalformedInputError,
    UnsupportedConstructError,
)
from linefold_xml.shared.logging import get_logger
from linefold_xml.tree.node import Node

from .cursor import Cursor

# Named or numeric character reference; a bare "&" is plain text
ENTITY_REFERENCE = re.compile(r"&(#[0-9]+|#x[0-9A-Fa-f]+|[A-Za-z_][\w.-]*);")

# Characters that can never appear in a tag or attribute name
_INVALID_NAME_CHARS = frozenset('<>"=/&\t ')

# Markup that may follow "<" but is not an element
_UNSUPPORTED_MARKUP = (
    ("!--", "comment"),
    ("![CDATA[", "CDATA section"),
    ("!", "markup declaration"),
    ("?", "processing instruction"),
)


class TagParser:
    """Builds a node tree from folded text."""

    def __init__(
        self,
        config: Optional[ParsingConfig] = None,
        correlation_id: Optional[str] = None
    ) -> None:
        self.config = config or ParsingConfig()
        self._logger = get_logger(__name__, correlation_id, "tag_parser")
        self._element_count = 0

    def parse(self, folded: FoldedText) -> Node:
        """Parse exactly one root element from ``folded``.

        Raises:
            MalformedInputError: If the text violates the tag grammar or
                carries content after the root element.
        """
        self._element_count = 0
        cursor = Cursor(folded)

        if cursor.at_end():
            raise cursor.error("Document has no root element")

        root = self.parse_element(cursor)

        trailing = cursor.remaining
        if trailing and not (
            self.config.allow_trailing_whitespace and not trailing.strip()
        ):
            raise cursor.error("Unexpected content after root element")

        self._logger.debug(
            "Parsed element tree",
            extra={"root_tag": root.tag, "element_count": self._element_count}
        )
        return root

    @property
    def element_count(self) -> int:
        """Number of elements built by the last :meth:`parse` call."""
        return self._element_count

    def parse_element(self, cursor: Cursor, depth: int = 0) -> Node:
        """Parse one element starting at ``cursor`` and advance past it."""
        start = cursor.offset
        if depth >= self.config.max_depth:
            raise cursor.error(
                f"Maximum nesting depth of {self.config.max_depth} exceeded"
            )

        cursor.expect("<", "at start of element")
        self._reject_non_element_markup(cursor, start)

        node = Node()
        header_start = cursor.offset
        header = self._read_tag_header(cursor)

        space = header.find(" ")
        if space == -1:
            tag, attribute_text = header, ""
        else:
            tag, attribute_text = header[:space], header[space:]

        self._check_name(cursor, tag, header_start, "tag")
        node.set_tag(tag)
        if attribute_text:
            self._parse_attributes(cursor, node, attribute_text, header_start + space)

        self._element_count += 1

        if cursor.at_end():
            raise cursor.error(f"Unexpected end of input inside <{tag}>")

        closing_tag = f"</{tag}>"
        if cursor.peek() != "<":
            self._parse_text(cursor, node, start)
            if not cursor.startswith(closing_tag):
                if cursor.startswith("</"):
                    raise self._mismatched_closing_tag(cursor, tag)
                raise UnsupportedConstructError(
                    f"mixed text and element content in <{tag}>", cursor.position()
                )
        else:
            with node.edit_children() as children:
                while not cursor.startswith(closing_tag):
                    if cursor.at_end():
                        raise cursor.error(f"Element <{tag}> is never closed", start)
                    if cursor.peek() != "<":
                        raise UnsupportedConstructError(
                            f"mixed text and element content in <{tag}>",
                            cursor.position(),
                        )
                    if cursor.startswith("</"):
                        raise self._mismatched_closing_tag(cursor, tag)

                    child = self.parse_element(cursor, depth + 1)
                    children.setdefault(child.tag, []).append(child)

        cursor.advance(len(closing_tag))
        return node

    def _reject_non_element_markup(self, cursor: Cursor, start: int) -> None:
        for prefix, construct in _UNSUPPORTED_MARKUP:
            if cursor.startswith(prefix):
                raise UnsupportedConstructError(construct, cursor.position(start))
        if cursor.startswith("/"):
            name = cursor.remaining[1:].split(">", 1)[0]
            raise cursor.error(f"Unexpected closing tag </{name}>", start)

    def _read_tag_header(self, cursor: Cursor) -> str:
        header_start = cursor.offset
        header = cursor.read_until(">", "to close tag header")

        stray = header.find("<")
        if stray != -1:
            raise cursor.error("Missing '>' before next tag", header_start + stray)
        if header.endswith("/"):
            raise UnsupportedConstructError(
                "self-closing tag", cursor.position(header_start - 1)
            )

        cursor.advance(1)
        return header

    def _check_name(self, cursor: Cursor, name: str, offset: int, kind: str) -> None:
        if not name:
            raise cursor.error(f"Empty {kind} name", offset)
        for index, char in enumerate(name):
            if char in _INVALID_NAME_CHARS:
                raise cursor.error(f"Invalid character {char!r} in {kind} name", offset + index)
        if ":" in name or name == "xmlns":
            raise UnsupportedConstructError(f"namespaced {kind} name '{name}'", cursor.position(offset))

    def _parse_attributes(
        self,
        cursor: Cursor,
        node: Node,
        text: str,
        base: int
    ) -> None:
        """Parse `` name="value"`` pairs; ``base`` is the folded offset of ``text``."""
        index = 0
        while text.find("=", index) != -1:
            if text[index] != " ":
                raise cursor.error("Expected space before attribute", base + index)
            index += 1

            equals = text.index("=", index)
            name = text[index:equals]
            self._check_name(cursor, name, base + index, "attribute")

            if not text.startswith('"', equals + 1):
                raise cursor.error(
                    f"Value of attribute '{name}' must be double-quoted", base + equals + 1
                )
            value_start = equals + 2
            value_end = text.find('"', value_start)
            if value_end == -1:
                raise cursor.error(
                    f"Unterminated value for attribute '{name}'", base + value_start
                )

            value = text[value_start:value_end]
            entity = ENTITY_REFERENCE.search(value)
            if entity is not None:
                raise UnsupportedConstructError(
                    "entity reference", cursor.position(base + value_start + entity.start())
                )

            try:
                node.add_attribute(name, value)
            except DuplicateAttributeError as e:
                raise MalformedInputError(
                    f"Duplicate attribute '{name}' on <{node.tag}>",
                    cursor.position(base + index),
                ) from e
            index = value_end + 1

        leftover = text[index:]
        if leftover.strip():
            offset = base + index + (len(leftover) - len(leftover.lstrip()))
            raise cursor.error("Attribute without value", offset)

    def _parse_text(self, cursor: Cursor, node: Node, start: int) -> None:
        text_start = cursor.offset
        if cursor.find("<") == -1:
            raise cursor.error(f"Element <{node.tag}> is never closed", start)
        text = cursor.read_until("<", f"after text of <{node.tag}>")

        entity = ENTITY_REFERENCE.search(text)
        if entity is not None:
            raise UnsupportedConstructError(
                "entity reference", cursor.position(text_start + entity.start())
            )
        node.set_text(text)

    def _mismatched_closing_tag(self, cursor: Cursor, expected: str) -> MalformedInputError:
        found = cursor.remaining[2:].split(">", 1)[0]
        return cursor.error(
            f"Mismatched closing tag: expected </{expected}>, found </{found}>"
        )
