"""Scanning cursor over folded text."""

from typing import Optional

from linefold_xml.character.folding import FoldedText
from linefold_xml.shared.errors import MalformedInputError
from linefold_xml.shared.position import SourcePosition


class Cursor:
    """Current scanning position within a :class:`FoldedText`.

    All reads are relative to ``offset``; failures are reported with the
    line and column of the original source.
    """

    def __init__(self, folded: FoldedText, offset: int = 0) -> None:
        self.folded = folded
        self.text = folded.text
        self.offset = offset

    def __repr__(self) -> str:
        return f"Cursor(offset={self.offset}, remaining={self.remaining[:20]!r})"

    @property
    def remaining(self) -> str:
        return self.text[self.offset:]

    def at_end(self) -> bool:
        return self.offset >= len(self.text)

    def peek(self, length: int = 1) -> str:
        """Return the next ``length`` characters without consuming them."""
        return self.text[self.offset:self.offset + length]

    def startswith(self, prefix: str) -> bool:
        return self.text.startswith(prefix, self.offset)

    def find(self, needle: str) -> int:
        """Absolute index of the next ``needle``, or -1."""
        return self.text.find(needle, self.offset)

    def advance(self, count: int) -> None:
        self.offset = min(self.offset + count, len(self.text))

    def expect(self, literal: str, context: str) -> None:
        """Consume ``literal`` or raise ``MalformedInputError``."""
        if not self.startswith(literal):
            found = self.peek(len(literal)) or "end of input"
            raise self.error(f"Expected '{literal}' {context}, found '{found}'")
        self.advance(len(literal))

    def read_until(self, delimiter: str, context: str) -> str:
        """Consume and return everything before the next ``delimiter``.

        The delimiter itself is not consumed.
        """
        index = self.find(delimiter)
        if index == -1:
            raise self.error(f"Expected '{delimiter}' {context}, found end of input")
        value = self.text[self.offset:index]
        self.offset = index
        return value

    def position(self, offset: Optional[int] = None) -> SourcePosition:
        return self.folded.position(self.offset if offset is None else offset)

    def error(self, message: str, offset: Optional[int] = None) -> MalformedInputError:
        """Build a ``MalformedInputError`` located at ``offset`` (default: here)."""
        return MalformedInputError(message, self.position(offset))
