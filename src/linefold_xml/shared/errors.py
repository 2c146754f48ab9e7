"""Exception hierarchy for line-folded XML processing.

Errors are split by who is at fault:

- ``MalformedInputError`` and its subclasses describe untrusted input that
  does not follow the supported grammar. Callers can recover by rejecting the
  input.
- ``PreconditionViolationError`` and its subclasses describe an operation
  invoked against an object in the wrong state, which indicates a caller bug.
- ``UnboundDestinationError`` and ``InvalidPathError`` cover the document
  load/save paths.
"""

from typing import Optional

from .position import SourcePosition


class LinefoldXMLError(Exception):
    """Base exception for all line-folded XML errors."""


class MalformedInputError(LinefoldXMLError):
    """Input text violates the supported tag grammar."""

    def __init__(
        self,
        message: str,
        position: Optional[SourcePosition] = None,
        source: Optional[str] = None
    ) -> None:
        self.reason = message
        self.position = position
        self.source = source
        super().__init__(self._format())

    def _format(self) -> str:
        location = []
        if self.source:
            location.append(self.source)
        if self.position is not None:
            location.append(str(self.position))
        if location:
            return f"{self.reason} ({', '.join(location)})"
        return self.reason

    def with_source(self, source: str) -> "MalformedInputError":
        """Attach the originating path and refresh the message."""
        self.source = source
        self.args = (self._format(),)
        return self


class UnsupportedConstructError(MalformedInputError):
    """Input uses XML syntax outside the supported subset."""

    def __init__(
        self,
        construct: str,
        position: Optional[SourcePosition] = None,
        source: Optional[str] = None
    ) -> None:
        self.construct = construct
        super().__init__(f"Unsupported construct: {construct}", position, source)


class PreconditionViolationError(LinefoldXMLError):
    """Operation invoked against an object in the wrong state."""


class DuplicateAttributeError(PreconditionViolationError):
    """Attribute key already present on the node."""

    def __init__(self, key: str, tag: str = "") -> None:
        self.key = key
        self.tag = tag
        where = f" on <{tag}>" if tag else ""
        super().__init__(f"Duplicate attribute '{key}'{where}")


class MissingAttributeError(PreconditionViolationError):
    """Attribute key not present on the node."""

    def __init__(self, key: str, tag: str = "") -> None:
        self.key = key
        self.tag = tag
        where = f" on <{tag}>" if tag else ""
        super().__init__(f"Attribute '{key}' not found{where}")


class UnboundDestinationError(LinefoldXMLError):
    """``save()`` called before any path was established."""


class InvalidPathError(LinefoldXMLError):
    """Path does not carry the expected file extension."""

    def __init__(self, path: str, extension: str) -> None:
        self.path = path
        self.extension = extension
        super().__init__(f"Not an XML file (expected '{extension}' suffix): {path}")
