"""Document orchestration: load, save and declaration metadata.

A :class:`Document` owns the root node plus the ``version`` and ``encoding``
of its XML declaration. Loading reads the declaration from the first line,
then folds and parses the rest of the file in one pass; saving renders the
whole document and replaces the destination file atomically.
"""

import io
import os
import re
import time
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, TextIO, Tuple, Union

from linefold_xml.character.encoding import (
    BOMDetector,
    EncodingResult,
    output_encoding,
    resolve_declared_encoding,
)
from linefold_xml.character.folding import LineFolder
from linefold_xml.parsing.parser import TagParser
from linefold_xml.serialization.atomic import write_text_atomic, write_text_in_place
from linefold_xml.serialization.serializer import Serializer
from linefold_xml.shared.config import LinefoldConfig
from linefold_xml.shared.errors import (
    InvalidPathError,
    MalformedInputError,
    UnboundDestinationError,
)
from linefold_xml.shared.logging import get_logger
from linefold_xml.shared.position import SourcePosition
from linefold_xml.tree.node import Node

PathType = Union[str, "os.PathLike[str]"]

MS_PER_SECOND = 1000

_DECLARATION_FIELD = re.compile(r'([A-Za-z_][\w.-]*)\s*=\s*"([^"]*)"')
_FIRST_LINE = re.compile(r"[^\r\n]*(?:\r\n|\r|\n)?")
_DECLARATION_START = SourcePosition(line=1, column=1, offset=0)


def parse_declaration(line: str) -> Tuple[str, str]:
    """Extract ``(version, encoding)`` from an XML declaration line.

    ``encoding`` is an empty string when the declaration does not name one.

    Raises:
        MalformedInputError: If the line is not a declaration or has no version.
    """
    declaration = line.rstrip("\r\n").strip()
    if not declaration:
        raise MalformedInputError("Missing XML declaration", _DECLARATION_START)
    if not declaration.startswith("<?xml"):
        raise MalformedInputError(
            "First line must be an XML declaration", _DECLARATION_START
        )
    if not declaration.endswith("?>"):
        raise MalformedInputError("Unterminated XML declaration", _DECLARATION_START)

    fields = dict(_DECLARATION_FIELD.findall(declaration))
    if "version" not in fields:
        raise MalformedInputError(
            "XML declaration is missing a version", _DECLARATION_START
        )
    return fields["version"], fields.get("encoding", "")


class Document:
    """An XML document: declaration metadata plus one root node."""

    def __init__(
        self,
        root: Optional[Node] = None,
        version: Optional[str] = None,
        encoding: Optional[str] = None,
        config: Optional[LinefoldConfig] = None
    ) -> None:
        self.config = config or LinefoldConfig()
        self.root = root if root is not None else Node()
        self.version = (
            version if version is not None else self.config.document.default_version
        )
        self.encoding = (
            encoding if encoding is not None else self.config.document.default_encoding
        )
        self.source_path: Optional[Path] = None
        self._logger = get_logger(
            __name__, self.config.global_.correlation_id, "document"
        )

    def __repr__(self) -> str:
        return (
            f"Document(root={self.root.tag!r}, version={self.version!r}, "
            f"encoding={self.encoding!r}, source_path={self.source_path!r})"
        )

    # Loading

    @classmethod
    def load(cls, path: PathType, config: Optional[LinefoldConfig] = None) -> "Document":
        """Load a document from ``path``.

        Raises:
            InvalidPathError: If ``path`` lacks the XML extension; checked
                before the file is opened.
            MalformedInputError: If the file content violates the grammar.
            OSError: If the file cannot be read.
        """
        config = config or LinefoldConfig()
        logger = get_logger(__name__, config.global_.correlation_id, "document")
        path_str = os.fspath(path)
        extension = config.document.file_extension

        if not path_str.endswith(extension):
            logger.warning("Rejected path without XML extension", extra={"path": path_str})
            raise InvalidPathError(path_str, extension)

        start_time = time.time()
        document = cls(config=config)
        try:
            with open(path_str, "rb") as raw:
                with document._open_text_stream(raw) as stream:
                    document._parse_root(stream)
        except UnicodeDecodeError as e:
            logger.warning(
                "Rejected undecodable document",
                extra={"path": path_str, "reason": e.reason}
            )
            raise MalformedInputError(
                f"Cannot decode file content as {e.encoding}: {e.reason}",
                source=path_str,
            ) from e
        except MalformedInputError as e:
            logger.warning(
                "Rejected malformed document",
                extra={"path": path_str, "reason": e.reason, "position": str(e.position)}
            )
            raise e.with_source(path_str)

        document.source_path = Path(path_str)
        logger.info(
            "Loaded document",
            extra={
                "path": path_str,
                "version": document.version,
                "encoding": document.encoding,
                "element_count": document.element_count,
                "processing_time_ms": (time.time() - start_time) * MS_PER_SECOND,
            }
        )
        return document

    @classmethod
    def from_string(cls, text: str, config: Optional[LinefoldConfig] = None) -> "Document":
        """Parse document text whose first line is the XML declaration."""
        document = cls(config=config)
        first_line = _FIRST_LINE.match(text).group(0)
        document.version, document.encoding = parse_declaration(first_line)
        document._parse_root(io.StringIO(text[len(first_line):]))
        return document

    def _open_text_stream(self, raw: io.BufferedReader) -> TextIO:
        """Consume the declaration line and return a decoder for the rest."""
        head = raw.read(4)
        bom = BOMDetector().detect(head)

        if bom is not None:
            raw.seek(bom.bom_length)
            stream = io.TextIOWrapper(raw, encoding=bom.encoding, newline="")
            self.version, self.encoding = parse_declaration(stream.readline())
            self._log_encoding(bom)
            return stream

        raw.seek(0)
        # Declarations are ASCII; latin-1 maps every byte so decoding cannot fail
        self.version, self.encoding = parse_declaration(raw.readline().decode("latin-1"))
        try:
            resolved = resolve_declared_encoding(
                self.encoding, self.config.document.fallback_encoding
            )
        except LookupError:
            raise MalformedInputError(
                f"Unknown encoding '{self.encoding}' in XML declaration",
                _DECLARATION_START,
            ) from None
        self._log_encoding(resolved)
        return io.TextIOWrapper(raw, encoding=resolved.encoding, newline="")

    def _log_encoding(self, result: EncodingResult) -> None:
        self._logger.debug(
            "Resolved file encoding",
            extra={"codec": result.encoding, "method": result.method.value}
        )

    def _parse_root(self, stream: TextIO) -> None:
        correlation_id = self.config.global_.correlation_id
        folded = LineFolder(self.config.folding, correlation_id).fold(stream, start_line=2)
        self.root = TagParser(self.config.parsing, correlation_id).parse(folded)

    # Saving

    def save(self, path: Optional[PathType] = None) -> None:
        """Write the document to ``path``, or to ``source_path`` when omitted.

        A successful save with an explicit ``path`` makes it the new
        ``source_path``.

        Raises:
            UnboundDestinationError: If ``path`` is omitted and no path has
                been established by a previous load or save.
        """
        if path is None:
            if self.source_path is None:
                raise UnboundDestinationError(
                    "Save location not specified: document was neither loaded "
                    "from nor saved to a path"
                )
            target = self.source_path
        else:
            target = Path(os.fspath(path))

        codec = output_encoding(self.encoding, self.config.document.fallback_encoding)
        text = self.to_string()
        if self.config.document.atomic_save:
            write_text_atomic(target, text, codec)
        else:
            write_text_in_place(target, text, codec)

        self.source_path = target
        self._logger.info(
            "Saved document",
            extra={
                "path": str(target),
                "encoding": codec,
                "atomic": self.config.document.atomic_save,
                "characters": len(text),
            }
        )

    def to_string(self) -> str:
        """Render the document text without touching disk."""
        return Serializer(self.config.serialization).serialize_document(self)

    # Metadata accessors

    def get_version(self) -> str:
        return self.version

    def set_version(self, version: str) -> None:
        self.version = version

    def get_encoding(self) -> str:
        return self.encoding

    def set_encoding(self, encoding: str) -> None:
        self.encoding = encoding

    # Navigation

    def iter_elements(self) -> Iterator[Node]:
        """Iterate over all nodes, root first, children group by group."""
        stack = [self.root]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(list(node.iter_children())))

    @property
    def element_count(self) -> int:
        return sum(1 for _ in self.iter_elements())

    def find(self, tag: str) -> Optional[Node]:
        """Find the first node (root included) with a matching tag name."""
        if self.root.tag == tag:
            return self.root
        return self.root.find(tag)

    def find_all(self, tag: str) -> List[Node]:
        """Find all nodes (root included) with a matching tag name."""
        results = [self.root] if self.root.tag == tag else []
        results.extend(self.root.find_all(tag))
        return results

    def to_dict(self) -> Dict[str, Any]:
        """Convert document to dictionary representation."""
        return {
            "version": self.version,
            "encoding": self.encoding,
            "source_path": str(self.source_path) if self.source_path else None,
            "root": self.root.to_dict(),
        }
