"""Line folding for one-element-per-line XML text.

The folder removes every line terminator together with the spaces and blank
lines that immediately follow it, producing one continuous string. No
separator is inserted: the ``<``, ``>`` and ``"`` markers of well-formed
one-tag-per-line input are what delimit tokens afterwards.

Because folding discards layout, the folder also records where each
surviving run of characters started in the original text so that parse
errors can still be reported by line and column.
"""

from bisect import bisect_right
from typing import Iterator, List, Optional, TextIO, Tuple, Union

from linefold_xml.shared.config import FoldingConfig
from linefold_xml.shared.logging import get_logger
from linefold_xml.shared.position import SourcePosition

SourceType = Union[str, TextIO]

LINE_TERMINATORS = ("\r", "\n")
ABSORBED_CHARACTERS = (" ", "\r", "\n")


class FoldedText:
    """Folded text plus the mapping back to physical lines and columns."""

    def __init__(self, text: str, segments: List[Tuple[int, int, int]]) -> None:
        """Initialize folded text.

        Args:
            text: The folded string
            segments: ``(folded_offset, line, column)`` triples, one per run of
                characters that was contiguous in the source, sorted by offset
        """
        self.text = text
        self._segments = segments
        self._segment_offsets = [segment[0] for segment in segments]

    def __len__(self) -> int:
        return len(self.text)

    def __str__(self) -> str:
        return self.text

    def __repr__(self) -> str:
        preview = self.text if len(self.text) <= 40 else self.text[:37] + "..."
        return f"FoldedText({preview!r}, segments={len(self._segments)})"

    def position(self, offset: int) -> SourcePosition:
        """Map a folded offset to its position in the original text.

        ``offset == len(self)`` is accepted and refers to the end of input.
        """
        if not 0 <= offset <= len(self.text):
            raise ValueError(f"Offset {offset} outside folded text of length {len(self.text)}")

        index = bisect_right(self._segment_offsets, offset) - 1
        start, line, column = self._segments[max(index, 0)]
        return SourcePosition(line=line, column=column + (offset - start), offset=offset)


class LineFolder:
    """Folds a character source into a single scan-able string."""

    def __init__(
        self,
        config: Optional[FoldingConfig] = None,
        correlation_id: Optional[str] = None
    ) -> None:
        self.config = config or FoldingConfig()
        self._logger = get_logger(__name__, correlation_id, "line_folder")

    def fold(self, source: SourceType, start_line: int = 1) -> FoldedText:
        """Fold ``source`` into one continuous string.

        Args:
            source: Text or a readable text stream, consumed until exhausted
            start_line: Physical line number of the first character of
                ``source`` (lines already consumed by the caller are skipped)

        Returns:
            FoldedText with the folded string and its position map
        """
        parts: List[str] = []
        segments: List[Tuple[int, int, int]] = [(0, start_line, 1)]
        folded_length = 0

        line = start_line
        column = 1
        absorbing = False
        previous = ""

        for char in self._iter_characters(source):
            if char in LINE_TERMINATORS:
                # "\r\n" is a single line break
                if not (char == "\n" and previous == "\r"):
                    line += 1
                column = 1
                absorbing = True
            elif absorbing and char == " ":
                column += 1
            else:
                if absorbing:
                    segments.append((folded_length, line, column))
                    absorbing = False
                parts.append(char)
                folded_length += 1
                column += 1
            previous = char

        text = "".join(parts)
        self._logger.debug(
            "Folded source text",
            extra={
                "folded_length": len(text),
                "lines_read": line - start_line + 1,
            }
        )
        return FoldedText(text, segments)

    def _iter_characters(self, source: SourceType) -> Iterator[str]:
        """Yield characters from a string or a stream read in chunks."""
        if isinstance(source, str):
            yield from source
            return

        while True:
            chunk = source.read(self.config.buffer_size)
            if not chunk:
                return
            yield from chunk


def fold(
    source: SourceType,
    *,
    start_line: int = 1,
    buffer_size: Optional[int] = None
) -> FoldedText:
    """Fold ``source`` with the default configuration."""
    config = FoldingConfig(buffer_size=buffer_size) if buffer_size else None
    return LineFolder(config).fold(source, start_line=start_line)
