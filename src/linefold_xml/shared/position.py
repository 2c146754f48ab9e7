"""Source position information shared by the folding, parsing and error layers."""

from dataclasses import dataclass


@dataclass(frozen=True)
class SourcePosition:
    """Location of a character in the original (unfolded) source text.

    ``line`` and ``column`` are 1-based and refer to the physical file;
    ``offset`` is the 0-based index into the folded text.
    """

    line: int
    column: int
    offset: int

    def __post_init__(self) -> None:
        """Validate position values."""
        if self.line < 1:
            raise ValueError("Line number must be >= 1")
        if self.column < 1:
            raise ValueError("Column number must be >= 1")
        if self.offset < 0:
            raise ValueError("Offset must be >= 0")

    def __str__(self) -> str:
        return f"line {self.line}, column {self.column}"
