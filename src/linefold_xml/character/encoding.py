"""Encoding resolution for document files.

A file's text encoding is chosen in order: byte order mark, the encoding
named in the XML declaration, then the configured fallback.
"""

import codecs
from dataclasses import dataclass
from enum import Enum
from typing import ClassVar, Dict, Optional


class DetectionMethod(Enum):
    """Enumeration of encoding detection methods."""
    BOM = "bom"
    XML_DECLARATION = "xml_declaration"
    FALLBACK = "fallback"


@dataclass(frozen=True)
class EncodingResult:
    """Resolved codec name and how it was chosen."""

    encoding: str
    method: DetectionMethod
    bom_length: int = 0


class BOMDetector:
    """Byte Order Mark (BOM) detection for the Unicode encodings."""

    BOM_PATTERNS: ClassVar[Dict[bytes, str]] = {
        b"\xef\xbb\xbf": "utf-8",
        b"\xff\xfe": "utf-16-le",
        b"\xfe\xff": "utf-16-be",
        b"\xff\xfe\x00\x00": "utf-32-le",
        b"\x00\x00\xfe\xff": "utf-32-be",
    }

    def detect(self, data: bytes) -> Optional[EncodingResult]:
        """Detect encoding from a leading BOM, or return None."""
        if not data:
            return None

        # UTF-32 LE shares its first two bytes with UTF-16 LE
        for bom_bytes, encoding in sorted(
            self.BOM_PATTERNS.items(), key=lambda x: len(x[0]), reverse=True
        ):
            if data.startswith(bom_bytes):
                return EncodingResult(
                    encoding=encoding,
                    method=DetectionMethod.BOM,
                    bom_length=len(bom_bytes),
                )
        return None


_ALIASES = {
    "utf8": "utf-8",
    "utf16": "utf-16",
    "utf32": "utf-32",
    "iso-8859-1": "latin-1",
    "windows-1252": "cp1252",
}


def normalize_encoding(encoding: str) -> str:
    """Normalize an encoding name to the form used for codec lookup."""
    lowered = encoding.strip().lower()
    return _ALIASES.get(lowered, lowered)


def is_known_encoding(encoding: str) -> bool:
    """Check if encoding is supported by Python codecs."""
    try:
        codecs.lookup(encoding)
    except LookupError:
        return False
    else:
        return True


def resolve_declared_encoding(declared: str, fallback: str) -> EncodingResult:
    """Pick the codec for a file that carries no BOM.

    Args:
        declared: Encoding named in the declaration (may be empty)
        fallback: Codec used when the declaration names none

    Raises:
        LookupError: If ``declared`` names an unknown codec
    """
    if declared:
        normalized = normalize_encoding(declared)
        if not is_known_encoding(normalized):
            raise LookupError(f"unknown encoding: {declared}")
        return EncodingResult(normalized, DetectionMethod.XML_DECLARATION)

    return EncodingResult(fallback, DetectionMethod.FALLBACK)


def output_encoding(declared: str, fallback: str) -> str:
    """Codec used to write a document whose declaration names ``declared``."""
    if declared:
        normalized = normalize_encoding(declared)
        if is_known_encoding(normalized):
            return normalized
    return fallback
