"""Character processing layer for line-folded XML.

This module provides the line folder that turns one-element-per-line text
into a single scan-able string, and the encoding resolution used when
reading and writing document files.
"""

from .encoding import (
    BOMDetector,
    DetectionMethod,
    EncodingResult,
    is_known_encoding,
    normalize_encoding,
    output_encoding,
    resolve_declared_encoding,
)
from .folding import (
    FoldedText,
    LineFolder,
    fold,
)

__all__ = [
    "BOMDetector",
    "DetectionMethod",
    "EncodingResult",
    "is_known_encoding",
    "normalize_encoding",
    "output_encoding",
    "resolve_declared_encoding",
    "FoldedText",
    "LineFolder",
    "fold",
]
