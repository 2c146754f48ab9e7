"""Shared utilities for line-folded XML processing.

This module provides the configuration objects, error hierarchy, source
positions and logging helpers used across all processing layers.
"""

from .position import SourcePosition
from .errors import (
    DuplicateAttributeError,
    InvalidPathError,
    LinefoldXMLError,
    MalformedInputError,
    MissingAttributeError,
    PreconditionViolationError,
    UnboundDestinationError,
    UnsupportedConstructError,
)
from .config import (
    ConfigError,
    ConfigValidationError,
    DocumentConfig,
    FoldingConfig,
    GlobalConfig,
    LinefoldConfig,
    ParsingConfig,
    SerializationConfig,
)
from .logging import (
    CorrelationLogger,
    get_logger,
)

__all__ = [
    "SourcePosition",
    "DuplicateAttributeError",
    "InvalidPathError",
    "LinefoldXMLError",
    "MalformedInputError",
    "MissingAttributeError",
    "PreconditionViolationError",
    "UnboundDestinationError",
    "UnsupportedConstructError",
    "ConfigError",
    "ConfigValidationError",
    "DocumentConfig",
    "FoldingConfig",
    "GlobalConfig",
    "LinefoldConfig",
    "ParsingConfig",
    "SerializationConfig",
    "CorrelationLogger",
    "get_logger",
]
