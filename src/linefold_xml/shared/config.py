"""Configuration classes for line-folded XML processing.

This module provides configuration objects for the folding, parsing,
serialization and document layers, enabling control over limits, output
layout and file handling.
"""

import codecs
import json
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional

_COMPONENTS = ["folding", "parsing", "serialization", "document", "global_"]


@dataclass
class FoldingConfig:
    """Configuration for the line folder."""

    buffer_size: int = 8192

    def __post_init__(self) -> None:
        """Validate folding configuration."""
        if self.buffer_size <= 0:
            raise ValueError("buffer_size must be > 0")


@dataclass
class ParsingConfig:
    """Configuration for the recursive-descent tag parser."""

    max_depth: int = 500
    allow_trailing_whitespace: bool = True

    def __post_init__(self) -> None:
        """Validate parsing configuration."""
        if self.max_depth <= 0:
            raise ValueError("max_depth must be > 0")


@dataclass
class SerializationConfig:
    """Configuration for the indented serializer."""

    indent_width: int = 4
    newline: str = "\n"

    def __post_init__(self) -> None:
        """Validate serialization configuration."""
        if self.indent_width < 0:
            raise ValueError("indent_width must be >= 0")
        if self.newline not in ("\n", "\r\n"):
            raise ValueError("newline must be '\\n' or '\\r\\n'")


@dataclass
class DocumentConfig:
    """Configuration for document load/save orchestration."""

    file_extension: str = ".xml"
    default_version: str = "1.0"
    default_encoding: str = "utf-8"
    fallback_encoding: str = "utf-8"
    atomic_save: bool = True

    def __post_init__(self) -> None:
        """Validate document configuration."""
        if not self.file_extension.startswith("."):
            raise ValueError("file_extension must start with '.'")
        try:
            codecs.lookup(self.fallback_encoding)
        except LookupError:
            raise ValueError(
                f"fallback_encoding is not a known codec: {self.fallback_encoding}"
            ) from None


@dataclass
class GlobalConfig:
    """Global settings that apply across all components."""

    logging_level: str = "INFO"  # DEBUG, INFO, WARNING, ERROR, CRITICAL
    correlation_id: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate global configuration."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if self.logging_level not in valid_levels:
            raise ValueError(f"logging_level must be one of {valid_levels}")


class ConfigError(Exception):
    """Base exception for configuration errors."""


class ConfigValidationError(ConfigError):
    """Exception raised when configuration validation fails."""

    def __init__(self, message: str, field_name: Optional[str] = None,
                 suggestions: Optional[List[str]] = None):
        super().__init__(message)
        self.field_name = field_name
        self.suggestions = suggestions or []


@dataclass(frozen=True)
class LinefoldConfig:
    """Configuration for every processing layer.

    Immutable once built; use :meth:`override` to derive a variant.
    """

    folding: FoldingConfig = field(default_factory=FoldingConfig)
    parsing: ParsingConfig = field(default_factory=ParsingConfig)
    serialization: SerializationConfig = field(default_factory=SerializationConfig)
    document: DocumentConfig = field(default_factory=DocumentConfig)
    global_: GlobalConfig = field(default_factory=GlobalConfig)

    name: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate the complete configuration."""
        try:
            for component in _COMPONENTS:
                getattr(self, component).__post_init__()
        except ValueError as e:
            raise ConfigValidationError(str(e)) from e

    def override(self, **kwargs: Any) -> "LinefoldConfig":
        """Create a new configuration with specific overrides.

        Example:
            >>> config = LinefoldConfig()
            >>> new_config = config.override(
            ...     serialization__indent_width=2,
            ...     document__atomic_save=False
            ... )
        """
        nested_overrides: Dict[str, Any] = {}
        for key, value in kwargs.items():
            if "__" in key:
                component, field_name = key.split("__", 1)
                if component not in _COMPONENTS:
                    raise ConfigValidationError(
                        f"Unknown configuration component: {component}",
                        field_name=key,
                        suggestions=list(_COMPONENTS),
                    )
                nested_overrides.setdefault(component, {})[field_name] = value
            else:
                nested_overrides[key] = value

        new_fields: Dict[str, Any] = {}
        for key, value in nested_overrides.items():
            if key in _COMPONENTS:
                try:
                    new_fields[key] = replace(getattr(self, key), **value)
                except (TypeError, ValueError) as e:
                    raise ConfigValidationError(str(e), field_name=key) from e
            else:
                new_fields[key] = value

        return replace(self, **new_fields)

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary format."""
        result: Dict[str, Any] = {"name": self.name}
        for component in _COMPONENTS:
            config = getattr(self, component)
            result[component] = {
                name: getattr(config, name) for name in config.__dataclass_fields__
            }
        return result

    def to_json(self, indent: int = 2) -> str:
        """Convert configuration to JSON string."""
        return json.dumps(self.to_dict(), indent=indent)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LinefoldConfig":
        """Create configuration from dictionary.

        Unknown component fields raise ``ConfigValidationError``; missing
        fields keep their defaults.
        """
        component_types = {
            "folding": FoldingConfig,
            "parsing": ParsingConfig,
            "serialization": SerializationConfig,
            "document": DocumentConfig,
            "global_": GlobalConfig,
        }
        field_values: Dict[str, Any] = {}
        for key, value in data.items():
            if key in component_types:
                try:
                    field_values[key] = component_types[key](**value)
                except TypeError as e:
                    raise ConfigValidationError(str(e), field_name=key) from e
                except ValueError as e:
                    raise ConfigValidationError(str(e), field_name=key) from e
            elif key == "name":
                field_values[key] = value
            else:
                raise ConfigValidationError(
                    f"Unknown configuration key: {key}",
                    field_name=key,
                    suggestions=[*_COMPONENTS, "name"],
                )
        return cls(**field_values)

    @classmethod
    def from_json(cls, json_str: str) -> "LinefoldConfig":
        """Create configuration from JSON string."""
        try:
            data = json.loads(json_str)
        except json.JSONDecodeError as e:
            raise ConfigError(f"Invalid configuration JSON: {e}") from e
        if not isinstance(data, dict):
            raise ConfigError("Configuration JSON must be an object")
        return cls.from_dict(data)

    # Preset factory methods
    @classmethod
    def default(cls) -> "LinefoldConfig":
        """Create the default configuration."""
        return cls(name="default")

    @classmethod
    def compact(cls) -> "LinefoldConfig":
        """Create a preset that writes two-space indentation."""
        return cls(
            serialization=SerializationConfig(indent_width=2),
            name="compact",
        )

    @classmethod
    def strict(cls) -> "LinefoldConfig":
        """Create a preset that rejects trailing content and deep nesting."""
        return cls(
            parsing=ParsingConfig(max_depth=64, allow_trailing_whitespace=False),
            name="strict",
        )
