"""Base exporter interface, registry and shared options."""

from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any

from context_porter.errors import UnsupportedFormatError, ValidationError
from context_porter.exporters.compression import (
    DEFAULT_COMPRESSION_LEVEL,
    normalize_compression_level,
)
from context_porter.exporters.providers import DEFAULT_TARGET_PROVIDER, normalize_provider
from context_porter.models import Conversation, Project

__all__ = [
    "ExportFormat",
    "ExportOptions",
    "Exporter",
    "ExporterRegistry",
    "capitalize_first",
    "format_long_date",
]


class ExportFormat(str, Enum):
    """Supported export formats."""

    JSON = "json"
    MARKDOWN = "markdown"
    CONTEXT_PROMPT = "context_prompt"

    @classmethod
    def parse(cls, value: "ExportFormat | str") -> "ExportFormat":
        """Resolve a format from an enum member or a case-insensitive string.

        Raises:
            UnsupportedFormatError: If value names no known format
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                pass
        raise UnsupportedFormatError(value, [fmt.value for fmt in cls])


_TRUE_STRINGS = ("true", "1", "yes", "on")
_FALSE_STRINGS = ("false", "0", "no", "off")


def _parse_flag(value: Any, name: str) -> bool:
    # Option mappings often come from query strings or YAML, so "false" must not be truthy
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in _TRUE_STRINGS:
            return True
        if lowered in _FALSE_STRINGS:
            return False
    raise ValidationError(f"Option {name} must be a boolean, got {value!r}")


@dataclass(frozen=True)
class ExportOptions:
    """Presentation knobs applied while rendering an export.

    target_provider and compression_level only affect context_prompt output.
    Unknown values are normalized to their defaults rather than rejected.
    """

    target_provider: str = DEFAULT_TARGET_PROVIDER
    compression_level: str = DEFAULT_COMPRESSION_LEVEL
    include_metadata: bool = True
    role_icons: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "target_provider", normalize_provider(self.target_provider))
        object.__setattr__(
            self, "compression_level", normalize_compression_level(self.compression_level)
        )

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "ExportOptions":
        """Build options from camelCase or snake_case keys."""

        def pick(camel: str, snake: str, default: Any) -> Any:
            if camel in data:
                return data[camel]
            return data.get(snake, default)

        return cls(
            target_provider=pick("targetProvider", "target_provider", DEFAULT_TARGET_PROVIDER),
            compression_level=pick("compressionLevel", "compression_level", DEFAULT_COMPRESSION_LEVEL),
            include_metadata=_parse_flag(
                pick("includeMetadata", "include_metadata", True), "includeMetadata"
            ),
            role_icons=_parse_flag(pick("roleIcons", "role_icons", False), "roleIcons"),
        )

    @classmethod
    def coerce(cls, options: "ExportOptions | Mapping[str, Any] | None") -> "ExportOptions":
        if options is None:
            return cls()
        if isinstance(options, cls):
            return options
        return cls.from_mapping(options)


def capitalize_first(text: str) -> str:
    """Uppercase the first character, leaving the rest untouched."""
    return text[:1].upper() + text[1:]


def _ordinal(day: int) -> str:
    if 11 <= day % 100 <= 13:
        suffix = "th"
    else:
        suffix = {1: "st", 2: "nd", 3: "rd"}.get(day % 10, "th")
    return f"{day}{suffix}"


def format_long_date(value: datetime) -> str:
    """Format a date as e.g. "January 5th, 2024"."""
    return f"{value.strftime('%B')} {_ordinal(value.day)}, {value.year}"


class Exporter(ABC):
    """Base class for export formats.

    Subclasses set `export_format`, `content_type` and `filename_suffix`, and
    implement `render()`. Rendering is pure: it never mutates its inputs and
    performs no I/O.
    """

    export_format: ExportFormat
    content_type: str
    filename_suffix: str

    @abstractmethod
    def render(
        self,
        project: Project,
        conversations: Sequence[Conversation],
        options: ExportOptions,
        *,
        exported_at: datetime,
        summaries: Mapping[str, str],
    ) -> str:
        """Render the full export document.

        Args:
            project: Validated project
            conversations: Validated conversations, each with ordered messages
            options: Normalized export options
            exported_at: Timestamp embedded by formats that record one
            summaries: Conversation id -> summary overrides

        Returns:
            The complete document text
        """


class ExporterRegistry:
    """Registry of exporters by format."""

    _exporters: dict[ExportFormat, Exporter] = {}

    @classmethod
    def register(cls, exporter: Exporter) -> None:
        """Register an exporter."""
        cls._exporters[exporter.export_format] = exporter

    @classmethod
    def get(cls, export_format: ExportFormat) -> Exporter | None:
        """Get exporter by format."""
        return cls._exporters.get(export_format)

    @classmethod
    def all_formats(cls) -> list[str]:
        """List all registered format names."""
        return [fmt.value for fmt in cls._exporters]
