"""Exporters for the supported export formats."""

from .base import (
    ExportFormat,
    Exporter,
    ExporterRegistry,
    ExportOptions,
    capitalize_first,
    format_long_date,
)
from .compression import filter_messages_by_compression, normalize_compression_level
from .context_prompt import ContextPromptExporter
from .json_export import JsonExporter
from .markdown import MarkdownExporter
from .providers import normalize_provider

__all__ = [
    "ContextPromptExporter",
    "ExportFormat",
    "ExportOptions",
    "Exporter",
    "ExporterRegistry",
    "JsonExporter",
    "MarkdownExporter",
    "capitalize_first",
    "filter_messages_by_compression",
    "format_long_date",
    "normalize_compression_level",
    "normalize_provider",
]

# Register exporters
ExporterRegistry.register(JsonExporter())
ExporterRegistry.register(MarkdownExporter())
ExporterRegistry.register(ContextPromptExporter())
