"""Public export operations.

`export()` validates its inputs, picks the exporter for the requested format
and returns the rendered document. It raises instead of falling back: an
unsupported format never produces output in some other format.
"""

import re
from collections.abc import Mapping, Sequence
from datetime import datetime, timezone
from typing import Any

from context_porter.errors import UnsupportedFormatError
from context_porter.exporters import ExporterRegistry, ExportFormat, ExportOptions
from context_porter.exporters.base import Exporter
from context_porter.models import Conversation, ExportArtifact, Project

_FILENAME_UNSAFE = re.compile(r"[^a-z0-9]", re.IGNORECASE)


def size(content: str) -> int:
    """Return the UTF-8 byte length of an export."""
    return len(content.encode("utf-8"))


def export_filename(project_name: str, export_format: ExportFormat | str) -> str:
    """Derive the download filename for an export.

    Every character outside [A-Za-z0-9] in the project name becomes "_".

    Example:
        >>> export_filename("My Project!", "markdown")
        'My_Project__export.md'
    """
    exporter = _resolve_exporter(export_format)
    return f"{_FILENAME_UNSAFE.sub('_', project_name)}_export{exporter.filename_suffix}"


def _resolve_exporter(export_format: ExportFormat | str) -> Exporter:
    fmt = ExportFormat.parse(export_format)
    exporter = ExporterRegistry.get(fmt)
    if exporter is None:
        raise UnsupportedFormatError(export_format, ExporterRegistry.all_formats())
    return exporter


def _validate_inputs(project: Project, conversations: Sequence[Conversation]) -> None:
    project.validate()
    for conversation in conversations:
        conversation.validate()


def export(
    project: Project,
    conversations: Sequence[Conversation],
    export_format: ExportFormat | str,
    options: ExportOptions | Mapping[str, Any] | None = None,
    *,
    summaries: Mapping[str, str] | None = None,
    now: datetime | None = None,
) -> str:
    """Render a project and its conversations in the requested format.

    Args:
        project: Project to export (must have a non-empty name)
        conversations: Conversations in creation order, each carrying its
            messages in ascending sequence order. May be empty.
        export_format: json, markdown or context_prompt
        options: ExportOptions, or a mapping with camelCase or snake_case keys
        summaries: Conversation id -> previously computed summary. Overrides
            Conversation.context_summary for context_prompt exports.
        now: Export timestamp embedded in json output (defaults to current UTC time)

    Returns:
        The complete export document

    Raises:
        UnsupportedFormatError: If export_format is not a supported format
        ValidationError: If the project or any conversation is malformed
    """
    exporter = _resolve_exporter(export_format)
    opts = ExportOptions.coerce(options)
    _validate_inputs(project, conversations)

    return exporter.render(
        project,
        conversations,
        opts,
        exported_at=now or datetime.now(timezone.utc),
        summaries=dict(summaries or {}),
    )


def build_artifact(
    project: Project,
    conversations: Sequence[Conversation],
    export_format: ExportFormat | str,
    options: ExportOptions | Mapping[str, Any] | None = None,
    *,
    summaries: Mapping[str, str] | None = None,
    now: datetime | None = None,
) -> ExportArtifact:
    """Export and wrap the result with the metadata an export record needs."""
    exporter = _resolve_exporter(export_format)
    opts = ExportOptions.coerce(options)
    content = export(
        project,
        conversations,
        exporter.export_format,
        opts,
        summaries=summaries,
        now=now,
    )

    return ExportArtifact(
        format=exporter.export_format.value,
        target_provider=opts.target_provider,
        content=content,
        size_bytes=size(content),
        filename=export_filename(project.name, exporter.export_format),
        content_type=exporter.content_type,
        options={
            "compressionLevel": opts.compression_level,
            "includeMetadata": opts.include_metadata,
            "conversationCount": len(conversations),
        },
        conversation_count=len(conversations),
        message_count=sum(len(conversation.messages) for conversation in conversations),
    )
