"""Human-readable Markdown export."""

import json
from collections.abc import Mapping, Sequence
from datetime import datetime

from context_porter.exporters.base import (
    ExportFormat,
    Exporter,
    ExportOptions,
    capitalize_first,
    format_long_date,
)
from context_porter.exporters.providers import role_icon
from context_porter.models import Conversation, Message, Project

SECTION_RULE = "---\n\n"


class MarkdownExporter(Exporter):
    """Exports a project as a Markdown document with one section per conversation."""

    export_format = ExportFormat.MARKDOWN
    content_type = "text/markdown"
    filename_suffix = ".md"

    def render(
        self,
        project: Project,
        conversations: Sequence[Conversation],
        options: ExportOptions,
        *,
        exported_at: datetime,
        summaries: Mapping[str, str],
    ) -> str:
        parts = [self._render_header(project)]
        for conversation in conversations:
            parts.append(self._render_conversation(conversation, options))
        return "".join(parts)

    def _render_header(self, project: Project) -> str:
        text = f"# {project.name}\n\n"

        if project.description:
            text += f"{project.description}\n\n"

        if project.tags:
            text += f"**Tags:** {', '.join(project.tags)}\n\n"

        if project.created_at is not None:
            text += f"**Created:** {format_long_date(project.created_at)}\n"
        if project.last_activity_at is not None:
            text += f"**Last Activity:** {format_long_date(project.last_activity_at)}\n"
        text += "\n"

        return text + SECTION_RULE

    def _render_conversation(self, conversation: Conversation, options: ExportOptions) -> str:
        text = f"## {conversation.title}\n\n"
        text += f"**AI Provider:** {conversation.ai_provider}\n"
        if conversation.model_version:
            text += f"**Model:** {conversation.model_version}\n"
        text += f"**Messages:** {conversation.effective_message_count}\n"
        if conversation.created_at is not None:
            text += f"**Created:** {format_long_date(conversation.created_at)}\n"
        text += "\n"

        for message in conversation.messages:
            text += self._render_message(message, options)

        return text + SECTION_RULE

    def _render_message(self, message: Message, options: ExportOptions) -> str:
        heading = capitalize_first(message.role)
        if options.role_icons:
            heading = f"{role_icon(message.role)} {heading}"

        text = f"### {heading}\n\n{message.content}\n\n"

        if options.include_metadata and message.metadata:
            metadata_json = json.dumps(message.metadata, indent=2, ensure_ascii=False, default=str)
            text += (
                "<details>\n<summary>Metadata</summary>\n\n"
                f"```json\n{metadata_json}\n```\n</details>\n\n"
            )

        return text
