"""AI handoff prompt export.

Primes a different AI provider with condensed history from earlier
conversations. Message volume is reduced according to the compression level;
at high compression a conversation's summary, when one exists, replaces its
transcript entirely.
"""

from collections.abc import Mapping, Sequence
from datetime import datetime

from context_porter.exporters.base import ExportFormat, Exporter, ExportOptions, capitalize_first
from context_porter.exporters.compression import filter_messages_by_compression
from context_porter.exporters.providers import provider_prefix, provider_suffix
from context_porter.models import Conversation, Project


class ContextPromptExporter(Exporter):
    """Exports a project as a provider-framed context prompt."""

    export_format = ExportFormat.CONTEXT_PROMPT
    content_type = "text/plain"
    filename_suffix = "_context.txt"

    def render(
        self,
        project: Project,
        conversations: Sequence[Conversation],
        options: ExportOptions,
        *,
        exported_at: datetime,
        summaries: Mapping[str, str],
    ) -> str:
        prompt = f"{provider_prefix(options.target_provider)}\n\n"
        prompt += f"# Context from {project.name}\n\n"

        if project.description:
            prompt += f"Project Description: {project.description}\n\n"

        prompt += (
            f"This context contains {len(conversations)} conversation(s) "
            "from previous AI interactions:\n\n"
        )

        for conversation in conversations:
            summary = summaries.get(conversation.id) or conversation.context_summary
            prompt += self._render_conversation(conversation, summary, options)

        prompt += f"\n\n{provider_suffix(options.target_provider)}"
        return prompt

    def _render_conversation(
        self,
        conversation: Conversation,
        summary: str | None,
        options: ExportOptions,
    ) -> str:
        source = conversation.ai_provider
        if conversation.model_version:
            source += f" ({conversation.model_version})"

        text = f"## Conversation: {conversation.title}\n"
        text += f"From: {source}\n\n"

        if summary and options.compression_level == "high":
            text += f"Summary: {summary}\n\n"
        else:
            retained = filter_messages_by_compression(conversation.messages, options.compression_level)
            for message in retained:
                text += f"**{capitalize_first(message.role)}:** {message.content}\n\n"

        return text + "---\n\n"
