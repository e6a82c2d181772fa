"""Structured JSON export.

The field set is a compatibility contract for re-importing exports:

    {
      "project": {id, name, description, tags, status, createdAt, lastActivityAt},
      "conversations": [
        {id, title, aiProvider, modelVersion, messageCount, createdAt, updatedAt,
         messages: [{id, role, content, rawContent, metadata, sequenceOrder, createdAt}]}
      ],
      "exportMetadata": {exportedAt, format: "json", version: "1.0"}
    }
"""

import json
from collections.abc import Mapping, Sequence
from datetime import datetime
from typing import Any

from context_porter.exporters.base import ExportFormat, Exporter, ExportOptions
from context_porter.models import Conversation, Message, Project, format_timestamp

SCHEMA_VERSION = "1.0"


class JsonExporter(Exporter):
    """Exports a project and its conversations as a single JSON document."""

    export_format = ExportFormat.JSON
    content_type = "application/json"
    filename_suffix = ".json"

    def render(
        self,
        project: Project,
        conversations: Sequence[Conversation],
        options: ExportOptions,
        *,
        exported_at: datetime,
        summaries: Mapping[str, str],
    ) -> str:
        document = {
            "project": self._project_doc(project),
            "conversations": [
                self._conversation_doc(conversation, options) for conversation in conversations
            ],
            "exportMetadata": {
                "exportedAt": format_timestamp(exported_at),
                "format": self.export_format.value,
                "version": SCHEMA_VERSION,
            },
        }
        # default=str keeps odd metadata values (dates, decimals) from aborting the export
        return json.dumps(document, indent=2, ensure_ascii=False, default=str)

    def _project_doc(self, project: Project) -> dict[str, Any]:
        return {
            "id": project.id,
            "name": project.name,
            "description": project.description,
            "tags": list(project.tags),
            "status": project.status,
            "createdAt": format_timestamp(project.created_at),
            "lastActivityAt": format_timestamp(project.last_activity_at),
        }

    def _conversation_doc(self, conversation: Conversation, options: ExportOptions) -> dict[str, Any]:
        return {
            "id": conversation.id,
            "title": conversation.title,
            "aiProvider": conversation.ai_provider,
            "modelVersion": conversation.model_version,
            "messageCount": conversation.effective_message_count,
            "createdAt": format_timestamp(conversation.created_at),
            "updatedAt": format_timestamp(conversation.updated_at),
            "messages": [self._message_doc(message, options) for message in conversation.messages],
        }

    def _message_doc(self, message: Message, options: ExportOptions) -> dict[str, Any]:
        return {
            "id": message.id,
            "role": message.role,
            "content": message.content,
            "rawContent": message.raw_content,
            "metadata": dict(message.metadata) if options.include_metadata else {},
            "sequenceOrder": message.sequence_order,
            "createdAt": format_timestamp(message.created_at),
        }
