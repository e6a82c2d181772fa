"""Conversation store backed by JSON project bundles.

A bundle is a JSON file in the shape produced by the json exporter:

    {"project": {...}, "conversations": [{..., "messages": [...]}]}

Bundles may additionally carry fields the exporter does not emit:
- conversations[].contextSummary: previously computed summary
- conversations[].status: "active" or "archived"
- messages[].tokenCount: token estimate

so an export can be re-imported and exported again in another format.
"""

import json
from datetime import datetime
from pathlib import Path
from typing import Any, Protocol

from context_porter.errors import BundleError
from context_porter.logging import get_logger
from context_porter.models import Conversation, Message, Project, parse_timestamp

logger = get_logger("store")


class ConversationStore(Protocol):
    """Source of projects and their ordered conversations."""

    def get_project(self, project_id: str) -> Project: ...

    def get_conversations_with_messages(self, project_id: str) -> list[Conversation]: ...


def _timestamp(data: dict[str, Any], key: str, where: str) -> datetime | None:
    try:
        return parse_timestamp(data.get(key))
    except (TypeError, ValueError) as e:
        raise BundleError(f"{where}: invalid timestamp in {key!r}: {data.get(key)!r}") from e


def _parse_metadata(value: Any, where: str) -> dict[str, Any]:
    # The conversation store may hand metadata over as a JSON-encoded string
    if value is None:
        return {}
    if isinstance(value, str):
        try:
            value = json.loads(value) if value.strip() else {}
        except json.JSONDecodeError as e:
            raise BundleError(f"{where}: metadata is not valid JSON") from e
    if not isinstance(value, dict):
        raise BundleError(f"{where}: metadata must be an object")
    return value


def _parse_message(data: dict[str, Any], conversation_id: str, index: int) -> Message:
    if not isinstance(data, dict):
        raise BundleError(f"message {index} of conversation {conversation_id}: expected an object")
    where = f"message {data.get('id', index)} of conversation {conversation_id}"
    sequence_order = data.get("sequenceOrder")
    if sequence_order is None:
        sequence_order = index + 1
    try:
        sequence_order = int(sequence_order)
    except (TypeError, ValueError) as e:
        raise BundleError(f"{where}: invalid sequenceOrder {sequence_order!r}") from e

    return Message(
        id=str(data.get("id", f"{conversation_id}-{index}")),
        role=data.get("role", ""),
        content=data.get("content", ""),
        sequence_order=sequence_order,
        conversation_id=str(data.get("conversationId", conversation_id)),
        raw_content=data.get("rawContent"),
        metadata=_parse_metadata(data.get("metadata"), where),
        token_count=data.get("tokenCount"),
        created_at=_timestamp(data, "createdAt", where),
    )


def _parse_conversation(data: dict[str, Any], project_id: str, index: int) -> Conversation:
    if not isinstance(data, dict):
        raise BundleError(f"conversation {index} of project {project_id}: expected an object")
    conversation_id = str(data.get("id", f"{project_id}-{index}"))
    where = f"conversation {conversation_id}"

    raw_messages = data.get("messages") or []
    if not isinstance(raw_messages, list):
        raise BundleError(f"{where}: 'messages' must be a list")

    messages = [_parse_message(msg, conversation_id, i) for i, msg in enumerate(raw_messages)]
    messages.sort(key=lambda m: m.sequence_order)

    return Conversation(
        id=conversation_id,
        title=data.get("title", ""),
        ai_provider=data.get("aiProvider", "other"),
        project_id=str(data.get("projectId", project_id)),
        model_version=data.get("modelVersion"),
        context_summary=data.get("contextSummary"),
        message_count=data.get("messageCount"),
        status=data.get("status", "active"),
        created_at=_timestamp(data, "createdAt", where),
        updated_at=_timestamp(data, "updatedAt", where),
        messages=messages,
    )


def _creation_key(conversation: Conversation) -> tuple[bool, float]:
    # Conversations without a timestamp sort first, keeping file order
    if conversation.created_at is None:
        return (False, 0.0)
    return (True, conversation.created_at.timestamp())


def load_bundle(path: Path) -> tuple[Project, list[Conversation]]:
    """Load one project bundle.

    Args:
        path: Path to a bundle JSON file

    Returns:
        Tuple of (project, conversations sorted by creation time)

    Raises:
        BundleError: If the file cannot be read or is not a valid bundle
    """
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise BundleError(f"Cannot read bundle {path}: {e}") from e

    if not isinstance(data, dict) or not isinstance(data.get("project"), dict):
        raise BundleError(f"Bundle {path} has no 'project' object")

    project_data = data["project"]
    project_id = str(project_data.get("id") or path.stem)

    project = Project(
        id=project_id,
        name=project_data.get("name", ""),
        description=project_data.get("description"),
        tags=list(project_data.get("tags") or []),
        status=project_data.get("status", "active"),
        created_at=_timestamp(project_data, "createdAt", f"project {project_id}"),
        last_activity_at=_timestamp(project_data, "lastActivityAt", f"project {project_id}"),
    )

    raw_conversations = data.get("conversations") or []
    if not isinstance(raw_conversations, list):
        raise BundleError(f"Bundle {path}: 'conversations' must be a list")

    conversations = [
        _parse_conversation(conv, project_id, i) for i, conv in enumerate(raw_conversations)
    ]
    conversations.sort(key=_creation_key)

    return project, conversations


def discover_bundles(path: Path) -> list[Path]:
    """List bundle files at path (a single file or a directory of *.json)."""
    if path.is_file():
        return [path]
    if not path.exists():
        return []
    return sorted(path.glob("*.json"))


class BundleStore:
    """ConversationStore over one bundle file or a directory of bundles."""

    def __init__(self, path: Path) -> None:
        """Load every bundle found at path.

        Args:
            path: Bundle file or directory containing *.json bundles

        Raises:
            BundleError: If path holds no bundles or a bundle is invalid
        """
        self._path = path
        self._bundles: dict[str, tuple[Project, list[Conversation]]] = {}

        files = discover_bundles(path)
        if not files:
            raise BundleError(f"No bundles found at {path}")

        for file_path in files:
            project, conversations = load_bundle(file_path)
            if project.id in self._bundles:
                logger.warning(
                    "Duplicate project id in bundles, keeping first: id=%s path=%s",
                    project.id,
                    file_path,
                )
                continue
            self._bundles[project.id] = (project, conversations)

        logger.info("Loaded bundles: path=%s projects=%d", path, len(self._bundles))

    def project_ids(self) -> list[str]:
        """List loaded project ids in discovery order."""
        return list(self._bundles.keys())

    def get_project(self, project_id: str) -> Project:
        """Get a project by id.

        Raises:
            KeyError: If no loaded bundle holds the project
        """
        if project_id not in self._bundles:
            raise KeyError(f"Project not found: {project_id}")
        return self._bundles[project_id][0]

    def get_conversations_with_messages(
        self,
        project_id: str,
        include_archived: bool = False,
    ) -> list[Conversation]:
        """Get a project's conversations in creation order.

        Args:
            project_id: Project id
            include_archived: Also return archived conversations

        Returns:
            Conversations sorted by creation time, messages by sequence order

        Raises:
            KeyError: If no loaded bundle holds the project
        """
        self.get_project(project_id)
        conversations = self._bundles[project_id][1]
        if include_archived:
            return list(conversations)
        return [conv for conv in conversations if conv.status == "active"]

    def get_conversation(self, conversation_id: str) -> Conversation:
        """Find a conversation by id across all loaded projects.

        Raises:
            KeyError: If no loaded conversation has the id
        """
        for _, conversations in self._bundles.values():
            for conversation in conversations:
                if conversation.id == conversation_id:
                    return conversation
        raise KeyError(f"Conversation not found: {conversation_id}")
