"""Project, conversation and message models consumed by the exporters."""

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from context_porter.errors import ValidationError

PROJECT_STATUSES = ("active", "archived", "completed")
CONVERSATION_STATUSES = ("active", "archived")
AI_PROVIDERS = ("openai", "anthropic", "google", "mistral", "other")
ROLES = ("user", "assistant", "system")


def format_timestamp(value: datetime | None) -> str | None:
    """Render a timestamp as ISO 8601, keeping None as None."""
    if value is None:
        return None
    return value.isoformat()


def parse_timestamp(value: str | None) -> datetime | None:
    """Parse an ISO 8601 timestamp (with optional Z suffix).

    Args:
        value: ISO 8601 string such as "2024-01-05T10:00:00.000Z"

    Returns:
        Parsed datetime, or None when value is empty

    Raises:
        ValueError: If the string is not a valid ISO 8601 timestamp
    """
    if not value:
        return None
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    return datetime.fromisoformat(value)


@dataclass
class Message:
    """A single message inside a conversation."""

    id: str
    role: str  # user, assistant, system
    content: str
    sequence_order: int
    conversation_id: str | None = None
    raw_content: str | None = None  # Content before normalization
    metadata: dict[str, Any] = field(default_factory=dict)
    token_count: int | None = None
    created_at: datetime | None = None

    def validate(self) -> None:
        """Raise ValidationError if the message is malformed."""
        if self.role not in ROLES:
            raise ValidationError(f"Message {self.id}: unknown role {self.role!r}")
        if not isinstance(self.content, str):
            raise ValidationError(f"Message {self.id}: content must be a string")
        if not isinstance(self.metadata, Mapping):
            raise ValidationError(f"Message {self.id}: metadata must be a mapping")


@dataclass
class Conversation:
    """An imported conversation with its ordered messages."""

    id: str
    title: str
    ai_provider: str  # openai, anthropic, google, mistral, other
    project_id: str | None = None
    model_version: str | None = None
    context_summary: str | None = None  # Filled in by a prior summarization step
    message_count: int | None = None  # Derived from messages when None
    status: str = "active"
    created_at: datetime | None = None
    updated_at: datetime | None = None
    messages: list[Message] = field(default_factory=list)

    @property
    def effective_message_count(self) -> int:
        if self.message_count is None:
            return len(self.messages)
        return self.message_count

    def validate(self) -> None:
        """Raise ValidationError if the conversation or any message is malformed."""
        if self.ai_provider not in AI_PROVIDERS:
            raise ValidationError(
                f"Conversation {self.id}: unknown AI provider {self.ai_provider!r}"
            )
        if self.status not in CONVERSATION_STATUSES:
            raise ValidationError(f"Conversation {self.id}: unknown status {self.status!r}")
        if self.message_count is not None and self.message_count != len(self.messages):
            raise ValidationError(
                f"Conversation {self.id}: message_count={self.message_count} "
                f"but {len(self.messages)} messages supplied"
            )

        previous: int | None = None
        for message in self.messages:
            message.validate()
            if previous is not None and message.sequence_order <= previous:
                raise ValidationError(
                    f"Conversation {self.id}: sequence_order must be strictly increasing "
                    f"(got {message.sequence_order} after {previous})"
                )
            previous = message.sequence_order


@dataclass
class Project:
    """A named collection of conversations."""

    id: str
    name: str
    description: str | None = None
    tags: list[str] = field(default_factory=list)
    status: str = "active"  # active, archived, completed
    created_at: datetime | None = None
    last_activity_at: datetime | None = None

    def validate(self) -> None:
        """Raise ValidationError if the project is malformed."""
        if not isinstance(self.name, str) or not self.name.strip():
            raise ValidationError(f"Project {self.id}: name must be non-empty")
        if self.status not in PROJECT_STATUSES:
            raise ValidationError(f"Project {self.id}: unknown status {self.status!r}")


@dataclass
class ExportArtifact:
    """A produced export plus the metadata persisted alongside it."""

    format: str
    target_provider: str
    content: str
    size_bytes: int
    filename: str
    content_type: str
    options: dict[str, Any] = field(default_factory=dict)
    conversation_count: int = 0
    message_count: int = 0
