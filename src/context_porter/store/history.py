"""Export history persisted in SQLite."""

import json
import sqlite3
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Self

from context_porter.config import DEFAULT_MAX_STORED_CHARS
from context_porter.logging import get_logger
from context_porter.models import ExportArtifact, Project

logger = get_logger("history")

TRUNCATION_MARKER = "...[truncated]"


@dataclass
class ExportRecord:
    """A stored export."""

    id: int
    project_id: str
    project_name: str
    format: str
    target_provider: str | None
    content: str
    file_size_bytes: int
    options: dict[str, Any] = field(default_factory=dict)
    created_at: int | None = None  # Unix timestamp (seconds)


def truncate_content(content: str, max_chars: int) -> str:
    """Cap stored content at max_chars characters plus a truncation marker."""
    if len(content) > max_chars:
        return content[:max_chars] + TRUNCATION_MARKER
    return content


class ExportHistory:
    """Manages persisted export records in an SQLite database.

    Stored content is truncated to max_stored_chars; file_size_bytes always
    reflects the full artifact.
    """

    def __init__(self, db_path: Path, max_stored_chars: int = DEFAULT_MAX_STORED_CHARS) -> None:
        """Initialize export history with database path.

        Args:
            db_path: Path to SQLite database file. Parent directories
                     will be created if they don't exist.
            max_stored_chars: Maximum characters of content kept per record
        """
        self._db_path = db_path
        self._max_stored_chars = max_stored_chars
        db_path.parent.mkdir(parents=True, exist_ok=True)
        self._conn = sqlite3.connect(db_path)
        self._conn.row_factory = sqlite3.Row
        self.ensure_schema()

    def ensure_schema(self) -> None:
        """Create the exports table if it doesn't exist."""
        self._conn.execute("""
            CREATE TABLE IF NOT EXISTS exports (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                project_id TEXT NOT NULL,
                project_name TEXT NOT NULL,
                format TEXT NOT NULL,
                target_provider TEXT,
                exported_content TEXT NOT NULL,
                export_options TEXT DEFAULT '{}',
                file_size_bytes INTEGER,
                created_at INTEGER
            )
        """)
        self._conn.execute(
            "CREATE INDEX IF NOT EXISTS idx_exports_project ON exports (project_id)"
        )
        self._conn.commit()

    def record(
        self,
        project: Project,
        artifact: ExportArtifact,
        created_at: int | None = None,
    ) -> ExportRecord:
        """Persist an export artifact.

        Args:
            project: Project the artifact was produced from
            artifact: Produced artifact
            created_at: Unix timestamp (defaults to now)

        Returns:
            The stored ExportRecord
        """
        if created_at is None:
            created_at = int(time.time())

        stored_content = truncate_content(artifact.content, self._max_stored_chars)
        cursor = self._conn.execute(
            """
            INSERT INTO exports (
                project_id, project_name, format, target_provider,
                exported_content, export_options, file_size_bytes, created_at
            )
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                project.id,
                project.name,
                artifact.format,
                artifact.target_provider,
                stored_content,
                json.dumps(artifact.options),
                artifact.size_bytes,
                created_at,
            ),
        )
        self._conn.commit()

        export_id = cursor.lastrowid
        logger.info(
            "Recorded export: id=%s project=%s format=%s bytes=%d",
            export_id,
            project.id,
            artifact.format,
            artifact.size_bytes,
        )

        return ExportRecord(
            id=export_id,
            project_id=project.id,
            project_name=project.name,
            format=artifact.format,
            target_provider=artifact.target_provider,
            content=stored_content,
            file_size_bytes=artifact.size_bytes,
            options=dict(artifact.options),
            created_at=created_at,
        )

    def get_export(self, export_id: int) -> ExportRecord | None:
        """Get a stored export by id.

        Args:
            export_id: Export record id

        Returns:
            ExportRecord if found, None otherwise
        """
        cursor = self._conn.execute(
            """
            SELECT id, project_id, project_name, format, target_provider,
                   exported_content, export_options, file_size_bytes, created_at
            FROM exports
            WHERE id = ?
            """,
            (export_id,),
        )
        row = cursor.fetchone()
        if row is None:
            return None
        return self._row_to_record(row)

    def list_exports(self, limit: int = 20, offset: int = 0) -> list[ExportRecord]:
        """List stored exports, newest first.

        Args:
            limit: Maximum number of records
            offset: Number of records to skip

        Returns:
            List of ExportRecord objects
        """
        cursor = self._conn.execute(
            """
            SELECT id, project_id, project_name, format, target_provider,
                   exported_content, export_options, file_size_bytes, created_at
            FROM exports
            ORDER BY created_at DESC, id DESC
            LIMIT ? OFFSET ?
            """,
            (limit, offset),
        )
        return [self._row_to_record(row) for row in cursor]

    def _row_to_record(self, row: sqlite3.Row) -> ExportRecord:
        return ExportRecord(
            id=row["id"],
            project_id=row["project_id"],
            project_name=row["project_name"],
            format=row["format"],
            target_provider=row["target_provider"],
            content=row["exported_content"],
            file_size_bytes=row["file_size_bytes"] or 0,
            options=json.loads(row["export_options"] or "{}"),
            created_at=row["created_at"],
        )

    def close(self) -> None:
        """Close the database connection."""
        self._conn.close()

    def __enter__(self) -> Self:
        """Enter context manager."""
        return self

    def __exit__(self, exc_type: type | None, exc_val: Exception | None, exc_tb: object) -> None:
        """Exit context manager, closing database connection."""
        self.close()
