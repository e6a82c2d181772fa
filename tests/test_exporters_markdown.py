"""Tests for the Markdown exporter."""

from datetime import datetime, timezone

import pytest

from context_porter.exporters import ExportOptions, MarkdownExporter
from context_porter.models import Conversation, Message, Project

EXPORTED_AT = datetime(2024, 6, 1, tzinfo=timezone.utc)


@pytest.fixture
def project() -> Project:
    return Project(
        id="p1",
        name="Research",
        created_at=datetime(2024, 1, 5, tzinfo=timezone.utc),
        last_activity_at=datetime(2024, 2, 22, tzinfo=timezone.utc),
    )


@pytest.fixture
def session() -> Conversation:
    return Conversation(
        id="c1",
        title="Session 1",
        ai_provider="openai",
        created_at=datetime(2024, 1, 6, tzinfo=timezone.utc),
        messages=[
            Message(id="m1", role="user", content="Hi", sequence_order=1),
            Message(id="m2", role="assistant", content="Hello", sequence_order=2),
        ],
    )


def render(project: Project, conversations: list[Conversation], **options) -> str:
    return MarkdownExporter().render(
        project,
        conversations,
        ExportOptions(**options),
        exported_at=EXPORTED_AT,
        summaries={},
    )


class TestMarkdownHeader:
    """Tests for the project header."""

    def test_starts_with_h1(self, project: Project) -> None:
        """The document should start with an H1 of the project name."""
        assert render(project, []).startswith("# Research\n\n")

    def test_description_and_tags(self, project: Project) -> None:
        """Description and tags should be rendered when present."""
        project.description = "Literature review"
        project.tags = ["ml", "papers"]
        text = render(project, [])
        assert "Literature review\n\n" in text
        assert "**Tags:** ml, papers\n\n" in text

    def test_no_tags_line_without_tags(self, project: Project) -> None:
        """No tags line should be emitted for an untagged project."""
        assert "**Tags:**" not in render(project, [])

    def test_dates(self, project: Project) -> None:
        """Created and last-activity lines should use long dates."""
        text = render(project, [])
        assert "**Created:** January 5th, 2024\n" in text
        assert "**Last Activity:** February 22nd, 2024\n" in text

    def test_empty_project_has_no_sections(self, project: Project) -> None:
        """An empty project renders the header and no conversation sections."""
        text = render(project, [])
        assert "# Research" in text
        assert "## " not in text
        assert "### " not in text


class TestMarkdownConversations:
    """Tests for conversation and message sections."""

    def test_scenario(self, project: Project, session: Conversation) -> None:
        """The basic scenario renders headings, provider and role sections."""
        text = render(project, [session])
        assert "# Research" in text
        assert "## Session 1" in text
        assert "**AI Provider:** openai" in text
        assert "### User\n\nHi\n\n" in text
        assert "### Assistant\n\nHello\n\n" in text
        assert text.index("### User") < text.index("### Assistant")

    def test_conversation_details(self, project: Project, session: Conversation) -> None:
        """Model, message count and creation date should be listed."""
        session.model_version = "gpt-4"
        text = render(project, [session])
        assert "**Model:** gpt-4\n" in text
        assert "**Messages:** 2\n" in text
        assert "**Created:** January 6th, 2024\n" in text

    def test_no_model_line_without_model(self, project: Project, session: Conversation) -> None:
        """No model line should be emitted without a model version."""
        assert "**Model:**" not in render(project, [session])

    def test_conversation_order(self, project: Project, session: Conversation) -> None:
        """Conversations should appear in input order."""
        other = Conversation(id="c2", title="Session 2", ai_provider="google")
        text = render(project, [other, session])
        assert text.index("## Session 2") < text.index("## Session 1")

    def test_sections_separated_by_rules(self, project: Project, session: Conversation) -> None:
        """Header and each conversation end with a horizontal rule."""
        text = render(project, [session])
        assert text.count("---\n\n") == 2

    def test_role_icons(self, project: Project, session: Conversation) -> None:
        """role_icons should prefix headings with the role icon."""
        text = render(project, [session], role_icons=True)
        assert "### \U0001f464 User" in text
        assert "### \U0001f916 Assistant" in text


class TestMarkdownMetadata:
    """Tests for the collapsible metadata block."""

    def test_metadata_block(self, project: Project, session: Conversation) -> None:
        """Non-empty metadata should render as a details block."""
        session.messages[0].metadata = {"source": "web"}
        text = render(project, [session])
        assert "<details>\n<summary>Metadata</summary>" in text
        assert '"source": "web"' in text
        assert text.count("<details>") == 1

    def test_empty_metadata_has_no_block(self, project: Project, session: Conversation) -> None:
        """Messages without metadata should not get a details block."""
        assert "<details>" not in render(project, [session])

    def test_metadata_suppressed(self, project: Project, session: Conversation) -> None:
        """include_metadata=False should drop metadata blocks."""
        session.messages[0].metadata = {"source": "web"}
        text = render(project, [session], include_metadata=False)
        assert "<details>" not in text
        assert "Metadata" not in text
