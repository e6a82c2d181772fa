"""Tests for the JSON bundle conversation store."""

import json
from datetime import datetime, timezone
from pathlib import Path

import pytest

from context_porter.errors import BundleError
from context_porter.models import Conversation, Message, Project
from context_porter.service import export
from context_porter.store.bundle import BundleStore, discover_bundles, load_bundle


def bundle_data(project_id: str = "p1", name: str = "Research") -> dict:
    return {
        "project": {
            "id": project_id,
            "name": name,
            "description": "Notes",
            "tags": ["a"],
            "status": "active",
            "createdAt": "2024-01-01T00:00:00.000Z",
            "lastActivityAt": "2024-01-03T00:00:00.000Z",
        },
        "conversations": [
            {
                "id": "c-late",
                "title": "Later",
                "aiProvider": "anthropic",
                "createdAt": "2024-01-02T00:00:00Z",
                "messages": [
                    {"id": "m2", "role": "assistant", "content": "second", "sequenceOrder": 2},
                    {"id": "m1", "role": "user", "content": "first", "sequenceOrder": 1},
                ],
            },
            {
                "id": "c-early",
                "title": "Earlier",
                "aiProvider": "openai",
                "modelVersion": "gpt-4",
                "contextSummary": "Recap",
                "createdAt": "2024-01-01T00:00:00Z",
                "messages": [],
            },
            {
                "id": "c-archived",
                "title": "Old",
                "aiProvider": "google",
                "status": "archived",
                "createdAt": "2023-12-01T00:00:00Z",
                "messages": [],
            },
        ],
    }


def write_bundle(path: Path, data: dict) -> Path:
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


class TestLoadBundle:
    """Tests for load_bundle."""

    def test_parses_project(self, tmp_path: Path) -> None:
        """Project fields and timestamps are parsed."""
        project, _ = load_bundle(write_bundle(tmp_path / "b.json", bundle_data()))
        assert project.id == "p1"
        assert project.name == "Research"
        assert project.tags == ["a"]
        assert project.created_at == datetime(2024, 1, 1, tzinfo=timezone.utc)

    def test_conversations_sorted_by_creation(self, tmp_path: Path) -> None:
        """Conversations come back oldest first."""
        _, conversations = load_bundle(write_bundle(tmp_path / "b.json", bundle_data()))
        assert [c.id for c in conversations] == ["c-archived", "c-early", "c-late"]

    def test_messages_sorted_by_sequence(self, tmp_path: Path) -> None:
        """Messages come back in sequence order."""
        _, conversations = load_bundle(write_bundle(tmp_path / "b.json", bundle_data()))
        late = conversations[-1]
        assert [m.content for m in late.messages] == ["first", "second"]
        assert late.messages[0].conversation_id == "c-late"

    def test_optional_fields(self, tmp_path: Path) -> None:
        """Summary, model and status are carried over."""
        _, conversations = load_bundle(write_bundle(tmp_path / "b.json", bundle_data()))
        early = conversations[1]
        assert early.context_summary == "Recap"
        assert early.model_version == "gpt-4"
        assert conversations[0].status == "archived"

    def test_project_id_falls_back_to_filename(self, tmp_path: Path) -> None:
        data = bundle_data()
        del data["project"]["id"]
        project, _ = load_bundle(write_bundle(tmp_path / "alpha.json", data))
        assert project.id == "alpha"

    def test_invalid_json(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(BundleError, match="Cannot read bundle"):
            load_bundle(path)

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(BundleError):
            load_bundle(tmp_path / "missing.json")

    def test_missing_project(self, tmp_path: Path) -> None:
        with pytest.raises(BundleError, match="project"):
            load_bundle(write_bundle(tmp_path / "b.json", {"conversations": []}))

    def test_bad_timestamp(self, tmp_path: Path) -> None:
        data = bundle_data()
        data["conversations"][0]["createdAt"] = "yesterday"
        with pytest.raises(BundleError, match="createdAt"):
            load_bundle(write_bundle(tmp_path / "b.json", data))

    def test_bad_sequence_order(self, tmp_path: Path) -> None:
        data = bundle_data()
        data["conversations"][0]["messages"][0]["sequenceOrder"] = "two"
        with pytest.raises(BundleError, match="sequenceOrder"):
            load_bundle(write_bundle(tmp_path / "b.json", data))

    def test_message_not_an_object(self, tmp_path: Path) -> None:
        """A scalar in a messages list is rejected as a bundle error."""
        data = bundle_data()
        data["conversations"][0]["messages"].append("oops")
        with pytest.raises(BundleError, match="expected an object"):
            load_bundle(write_bundle(tmp_path / "b.json", data))

    def test_conversation_not_an_object(self, tmp_path: Path) -> None:
        data = bundle_data()
        data["conversations"].append(42)
        with pytest.raises(BundleError, match="expected an object"):
            load_bundle(write_bundle(tmp_path / "b.json", data))

    def test_messages_not_a_list(self, tmp_path: Path) -> None:
        data = bundle_data()
        data["conversations"][0]["messages"] = {"id": "m1"}
        with pytest.raises(BundleError, match="'messages' must be a list"):
            load_bundle(write_bundle(tmp_path / "b.json", data))

    def test_metadata_json_string_is_decoded(self, tmp_path: Path) -> None:
        """Metadata stored as a JSON-encoded string loads as a dict."""
        data = bundle_data()
        data["conversations"][0]["messages"][0]["metadata"] = '{"k": 1}'
        data["conversations"][0]["messages"][1]["metadata"] = ""
        _, conversations = load_bundle(write_bundle(tmp_path / "b.json", data))
        late = conversations[-1]
        assert late.messages[1].metadata == {"k": 1}
        assert late.messages[0].metadata == {}

    def test_metadata_invalid_json_string(self, tmp_path: Path) -> None:
        data = bundle_data()
        data["conversations"][0]["messages"][0]["metadata"] = "{not json"
        with pytest.raises(BundleError, match="metadata is not valid JSON"):
            load_bundle(write_bundle(tmp_path / "b.json", data))

    @pytest.mark.parametrize("metadata", [["a", "b"], 7, '"just a string"'])
    def test_metadata_not_an_object(self, tmp_path: Path, metadata: object) -> None:
        data = bundle_data()
        data["conversations"][0]["messages"][0]["metadata"] = metadata
        with pytest.raises(BundleError, match="metadata must be an object"):
            load_bundle(write_bundle(tmp_path / "b.json", data))

    def test_string_metadata_bundle_exports_as_json(self, tmp_path: Path) -> None:
        """A bundle with string-encoded metadata exports as JSON without error."""
        data = bundle_data()
        data["conversations"][0]["messages"][0]["metadata"] = '{"source": "api"}'
        project, conversations = load_bundle(write_bundle(tmp_path / "b.json", data))
        output = json.loads(export(project, conversations, "json"))
        late = output["conversations"][-1]
        assert late["messages"][1]["metadata"] == {"source": "api"}


class TestRoundTrip:
    """Re-importing a json export reproduces the exported structure."""

    def test_json_export_reimports(self, tmp_path: Path) -> None:
        project = Project(
            id="p9",
            name="Roundtrip",
            tags=["x", "y"],
            created_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
        )
        conversations = [
            Conversation(
                id=f"c{n}",
                title=f"Conv {n}",
                ai_provider="openai",
                created_at=datetime(2024, 1, n + 1, tzinfo=timezone.utc),
                messages=[
                    Message(
                        id=f"c{n}-m{i}",
                        role="user" if i % 2 == 0 else "assistant",
                        content=f"text {n}.{i}",
                        sequence_order=i + 1,
                        metadata={"i": i},
                    )
                    for i in range(n + 1)
                ],
            )
            for n in range(3)
        ]

        path = tmp_path / "export.json"
        path.write_text(export(project, conversations, "json"), encoding="utf-8")
        loaded_project, loaded = load_bundle(path)

        assert loaded_project.name == "Roundtrip"
        assert loaded_project.tags == ["x", "y"]
        assert [c.id for c in loaded] == ["c0", "c1", "c2"]
        assert [len(c.messages) for c in loaded] == [1, 2, 3]
        assert [m.id for m in loaded[2].messages] == ["c2-m0", "c2-m1", "c2-m2"]
        assert loaded[2].messages[1].metadata == {"i": 1}
        for conv in loaded:
            conv.validate()


class TestDiscoverBundles:
    """Tests for discover_bundles."""

    def test_single_file(self, tmp_path: Path) -> None:
        path = write_bundle(tmp_path / "b.json", bundle_data())
        assert discover_bundles(path) == [path]

    def test_directory(self, tmp_path: Path) -> None:
        write_bundle(tmp_path / "b.json", bundle_data("p2"))
        write_bundle(tmp_path / "a.json", bundle_data("p1"))
        (tmp_path / "notes.txt").write_text("ignored")
        assert [p.name for p in discover_bundles(tmp_path)] == ["a.json", "b.json"]

    def test_missing(self, tmp_path: Path) -> None:
        assert discover_bundles(tmp_path / "nope") == []


class TestBundleStore:
    """Tests for BundleStore."""

    def test_get_project(self, tmp_path: Path) -> None:
        store = BundleStore(write_bundle(tmp_path / "b.json", bundle_data()))
        assert store.get_project("p1").name == "Research"
        assert store.project_ids() == ["p1"]

    def test_unknown_project(self, tmp_path: Path) -> None:
        store = BundleStore(write_bundle(tmp_path / "b.json", bundle_data()))
        with pytest.raises(KeyError):
            store.get_project("nope")
        with pytest.raises(KeyError):
            store.get_conversations_with_messages("nope")

    def test_archived_excluded_by_default(self, tmp_path: Path) -> None:
        """Only active conversations are returned unless asked."""
        store = BundleStore(write_bundle(tmp_path / "b.json", bundle_data()))
        active = store.get_conversations_with_messages("p1")
        assert [c.id for c in active] == ["c-early", "c-late"]
        everything = store.get_conversations_with_messages("p1", include_archived=True)
        assert len(everything) == 3

    def test_directory_of_bundles(self, tmp_path: Path) -> None:
        write_bundle(tmp_path / "one.json", bundle_data("p1", "One"))
        write_bundle(tmp_path / "two.json", bundle_data("p2", "Two"))
        store = BundleStore(tmp_path)
        assert sorted(store.project_ids()) == ["p1", "p2"]
        assert store.get_project("p2").name == "Two"

    def test_duplicate_project_keeps_first(self, tmp_path: Path) -> None:
        write_bundle(tmp_path / "a.json", bundle_data("p1", "First"))
        write_bundle(tmp_path / "b.json", bundle_data("p1", "Second"))
        store = BundleStore(tmp_path)
        assert store.get_project("p1").name == "First"

    def test_empty_directory(self, tmp_path: Path) -> None:
        with pytest.raises(BundleError, match="No bundles"):
            BundleStore(tmp_path)

    def test_get_conversation(self, tmp_path: Path) -> None:
        store = BundleStore(write_bundle(tmp_path / "b.json", bundle_data()))
        assert store.get_conversation("c-late").title == "Later"
        with pytest.raises(KeyError):
            store.get_conversation("missing")
