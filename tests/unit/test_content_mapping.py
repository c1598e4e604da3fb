"""
Unit tests for the cross-hub content mapping
"""

import json

import pytest

from hubsync.models import ContentMapping, get_default_mapping_path


class TestContentMapping:
    """Test lookups, persistence and failure handling"""

    @pytest.fixture
    def mapping(self):
        mapping = ContentMapping()
        mapping.register_event("src-event", "dest-event")
        mapping.register_edition("src-edition", "dest-edition")
        mapping.register_slot("src-slot", "dest-slot")
        mapping.register_content_item("src-item", "dest-item")
        mapping.register_snapshot("src-snap", "dest-snap")
        return mapping

    def test_lookup(self, mapping):
        assert mapping.get_event("src-event") == "dest-event"
        assert mapping.get_edition("src-edition") == "dest-edition"
        assert mapping.get_slot("src-slot") == "dest-slot"
        assert mapping.get_content_item("src-item") == "dest-item"
        assert mapping.get_snapshot("src-snap") == "dest-snap"

    def test_unknown_and_none(self, mapping):
        assert mapping.get_event("unknown") is None
        assert mapping.get_snapshot(None) is None

    def test_kinds_are_independent(self, mapping):
        assert mapping.get_edition("src-event") is None

    def test_register_overwrites(self, mapping):
        mapping.register_snapshot("src-snap", "newer-snap")
        assert mapping.get_snapshot("src-snap") == "newer-snap"

    def test_save_and_load(self, mapping, tmp_path):
        path = tmp_path / "imports" / "hub-dest.json"
        mapping.save(path)

        loaded = ContentMapping()
        assert loaded.load(path) is True
        assert loaded.get_event("src-event") == "dest-event"
        assert loaded.get_content_item("src-item") == "dest-item"
        assert loaded.get_snapshot("src-snap") == "dest-snap"

    def test_file_format(self, mapping, tmp_path):
        path = tmp_path / "mapping.json"
        mapping.save(path)

        data = json.loads(path.read_text(encoding="utf-8"))
        assert data["events"] == [["src-event", "dest-event"]]
        assert data["contentItems"] == [["src-item", "dest-item"]]
        assert sorted(p.name for p in tmp_path.iterdir()) == ["mapping.json"]

    def test_missing_tables_load_empty(self, tmp_path):
        path = tmp_path / "partial.json"
        path.write_text(json.dumps({"events": [["a", "b"]]}), encoding="utf-8")

        mapping = ContentMapping()
        assert mapping.load(path) is True
        assert mapping.get_event("a") == "b"
        assert mapping.snapshots == {}

    def test_missing_file(self, tmp_path):
        assert ContentMapping().load(tmp_path / "missing.json") is False

    @pytest.mark.parametrize("text", ["not json", "[]", '{"events": "wrong"}'])
    def test_corrupt_file(self, tmp_path, text):
        path = tmp_path / "corrupt.json"
        path.write_text(text, encoding="utf-8")

        mapping = ContentMapping()
        assert mapping.load(path) is False
        assert mapping.events == {}

    def test_default_path(self):
        path = get_default_mapping_path("hub-123")
        assert path.name == "hub-123.json"
        assert path.parent.name == "imports"
