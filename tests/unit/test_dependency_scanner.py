"""
Unit tests for the content dependency scanner
"""

import pytest

from conftest import content_link, content_reference
from hubsync.engine import find_dependency_ids, is_content_dependency, scan


class TestScan:
    """Test link / reference discovery"""

    @pytest.fixture
    def slot_body(self):
        return {
            "title": "Summer",
            "carousel": [
                {"caption": "first"},
                content_link("snap-array", "item-array")
            ],
            "hero": content_reference("snap-direct", "item-direct"),
            "layout": {
                "column": {
                    "promo": content_reference("snap-nested", "item-nested")
                }
            },
            "image": {
                "_meta": {"schema": "http://bigcontent.io/cms/schema/v1/core#/definitions/image-link"},
                "id": "image-1"
            }
        }

    def test_finds_tagged_entries_in_document_order(self, slot_body):
        dependencies = list(scan(slot_body))

        assert [d.id for d in dependencies] == ["snap-array", "snap-direct", "snap-nested"]
        assert [d.path for d in dependencies] == [
            ("carousel", 1),
            ("hero",),
            ("layout", "column", "promo"),
        ]
        assert dependencies[0].is_link is True
        assert dependencies[1].is_link is False

    def test_handles_mutate_document(self, slot_body):
        for dependency in scan(slot_body):
            dependency.id = f"new-{dependency.id}"
            dependency.root_content_item_id = "dest-item"

        assert slot_body["carousel"][1]["id"] == "new-snap-array"
        assert slot_body["hero"]["_meta"]["rootContentItemId"] == "dest-item"
        assert slot_body["layout"]["column"]["promo"]["id"] == "new-snap-nested"
        assert slot_body["image"]["id"] == "image-1"

    def test_restartable(self, slot_body):
        assert find_dependency_ids(slot_body) == find_dependency_ids(slot_body)

    @pytest.mark.parametrize("root", [None, {}, [], "text", 42, {"body": None}])
    def test_empty_documents(self, root):
        assert list(scan(root)) == []

    def test_does_not_descend_into_matches(self):
        outer = content_link("outer", "item-outer")
        outer["inner"] = content_link("inner", "item-inner")

        assert find_dependency_ids({"body": outer}) == ["outer"]

    def test_accessors(self):
        dependency = next(scan({"body": content_reference("snap", "item", "https://example.com/card")}))

        assert dependency.content_type == "https://example.com/card"
        assert dependency.locked is True
        assert dependency.path_string() == ".body"


class TestIsContentDependency:
    """Test the matching rule"""

    def test_schema_suffix(self):
        assert is_content_dependency({"_meta": {"schema": "https://custom.example/x/definitions/content-link"}})

    @pytest.mark.parametrize("value", [
        {"_meta": {"schema": "http://bigcontent.io/cms/schema/v1/core#/definitions/image-link"}},
        {"_meta": {}},
        {"_meta": "content-link"},
        {"schema": "http://bigcontent.io/cms/schema/v1/core#/definitions/content-link"},
        ["_meta"],
    ])
    def test_non_matches(self, value):
        assert not is_content_dependency(value)
