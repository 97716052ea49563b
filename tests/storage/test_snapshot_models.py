"""Tests for snapshot pydantic models."""

import pytest

from contentqa.storage.models import (
    CacheRow,
    EntityData,
    FieldStorageConfig,
    SiteSnapshot,
    TableData,
)


class TestFieldStorageConfig:
    def test_target_type_from_settings(self):
        config = FieldStorageConfig.model_validate(
            {
                "entity_type": "node",
                "field_name": "field_tags",
                "type": "entity_reference",
                "settings": {"target_type": "taxonomy_term"},
            }
        )

        assert config.target_type == "taxonomy_term"

    def test_explicit_target_type_wins(self):
        config = FieldStorageConfig.model_validate(
            {
                "entity_type": "node",
                "field_name": "field_ref",
                "type": "entity_reference",
                "target_type": "node",
                "settings": {"target_type": "user"},
            }
        )

        assert config.target_type == "node"

    def test_non_reference_field_has_no_target(self):
        config = FieldStorageConfig(
            entity_type="node", field_name="body", type="text_with_summary"
        )

        assert config.target_type is None


class TestCacheRow:
    def test_string_data_becomes_bytes(self):
        row = CacheRow.model_validate({"cid": "a", "data": "abc", "serialized": 0})

        assert row.data == b"abc"
        assert row.serialized is False

    def test_null_data_is_empty(self):
        row = CacheRow.model_validate({"cid": "a", "data": None, "serialized": 1})

        assert row.data == b""
        assert row.serialized is True

    def test_integer_cid_becomes_string(self):
        row = CacheRow.model_validate({"cid": 42, "data": "", "serialized": 1})

        assert row.cid == "42"


class TestEntityData:
    def test_single_item_wrapped_in_list(self):
        entity = EntityData.model_validate(
            {"id": 1, "fields": {"field_ref": {"target_id": 2}}}
        )

        assert entity.fields["field_ref"] == [{"target_id": 2}]

    def test_scalar_items_stored_as_value(self):
        entity = EntityData.model_validate({"id": 1, "fields": {"title": "Hello"}})

        assert entity.fields["title"] == [{"value": "Hello"}]

    def test_null_field_is_empty(self):
        entity = EntityData.model_validate({"id": 1, "fields": {"field_ref": None}})

        assert entity.fields["field_ref"] == []


class TestTableData:
    def test_fields_mapping_as_columns(self):
        table = TableData.model_validate(
            {"fields": {"cid": {"type": "varchar"}, "data": {"type": "blob"}}}
        )

        assert table.columns == ["cid", "data"]


class TestSiteSnapshot:
    def test_entity_types_derived(self):
        snapshot = SiteSnapshot.model_validate(
            {
                "field_storage": [
                    {
                        "entity_type": "node",
                        "field_name": "uid",
                        "type": "entity_reference",
                        "target_type": "user",
                    }
                ],
                "entities": {"taxonomy_term": [{"id": 1}]},
            }
        )

        assert snapshot.entity_types == ["taxonomy_term", "node", "user"]

    def test_declared_entity_types_kept(self):
        snapshot = SiteSnapshot.model_validate(
            {"entity_types": ["node"], "entities": {"node": [], "user": []}}
        )

        assert snapshot.entity_types == ["node"]

    def test_get_entities_unknown_type(self):
        snapshot = SiteSnapshot()

        assert snapshot.get_entities("node") == []
