"""Pydantic models for site snapshots and storage rows."""

from typing import Any

from pydantic import BaseModel, Field, model_validator


class FieldStorageConfig(BaseModel):
    """Storage configuration of a configurable field."""

    entity_type: str
    field_name: str
    type: str
    target_type: str | None = None

    @model_validator(mode="before")
    @classmethod
    def normalize_settings(cls, data: Any) -> Any:
        """Accept target_type nested under settings, as exported configs do."""
        if isinstance(data, dict):
            settings = data.pop("settings", None)
            if isinstance(settings, dict) and "target_type" not in data:
                data["target_type"] = settings.get("target_type")
        return data


class CacheRow(BaseModel):
    """One row of a cache bin."""

    cid: str = Field(coerce_numbers_to_str=True)
    data: bytes = b""
    expire: int = 0
    created: float = 0
    serialized: bool = False

    @model_validator(mode="before")
    @classmethod
    def normalize_data(cls, data: Any) -> Any:
        """Map NULL payloads to empty bytes."""
        if isinstance(data, dict) and data.get("data") is None:
            data["data"] = b""
        return data


class EntityData(BaseModel):
    """A stored content entity as found in a snapshot."""

    id: int | str
    bundle: str | None = None
    fields: dict[str, list[dict[str, Any]]] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def normalize_fields(cls, data: Any) -> Any:
        """Normalize shorthand field values to lists of item dicts.

        A single item may be given without the surrounding list, and scalar
        items are stored under the ``value`` property.
        """
        if not isinstance(data, dict):
            return data

        fields = data.get("fields") or {}
        normalized = {}
        for name, items in fields.items():
            if items is None:
                items = []
            elif not isinstance(items, list):
                items = [items]
            normalized[name] = [
                item if isinstance(item, dict) else {"value": item} for item in items
            ]
        data["fields"] = normalized
        return data


class TableData(BaseModel):
    """A raw storage table: its column schema and its rows."""

    columns: list[str] = Field(default_factory=list)
    rows: list[dict[str, Any]] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def normalize_columns(cls, data: Any) -> Any:
        """Accept a ``fields`` mapping (name -> column spec) in place of columns."""
        if isinstance(data, dict) and "columns" not in data:
            fields = data.pop("fields", None)
            if isinstance(fields, dict):
                data["columns"] = list(fields.keys())
            elif isinstance(fields, list):
                data["columns"] = fields
        return data


class SiteSnapshot(BaseModel):
    """Root model for a site snapshot YAML file."""

    entity_types: list[str] = Field(default_factory=list)
    field_storage: list[FieldStorageConfig] = Field(default_factory=list)
    entities: dict[str, list[EntityData]] = Field(default_factory=dict)
    tables: dict[str, TableData] = Field(default_factory=dict)

    @model_validator(mode="after")
    def derive_entity_types(self) -> "SiteSnapshot":
        """Derive the entity types with storage when none are declared."""
        if self.entity_types:
            return self

        derived: list[str] = []
        candidates = list(self.entities.keys())
        for config in self.field_storage:
            candidates.append(config.entity_type)
            if config.target_type:
                candidates.append(config.target_type)
        for entity_type in candidates:
            if entity_type not in derived:
                derived.append(entity_type)
        self.entity_types = derived
        return self

    def get_entities(self, entity_type: str) -> list[EntityData]:
        """Get the stored entities of a type."""
        return self.entities.get(entity_type, [])
