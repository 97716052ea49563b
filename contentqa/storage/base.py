"""Storage access interfaces consumed by the checks."""

from dataclasses import dataclass, field
from typing import Any, Callable, Iterator, Protocol

from .models import CacheRow, FieldStorageConfig

REFERENCE_PROPERTY = "target_id"


@dataclass
class FieldItemList:
    """The ordered values (deltas) of one field on one entity."""

    name: str
    items: list[dict[str, Any]] = field(default_factory=list)

    def is_empty(self) -> bool:
        """Check if the field holds no values."""
        return len(self.items) == 0

    def __iter__(self) -> Iterator[tuple[int, dict[str, Any]]]:
        return iter(enumerate(self.items))

    def __len__(self) -> int:
        return len(self.items)


@dataclass
class EntityRecord:
    """A loaded content entity.

    Field values are only reachable through get_field(), which returns None
    when the field is not part of the entity's bundle.
    """

    entity_type_id: str
    id: int | str
    bundle: str | None = None
    fields: dict[str, list[dict[str, Any]]] = field(default_factory=dict)
    resolver: Callable[["EntityRecord"], list["EntityRecord"]] | None = field(
        default=None, repr=False, compare=False
    )

    def get_field(self, name: str) -> FieldItemList | None:
        """Get the values of a field, or None if the entity has no such field."""
        if name not in self.fields:
            return None
        return FieldItemList(name=name, items=self.fields[name])

    def referenced_entities(self) -> list["EntityRecord"]:
        """Get the existing entities referenced by any field of this entity."""
        if self.resolver is None:
            return []
        return self.resolver(self)


class TableStorage(Protocol):
    """Raw table access, used for cache bins."""

    def table_exists(self, name: str) -> bool: ...

    def query_all_rows(self, table: str, order_by: str = "cid") -> list[CacheRow]: ...

    def get_full_schema_catalog(
        self, force_refresh: bool = False
    ) -> dict[str, list[str]]: ...


class EntityStorage(Protocol):
    """Entity and field configuration access."""

    def load_all_entities(self, entity_type: str) -> list[EntityRecord]: ...

    def load_all_field_storage_configs(self) -> list[FieldStorageConfig]: ...
