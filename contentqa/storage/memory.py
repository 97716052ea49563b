"""In-memory storage backed by a site snapshot."""

import logging
from pathlib import Path

from pydantic import ValidationError

from ..graph.builder import build_reference_graph
from ..graph.reference_graph import ReferenceGraph
from .base import EntityRecord
from .errors import MissingResourceError, QueryFailureError
from .loader import load_snapshot
from .models import CacheRow, FieldStorageConfig, SiteSnapshot

logger = logging.getLogger(__name__)


class InMemoryStorage:
    """Table and entity storage over a SiteSnapshot.

    Implements both TableStorage and EntityStorage. Entity records resolve
    their references through a ReferenceGraph built once per storage.
    """

    def __init__(self, snapshot: SiteSnapshot):
        self.snapshot = snapshot
        self._graph: ReferenceGraph | None = None
        self._catalog: dict[str, list[str]] | None = None

    @classmethod
    def from_file(cls, path: str | Path) -> "InMemoryStorage":
        """Create a storage from a snapshot YAML file."""
        return cls(load_snapshot(path))

    @property
    def graph(self) -> ReferenceGraph:
        """Lazy-build the reference graph."""
        if self._graph is None:
            self._graph = build_reference_graph(self.snapshot)
            logger.debug(
                "Built reference graph: %d entities, %d dangling values",
                self._graph.graph.number_of_nodes(),
                self._graph.dangling_count,
            )
        return self._graph

    # -------------------------------------------------------------------------
    # TableStorage
    # -------------------------------------------------------------------------

    def table_exists(self, name: str) -> bool:
        return name in self.snapshot.tables

    def query_all_rows(self, table: str, order_by: str = "cid") -> list[CacheRow]:
        if table not in self.snapshot.tables:
            raise MissingResourceError(f"Table {table} does not exist", table)

        data = self.snapshot.tables[table]
        if order_by not in data.columns:
            raise QueryFailureError(
                f"Cannot order table {table} by unknown column {order_by}", table
            )

        try:
            rows = [CacheRow.model_validate(dict(row)) for row in data.rows]
        except ValidationError as e:
            raise QueryFailureError(f"Invalid rows in table {table}: {e}", table) from e

        return sorted(rows, key=lambda row: getattr(row, order_by))

    def get_full_schema_catalog(
        self, force_refresh: bool = False
    ) -> dict[str, list[str]]:
        if self._catalog is None or force_refresh:
            self._catalog = {
                name: list(table.columns)
                for name, table in self.snapshot.tables.items()
            }
        return dict(self._catalog)

    # -------------------------------------------------------------------------
    # EntityStorage
    # -------------------------------------------------------------------------

    def load_all_entities(self, entity_type: str) -> list[EntityRecord]:
        if entity_type not in self.snapshot.entity_types:
            raise MissingResourceError(
                f"No storage handler for entity type {entity_type}", entity_type
            )

        return [
            EntityRecord(
                entity_type_id=entity_type,
                id=entity.id,
                bundle=entity.bundle,
                fields=entity.fields,
                resolver=self._resolve_references,
            )
            for entity in self.snapshot.get_entities(entity_type)
        ]

    def load_all_field_storage_configs(self) -> list[FieldStorageConfig]:
        return list(self.snapshot.field_storage)

    def load_entity(self, entity_type: str, entity_id: int | str) -> EntityRecord | None:
        """Load a single entity, or None if it does not exist."""
        for entity in self.snapshot.get_entities(entity_type):
            if str(entity.id) == str(entity_id):
                return EntityRecord(
                    entity_type_id=entity_type,
                    id=entity.id,
                    bundle=entity.bundle,
                    fields=entity.fields,
                    resolver=self._resolve_references,
                )
        return None

    def _resolve_references(self, entity: EntityRecord) -> list[EntityRecord]:
        """Load the existing entities referenced by an entity."""
        resolved = []
        for target_type, target_id in self.graph.get_referenced(
            entity.entity_type_id, entity.id
        ):
            target = self.load_entity(target_type, target_id)
            if target is not None:
                resolved.append(target)
        return resolved
