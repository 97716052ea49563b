"""Storage access layer: interfaces, snapshot models and loading.

Backends live in contentqa.storage.memory and contentqa.storage.sql.
"""

from .errors import (
    MissingResourceError,
    QueryFailureError,
    SnapshotLoadError,
    SnapshotValidationError,
    StorageError,
)
from .models import CacheRow, EntityData, FieldStorageConfig, SiteSnapshot, TableData
from .base import EntityRecord, EntityStorage, FieldItemList, TableStorage
from .loader import (
    load_snapshot,
    parse_snapshot_from_string,
    parse_yaml_mapping,
    read_yaml_mapping,
    validate_snapshot,
)

__all__ = [
    "MissingResourceError",
    "QueryFailureError",
    "SnapshotLoadError",
    "SnapshotValidationError",
    "StorageError",
    "CacheRow",
    "EntityData",
    "FieldStorageConfig",
    "SiteSnapshot",
    "TableData",
    "EntityRecord",
    "EntityStorage",
    "FieldItemList",
    "TableStorage",
    "load_snapshot",
    "parse_yaml_mapping",
    "read_yaml_mapping",
    "validate_snapshot",
    "parse_snapshot_from_string",
]
