"""QA checks for cache bins and entity references."""

from .base import CheckDefinition, Lifecycle, Pass, Result
from .cache_size import (
    CacheSizeCheck,
    discover_cache_tables,
    is_cache_shaped_schema,
    summarize_bins,
)
from .references import ReferenceIntegrityCheck, build_entity_reference_field_map
from .runner import CHECKS, check_snapshot_file, run_check, run_checks

__all__ = [
    "CheckDefinition",
    "Lifecycle",
    "Pass",
    "Result",
    "CacheSizeCheck",
    "discover_cache_tables",
    "is_cache_shaped_schema",
    "summarize_bins",
    "ReferenceIntegrityCheck",
    "build_entity_reference_field_map",
    "CHECKS",
    "check_snapshot_file",
    "run_check",
    "run_checks",
]
