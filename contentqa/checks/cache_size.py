"""Suspicious cache content check.

Scans every table shaped like a cache bin and flags entries whose serialized
payload is empty or at least DATA_SIZE_LIMIT bytes long.
"""

import html
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Callable

from ..config import QaConfig
from ..storage.base import TableStorage
from ..storage.errors import MissingResourceError, StorageError
from ..storage.models import CacheRow
from .base import CheckDefinition, Pass, ProgressCallback, Result

logger = logging.getLogger(__name__)

STEP_ID = "cache.size"

CACHE_SCHEMA_COLUMNS = ["cid", "created", "data", "expire", "serialized"]

ELLIPSIS = "&hellip;"

CACHE_SIZE = CheckDefinition(
    id=STEP_ID,
    label="Suspicious cache content",
    description="Look for empty or extra-long (>= 512 kB) cache content.",
)

Serializer = Callable[[bytes], bytes]


def php_serialize(data: bytes) -> bytes:
    """Serialize a raw payload the way the cache driver stores strings."""
    return b's:%d:"%s";' % (len(data), data)


def is_cache_shaped_schema(schema: Any) -> bool:
    """Check if a table schema has exactly the cache bin columns.

    Args:
        schema: A list of column names, or a mapping holding them under
            ``fields`` or ``columns``.

    Returns:
        True iff the sorted column names equal CACHE_SCHEMA_COLUMNS.
    """
    columns = schema
    if isinstance(schema, Mapping):
        columns = schema.get("fields", schema.get("columns", schema))
    return sorted(columns) == CACHE_SCHEMA_COLUMNS


def discover_cache_tables(storage: TableStorage, rebuild: bool = True) -> list[str]:
    """Get the names of all cache-shaped tables, sorted ascending.

    Args:
        storage: The table storage to inspect.
        rebuild: Force a fresh read of the schema catalog.
    """
    catalog = storage.get_full_schema_catalog(force_refresh=rebuild)
    return sorted(
        name for name, columns in catalog.items() if is_cache_shaped_schema(columns)
    )


@dataclass
class CacheEntryAnomaly:
    """A cache entry with a suspicious payload size."""

    bin: str
    cid: str
    length: str
    preview: str

    def as_row(self) -> list[str]:
        return [self.bin, self.cid, self.length, self.preview]


@dataclass
class BinReport:
    """Outcome of scanning one cache bin."""

    name: str
    passed: bool = False
    anomalies: list[CacheEntryAnomaly] = field(default_factory=list)
    error: str | None = None

    def to_result(self) -> Result:
        errors = {self.name: self.error} if self.error else {}
        return Result(
            step_id=self.name,
            passed=self.passed,
            payload=self.anomalies,
            errors=errors,
        )


class CacheSizeCheck:
    """Look for empty or oversized entries in cache bins."""

    definition = CACHE_SIZE

    def __init__(
        self,
        storage: TableStorage,
        config: QaConfig | None = None,
        serializer: Serializer = php_serialize,
    ):
        """Initialize the check.

        Args:
            storage: Table storage holding the cache bins.
            config: Size limit and preview length settings.
            serializer: Serialization applied to rows not stored serialized.
        """
        self.storage = storage
        self.config = config or QaConfig()
        self.serializer = serializer

    @property
    def size_limit(self) -> int:
        return self.config.size_limit

    @property
    def summary_length(self) -> int:
        return self.config.summary_length

    def scan_bin(self, name: str) -> BinReport:
        """Scan one bin for anomalous entries.

        Missing tables and failed queries fail the bin without raising.
        """
        report = BinReport(name=name)

        try:
            if not self.storage.table_exists(name):
                report.error = f"Bin {name} is missing in the database."
                logger.warning(report.error)
                return report
            rows = self.storage.query_all_rows(name, order_by="cid")
        except MissingResourceError:
            report.error = f"Bin {name} is missing in the database."
            logger.warning(report.error)
            return report
        except StorageError as e:
            report.error = f"Failed fetching database data for bin {name}."
            logger.warning("%s %s", report.error, e)
            return report

        report.anomalies = list(self._check_bin_contents(name, rows))
        report.passed = not report.anomalies
        logger.debug(
            "Scanned bin %s: %d rows, %d anomalies",
            name,
            len(rows),
            len(report.anomalies),
        )
        return report

    def _check_bin_contents(self, name: str, rows: list[CacheRow]):
        """Yield an anomaly for each row with a suspicious length."""
        for row in rows:
            # Cache drivers will need to serialize anyway.
            data = row.data if row.serialized else self.serializer(row.data)
            length = len(data)
            if length == 0 or length >= self.size_limit:
                yield CacheEntryAnomaly(
                    bin=name,
                    cid=row.cid,
                    length=str(length),
                    preview=self._preview(data),
                )

    def _preview(self, data: bytes) -> str:
        text = data.decode("utf-8", errors="replace")[: self.summary_length]
        return html.escape(text) + ELLIPSIS

    def run(self, on_progress: ProgressCallback | None = None) -> Pass:
        """Scan every cache bin, recording one result per bin."""
        pass_ = Pass.start(self.definition, on_progress)
        for name in discover_cache_tables(self.storage, rebuild=True):
            pass_.record(self.scan_bin(name).to_result())
        pass_.life.end()
        return pass_

    def scan_all_bins(self, on_progress: ProgressCallback | None = None) -> Result:
        """Scan every cache bin and aggregate the outcome into one result."""
        return summarize_bins(self.run(on_progress))


def summarize_bins(pass_: Pass) -> Result:
    """Aggregate per-bin results into one cache.size result.

    The check passes iff every bin passed. On failure the payload holds one
    row per anomaly, ``[bin, cid, length, preview]``, bins sorted
    case-insensitively; a bin that could not be read contributes a single
    row carrying its error message.
    """
    bins = list(pass_.results.keys())
    count = len(bins)

    if pass_.passed:
        if count == 1:
            summary = "1 bin checked, not containing suspicious values"
        else:
            summary = f"{count} bins checked, none containing suspicious values"
        logger.info(summary)
        pass_.summary = Result(
            step_id=STEP_ID,
            passed=True,
            payload={"checked": bins, "count": count, "summary": summary},
        )
        return pass_.summary

    failures = pass_.failures
    if count == 1:
        summary = "1 bin checked and containing suspicious values"
    else:
        summary = f"{count} bins checked, {len(failures)} containing suspicious values"
    logger.info(summary)

    rows: list[list[str]] = []
    errors: dict[str, str] = {}
    for name in sorted(failures, key=str.lower):
        bin_result = failures[name]
        errors.update(bin_result.errors)
        if name in bin_result.errors:
            rows.append([name, "", "", bin_result.errors[name]])
        for anomaly in bin_result.payload:
            rows.append(anomaly.as_row())

    pass_.summary = Result(
        step_id=STEP_ID,
        passed=False,
        payload={
            "checked": bins,
            "count": count,
            "failed": len(failures),
            "summary": summary,
            "rows": rows,
        },
        errors=errors,
    )
    return pass_.summary
