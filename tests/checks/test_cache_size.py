"""Tests for the suspicious cache content check."""

import pytest

from contentqa.checks.cache_size import (
    CacheSizeCheck,
    discover_cache_tables,
    is_cache_shaped_schema,
    php_serialize,
)
from contentqa.config import DATA_SIZE_LIMIT, QaConfig
from contentqa.storage.errors import QueryFailureError
from contentqa.storage.memory import InMemoryStorage
from contentqa.storage.models import SiteSnapshot


def bin_storage(rows, name="cache_bootstrap"):
    """Storage holding a single cache bin with the given rows."""
    return InMemoryStorage(
        SiteSnapshot.model_validate(
            {
                "tables": {
                    name: {
                        "columns": ["cid", "created", "data", "expire", "serialized"],
                        "rows": rows,
                    }
                }
            }
        )
    )


class TestIsCacheShapedSchema:
    def test_exact_columns(self):
        assert is_cache_shaped_schema(["serialized", "cid", "data", "expire", "created"])

    def test_subset_rejected(self):
        assert not is_cache_shaped_schema(["cid", "data", "expire", "created"])

    def test_superset_rejected(self):
        assert not is_cache_shaped_schema(
            ["cid", "created", "data", "expire", "serialized", "tags"]
        )

    def test_case_sensitive(self):
        assert not is_cache_shaped_schema(["CID", "created", "data", "expire", "serialized"])

    def test_fields_mapping(self):
        schema = {
            "fields": {
                "cid": {},
                "data": {},
                "expire": {},
                "created": {},
                "serialized": {},
            }
        }
        assert is_cache_shaped_schema(schema)


class TestDiscoverCacheTables:
    def test_sorted_cache_tables_only(self, make_storage):
        storage = make_storage("""
tables:
  cache_page:
    columns: [cid, created, data, expire, serialized]
  cache:
    columns: [cid, created, data, expire, serialized]
  cache_tags:
    columns: [tag, invalidations]
""")
        assert discover_cache_tables(storage) == ["cache", "cache_page"]

    def test_idempotent(self, cache_storage):
        assert discover_cache_tables(cache_storage) == discover_cache_tables(cache_storage)


class TestScanBin:
    def test_clean_bin_passes(self):
        storage = bin_storage([{"cid": "a", "data": "x", "serialized": 1}])

        report = CacheSizeCheck(storage).scan_bin("cache_bootstrap")

        assert report.passed
        assert report.anomalies == []
        assert report.error is None

    def test_empty_serialized_payload_flagged(self):
        storage = bin_storage([{"cid": "a", "data": "", "serialized": 1}])

        report = CacheSizeCheck(storage).scan_bin("cache_bootstrap")

        assert not report.passed
        assert len(report.anomalies) == 1
        assert report.anomalies[0].length == "0"
        assert report.anomalies[0].preview == "&hellip;"

    def test_numeric_cid_flagged(self, make_storage):
        storage = make_storage("""
tables:
  cache_bootstrap:
    columns: [cid, created, data, expire, serialized]
    rows:
      - {cid: 1, data: "", serialized: 1}
""")
        report = CacheSizeCheck(storage).scan_bin("cache_bootstrap")

        assert report.error is None
        assert [a.cid for a in report.anomalies] == ["1"]
        assert report.anomalies[0].length == "0"

    def test_empty_unserialized_payload_serialized_first(self):
        storage = bin_storage([{"cid": "a", "data": "", "serialized": 0}])

        report = CacheSizeCheck(storage).scan_bin("cache_bootstrap")

        # s:0:""; is seven bytes long
        assert report.passed

    def test_size_limit_boundary(self):
        storage = bin_storage(
            [
                {"cid": "at", "data": "x" * DATA_SIZE_LIMIT, "serialized": 1},
                {"cid": "below", "data": "x" * (DATA_SIZE_LIMIT - 1), "serialized": 1},
            ]
        )

        report = CacheSizeCheck(storage).scan_bin("cache_bootstrap")

        assert [a.cid for a in report.anomalies] == ["at"]
        assert report.anomalies[0].length == "524288"

    def test_unserialized_overhead_counts(self):
        data = "x" * (DATA_SIZE_LIMIT - 8)
        storage = bin_storage([{"cid": "a", "data": data, "serialized": 0}])

        report = CacheSizeCheck(storage).scan_bin("cache_bootstrap")

        expected = len(php_serialize(data.encode()))
        assert expected >= DATA_SIZE_LIMIT
        assert report.anomalies[0].length == str(expected)

    def test_preview_escaped_and_truncated(self):
        data = "<b>" + "y" * 2000
        storage = bin_storage([{"cid": "a", "data": data, "serialized": 1}])
        config = QaConfig(size_limit=100)

        report = CacheSizeCheck(storage, config).scan_bin("cache_bootstrap")

        preview = report.anomalies[0].preview
        assert preview.startswith("&lt;b&gt;")
        assert preview.endswith("&hellip;")
        assert preview.count("y") == 1024 - 3

    def test_anomalies_in_cid_order(self):
        storage = bin_storage(
            [
                {"cid": "zeta", "data": "", "serialized": 1},
                {"cid": "alpha", "data": "", "serialized": 1},
            ]
        )

        report = CacheSizeCheck(storage).scan_bin("cache_bootstrap")

        assert [a.cid for a in report.anomalies] == ["alpha", "zeta"]

    def test_missing_bin_fails_without_raising(self, cache_storage):
        report = CacheSizeCheck(cache_storage).scan_bin("cache_missing")

        assert not report.passed
        assert report.error == "Bin cache_missing is missing in the database."

    def test_query_failure_fails_bin(self, cache_storage, monkeypatch):
        def fail(*args, **kwargs):
            raise QueryFailureError("boom")

        monkeypatch.setattr(cache_storage, "query_all_rows", fail)

        report = CacheSizeCheck(cache_storage).scan_bin("cache_bootstrap")

        assert not report.passed
        assert report.error == "Failed fetching database data for bin cache_bootstrap."

    def test_custom_serializer(self):
        storage = bin_storage([{"cid": "a", "data": "abc", "serialized": 0}])

        check = CacheSizeCheck(storage, serializer=lambda data: b"")
        report = check.scan_bin("cache_bootstrap")

        assert report.anomalies[0].length == "0"


class TestScanAllBins:
    def test_empty_bin_scenario(self):
        storage = bin_storage([{"cid": "a", "data": "", "serialized": 1}])

        result = CacheSizeCheck(storage).scan_all_bins()

        assert result.step_id == "cache.size"
        assert not result.passed
        assert len(result.payload["rows"]) == 1
        assert result.payload["rows"][0][2] == "0"

    def test_all_clean(self, make_storage):
        storage = make_storage("""
tables:
  cache:
    columns: [cid, created, data, expire, serialized]
    rows:
      - {cid: a, data: x, serialized: 1}
  cache_page:
    columns: [cid, created, data, expire, serialized]
""")
        result = CacheSizeCheck(storage).scan_all_bins()

        assert result.passed
        assert result.payload["count"] == 2
        assert result.payload["summary"] == (
            "2 bins checked, none containing suspicious values"
        )

    def test_rows_sorted_case_insensitively(self, make_storage):
        storage = make_storage("""
tables:
  cache_b:
    columns: [cid, created, data, expire, serialized]
    rows:
      - {cid: one, data: "", serialized: 1}
  Cache_C:
    columns: [cid, created, data, expire, serialized]
    rows:
      - {cid: two, data: "", serialized: 1}
  cache_a:
    columns: [cid, created, data, expire, serialized]
    rows:
      - {cid: three, data: "", serialized: 1}
      - {cid: four, data: "", serialized: 1}
""")
        result = CacheSizeCheck(storage).scan_all_bins()

        assert [row[:2] for row in result.payload["rows"]] == [
            ["cache_a", "four"],
            ["cache_a", "three"],
            ["cache_b", "one"],
            ["Cache_C", "two"],
        ]
        assert result.payload["failed"] == 3

    def test_run_records_each_bin_and_ends(self, cache_storage):
        ticks = []

        pass_ = CacheSizeCheck(cache_storage).run(
            on_progress=lambda step, total: ticks.append(step)
        )

        assert list(pass_.results) == ["cache_bootstrap"]
        assert pass_.life.ended
        assert ticks == [1]
