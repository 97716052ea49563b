"""Shared fixtures for tests."""

from pathlib import Path

import pytest

from contentqa.storage.loader import parse_snapshot_from_string
from contentqa.storage.memory import InMemoryStorage


@pytest.fixture
def examples_dir() -> Path:
    """Return the path to the examples directory."""
    return Path(__file__).parent.parent / "examples"


@pytest.fixture
def reference_snapshot_yaml() -> str:
    """Return a snapshot with one node type referencing nodes and users."""
    return """
field_storage:
  - entity_type: node
    field_name: field_ref
    type: entity_reference
    target_type: node

entities:
  node:
    - id: 1
      bundle: article
      fields:
        field_ref:
          - target_id: 99
    - id: 2
      bundle: article
      fields:
        field_ref:
          - target_id: 1
"""


@pytest.fixture
def cache_snapshot_yaml() -> str:
    """Return a snapshot with one cache bin and one ordinary table."""
    return """
tables:
  cache_bootstrap:
    columns: [cid, created, data, expire, serialized]
    rows:
      - cid: variables
        data: 'a:0:{}'
        serialized: 1
      - cid: empty
        data: ""
        serialized: 1
  users:
    columns: [uid, name]
"""


@pytest.fixture
def reference_storage(reference_snapshot_yaml) -> InMemoryStorage:
    """Return an in-memory storage over the reference snapshot."""
    return InMemoryStorage(parse_snapshot_from_string(reference_snapshot_yaml))


@pytest.fixture
def cache_storage(cache_snapshot_yaml) -> InMemoryStorage:
    """Return an in-memory storage over the cache snapshot."""
    return InMemoryStorage(parse_snapshot_from_string(cache_snapshot_yaml))


@pytest.fixture
def make_storage():
    """Return a factory building an in-memory storage from snapshot YAML."""

    def _make(yaml_string: str) -> InMemoryStorage:
        return InMemoryStorage(parse_snapshot_from_string(yaml_string))

    return _make
