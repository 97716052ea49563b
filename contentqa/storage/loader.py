"""Reading YAML documents: site snapshots and check configuration."""

from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from .errors import SnapshotLoadError, SnapshotValidationError
from .models import SiteSnapshot

LoadErrorType = type[Exception]


def parse_yaml_mapping(
    text: str,
    source: str | None = None,
    error_cls: LoadErrorType = SnapshotLoadError,
) -> dict[str, Any]:
    """Parse a YAML document whose root must be a mapping.

    An empty document yields an empty dict. Parse failures and non-mapping
    roots raise ``error_cls(message, source)``.
    """
    where = f" in {source}" if source else ""
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise error_cls(f"Invalid YAML{where}: {e}", source) from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise error_cls(
            f"Expected YAML mapping at root{where}, got {type(data).__name__}", source
        )
    return data


def read_yaml_mapping(
    path: str | Path, error_cls: LoadErrorType = SnapshotLoadError
) -> dict[str, Any]:
    """Read a YAML file whose root must be a mapping.

    Raises:
        error_cls: If the file is missing, unreadable or not a YAML mapping.
    """
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError as e:
        raise error_cls(f"File not found: {path}", str(path)) from e
    except (OSError, UnicodeDecodeError) as e:
        raise error_cls(f"Cannot read {path}: {e}", str(path)) from e

    return parse_yaml_mapping(text, str(path), error_cls)


def validate_snapshot(data: dict[str, Any]) -> SiteSnapshot:
    """Validate raw snapshot data.

    Root keys the snapshot does not know about are reported alongside the
    model's own errors, so a misspelled ``entites:`` fails instead of
    silently loading an empty site.

    Raises:
        SnapshotValidationError: With one ``{loc, msg, type}`` dict per problem.
    """
    errors = [
        {"loc": str(key), "msg": "Unexpected top-level key", "type": "extra_forbidden"}
        for key in data
        if str(key) not in SiteSnapshot.model_fields
    ]

    snapshot = None
    try:
        snapshot = SiteSnapshot.model_validate(data)
    except ValidationError as e:
        errors.extend(
            {
                "loc": ".".join(str(x) for x in err["loc"]),
                "msg": err["msg"],
                "type": err["type"],
            }
            for err in e.errors()
        )

    if errors:
        raise SnapshotValidationError(
            f"Snapshot validation failed with {len(errors)} error(s)", errors
        )
    return snapshot


def load_snapshot(path: str | Path) -> SiteSnapshot:
    """Load a snapshot file.

    Raises:
        SnapshotLoadError: If the file cannot be read or parsed.
        SnapshotValidationError: If the data fails validation.
    """
    return validate_snapshot(read_yaml_mapping(path))


def parse_snapshot_from_string(yaml_string: str) -> SiteSnapshot:
    """Parse a snapshot from YAML text."""
    return validate_snapshot(parse_yaml_mapping(yaml_string))
