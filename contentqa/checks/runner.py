"""Check runner that orchestrates the registered checks."""

import logging
from pathlib import Path

from ..config import QaConfig
from ..storage.memory import InMemoryStorage
from .base import CheckDefinition, Pass, ProgressCallback
from .cache_size import CACHE_SIZE, CacheSizeCheck, summarize_bins
from .references import REFERENCE_INTEGRITY, ReferenceIntegrityCheck

logger = logging.getLogger(__name__)

CHECKS: dict[str, CheckDefinition] = {
    REFERENCE_INTEGRITY.id: REFERENCE_INTEGRITY,
    CACHE_SIZE.id: CACHE_SIZE,
}


def run_check(
    check_id: str,
    storage,
    config: QaConfig | None = None,
    on_progress: ProgressCallback | None = None,
) -> Pass:
    """Run one check by ID.

    Args:
        check_id: A key of CHECKS.
        storage: Storage implementing the interfaces the check consumes.
        config: Check settings.
        on_progress: Called with (step, total) on each lifecycle tick.

    Returns:
        The completed Pass.

    Raises:
        KeyError: If the check ID is unknown.
    """
    if check_id == REFERENCE_INTEGRITY.id:
        return ReferenceIntegrityCheck(storage).run(on_progress)

    if check_id == CACHE_SIZE.id:
        pass_ = CacheSizeCheck(storage, config).run(on_progress)
        summarize_bins(pass_)
        return pass_

    raise KeyError(f"Unknown check '{check_id}'")


def run_checks(
    storage,
    check_ids: list[str] | None = None,
    config: QaConfig | None = None,
    on_progress: ProgressCallback | None = None,
) -> list[Pass]:
    """Run several checks against the same storage.

    Args:
        storage: Storage implementing both table and entity access.
        check_ids: Checks to run; defaults to the configured checks, then all.
        config: Check settings.
        on_progress: Called with (step, total) on each lifecycle tick.

    Returns:
        One Pass per check, in the order requested.
    """
    config = config or QaConfig()
    if check_ids is None:
        check_ids = config.checks or list(CHECKS)

    passes = []
    for check_id in check_ids:
        logger.debug("Running check %s", check_id)
        passes.append(run_check(check_id, storage, config, on_progress))
    return passes


def check_snapshot_file(
    path: str | Path,
    check_ids: list[str] | None = None,
    config: QaConfig | None = None,
) -> list[Pass]:
    """Load a site snapshot and run checks against it.

    Raises:
        SnapshotLoadError: If the file cannot be loaded.
        SnapshotValidationError: If the snapshot fails validation.
    """
    storage = InMemoryStorage.from_file(path)
    return run_checks(storage, check_ids, config)
