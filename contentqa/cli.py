"""Command-line interface for contentqa."""

import logging
import sys
from typing import Literal

import click

from .checks.base import Pass
from .checks.cache_size import CacheSizeCheck, summarize_bins
from .checks.references import ReferenceIntegrityCheck
from .checks.runner import CHECKS, run_checks
from .config import ConfigError, load_config
from .output.formatter import format_passes
from .storage.errors import SnapshotLoadError, SnapshotValidationError, StorageError

OutputFormat = Literal["text", "json"]

FORMAT_OPTION = click.option(
    "--format",
    "output_format",
    type=click.Choice(["text", "json"]),
    default="text",
    help="Output format",
)


def _load_storage(snapshot_file: str):
    """Load the in-memory storage, exiting with code 2 on failure."""
    from .storage.memory import InMemoryStorage

    try:
        return InMemoryStorage.from_file(snapshot_file)
    except SnapshotLoadError as e:
        click.echo(f"Error loading file: {e}", err=True)
        sys.exit(2)
    except SnapshotValidationError as e:
        click.echo(f"Snapshot validation error: {e}", err=True)
        for err in e.errors:
            click.echo(f"  - {err['loc']}: {err['msg']}", err=True)
        sys.exit(2)


def _report(passes: list[Pass], output_format: OutputFormat) -> None:
    """Print the passes and exit with 1 if any failed."""
    click.echo(format_passes(passes, output_format))
    if all(p.passed for p in passes):
        sys.exit(0)
    sys.exit(1)


@click.group()
@click.version_option()
@click.option(
    "--config",
    "config_file",
    type=click.Path(),
    envvar="CONTENTQA_CONFIG",
    help="YAML configuration file (defaults to CONTENTQA_CONFIG env var)",
)
@click.option(
    "--verbose",
    is_flag=True,
    default=False,
    help="Log each scanned unit",
)
@click.pass_context
def main(ctx, config_file: str | None, verbose: bool):
    """contentqa: data-quality checks for content storage."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    logging.getLogger("sqlalchemy").setLevel(logging.WARNING)

    try:
        config = load_config(config_file)
    except ConfigError as e:
        click.echo(f"Configuration error: {e}", err=True)
        sys.exit(2)

    ctx.ensure_object(dict)
    ctx.obj["config"] = config


@main.command()
@click.argument("snapshot_file", type=click.Path(exists=True))
@FORMAT_OPTION
def references(snapshot_file: str, output_format: OutputFormat):
    """Find broken entity references in a site snapshot.

    SNAPSHOT_FILE is the path to a YAML site snapshot.

    Exit codes:
      0 - No broken references
      1 - Broken references found
      2 - File or schema error
    """
    storage = _load_storage(snapshot_file)
    _report([ReferenceIntegrityCheck(storage).run()], output_format)


@main.command()
@click.argument("snapshot_file", type=click.Path(exists=True), required=False)
@click.option(
    "--database-url",
    envvar="CONTENTQA_DATABASE_URL",
    help="SQLAlchemy URL of the site database (instead of a snapshot)",
)
@FORMAT_OPTION
@click.pass_context
def cache(ctx, snapshot_file: str | None, database_url: str | None, output_format: OutputFormat):
    """Find empty or oversized cache entries.

    Reads cache bins from SNAPSHOT_FILE or from --database-url.

    Exit codes:
      0 - No suspicious entries
      1 - Suspicious entries or unreadable bins found
      2 - File, schema or database error
    """
    if snapshot_file and database_url:
        click.echo("Pass either SNAPSHOT_FILE or --database-url, not both", err=True)
        sys.exit(2)

    if database_url:
        from .storage.sql import SqlTableStorage

        try:
            storage = SqlTableStorage.from_url(database_url)
        except StorageError as e:
            click.echo(f"Database error: {e}", err=True)
            sys.exit(2)
    elif snapshot_file:
        storage = _load_storage(snapshot_file)
    else:
        click.echo("Missing SNAPSHOT_FILE or --database-url", err=True)
        sys.exit(2)

    try:
        pass_ = CacheSizeCheck(storage, ctx.obj["config"]).run()
    except StorageError as e:
        click.echo(f"Database error: {e}", err=True)
        sys.exit(2)
    summarize_bins(pass_)
    _report([pass_], output_format)


@main.command()
@click.argument("snapshot_file", type=click.Path(exists=True))
@click.option(
    "--check",
    "check_ids",
    multiple=True,
    type=click.Choice(sorted(CHECKS)),
    help="Check to run (repeatable, defaults to all)",
)
@FORMAT_OPTION
@click.pass_context
def run(ctx, snapshot_file: str, check_ids: tuple[str, ...], output_format: OutputFormat):
    """Run all checks against a site snapshot.

    SNAPSHOT_FILE is the path to a YAML site snapshot.

    Exit codes:
      0 - All checks passed
      1 - At least one check failed
      2 - File or schema error
    """
    storage = _load_storage(snapshot_file)
    try:
        passes = run_checks(storage, list(check_ids) or None, ctx.obj["config"])
    except KeyError as e:
        click.echo(f"Configuration error: {e}", err=True)
        sys.exit(2)
    except StorageError as e:
        click.echo(f"Storage error: {e}", err=True)
        sys.exit(2)
    _report(passes, output_format)


if __name__ == "__main__":
    main()
