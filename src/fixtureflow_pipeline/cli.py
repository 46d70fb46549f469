"""
cli.py — Click CLI entrypoint for the fixture pipeline.

Usage:
    fixtureflow preprocess
    fixtureflow restore
    fixtureflow show --source csv --enabled-only
    fixtureflow show --id TC001
    fixtureflow check
    fixtureflow seed --from json --replace
"""

from __future__ import annotations

import asyncio
import json

import click

from fixtureflow_shared import db
from fixtureflow_shared.config import settings
from fixtureflow_shared.exceptions import FixtureDataError
from fixtureflow_shared.models.descriptor import SourceDescriptor, SourceKind
from fixtureflow_shared.resolver import ConfigResolver
from fixtureflow_pipeline.pipelines.preprocess import Preprocessor
from fixtureflow_pipeline.pipelines.seed import seed_relational
from fixtureflow_pipeline.provider import DataProvider
from fixtureflow_pipeline.utils.logging import configure_logging

_KIND_CHOICE = click.Choice([k.value for k in SourceKind], case_sensitive=False)


def _resolve() -> SourceDescriptor:
    try:
        return ConfigResolver().resolve()
    except FixtureDataError as exc:
        raise click.ClickException(str(exc)) from exc


@click.group()
@click.option(
    "--log-level",
    default=settings.log_level,
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    help="Log level",
)
@click.option(
    "--log-format",
    default=settings.log_format,
    type=click.Choice(["json", "console"]),
    help="Log renderer",
)
@click.pass_context
def main(ctx: click.Context, log_level: str, log_format: str) -> None:
    """fixtureflow test-data pipeline."""
    configure_logging(log_level, log_format)
    ctx.call_on_close(db.close_connection)


@main.command()
def preprocess() -> None:
    """Convert the configured source into the canonical JSON file."""
    descriptor = _resolve()
    try:
        result = asyncio.run(Preprocessor(descriptor).preprocess())
    except FixtureDataError as exc:
        raise click.ClickException(str(exc)) from exc

    if result.converted:
        click.echo(
            f"Converted {result.record_count} records "
            f"from {result.source_kind.value} → {result.output_path}"
        )
        if result.backup_path:
            click.echo(f"  backup: {result.backup_path}")
    else:
        click.echo(
            f"Source is already canonical "
            f"({result.record_count} records in {result.output_path})"
        )


@main.command()
def restore() -> None:
    """Restore the canonical file from its preprocessing backup."""
    descriptor = _resolve()
    if Preprocessor(descriptor).restore_canonical():
        click.echo(f"Restored {descriptor.canonical_path}")
    else:
        click.echo("No backup to restore.")


@main.command()
@click.option("--source", "source", type=_KIND_CHOICE, default=None, help="Source to read")
@click.option("--enabled-only", is_flag=True, help="Only records not disabled")
@click.option("--id", "record_id", default=None, help="Show a single record")
def show(source: str | None, enabled_only: bool, record_id: str | None) -> None:
    """Print test cases as JSON."""
    provider = DataProvider(_resolve())

    async def _load():
        if record_id is not None:
            return await provider.get_test_data_by_id(record_id, source)
        if enabled_only:
            return await provider.get_enabled_test_data(source)
        return (await provider.get_test_data(source)).data

    try:
        data = asyncio.run(_load())
    except FixtureDataError as exc:
        raise click.ClickException(str(exc)) from exc

    if data is None:
        raise click.ClickException(f"No test case with id '{record_id}'")
    click.echo(json.dumps(data, indent=2, ensure_ascii=False, default=str))


@main.command()
@click.option("--source", "source", type=_KIND_CHOICE, default=None, help="Only check this source")
def check(source: str | None) -> None:
    """Report which sources are reachable. Exits 1 if the checked source is not."""
    descriptor = _resolve()
    provider = DataProvider(descriptor)
    kinds = [SourceKind.parse(source)] if source else list(SourceKind)

    async def _check() -> dict[SourceKind, bool]:
        return {kind: await provider.is_source_available(kind) for kind in kinds}

    results = asyncio.run(_check())
    for kind, available in results.items():
        mark = "✓" if available else "✗"
        active = " (active)" if kind is descriptor.kind else ""
        click.echo(f"  {mark} {kind.value:6s} {descriptor.path_for(kind)}{active}")

    target = kinds[0] if source else descriptor.kind
    if not results[target]:
        raise SystemExit(1)


@main.command()
@click.option(
    "--from", "source", type=_KIND_CHOICE, default=SourceKind.CANONICAL.value,
    help="Source to copy records from",
)
@click.option("--table", default=None, help="Target table (default: DATA_SHEET_NAME)")
@click.option("--replace", is_flag=True, help="Drop and recreate the table first")
def seed(source: str, table: str | None, replace: bool) -> None:
    """Load test cases into the relational source."""
    descriptor = _resolve()
    try:
        inserted = asyncio.run(
            seed_relational(descriptor, source=source, table=table, replace=replace)
        )
    except FixtureDataError as exc:
        raise click.ClickException(str(exc)) from exc
    click.echo(f"Inserted {inserted} rows into {table or descriptor.section}")


if __name__ == "__main__":
    main()
