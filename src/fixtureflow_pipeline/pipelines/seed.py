"""
pipelines/seed.py — load test cases into the relational source.

Reads every record of another source (default: the canonical file),
creates the target table when it is missing (one VARCHAR column per
field seen in any record) and inserts the records in batches.

Usage:
    from fixtureflow_pipeline.pipelines.seed import seed_relational
    inserted = await seed_relational(descriptor, replace=True)
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

import structlog

from fixtureflow_shared.models.descriptor import SourceDescriptor, SourceKind
from fixtureflow_shared.models.records import CoercedRecord
from fixtureflow_pipeline.readers.factory import create_reader
from fixtureflow_pipeline.readers.relational import RelationalReader, quote_identifier

log = structlog.get_logger(__name__)


def _as_text(value: Any) -> Any:
    """VARCHAR-ready value; lists are left for insert_data to join."""
    if value is None or isinstance(value, (list, tuple)):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _columns(records: Sequence[CoercedRecord]) -> list[str]:
    """Union of record keys, in first-seen order."""
    seen: dict[str, None] = {}
    for record in records:
        for key in record:
            seen.setdefault(key, None)
    return list(seen)


async def seed_relational(
    descriptor: SourceDescriptor,
    records: Sequence[CoercedRecord] | None = None,
    *,
    source: SourceKind | str = SourceKind.CANONICAL,
    table: str | None = None,
    replace: bool = False,
) -> int:
    """
    Insert `records` (or every record of `source`) into the relational table.

    Args:
        descriptor: Resolved descriptor; its relational settings are the target.
        records:    Records to insert. Read from `source` when omitted.
        source:     Source kind to read from when `records` is None.
        table:      Target table (default: descriptor.section).
        replace:    Drop the table first.

    Returns:
        Number of rows inserted.
    """
    if records is None:
        records = await create_reader(descriptor, source).read_all()

    reader = RelationalReader(descriptor, table)
    target = reader.table_name
    columns = _columns(records)
    if not columns:
        log.warning("seed_no_records", table=target)
        return 0

    ddl: list[str] = []
    if replace:
        ddl.append(f"DROP TABLE IF EXISTS {quote_identifier(target)}")
    column_sql = ", ".join(f"{quote_identifier(c)} VARCHAR" for c in columns)
    ddl.append(f"CREATE TABLE IF NOT EXISTS {quote_identifier(target)} ({column_sql})")
    await reader.initialize_schema(";\n".join(ddl))

    rows: list[dict[str, Any]] = [
        {c: _as_text(record.get(c)) for c in columns} for record in records
    ]
    inserted = await reader.insert_data(target, rows)
    log.info("seed_complete", table=target, rows=inserted, columns=len(columns))
    return inserted
