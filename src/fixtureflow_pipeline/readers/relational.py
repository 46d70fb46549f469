"""
readers/relational.py — reader for the relational test-data source.

All database access goes through fixtureflow_shared.db (one DuckDB
connection per process, local file or ATTACHed remote server). The listing
query comes from the query-definitions file when it defines
`<section>.queries.listing`; otherwise every row of the table is read.

Usage:
    reader = RelationalReader(descriptor)             # table = descriptor.section
    records = await reader.read_all()
    await reader.insert_data("runnerManager", records)
    reader.close()
"""

from __future__ import annotations

import json
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any

from fixtureflow_shared import db
from fixtureflow_shared.constants import INSERT_BATCH_SIZE
from fixtureflow_shared.exceptions import FixtureDataError
from fixtureflow_shared.models.descriptor import SourceDescriptor, SourceKind
from fixtureflow_shared.models.records import CoercedRecord, RawRow
from fixtureflow_pipeline.readers.base import BaseReader


def quote_identifier(name: str) -> str:
    return '"' + name.replace('"', '""') + '"'


class RelationalReader(BaseReader):
    """Reads test cases from a table (or configured query) of the relational source."""

    kind = SourceKind.RELATIONAL

    def __init__(
        self,
        descriptor: SourceDescriptor,
        table_name: str | None = None,
    ) -> None:
        super().__init__(descriptor.relational_path, array_delimiter=descriptor.array_delimiter)
        self._descriptor = descriptor
        self._table_name = table_name or descriptor.section
        self._log = self._log.bind(table=self._table_name)

    @property
    def table_name(self) -> str:
        return self._table_name

    # ------------------------------------------------------------------
    # Listing query
    # ------------------------------------------------------------------

    def _load_queries(self) -> dict[str, Any] | None:
        path: Path | None = self._descriptor.queries_path
        if path is None or not path.is_file():
            self._log.debug("sql_queries_file_missing", queries_path=str(path))
            return None
        try:
            return json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            self._log.error("sql_queries_file_invalid", queries_path=str(path), error=str(exc))
            return None

    def resolve_listing_query(self) -> str:
        queries = self._load_queries() or {}
        section = queries.get(self._descriptor.section)
        if isinstance(section, dict):
            listing = (section.get("queries") or {}).get("listing")
            if isinstance(listing, str) and listing.strip():
                self._log.info("listing_query_configured", section=self._descriptor.section)
                return listing
        fallback = f"SELECT * FROM {quote_identifier(self._table_name)}"
        self._log.info("listing_query_fallback", query=fallback)
        return fallback

    # ------------------------------------------------------------------
    # BaseReader interface
    # ------------------------------------------------------------------

    async def parse_raw(self) -> list[RawRow]:
        return db.execute_query(self._descriptor, self.resolve_listing_query())

    async def is_available(self) -> bool:
        """Attempt a live connection; any failure means unavailable."""
        try:
            db.get_connection(self._descriptor)
            return True
        except FixtureDataError as exc:
            self._log.debug("relational_unavailable", error=str(exc))
            return False
        except Exception as exc:
            self._log.warning("relational_unavailable", error=str(exc))
            return False

    # ------------------------------------------------------------------
    # Auxiliary operations
    # ------------------------------------------------------------------

    async def query(self, sql: str, params: Sequence[Any] | None = None) -> list[CoercedRecord]:
        """Run arbitrary SQL and coerce the resulting rows."""
        return self.transform(db.execute_query(self._descriptor, sql, params))

    async def read_table(self, name: str) -> list[CoercedRecord]:
        return await self.query(f"SELECT * FROM {quote_identifier(name)}")

    async def get_table_names(self) -> list[str]:
        return db.get_table_names(self._descriptor)

    async def table_exists(self, name: str) -> bool:
        wanted = name.lower()
        return any(t.lower() == wanted for t in await self.get_table_names())

    async def initialize_schema(self, ddl: str) -> int:
        """Run `;`-separated DDL statements. Returns how many ran."""
        count = db.execute_script(self._descriptor, ddl)
        self._log.info("schema_initialized", statements=count)
        return count

    async def insert_data(self, table: str, records: Sequence[Mapping[str, Any]]) -> int:
        """
        Insert `records` into `table` in batches.

        Columns are taken from the first record. List values are joined with
        the array delimiter so they round-trip through the coercion engine.
        In local mode the whole insert runs in one transaction.

        Returns:
            Number of rows inserted.
        """
        if not records:
            return 0

        columns = list(records[0].keys())
        column_sql = ", ".join(quote_identifier(c) for c in columns)
        placeholders = ", ".join("?" for _ in columns)
        sql = f"INSERT INTO {quote_identifier(table)} ({column_sql}) VALUES ({placeholders})"

        delimiter = self._engine.array_delimiter

        def to_param(value: Any) -> Any:
            if isinstance(value, (list, tuple)):
                return delimiter.join(str(v) for v in value)
            return value

        rows = [[to_param(record.get(c)) for c in columns] for record in records]
        batches = (
            rows[i : i + INSERT_BATCH_SIZE] for i in range(0, len(rows), INSERT_BATCH_SIZE)
        )
        written = db.execute_batches(
            self._descriptor,
            sql,
            batches,
            transactional=not self._descriptor.relational.is_remote,
        )
        self._log.info("rows_inserted", table=table, rows=written)
        return written

    def close(self) -> None:
        """Close the process-wide connection."""
        db.close_connection()
        self._log.info("relational_reader_closed")
