"""
readers/base.py — Abstract base class for all test-data readers.

Each concrete reader must implement:
  parse_raw()  — read the backing store, return untyped rows (list[dict])

Everything else is derived here:
  read_all()       — parse_raw() → transform() → cache; later calls hit the cache
  read_by_id()     — first record whose `id` matches
  read_filtered()  — records matching every key/value of a partial record
  read_enabled()   — records whose `enabled` is not False
  is_available()   — never raises; file existence unless overridden
  clear_cache()    — force the next read_all() to hit the backing store

The cache write is not guarded: do not await read_all() concurrently on the
same instance before the first call has returned.
"""

from __future__ import annotations

import time
from abc import ABC, abstractmethod
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import structlog

from fixtureflow_shared.constants import DEFAULT_ARRAY_DELIMITER
from fixtureflow_shared.models.descriptor import SourceKind
from fixtureflow_shared.models.records import CoercedRecord, RawRow
from fixtureflow_pipeline.transforms.coercion import TypeCoercionEngine

log = structlog.get_logger(__name__)


class BaseReader(ABC):
    """Abstract base for fixtureflow test-data readers."""

    # Overridden per subclass; names the reader in log events
    kind: SourceKind = SourceKind.CANONICAL

    # Unknown-column numeric promotion; spreadsheets opt in
    auto_numeric: bool = False

    def __init__(
        self,
        path: str | Path,
        *,
        array_delimiter: str = DEFAULT_ARRAY_DELIMITER,
    ) -> None:
        self._path = Path(path)
        self._engine = TypeCoercionEngine(array_delimiter)
        self._cache: list[CoercedRecord] | None = None
        self._log = log.bind(reader=self.kind.value, path=str(self._path))

    # ------------------------------------------------------------------
    # Abstract interface
    # ------------------------------------------------------------------

    @abstractmethod
    async def parse_raw(self) -> list[RawRow]:
        """
        Read every row from the backing store, untyped.

        Raises:
            SourceUnavailableError: the backing store cannot be reached.
            ParseFailureError:      the content is malformed.
            SchemaMismatchError:    the configured sheet / table is missing.
        """
        ...

    def transform(self, rows: list[RawRow]) -> list[CoercedRecord]:
        """Coerce raw rows into canonical records."""
        return self._engine.coerce_many(rows, auto_numeric=self.auto_numeric)

    # ------------------------------------------------------------------
    # Capability contract
    # ------------------------------------------------------------------

    async def read_all(self) -> list[CoercedRecord]:
        """
        Return every record, parsing the backing store only on the first call.

        Raises:
            Any error from parse_raw(), after logging it.
        """
        if self._cache is not None:
            self._log.debug("reader_cache_hit", records=len(self._cache))
            return self._cache

        self._log.info("reader_read_start")
        t0 = time.monotonic()
        try:
            raw = await self.parse_raw()
            records = self.transform(raw)
        except Exception as exc:
            self._log.error(
                "reader_read_failed",
                error=str(exc),
                duration_ms=int((time.monotonic() - t0) * 1000),
            )
            raise

        self._cache = records
        self._log.info(
            "reader_read_complete",
            records=len(records),
            duration_ms=int((time.monotonic() - t0) * 1000),
        )
        return records

    async def read_by_id(self, record_id: Any) -> CoercedRecord | None:
        wanted = str(record_id)
        for record in await self.read_all():
            value = record.get("id")
            if value is not None and str(value) == wanted:
                return record
        return None

    async def read_filtered(self, partial: Mapping[str, Any]) -> list[CoercedRecord]:
        """Records where every key in `partial` equals the record's value (AND)."""
        records = await self.read_all()
        return [
            record
            for record in records
            if all(key in record and record[key] == value for key, value in partial.items())
        ]

    async def read_enabled(self) -> list[CoercedRecord]:
        """Records whose coerced `enabled` is not False; a missing field counts as enabled."""
        return [r for r in await self.read_all() if r.get("enabled") is not False]

    async def is_available(self) -> bool:
        try:
            return self._path.is_file()
        except OSError:
            return False

    def clear_cache(self) -> None:
        self._cache = None
        self._log.debug("reader_cache_cleared")

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def path(self) -> Path:
        return self._path

    @property
    def source_kind(self) -> SourceKind:
        return self.kind

    @property
    def engine(self) -> TypeCoercionEngine:
        return self._engine

    def __repr__(self) -> str:
        return f"{type(self).__name__}(path={str(self._path)!r})"
