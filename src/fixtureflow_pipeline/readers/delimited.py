"""
readers/delimited.py — CSV / delimited-text reader.

Every column is read as text (polars, infer_schema_length=0) so the
coercion engine, not the CSV parser, decides types; an id of "007" stays
"007". Blank rows are dropped and headers trimmed.

Usage:
    reader = DelimitedTextReader("data/runnerManager.csv", delimiter=";")
    records = await reader.read_all()
    headers = await reader.get_headers()
    renamed = await reader.read_with_mapping({"test_name": "testName"})
"""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path

import polars as pl

from fixtureflow_shared.constants import DEFAULT_ARRAY_DELIMITER
from fixtureflow_shared.exceptions import (
    ConfigurationError,
    ParseFailureError,
    SourceUnavailableError,
)
from fixtureflow_shared.models.descriptor import SourceKind
from fixtureflow_shared.models.records import CoercedRecord, RawRow
from fixtureflow_pipeline.readers.base import BaseReader
from fixtureflow_pipeline.transforms.frames import (
    drop_all_null_rows,
    frame_to_rows,
    normalize_headers,
)


class DelimitedTextReader(BaseReader):
    """Reads delimited text with a configurable separator and header flag."""

    kind = SourceKind.DELIMITED

    def __init__(
        self,
        path: str | Path,
        *,
        delimiter: str = ",",
        has_header: bool = True,
        array_delimiter: str = DEFAULT_ARRAY_DELIMITER,
    ) -> None:
        super().__init__(path, array_delimiter=array_delimiter)
        if len(delimiter) != 1:
            raise ConfigurationError(
                f"CSV_DELIMITER must be a single character, got {delimiter!r}"
            )
        self._delimiter = delimiter
        self._has_header = has_header

    def _require_file(self) -> None:
        if not self._path.is_file():
            raise SourceUnavailableError(f"CSV file not found: {self._path}")

    async def parse_raw(self) -> list[RawRow]:
        self._require_file()
        try:
            df = pl.read_csv(
                self._path,
                separator=self._delimiter,
                has_header=self._has_header,
                infer_schema_length=0,
                encoding="utf8",
            )
            # Headers that differ only by surrounding spaces collide here.
            df = drop_all_null_rows(normalize_headers(df))
        except pl.exceptions.NoDataError:
            self._log.warning("csv_file_empty")
            return []
        except pl.exceptions.PolarsError as exc:
            raise ParseFailureError(
                f"Malformed CSV in {self._path}: {exc}", cause=exc
            ) from exc
        except OSError as exc:
            raise SourceUnavailableError(
                f"Cannot read CSV file {self._path}: {exc}", cause=exc
            ) from exc

        self._log.debug("csv_parsed", rows=len(df), columns=df.width)
        return frame_to_rows(df)

    # ------------------------------------------------------------------
    # Auxiliary operations
    # ------------------------------------------------------------------

    async def read_with_mapping(self, column_mapping: Mapping[str, str]) -> list[CoercedRecord]:
        """
        Rename columns after coercion, keeping only the mapped ones.

        Args:
            column_mapping: {csv_column: target_key}. Columns absent from a
                            record are skipped for that record.
        """
        records = await self.read_all()
        return [
            {target: record[column] for column, target in column_mapping.items() if column in record}
            for record in records
        ]

    async def get_headers(self) -> list[str]:
        """Header names from the first line only; [] when has_header is False."""
        if not self._has_header:
            return []
        self._require_file()
        try:
            with self._path.open(encoding="utf-8-sig") as fh:
                first_line = fh.readline()
        except (OSError, UnicodeDecodeError) as exc:
            raise SourceUnavailableError(
                f"Cannot read CSV header from {self._path}: {exc}", cause=exc
            ) from exc
        first_line = first_line.rstrip("\r\n")
        if not first_line:
            return []
        return [h.strip().strip('"').strip() for h in first_line.split(self._delimiter)]
