"""
readers/spreadsheet.py — .xlsx workbook reader (openpyxl).

The first row of a sheet is the header row; columns with a blank header
are skipped and so are fully blank rows. The workbook is opened on first
use and kept until close().

Unlike the other readers this one promotes numeric-looking text in unknown
columns to numbers (auto_numeric=True by default). That applies to read_all()
only; read_sheet() and read_range() keep such text as text.

Usage:
    reader = SpreadsheetReader("data/runnerManager.xlsx", sheet_name="runnerManager")
    records = await reader.read_all()
    reader.get_sheet_names()
    await reader.read_range("runnerManager", "A1:D10")
    reader.close()
"""

from __future__ import annotations

import zipfile
from collections.abc import Iterable, Sequence
from pathlib import Path
from typing import Any

import openpyxl
from openpyxl.utils.cell import range_boundaries
from openpyxl.utils.exceptions import InvalidFileException
from openpyxl.workbook.workbook import Workbook
from openpyxl.worksheet.worksheet import Worksheet

from fixtureflow_shared.constants import DEFAULT_ARRAY_DELIMITER
from fixtureflow_shared.exceptions import (
    ParseFailureError,
    SchemaMismatchError,
    SourceUnavailableError,
)
from fixtureflow_shared.models.descriptor import SourceKind
from fixtureflow_shared.models.records import CoercedRecord, RawRow
from fixtureflow_pipeline.readers.base import BaseReader


def _header_names(cells: Sequence[Any]) -> list[str | None]:
    """Header text per column; None where the header cell is blank."""
    names: list[str | None] = []
    for value in cells:
        text = str(value).strip() if value is not None else ""
        names.append(text or None)
    return names


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _rows_to_dicts(rows: Iterable[Sequence[Any]]) -> list[RawRow]:
    """First row → headers, remaining rows → column → value dicts."""
    iterator = iter(rows)
    try:
        headers = _header_names(next(iterator))
    except StopIteration:
        return []

    result: list[RawRow] = []
    for values in iterator:
        if all(_is_blank(v) for v in values):
            continue
        row: RawRow = {}
        for i, name in enumerate(headers):
            if name is None:
                continue
            row[name] = values[i] if i < len(values) else None
        result.append(row)
    return result


class SpreadsheetReader(BaseReader):
    """Reads one sheet of an .xlsx workbook into coerced records."""

    kind = SourceKind.SPREADSHEET

    def __init__(
        self,
        path: str | Path,
        sheet_name: str | None = None,
        *,
        array_delimiter: str = DEFAULT_ARRAY_DELIMITER,
        auto_numeric: bool = True,
    ) -> None:
        super().__init__(path, array_delimiter=array_delimiter)
        self._sheet_name = sheet_name
        self.auto_numeric = auto_numeric
        self._workbook: Workbook | None = None

    @property
    def sheet_name(self) -> str | None:
        return self._sheet_name

    # ------------------------------------------------------------------
    # Workbook handling
    # ------------------------------------------------------------------

    def _load_workbook(self) -> Workbook:
        if self._workbook is not None:
            return self._workbook
        if not self._path.is_file():
            raise SourceUnavailableError(f"Excel file not found: {self._path}")
        try:
            self._workbook = openpyxl.load_workbook(self._path, read_only=False, data_only=True)
        except (InvalidFileException, zipfile.BadZipFile, KeyError, ValueError) as exc:
            raise ParseFailureError(
                f"Malformed workbook {self._path}: {exc}", cause=exc
            ) from exc
        except OSError as exc:
            raise SourceUnavailableError(
                f"Cannot read workbook {self._path}: {exc}", cause=exc
            ) from exc
        self._log.debug("workbook_loaded", sheets=len(self._workbook.sheetnames))
        return self._workbook

    def _worksheet(self, name: str | None) -> Worksheet | None:
        wb = self._load_workbook()
        if name is None:
            return wb.worksheets[0] if wb.worksheets else None
        if name not in wb.sheetnames:
            return None
        return wb[name]

    def close(self) -> None:
        """Release the workbook handle. Safe to call more than once."""
        if self._workbook is not None:
            self._workbook.close()
            self._workbook = None
            self._log.debug("workbook_closed")

    # ------------------------------------------------------------------
    # BaseReader interface
    # ------------------------------------------------------------------

    async def parse_raw(self) -> list[RawRow]:
        ws = self._worksheet(self._sheet_name)
        if ws is None:
            raise SchemaMismatchError(
                f"Sheet '{self._sheet_name}' not found in {self._path}. "
                f"Available: {', '.join(self._load_workbook().sheetnames)}"
            )
        rows = _rows_to_dicts(ws.iter_rows(values_only=True))
        self._log.debug("sheet_parsed", sheet=ws.title, rows=len(rows))
        return rows

    # ------------------------------------------------------------------
    # Auxiliary operations (no read_all cache, no numeric autoconversion)
    # ------------------------------------------------------------------

    def get_sheet_names(self) -> list[str]:
        return list(self._load_workbook().sheetnames)

    async def read_sheet(self, name: str) -> list[CoercedRecord]:
        """All records of sheet `name`; [] if the sheet does not exist."""
        ws = self._worksheet(name)
        if ws is None:
            self._log.warning("sheet_not_found", sheet=name)
            return []
        return self._engine.coerce_many(_rows_to_dicts(ws.iter_rows(values_only=True)))

    async def read_range(self, name: str, cell_range: str) -> list[CoercedRecord]:
        """
        Records from an A1-style range; its first row is the header row.

        Raises:
            SchemaMismatchError: the sheet does not exist.
            ParseFailureError:   `cell_range` is not an A1 reference.
        """
        ws = self._worksheet(name)
        if ws is None:
            raise SchemaMismatchError(f"Sheet '{name}' not found in {self._path}")
        try:
            min_col, min_row, max_col, max_row = range_boundaries(cell_range)
        except (ValueError, TypeError) as exc:
            raise ParseFailureError(
                f"Invalid cell range '{cell_range}': {exc}", cause=exc
            ) from exc
        rows = ws.iter_rows(
            min_row=min_row,
            max_row=max_row,
            min_col=min_col,
            max_col=max_col,
            values_only=True,
        )
        return self._engine.coerce_many(_rows_to_dicts(rows))

    def get_headers(self, name: str | None = None) -> list[str]:
        """Header row of `name` (default: configured sheet, else the first one)."""
        ws = self._worksheet(name or self._sheet_name)
        if ws is None:
            return []
        first = next(ws.iter_rows(min_row=1, max_row=1, values_only=True), ())
        headers = _header_names(first)
        if all(h is None for h in headers):
            return []
        return [h or "" for h in headers]
