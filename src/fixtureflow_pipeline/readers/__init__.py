"""
fixtureflow_pipeline.readers — one reader per test-data source kind.

All readers share the BaseReader contract (read_all, read_by_id,
read_filtered, read_enabled, is_available, clear_cache):
  CanonicalReader      — the canonical JSON fixture file
  DelimitedTextReader  — CSV / delimited text (polars)
  SpreadsheetReader    — .xlsx workbooks (openpyxl)
  RelationalReader     — DuckDB file or ATTACHed MySQL / PostgreSQL
"""

from fixtureflow_pipeline.readers.base import BaseReader
from fixtureflow_pipeline.readers.canonical import CanonicalReader
from fixtureflow_pipeline.readers.delimited import DelimitedTextReader
from fixtureflow_pipeline.readers.factory import create_reader
from fixtureflow_pipeline.readers.relational import RelationalReader
from fixtureflow_pipeline.readers.spreadsheet import SpreadsheetReader

__all__ = [
    "BaseReader",
    "CanonicalReader",
    "DelimitedTextReader",
    "SpreadsheetReader",
    "RelationalReader",
    "create_reader",
]
