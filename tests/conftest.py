"""
tests/conftest.py — Shared pytest fixtures for the fixtureflow test suite.

Provides:
  clean_env (autouse)  — every fixtureflow variable removed, DATA_ROOT → tmp_path,
                         provider singleton and DuckDB connection reset
  data_dir             — tmp_path / "data", where the default paths point
  descriptor_for()     — factory: resolved SourceDescriptor for a source kind
  write_csv / write_json / write_workbook — fixture-file builders
  sample_rows          — three raw rows as a CSV or workbook would hold them
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Callable

import openpyxl
import pytest

from fixtureflow_shared import db
from fixtureflow_shared.models.descriptor import SourceDescriptor
from fixtureflow_shared.resolver import ConfigResolver
from fixtureflow_pipeline.provider import DataProvider

ENV_VARS = [
    "TEST_DATA_SOURCE",
    "DATA_ROOT",
    "DATA_FILE_PATH_JSON",
    "DATA_FILE_PATH_CSV",
    "DATA_FILE_PATH_EXCEL",
    "DB_PATH",
    "DB_CONFIG_PATH",
    "SQL_QUERIES_PATH",
    "RUN_MODE",
    "DB_REMOTE_TYPE",
    "DB_HOST",
    "DB_PORT",
    "DB_NAME",
    "DB_USER",
    "DB_PASSWORD",
    "DATA_SHEET_NAME",
    "ARRAY_DELIMITER",
    "CSV_DELIMITER",
    "CSV_HAS_HEADER",
    "DATA_PREPROCESSED",
    "DATA_PREPROCESSED_SOURCE",
]

HEADERS = ["id", "testName", "enabled", "tags", "expectedCount", "priority"]

SAMPLE_ROWS: list[list[Any]] = [
    ["TC001", "Login works", "yes", "smoke|login", "3", "1"],
    ["TC002", "Logout works", "no", "smoke", "1", "2"],
    ["TC003", "Search", "", "search | regression |", "abc", "high"],
]


# ---------------------------------------------------------------------------
# Environment isolation
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path):
    for name in ENV_VARS:
        # setenv first so teardown also removes values written behind monkeypatch's back
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)
    monkeypatch.setenv("DATA_ROOT", str(tmp_path))
    DataProvider.reset_instance()
    db.reset_connection()
    yield
    DataProvider.reset_instance()
    db.reset_connection()


@pytest.fixture
def data_dir(tmp_path: Path) -> Path:
    path = tmp_path / "data"
    path.mkdir(exist_ok=True)
    return path


@pytest.fixture
def descriptor_for(
    monkeypatch: pytest.MonkeyPatch, data_dir: Path
) -> Callable[..., SourceDescriptor]:
    """Set TEST_DATA_SOURCE (plus any extra variables) and resolve."""

    def _make(kind: str = "json", **env: str) -> SourceDescriptor:
        monkeypatch.setenv("TEST_DATA_SOURCE", kind)
        for key, value in env.items():
            monkeypatch.setenv(key, value)
        return ConfigResolver().resolve()

    return _make


# ---------------------------------------------------------------------------
# Fixture-file builders
# ---------------------------------------------------------------------------

@pytest.fixture
def sample_rows() -> list[list[Any]]:
    return [list(row) for row in SAMPLE_ROWS]


@pytest.fixture
def write_csv(data_dir: Path) -> Callable[..., Path]:
    def _write(
        rows: list[list[Any]],
        headers: list[str] | None = HEADERS,
        name: str = "runnerManager.csv",
        delimiter: str = ",",
    ) -> Path:
        lines = []
        if headers is not None:
            lines.append(delimiter.join(headers))
        lines.extend(delimiter.join(str(v) for v in row) for row in rows)
        path = data_dir / name
        path.write_text("\n".join(lines) + "\n", encoding="utf-8")
        return path

    return _write


@pytest.fixture
def write_json(data_dir: Path) -> Callable[..., Path]:
    def _write(document: Any, name: str = "runnerManager.json") -> Path:
        path = data_dir / name
        path.write_text(json.dumps(document, indent=2), encoding="utf-8")
        return path

    return _write


@pytest.fixture
def write_workbook(data_dir: Path) -> Callable[..., Path]:
    """Build an .xlsx; `sheets` maps sheet name → rows (first row = headers)."""

    def _write(sheets: dict[str, list[list[Any]]], name: str = "runnerManager.xlsx") -> Path:
        wb = openpyxl.Workbook()
        wb.remove(wb.active)
        for title, rows in sheets.items():
            ws = wb.create_sheet(title)
            for row in rows:
                ws.append(row)
        path = data_dir / name
        wb.save(path)
        wb.close()
        return path

    return _write
