"""
tests/test_cli.py — Tests for the fixtureflow Click CLI.

Commands run in-process through click.testing.CliRunner against files in
tmp_path; --log-level ERROR keeps log lines out of the captured output.
"""

from __future__ import annotations

import json

import pytest
from click.testing import CliRunner

from fixtureflow_pipeline.cli import main

HEADERS = ["id", "testName", "enabled", "tags", "expectedCount", "priority"]
ORIGINAL = {"runnerManager": [{"id": "J1", "enabled": True}, {"id": "J2", "enabled": False}]}


@pytest.fixture
def invoke(monkeypatch: pytest.MonkeyPatch):
    runner = CliRunner()

    def _invoke(*args: str, source: str = "json"):
        monkeypatch.setenv("TEST_DATA_SOURCE", source)
        return runner.invoke(main, ["--log-level", "ERROR", *args])

    return _invoke


class TestPreprocessRestore:
    def test_preprocess_then_restore(self, invoke, data_dir, write_json, write_csv, sample_rows):
        original = write_json(ORIGINAL)
        before = original.read_bytes()
        write_csv(sample_rows)

        result = invoke("preprocess", source="csv")
        assert result.exit_code == 0, result.output
        assert "Converted 3 records from csv" in result.output
        assert "backup:" in result.output

        result = invoke("restore", source="csv")
        assert result.exit_code == 0, result.output
        assert "Restored" in result.output
        assert original.read_bytes() == before

    def test_preprocess_canonical_source(self, invoke, write_json):
        write_json(ORIGINAL)
        result = invoke("preprocess")
        assert result.exit_code == 0
        assert "already canonical (2 records" in result.output

    def test_preprocess_missing_source(self, invoke):
        result = invoke("preprocess", source="excel")
        assert result.exit_code == 1
        assert "DATA_FILE_PATH_EXCEL" in result.output

    def test_restore_without_backup(self, invoke):
        result = invoke("restore")
        assert result.exit_code == 0
        assert "No backup to restore." in result.output

    def test_invalid_source_setting(self, invoke):
        result = invoke("restore", source="yaml")
        assert result.exit_code == 1
        assert "TEST_DATA_SOURCE" in result.output

    def test_invalid_port_setting(self, invoke, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("DB_PORT", "abc")
        result = invoke("restore")
        assert result.exit_code == 1
        assert "DB_PORT" in result.output
        assert "Traceback" not in result.output


class TestShow:
    def test_all_records(self, invoke, write_json):
        write_json(ORIGINAL)
        result = invoke("show")
        assert result.exit_code == 0, result.output
        assert json.loads(result.output) == ORIGINAL["runnerManager"]

    def test_enabled_only_from_other_source(self, invoke, write_workbook, sample_rows):
        write_workbook({"runnerManager": [HEADERS, *sample_rows]})
        result = invoke("show", "--source", "excel", "--enabled-only")
        assert result.exit_code == 0, result.output
        assert [r["id"] for r in json.loads(result.output)] == ["TC001"]

    def test_single_record(self, invoke, write_json):
        write_json(ORIGINAL)
        result = invoke("show", "--id", "J2")
        assert json.loads(result.output) == {"id": "J2", "enabled": False}

    def test_unknown_id(self, invoke, write_json):
        write_json(ORIGINAL)
        result = invoke("show", "--id", "nope")
        assert result.exit_code == 1
        assert "No test case with id 'nope'" in result.output


class TestCheck:
    def test_active_source_available(self, invoke, write_json):
        write_json(ORIGINAL)
        result = invoke("check")
        assert result.exit_code == 0
        assert "✓ json" in result.output
        assert "(active)" in result.output
        assert "✗ csv" in result.output

    def test_checked_source_missing(self, invoke, write_json):
        write_json(ORIGINAL)
        result = invoke("check", "--source", "csv")
        assert result.exit_code == 1
        assert "✗ csv" in result.output


class TestSeed:
    def test_seed_from_canonical(self, invoke, write_json):
        write_json(ORIGINAL)
        result = invoke("seed", "--replace", source="db")
        assert result.exit_code == 0, result.output
        assert "Inserted 2 rows into runnerManager" in result.output

        result = invoke("show", source="db")
        assert [r["id"] for r in json.loads(result.output)] == ["J1", "J2"]
