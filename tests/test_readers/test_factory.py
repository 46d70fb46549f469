"""
tests/test_readers/test_factory.py — Tests for create_reader.
"""

from __future__ import annotations

import pytest

from fixtureflow_shared.exceptions import ConfigurationError
from fixtureflow_shared.models.descriptor import SourceKind
from fixtureflow_pipeline.readers.canonical import CanonicalReader
from fixtureflow_pipeline.readers.delimited import DelimitedTextReader
from fixtureflow_pipeline.readers.factory import create_reader
from fixtureflow_pipeline.readers.relational import RelationalReader
from fixtureflow_pipeline.readers.spreadsheet import SpreadsheetReader


class TestCreateReader:
    @pytest.mark.parametrize(
        "kind, expected",
        [
            ("json", CanonicalReader),
            ("csv", DelimitedTextReader),
            ("excel", SpreadsheetReader),
            ("db", RelationalReader),
        ],
    )
    def test_uses_descriptor_kind(self, descriptor_for, kind, expected):
        reader = create_reader(descriptor_for(kind))
        assert isinstance(reader, expected)
        assert reader.source_kind is SourceKind.parse(kind)

    def test_explicit_kind_and_alias(self, descriptor_for):
        descriptor = descriptor_for("json")
        assert isinstance(create_reader(descriptor, "xlsx"), SpreadsheetReader)
        assert isinstance(create_reader(descriptor, SourceKind.DELIMITED), DelimitedTextReader)

    def test_paths_come_from_descriptor(self, descriptor_for):
        descriptor = descriptor_for("json")
        for kind in SourceKind:
            assert create_reader(descriptor, kind).path == descriptor.path_for(kind)

    def test_spreadsheet_sheet_is_section(self, descriptor_for):
        reader = create_reader(descriptor_for("excel", DATA_SHEET_NAME="smoke"))
        assert reader.sheet_name == "smoke"

    def test_relational_table_is_section(self, descriptor_for):
        reader = create_reader(descriptor_for("db", DATA_SHEET_NAME="cases"))
        assert reader.table_name == "cases"

    @pytest.mark.asyncio
    async def test_csv_settings_applied(self, descriptor_for, write_csv, sample_rows):
        write_csv(sample_rows, delimiter=";")
        descriptor = descriptor_for("csv", CSV_DELIMITER=";", ARRAY_DELIMITER="|")
        records = await create_reader(descriptor).read_all()
        assert records[0]["tags"] == ["smoke", "login"]

    def test_unknown_kind(self, descriptor_for):
        with pytest.raises(ConfigurationError):
            create_reader(descriptor_for("json"), "yaml")
