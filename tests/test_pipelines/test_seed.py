"""
tests/test_pipelines/test_seed.py — Tests for seed_relational.
"""

from __future__ import annotations

import pytest

from fixtureflow_shared import db
from fixtureflow_pipeline.pipelines.seed import _as_text, _columns, seed_relational
from fixtureflow_pipeline.readers.relational import RelationalReader

CASES = [
    {"id": "TC001", "enabled": True, "tags": ["smoke", "login"], "expectedCount": 2},
    {"id": "TC002", "enabled": False, "tags": [], "note": "flaky"},
]


class TestSeedRelational:
    @pytest.mark.asyncio
    async def test_from_canonical_file(self, descriptor_for, write_json):
        write_json({"_metadata": {}, "runnerManager": CASES})
        descriptor = descriptor_for("db")

        assert await seed_relational(descriptor) == 2

        records = await RelationalReader(descriptor).read_all()
        assert records[0] == {
            "id": "TC001",
            "enabled": True,
            "tags": ["smoke", "login"],
            "expectedCount": 2,
            "note": None,
        }
        assert records[1]["enabled"] is False
        assert records[1]["tags"] == []
        assert records[1]["expectedCount"] == 0

    @pytest.mark.asyncio
    async def test_from_csv_into_named_table(self, descriptor_for, write_csv, sample_rows):
        write_csv(sample_rows)
        descriptor = descriptor_for("db")

        inserted = await seed_relational(descriptor, source="csv", table="imported")

        assert inserted == 3
        assert db.get_table_names(descriptor) == ["imported"]
        records = await RelationalReader(descriptor, "imported").read_all()
        assert [r["id"] for r in records] == ["TC001", "TC002", "TC003"]

    @pytest.mark.asyncio
    async def test_append_then_replace(self, descriptor_for):
        descriptor = descriptor_for("db")
        await seed_relational(descriptor, CASES)
        await seed_relational(descriptor, CASES)
        assert len(db.execute_query(descriptor, 'SELECT * FROM "runnerManager"')) == 4

        await seed_relational(descriptor, CASES[:1], replace=True)
        assert len(db.execute_query(descriptor, 'SELECT * FROM "runnerManager"')) == 1

    @pytest.mark.asyncio
    async def test_no_records(self, descriptor_for):
        descriptor = descriptor_for("db")
        assert await seed_relational(descriptor, []) == 0
        assert not descriptor.relational_path.exists()


class TestHelpers:
    def test_as_text(self):
        assert _as_text(True) == "true"
        assert _as_text(False) == "false"
        assert _as_text(3) == "3"
        assert _as_text(None) is None
        assert _as_text(["a"]) == ["a"]

    def test_columns_first_seen_order(self):
        assert _columns(CASES) == ["id", "enabled", "tags", "expectedCount", "note"]
