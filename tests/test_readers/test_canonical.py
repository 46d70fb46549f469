"""
tests/test_readers/test_canonical.py — Tests for CanonicalReader and the
shared BaseReader behaviour (cache, lookups, enabled filtering).
"""

from __future__ import annotations

from pathlib import Path

import pytest

from fixtureflow_shared.exceptions import ParseFailureError
from fixtureflow_shared.models.descriptor import SourceKind
from fixtureflow_pipeline.readers.canonical import CanonicalReader

RECORDS = [
    {"id": "TC001", "enabled": True, "tags": ["smoke"], "testName": "Login"},
    {"id": "TC002", "enabled": False, "tags": [], "testName": "Logout"},
    {"id": "TC003", "tags": ["search"], "testName": "Search"},
]


@pytest.fixture
def canonical_file(write_json) -> Path:
    return write_json(
        {"_metadata": {"sourceType": "csv", "recordCount": 3}, "runnerManager": RECORDS}
    )


class TestReadAll:
    @pytest.mark.asyncio
    async def test_reads_section(self, canonical_file: Path):
        reader = CanonicalReader(canonical_file, "runnerManager")
        assert await reader.read_all() == RECORDS

    @pytest.mark.asyncio
    async def test_records_not_coerced(self, write_json):
        path = write_json({"runnerManager": [{"id": 1, "enabled": "no"}]})
        assert await CanonicalReader(path, "runnerManager").read_all() == [
            {"id": 1, "enabled": "no"}
        ]

    @pytest.mark.asyncio
    async def test_missing_file_is_empty(self, tmp_path: Path):
        reader = CanonicalReader(tmp_path / "absent.json", "runnerManager")
        assert await reader.read_all() == []

    @pytest.mark.asyncio
    async def test_missing_section_is_empty(self, canonical_file: Path):
        assert await CanonicalReader(canonical_file, "other").read_all() == []

    @pytest.mark.asyncio
    async def test_top_level_array(self, write_json):
        path = write_json([{"id": "A"}, {"id": "B"}])
        assert [r["id"] for r in await CanonicalReader(path, "runnerManager").read_all()] == ["A", "B"]

    @pytest.mark.asyncio
    async def test_data_array(self, write_json):
        path = write_json({"data": [{"id": "A"}]})
        assert await CanonicalReader(path, "runnerManager").read_all() == [{"id": "A"}]

    @pytest.mark.asyncio
    async def test_malformed_json(self, data_dir: Path):
        path = data_dir / "runnerManager.json"
        path.write_text("{ broken")
        with pytest.raises(ParseFailureError):
            await CanonicalReader(path, "runnerManager").read_all()

    @pytest.mark.asyncio
    async def test_result_cached_until_cleared(self, canonical_file: Path, write_json):
        reader = CanonicalReader(canonical_file, "runnerManager")
        first = await reader.read_all()
        write_json({"runnerManager": []})
        assert await reader.read_all() is first
        reader.clear_cache()
        assert await reader.read_all() == []


class TestLookups:
    @pytest.mark.asyncio
    async def test_read_by_id(self, canonical_file: Path):
        reader = CanonicalReader(canonical_file, "runnerManager")
        assert (await reader.read_by_id("TC002"))["testName"] == "Logout"
        assert await reader.read_by_id("TC999") is None

    @pytest.mark.asyncio
    async def test_read_filtered_all_keys_must_match(self, canonical_file: Path):
        reader = CanonicalReader(canonical_file, "runnerManager")
        assert [r["id"] for r in await reader.read_filtered({"enabled": True})] == ["TC001"]
        assert await reader.read_filtered({"enabled": True, "testName": "Logout"}) == []
        assert len(await reader.read_filtered({})) == 3

    @pytest.mark.asyncio
    async def test_read_enabled_excludes_only_false(self, canonical_file: Path):
        reader = CanonicalReader(canonical_file, "runnerManager")
        assert [r["id"] for r in await reader.read_enabled()] == ["TC001", "TC003"]


class TestAuxiliary:
    @pytest.mark.asyncio
    async def test_sections_exclude_metadata(self, write_json):
        path = write_json({"_metadata": {}, "runnerManager": [], "smoke": [{"id": "S1"}]})
        reader = CanonicalReader(path, "runnerManager")
        assert await reader.get_sections() == ["runnerManager", "smoke"]
        assert await reader.read_section("smoke") == [{"id": "S1"}]
        assert await reader.read_section("missing") == []

    def test_read_metadata(self, canonical_file: Path, tmp_path: Path):
        assert CanonicalReader(canonical_file).read_metadata() == {
            "sourceType": "csv",
            "recordCount": 3,
        }
        assert CanonicalReader(tmp_path / "absent.json").read_metadata() is None

    @pytest.mark.asyncio
    async def test_is_available(self, canonical_file: Path, tmp_path: Path):
        assert await CanonicalReader(canonical_file).is_available() is True
        assert await CanonicalReader(tmp_path / "absent.json").is_available() is False

    def test_accessors(self, canonical_file: Path):
        reader = CanonicalReader(canonical_file, "runnerManager")
        assert reader.source_kind is SourceKind.CANONICAL
        assert reader.path == canonical_file
        assert reader.section == "runnerManager"
