"""
tests/test_transforms/test_frames.py — Tests for the polars frame helpers.
"""

from __future__ import annotations

import polars as pl

from fixtureflow_pipeline.transforms.frames import (
    drop_all_null_rows,
    frame_to_rows,
    normalize_headers,
)


class TestNormalizeHeaders:
    def test_strips_whitespace_and_bom(self):
        df = pl.DataFrame({"\ufeffid": ["1"], " name ": ["a"]})
        assert normalize_headers(df).columns == ["id", "name"]

    def test_clean_headers_untouched(self):
        df = pl.DataFrame({"id": ["1"]})
        assert normalize_headers(df).columns == ["id"]


class TestDropAllNullRows:
    def test_drops_null_and_blank_rows(self):
        df = pl.DataFrame(
            {"a": ["1", None, "  ", None], "b": ["x", None, "", "y"]},
        )
        result = drop_all_null_rows(df)
        assert result["a"].to_list() == ["1", None]
        assert result["b"].to_list() == ["x", "y"]

    def test_no_columns(self):
        df = pl.DataFrame()
        assert drop_all_null_rows(df).shape == (0, 0)


def test_frame_to_rows():
    df = pl.DataFrame({"id": ["1", "2"], "tags": ["a|b", None]})
    assert frame_to_rows(df) == [
        {"id": "1", "tags": "a|b"},
        {"id": "2", "tags": None},
    ]
