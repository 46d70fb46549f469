"""
transforms/frames.py — polars helpers used before rows reach the coercion engine.

Stateless; every function takes and returns a DataFrame except
frame_to_rows(), which is the hand-off point to TypeCoercionEngine.
"""

from __future__ import annotations

from typing import Any

import polars as pl


def normalize_headers(df: pl.DataFrame) -> pl.DataFrame:
    """Trim header whitespace and a leading UTF-8 BOM."""
    renames = {c: c.lstrip("\ufeff").strip() for c in df.columns}
    return df.rename({old: new for old, new in renames.items() if old != new})


def drop_all_null_rows(df: pl.DataFrame) -> pl.DataFrame:
    """Drop rows where every column is null or blank text."""
    if not df.columns:
        return df
    return df.filter(
        pl.any_horizontal(
            [
                pl.col(c).is_not_null() & (pl.col(c).cast(pl.String).str.strip_chars() != "")
                for c in df.columns
            ]
        )
    )


def frame_to_rows(df: pl.DataFrame) -> list[dict[str, Any]]:
    """Materialise a DataFrame as a list of column → value dicts."""
    return df.to_dicts()
