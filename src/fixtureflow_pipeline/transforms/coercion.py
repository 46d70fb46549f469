"""
transforms/coercion.py — TypeCoercionEngine: untyped rows → canonical records.

Every reader funnels its raw rows through one engine so a record looks the
same whichever source produced it. Per field, in priority order:

  0. identifier column (id)           → text
  1. array columns (tags)             → list[str], split on the delimiter
  2. boolean columns (enabled, ...)   → bool, true|yes|1 is True
  3. numeric columns (count, ...)     → int/float, unparseable is 0
  4. anything else                    → heuristic:
       true|false|yes|no|1|0 → bool, ""|null → None,
       numeric-looking text → number (only with auto_numeric=True),
       otherwise trimmed text

Fixed sets always win over the heuristic. The engine is pure and
idempotent on typed fields: coerce(coerce(row)) == coerce(row).

Usage:
    from fixtureflow_pipeline.transforms.coercion import TypeCoercionEngine

    engine = TypeCoercionEngine("|")
    engine.coerce({"tags": "a|b", "enabled": "yes", "price": "9.99"})
    # {'tags': ['a', 'b'], 'enabled': True, 'price': 9.99}
"""

from __future__ import annotations

import math
import re
from collections.abc import Iterable, Mapping
from datetime import date, datetime, time
from decimal import Decimal
from typing import Any, ClassVar
from uuid import UUID

from fixtureflow_shared.constants import (
    ARRAY_COLUMNS,
    BOOLEAN_COLUMNS,
    BOOLEAN_STRINGS,
    DEFAULT_ARRAY_DELIMITER,
    IDENTIFIER_COLUMNS,
    NUMERIC_COLUMNS,
    TRUE_STRINGS,
)
from fixtureflow_shared.models.records import CoercedRecord, RawRow

_NUMERIC_TEXT = re.compile(r"^-?[0-9]+(\.[0-9]+)?$")


class TypeCoercionEngine:
    """Converts RawRow mappings into CoercedRecord dicts."""

    IDENTIFIER_COLUMNS: ClassVar[frozenset[str]] = IDENTIFIER_COLUMNS
    ARRAY_COLUMNS: ClassVar[frozenset[str]] = ARRAY_COLUMNS
    BOOLEAN_COLUMNS: ClassVar[frozenset[str]] = BOOLEAN_COLUMNS
    NUMERIC_COLUMNS: ClassVar[frozenset[str]] = NUMERIC_COLUMNS

    def __init__(self, array_delimiter: str = DEFAULT_ARRAY_DELIMITER) -> None:
        self._array_delimiter = array_delimiter or DEFAULT_ARRAY_DELIMITER

    @property
    def array_delimiter(self) -> str:
        return self._array_delimiter

    # ------------------------------------------------------------------
    # Row level
    # ------------------------------------------------------------------

    def coerce(self, row: Mapping[str, Any], *, auto_numeric: bool = False) -> CoercedRecord:
        """
        Coerce one raw row.

        Args:
            row:          Column → untyped value mapping, as delivered by a source.
            auto_numeric: Promote integer/decimal-looking text in unknown
                          columns to numbers.

        Returns:
            A new dict; `row` is not modified.
        """
        record: CoercedRecord = {}
        for key, value in row.items():
            name = str(key).strip()

            if name in self.IDENTIFIER_COLUMNS:
                record[name] = self.to_identifier(value)
            elif name in self.ARRAY_COLUMNS:
                record[name] = self.to_array(value)
            elif name in self.BOOLEAN_COLUMNS:
                record[name] = self.to_boolean(value)
            elif name in self.NUMERIC_COLUMNS:
                record[name] = self.to_number(value)
            else:
                record[name] = self.infer(value, auto_numeric=auto_numeric)
        return record

    def coerce_many(
        self, rows: Iterable[RawRow], *, auto_numeric: bool = False
    ) -> list[CoercedRecord]:
        return [self.coerce(row, auto_numeric=auto_numeric) for row in rows]

    # ------------------------------------------------------------------
    # Fixed-set converters
    # ------------------------------------------------------------------

    @staticmethod
    def to_identifier(value: Any) -> str | None:
        if value is None:
            return None
        if isinstance(value, float) and value.is_integer():
            return str(int(value))
        return str(to_json_scalar(value)).strip()

    def to_array(self, value: Any) -> list[str]:
        """Split on the delimiter, trim parts, drop empties. Lists pass through."""
        if isinstance(value, (list, tuple)):
            return [str(item) for item in value]
        if value is None or isinstance(value, bool):
            return []
        text = str(to_json_scalar(value))
        if not text.strip():
            return []
        return [part.strip() for part in text.split(self._array_delimiter) if part.strip()]

    @staticmethod
    def to_boolean(value: Any) -> bool:
        """true/yes/1 (any case) → True; numbers are True only when == 1."""
        if isinstance(value, bool):
            return value
        if isinstance(value, (int, float, Decimal)):
            return value == 1
        if isinstance(value, str):
            return value.strip().lower() in TRUE_STRINGS
        return False

    @staticmethod
    def to_number(value: Any) -> int | float:
        """Parse as a number; anything unparseable or non-finite becomes 0."""
        if isinstance(value, bool):
            return 0
        if isinstance(value, int):
            return value
        if isinstance(value, (float, Decimal)):
            number = float(value)
            return number if math.isfinite(number) else 0
        if isinstance(value, str):
            return _parse_number(value.strip())
        return 0

    # ------------------------------------------------------------------
    # Heuristic for unknown columns
    # ------------------------------------------------------------------

    def infer(self, value: Any, *, auto_numeric: bool = False) -> Any:
        if isinstance(value, str):
            text = value.strip()
            lowered = text.lower()
            if lowered in BOOLEAN_STRINGS:
                return lowered in TRUE_STRINGS
            if text == "" or lowered == "null":
                return None
            if auto_numeric and _NUMERIC_TEXT.match(text):
                return _parse_number(text)
            return text
        return to_json_scalar(value)


def _parse_number(text: str) -> int | float:
    if not text:
        return 0
    try:
        return int(text)
    except ValueError:
        pass
    try:
        number = float(text)
    except ValueError:
        return 0
    return number if math.isfinite(number) else 0


def to_json_scalar(value: Any) -> Any:
    """Make driver / workbook values JSON-serialisable without changing their meaning."""
    if isinstance(value, Decimal):
        return int(value) if value == value.to_integral_value() else float(value)
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    if isinstance(value, UUID):
        return str(value)
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).decode("utf-8", errors="replace")
    return value
