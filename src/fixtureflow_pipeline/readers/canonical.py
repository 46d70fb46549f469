"""
readers/canonical.py — reader for the canonical JSON fixture file.

Record resolution order:
  1. the configured section key (the normal canonical-file layout)
  2. a top-level array
  3. a top-level `data` array
A missing file or a missing section yields [] — "no test cases configured"
is a valid state. Records are returned as stored; they are already canonical.

Usage:
    reader = CanonicalReader("data/runnerManager.json", section="runnerManager")
    records = await reader.read_all()
    meta = reader.read_metadata()       # the `_metadata` member, or None
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from fixtureflow_shared.constants import DEFAULT_ARRAY_DELIMITER, METADATA_KEY
from fixtureflow_shared.exceptions import ParseFailureError, SourceUnavailableError
from fixtureflow_shared.models.descriptor import SourceKind
from fixtureflow_shared.models.records import CoercedRecord, RawRow
from fixtureflow_pipeline.readers.base import BaseReader


class CanonicalReader(BaseReader):
    """Reads records from a section of the canonical JSON file."""

    kind = SourceKind.CANONICAL

    def __init__(
        self,
        path: str | Path,
        section: str | None = None,
        *,
        array_delimiter: str = DEFAULT_ARRAY_DELIMITER,
    ) -> None:
        super().__init__(path, array_delimiter=array_delimiter)
        self._section = section

    @property
    def section(self) -> str | None:
        return self._section

    # ------------------------------------------------------------------
    # Document access
    # ------------------------------------------------------------------

    def _load_document(self) -> Any:
        """Parsed JSON document, or None when the file does not exist."""
        if not self._path.is_file():
            return None
        try:
            text = self._path.read_text(encoding="utf-8")
        except OSError as exc:
            raise SourceUnavailableError(
                f"Cannot read canonical file {self._path}: {exc}", cause=exc
            ) from exc
        if not text.strip():
            return None
        try:
            return json.loads(text)
        except json.JSONDecodeError as exc:
            raise ParseFailureError(
                f"Malformed JSON in {self._path}: {exc}", cause=exc
            ) from exc

    @staticmethod
    def _as_rows(value: Any) -> list[RawRow]:
        items = value if isinstance(value, list) else [value]
        return [item for item in items if isinstance(item, dict)]

    # ------------------------------------------------------------------
    # BaseReader interface
    # ------------------------------------------------------------------

    async def parse_raw(self) -> list[RawRow]:
        document = self._load_document()
        if document is None:
            self._log.warning("canonical_file_missing")
            return []

        if isinstance(document, list):
            return self._as_rows(document)
        if not isinstance(document, dict):
            raise ParseFailureError(
                f"Canonical file {self._path} must hold a JSON object or array"
            )

        if self._section and self._section in document:
            return self._as_rows(document[self._section])
        if isinstance(document.get("data"), list):
            return self._as_rows(document["data"])

        self._log.warning("canonical_section_missing", section=self._section)
        return []

    def transform(self, rows: list[RawRow]) -> list[CoercedRecord]:
        return [dict(row) for row in rows]

    # ------------------------------------------------------------------
    # Auxiliary operations
    # ------------------------------------------------------------------

    async def read_section(self, name: str) -> list[CoercedRecord]:
        """Records of another section of the same file (uncached)."""
        document = self._load_document()
        if not isinstance(document, dict) or name not in document:
            self._log.warning("canonical_section_missing", section=name)
            return []
        return self.transform(self._as_rows(document[name]))

    async def get_sections(self) -> list[str]:
        """Top-level keys holding records (metadata excluded)."""
        document = self._load_document()
        if not isinstance(document, dict):
            return []
        return [key for key in document if key != METADATA_KEY]

    def read_metadata(self) -> dict[str, Any] | None:
        document = self._load_document()
        if isinstance(document, dict) and isinstance(document.get(METADATA_KEY), dict):
            return document[METADATA_KEY]
        return None
