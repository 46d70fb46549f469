"""
models/descriptor.py — SourceKind, RelationalParams and SourceDescriptor.

A SourceDescriptor is built once per process by ConfigResolver and never
mutated; with_kind() returns a copy bound to another source kind.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from fixtureflow_shared.constants import BACKUP_SUFFIX, DEFAULT_ARRAY_DELIMITER
from fixtureflow_shared.exceptions import ConfigurationError


class SourceKind(str, Enum):
    """Supported test-data sources. Values match TEST_DATA_SOURCE."""

    CANONICAL = "json"
    DELIMITED = "csv"
    SPREADSHEET = "excel"
    RELATIONAL = "db"

    @classmethod
    def parse(cls, value: "str | SourceKind") -> "SourceKind":
        """Accept enum values and descriptive aliases, case-insensitively."""
        if isinstance(value, SourceKind):
            return value
        key = str(value).strip().lower()
        kind = _ALIASES.get(key)
        if kind is None:
            raise ConfigurationError(
                f"Unknown data source kind '{value}'. "
                f"Expected one of: {', '.join(sorted(_ALIASES))}"
            )
        return kind


_ALIASES: dict[str, SourceKind] = {
    "json": SourceKind.CANONICAL,
    "canonical": SourceKind.CANONICAL,
    "csv": SourceKind.DELIMITED,
    "delimited-text": SourceKind.DELIMITED,
    "delimited": SourceKind.DELIMITED,
    "excel": SourceKind.SPREADSHEET,
    "xlsx": SourceKind.SPREADSHEET,
    "spreadsheet": SourceKind.SPREADSHEET,
    "db": SourceKind.RELATIONAL,
    "sql": SourceKind.RELATIONAL,
    "relational": SourceKind.RELATIONAL,
}


class RelationalParams(BaseModel):
    """Connection parameters for the relational source (credentials decoded)."""

    model_config = ConfigDict(frozen=True)

    run_mode: Literal["local", "remote"] = "local"
    remote_type: Literal["mysql", "postgres"] = "mysql"
    host: str | None = None
    port: int | None = None
    schema_name: str | None = None
    user: str | None = None
    password: str | None = Field(default=None, repr=False)

    @property
    def is_remote(self) -> bool:
        return self.run_mode == "remote"


class SourceDescriptor(BaseModel):
    """Immutable description of the active source and every source's location."""

    model_config = ConfigDict(frozen=True)

    kind: SourceKind = SourceKind.CANONICAL
    section: str = "runnerManager"

    canonical_path: Path
    delimited_path: Path
    spreadsheet_path: Path
    relational_path: Path
    queries_path: Path | None = None

    relational: RelationalParams = Field(default_factory=RelationalParams)

    array_delimiter: str = DEFAULT_ARRAY_DELIMITER
    csv_delimiter: str = ","
    csv_has_header: bool = True

    def path_for(self, kind: SourceKind | str | None = None) -> Path:
        """Backing path of `kind` (default: this descriptor's own kind)."""
        resolved = SourceKind.parse(kind or self.kind)
        if resolved is SourceKind.DELIMITED:
            return self.delimited_path
        if resolved is SourceKind.SPREADSHEET:
            return self.spreadsheet_path
        if resolved is SourceKind.RELATIONAL:
            return self.relational_path
        return self.canonical_path

    def with_kind(self, kind: SourceKind | str) -> "SourceDescriptor":
        return self.model_copy(update={"kind": SourceKind.parse(kind)})

    @property
    def backup_path(self) -> Path:
        return self.canonical_path.with_name(self.canonical_path.name + BACKUP_SUFFIX)
