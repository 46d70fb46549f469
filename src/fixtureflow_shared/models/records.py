"""
models/records.py — Pydantic models for canonical-file metadata and the
shapes the data provider hands to tests.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from fixtureflow_shared.constants import GENERATOR_ID
from fixtureflow_shared.models.descriptor import SourceKind

RawRow = dict[str, Any]
CoercedRecord = dict[str, Any]


class CanonicalMetadata(BaseModel):
    """The `_metadata` member of a canonical file. Field names are the on-disk keys."""

    model_config = ConfigDict(populate_by_name=True)

    source_type: SourceKind = Field(alias="sourceType")
    original_source: str = Field(alias="originalSource")
    generated_at: str = Field(
        alias="generatedAt",
        default_factory=lambda: datetime.now(timezone.utc).isoformat(),
    )
    record_count: int = Field(alias="recordCount", default=0)
    preprocessed_by: str = Field(alias="preprocessedBy", default=GENERATOR_ID)

    def to_json_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class DataProviderResult(BaseModel):
    """Full result of DataProvider.get_test_data()."""

    data: list[CoercedRecord]
    source: SourceKind
    file_path: str
    loaded_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    total_count: int
    enabled_count: int


class RunnerMetadata(BaseModel):
    source_type: SourceKind
    generated_at: str
    original_source: str


class RunnerData(BaseModel):
    """Self-describing export of every record of one source."""

    metadata: RunnerMetadata
    test_cases: list[CoercedRecord]
