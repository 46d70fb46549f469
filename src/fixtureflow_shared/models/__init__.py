"""
fixtureflow_shared.models — value types shared by the pipeline, the CLI and tests.

  SourceKind, RelationalParams, SourceDescriptor — what to read and from where
  CanonicalMetadata                              — `_metadata` of the canonical file
  DataProviderResult, RunnerData                 — what DataProvider returns
"""

from fixtureflow_shared.models.descriptor import RelationalParams, SourceDescriptor, SourceKind
from fixtureflow_shared.models.records import (
    CanonicalMetadata,
    CoercedRecord,
    DataProviderResult,
    RawRow,
    RunnerData,
    RunnerMetadata,
)

__all__ = [
    "SourceKind",
    "RelationalParams",
    "SourceDescriptor",
    "CanonicalMetadata",
    "CoercedRecord",
    "DataProviderResult",
    "RawRow",
    "RunnerData",
    "RunnerMetadata",
]
