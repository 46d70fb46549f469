"""
readers/factory.py — pick the reader for a SourceKind.

    reader = create_reader(descriptor)               # descriptor.kind
    reader = create_reader(descriptor, "excel")      # explicit kind / alias
"""

from __future__ import annotations

from fixtureflow_shared.models.descriptor import SourceDescriptor, SourceKind
from fixtureflow_pipeline.readers.base import BaseReader
from fixtureflow_pipeline.readers.canonical import CanonicalReader
from fixtureflow_pipeline.readers.delimited import DelimitedTextReader
from fixtureflow_pipeline.readers.relational import RelationalReader
from fixtureflow_pipeline.readers.spreadsheet import SpreadsheetReader


def create_reader(
    descriptor: SourceDescriptor, kind: SourceKind | str | None = None
) -> BaseReader:
    """
    Build a fresh reader for `kind` (default: the descriptor's own kind).

    Raises:
        ConfigurationError: `kind` is not a known source kind.
    """
    resolved = SourceKind.parse(kind or descriptor.kind)
    delimiter = descriptor.array_delimiter

    if resolved is SourceKind.DELIMITED:
        return DelimitedTextReader(
            descriptor.delimited_path,
            delimiter=descriptor.csv_delimiter,
            has_header=descriptor.csv_has_header,
            array_delimiter=delimiter,
        )
    if resolved is SourceKind.SPREADSHEET:
        return SpreadsheetReader(
            descriptor.spreadsheet_path,
            descriptor.section,
            array_delimiter=delimiter,
        )
    if resolved is SourceKind.RELATIONAL:
        return RelationalReader(descriptor)
    return CanonicalReader(
        descriptor.canonical_path,
        descriptor.section,
        array_delimiter=delimiter,
    )
