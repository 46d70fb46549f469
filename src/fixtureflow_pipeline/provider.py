"""
provider.py — DataProvider: the lookup façade tests use to get their fixtures.

A provider is built from a SourceDescriptor and creates one reader per
source kind on demand, reusing it so the reader cache is effective.

get_instance() builds the process-wide provider from the environment. If
the process flag says a preprocess already ran, that provider reads the
canonical file whatever TEST_DATA_SOURCE says. for_source() bypasses the
override and reads the named source directly.

Usage:
    from fixtureflow_pipeline.provider import DataProvider, get_enabled_test_data

    cases = await get_enabled_test_data()
    case = await DataProvider.get_instance().get_test_data_by_id("TC001")
    raw = await DataProvider.for_source("excel").get_test_data()

    # Explicit configuration, no globals:
    provider = DataProvider(descriptor)
"""

from __future__ import annotations

import inspect
import os
import threading
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any, Optional

import structlog

from fixtureflow_shared.exceptions import ConfigurationError
from fixtureflow_shared.models.descriptor import SourceDescriptor, SourceKind
from fixtureflow_shared.models.records import (
    CoercedRecord,
    DataProviderResult,
    RunnerData,
    RunnerMetadata,
)
from fixtureflow_shared.process_flag import ProcessFlag
from fixtureflow_shared.resolver import ConfigResolver
from fixtureflow_pipeline.readers.base import BaseReader
from fixtureflow_pipeline.readers.factory import create_reader

log = structlog.get_logger(__name__)

_instance_lock = threading.Lock()


class DataProvider:
    """Selects a reader per source kind and exposes lookup operations."""

    _instance: Optional["DataProvider"] = None

    def __init__(self, descriptor: SourceDescriptor) -> None:
        self._descriptor = descriptor
        self._readers: dict[SourceKind, BaseReader] = {}
        log.info("data_provider_configured", source=descriptor.kind.value)

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def get_instance(
        cls,
        resolver: ConfigResolver | None = None,
        environ: Mapping[str, str] | None = None,
    ) -> "DataProvider":
        """
        Return the process-wide provider, building it on first call.

        Args:
            resolver: Resolver to build the descriptor with (default: environment).
            environ:  Mapping to read the process flag from (default: os.environ).
        """
        with _instance_lock:
            if cls._instance is None:
                descriptor = (resolver or ConfigResolver()).resolve()
                flag = ProcessFlag.from_env(os.environ if environ is None else environ)
                if flag.preprocessed:
                    descriptor = descriptor.with_kind(SourceKind.CANONICAL)
                    log.info(
                        "data_provider_preprocessed_override",
                        original_source=flag.original_source or "unknown",
                    )
                cls._instance = cls(descriptor)
            return cls._instance

    @classmethod
    def reset_instance(cls) -> None:
        """Drop the process-wide provider (useful in tests)."""
        with _instance_lock:
            cls._instance = None

    @classmethod
    def for_source(cls, kind: SourceKind | str) -> "DataProvider":
        """A new provider reading `kind` directly, ignoring the preprocess override."""
        base = cls.get_instance().descriptor
        return cls(base.with_kind(cls._resolve_kind(kind, base.kind)))

    # ------------------------------------------------------------------
    # Reader selection
    # ------------------------------------------------------------------

    @staticmethod
    def _resolve_kind(kind: SourceKind | str | None, default: SourceKind) -> SourceKind:
        if kind is None:
            return default
        try:
            return SourceKind.parse(kind)
        except ConfigurationError:
            log.warning("unknown_source_kind", kind=str(kind), fallback=SourceKind.CANONICAL.value)
            return SourceKind.CANONICAL

    def _reader(self, kind: SourceKind | str | None = None) -> tuple[SourceKind, BaseReader]:
        resolved = self._resolve_kind(kind, self._descriptor.kind)
        reader = self._readers.get(resolved)
        if reader is None:
            reader = create_reader(self._descriptor, resolved)
            self._readers[resolved] = reader
        return resolved, reader

    # ------------------------------------------------------------------
    # Lookup operations
    # ------------------------------------------------------------------

    async def get_test_data(self, kind: SourceKind | str | None = None) -> DataProviderResult:
        resolved, reader = self._reader(kind)
        file_path = str(self._descriptor.path_for(resolved))
        log.info("test_data_loading", source=resolved.value, path=file_path)
        data = await reader.read_all()
        enabled = await reader.read_enabled()
        return DataProviderResult(
            data=data,
            source=resolved,
            file_path=file_path,
            total_count=len(data),
            enabled_count=len(enabled),
        )

    async def get_enabled_test_data(
        self, kind: SourceKind | str | None = None
    ) -> list[CoercedRecord]:
        _, reader = self._reader(kind)
        return await reader.read_enabled()

    async def get_test_data_by_id(
        self, record_id: Any, kind: SourceKind | str | None = None
    ) -> CoercedRecord | None:
        _, reader = self._reader(kind)
        return await reader.read_by_id(record_id)

    async def get_filtered_test_data(
        self, partial: Mapping[str, Any], kind: SourceKind | str | None = None
    ) -> list[CoercedRecord]:
        _, reader = self._reader(kind)
        return await reader.read_filtered(partial)

    async def is_source_available(self, kind: SourceKind | str | None = None) -> bool:
        _, reader = self._reader(kind)
        return await reader.is_available()

    async def to_runner_data(self, kind: SourceKind | str | None = None) -> RunnerData:
        """Every record of `kind` with provenance, read through a fresh reader."""
        resolved = self._resolve_kind(kind, self._descriptor.kind)
        reader = create_reader(self._descriptor, resolved)
        try:
            test_cases = await reader.read_all()
        finally:
            close = getattr(reader, "close", None)
            if close is not None:
                result = close()
                if inspect.isawaitable(result):
                    await result

        log.info("runner_data_built", source=resolved.value, records=len(test_cases))
        return RunnerData(
            metadata=RunnerMetadata(
                source_type=resolved,
                generated_at=datetime.now(timezone.utc).isoformat(),
                original_source=str(self._descriptor.path_for(resolved)),
            ),
            test_cases=test_cases,
        )

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def descriptor(self) -> SourceDescriptor:
        return self._descriptor

    @property
    def current_source_kind(self) -> SourceKind:
        return self._descriptor.kind


# ---------------------------------------------------------------------------
# Module-level shortcuts over the process-wide provider
# ---------------------------------------------------------------------------

async def get_enabled_test_data(kind: SourceKind | str | None = None) -> list[CoercedRecord]:
    return await DataProvider.get_instance().get_enabled_test_data(kind)


async def get_test_case_by_id(record_id: Any) -> CoercedRecord | None:
    return await DataProvider.get_instance().get_test_data_by_id(record_id)


async def get_runner_data() -> RunnerData:
    return await DataProvider.get_instance().to_runner_data()
