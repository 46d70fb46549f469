"""
pipelines/preprocess.py — materialise a non-canonical source as the canonical file.

Orchestrates:
  1. Resolve the SourceDescriptor (already canonical → report and stop)
  2. Verify the source's backing file exists (fatal if not)
  3. Read + coerce every record through the matching reader
  4. Back up the existing canonical file (best effort)
  5. Write the canonical file: {"_metadata": {...}, "<section>": [...]}
  6. Mark the process flag so DataProvider reads the canonical file

restore_canonical() is the inverse: copy the backup over the canonical
file and delete the backup. Steps 4 and the restore never raise; they
return a FileOpOutcome that is logged here.

Steps 4 and 5 run under a file lock held in the system temp directory, so
two processes on one host never interleave backup and write.

Usage:
    from fixtureflow_pipeline.pipelines.preprocess import Preprocessor
    result = await Preprocessor().preprocess()
    print(result.record_count, result.backup_path)
    ...
    Preprocessor().restore_canonical()
"""

from __future__ import annotations

import asyncio
import hashlib
import json
import shutil
import tempfile
import time
from collections.abc import MutableMapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import structlog
from filelock import FileLock

from fixtureflow_shared.constants import METADATA_KEY, PATH_VARIABLES
from fixtureflow_shared.exceptions import FixtureDataError, SourceUnavailableError
from fixtureflow_shared.models.descriptor import SourceDescriptor, SourceKind
from fixtureflow_shared.models.records import CanonicalMetadata, CoercedRecord
from fixtureflow_shared.process_flag import ProcessFlag
from fixtureflow_shared.resolver import ConfigResolver
from fixtureflow_pipeline.readers.factory import create_reader

log = structlog.get_logger(__name__)


@dataclass(frozen=True)
class FileOpOutcome:
    """Result of a best-effort file operation (backup / restore)."""

    ok: bool
    path: Path | None = None
    error: str | None = None


@dataclass(frozen=True)
class PreprocessResult:
    converted: bool
    source_kind: SourceKind
    output_path: Path
    record_count: int
    backup_path: Path | None = None
    duration_ms: int = 0


def lock_path_for(canonical_path: Path) -> Path:
    """Lock file for `canonical_path`, outside the working tree."""
    digest = hashlib.sha1(str(canonical_path.resolve()).encode("utf-8")).hexdigest()[:16]
    return Path(tempfile.gettempdir()) / f"fixtureflow-{digest}.lock"


class Preprocessor:
    """Converts the configured source into the canonical file and back."""

    def __init__(
        self,
        descriptor: SourceDescriptor | None = None,
        *,
        environ: MutableMapping[str, str] | None = None,
    ) -> None:
        self._descriptor = descriptor
        self._environ = environ

    @property
    def descriptor(self) -> SourceDescriptor:
        if self._descriptor is None:
            self._descriptor = ConfigResolver().resolve()
        return self._descriptor

    # ------------------------------------------------------------------
    # Preprocess
    # ------------------------------------------------------------------

    async def preprocess(self) -> PreprocessResult:
        """
        Convert the active source to the canonical file.

        Raises:
            SourceUnavailableError: the source's backing file is missing or
                                    the source cannot be read.
            ParseFailureError:      the source content is malformed.
            SchemaMismatchError:    the configured sheet / table is missing.
        """
        descriptor = self.descriptor
        kind = descriptor.kind
        output_path = descriptor.canonical_path
        t0 = time.monotonic()
        log.info("preprocess_start", source=kind.value, section=descriptor.section)

        if kind is SourceKind.CANONICAL:
            try:
                existing = await create_reader(descriptor).read_all()
            except FixtureDataError as exc:
                log.warning("canonical_file_unreadable", path=str(output_path), error=str(exc))
                existing = []
            log.info("preprocess_skipped", reason="source_is_canonical", records=len(existing))
            return PreprocessResult(
                converted=False,
                source_kind=kind,
                output_path=output_path,
                record_count=len(existing),
            )

        source_path = self._validate_source(descriptor)
        records = await self._read_source(descriptor)
        if not records:
            log.warning("preprocess_no_records", source=kind.value, path=str(source_path))

        metadata = CanonicalMetadata(
            source_type=kind,
            original_source=str(source_path),
            record_count=len(records),
        )
        document: dict[str, Any] = {
            METADATA_KEY: metadata.to_json_dict(),
            descriptor.section: records,
        }

        with FileLock(lock_path_for(output_path)):
            backup = self._backup(descriptor)
            self._log_outcome("canonical_backup", backup)
            output_path.parent.mkdir(parents=True, exist_ok=True)
            output_path.write_text(
                json.dumps(document, indent=2, ensure_ascii=False), encoding="utf-8"
            )

        ProcessFlag.mark(kind.value, self._environ)
        duration_ms = int((time.monotonic() - t0) * 1000)
        log.info(
            "preprocess_complete",
            source=kind.value,
            output=str(output_path),
            records=len(records),
            backup=str(backup.path) if backup.ok and backup.path else None,
            duration_ms=duration_ms,
        )
        return PreprocessResult(
            converted=True,
            source_kind=kind,
            output_path=output_path,
            record_count=len(records),
            backup_path=backup.path if backup.ok else None,
            duration_ms=duration_ms,
        )

    @staticmethod
    def _validate_source(descriptor: SourceDescriptor) -> Path | str:
        """Backing location of the source; raises if a file-backed source is missing."""
        kind = descriptor.kind
        if kind is SourceKind.RELATIONAL and descriptor.relational.is_remote:
            p = descriptor.relational
            return f"{p.remote_type}://{p.host}:{p.port or ''}/{p.schema_name or ''}"

        path = descriptor.path_for(kind)
        if not path.exists():
            variable = PATH_VARIABLES[kind.value]
            message = (
                f"Data source file not found: {path} (type: {kind.value}). "
                f"Create it or update {variable} in your env file."
            )
            log.error("preprocess_source_missing", path=str(path), source=kind.value, variable=variable)
            raise SourceUnavailableError(message)
        return path.resolve()

    @staticmethod
    async def _read_source(descriptor: SourceDescriptor) -> list[CoercedRecord]:
        reader = create_reader(descriptor)
        try:
            return await reader.read_all()
        finally:
            close = getattr(reader, "close", None)
            if close is not None:
                close()

    # ------------------------------------------------------------------
    # Backup / restore
    # ------------------------------------------------------------------

    @staticmethod
    def _backup(descriptor: SourceDescriptor) -> FileOpOutcome:
        canonical = descriptor.canonical_path
        backup = descriptor.backup_path
        if not canonical.exists():
            return FileOpOutcome(ok=False, error="no canonical file to back up")
        if backup.exists():
            # Always a copy of the file about to be overwritten, even if a
            # previous run was never restored.
            log.warning("canonical_backup_replaced", path=str(backup))
        try:
            shutil.copyfile(canonical, backup)
        except OSError as exc:
            return FileOpOutcome(ok=False, path=backup, error=str(exc))
        return FileOpOutcome(ok=True, path=backup)

    def restore_canonical(self) -> bool:
        """
        Copy the backup over the canonical file and delete the backup.

        Returns:
            True if a backup was restored. False when there was no backup
            (the generated file stays in place) or the restore failed.
        """
        descriptor = self.descriptor
        with FileLock(lock_path_for(descriptor.canonical_path)):
            outcome = self._restore(descriptor)
        self._log_outcome("canonical_restore", outcome)
        return outcome.ok

    @staticmethod
    def _restore(descriptor: SourceDescriptor) -> FileOpOutcome:
        backup = descriptor.backup_path
        if not backup.exists():
            return FileOpOutcome(ok=False, error="no backup file")
        try:
            shutil.copyfile(backup, descriptor.canonical_path)
            backup.unlink()
        except OSError as exc:
            return FileOpOutcome(ok=False, path=backup, error=str(exc))
        return FileOpOutcome(ok=True, path=backup)

    @staticmethod
    def _log_outcome(event: str, outcome: FileOpOutcome) -> None:
        path = str(outcome.path) if outcome.path else None
        if outcome.ok:
            log.info(f"{event}_done", path=path)
        elif outcome.path is None:
            log.debug(f"{event}_skipped", reason=outcome.error)
        else:
            log.warning(f"{event}_failed", path=path, error=outcome.error)


def run_preprocess(descriptor: SourceDescriptor | None = None) -> PreprocessResult:
    """Blocking wrapper for callers outside an event loop."""
    return asyncio.run(Preprocessor(descriptor).preprocess())
