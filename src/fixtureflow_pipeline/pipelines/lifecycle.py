"""
pipelines/lifecycle.py — run-level setup and teardown around a test session.

setup_run()    preprocess the configured source (fatal errors propagate)
teardown_run() restore the canonical file, close the database connection
               and drop the provider singleton; never raises

Usage:
    result = await setup_run()
    ...
    teardown_run()
"""

from __future__ import annotations

from collections.abc import MutableMapping

import structlog

from fixtureflow_shared import db
from fixtureflow_shared.models.descriptor import SourceDescriptor
from fixtureflow_pipeline.pipelines.preprocess import Preprocessor, PreprocessResult
from fixtureflow_pipeline.provider import DataProvider

log = structlog.get_logger(__name__)


async def setup_run(
    descriptor: SourceDescriptor | None = None,
    *,
    environ: MutableMapping[str, str] | None = None,
) -> PreprocessResult:
    log.info("run_setup_start")
    try:
        result = await Preprocessor(descriptor, environ=environ).preprocess()
    except Exception as exc:
        log.error("run_setup_failed", error=str(exc))
        raise

    if result.converted:
        log.info(
            "run_setup_complete",
            converted=True,
            source=result.source_kind.value,
            records=result.record_count,
            output=str(result.output_path),
        )
    else:
        log.info(
            "run_setup_complete",
            converted=False,
            records=result.record_count,
            output=str(result.output_path),
        )
    # A provider built before preprocessing would not see the override.
    DataProvider.reset_instance()
    return result


def teardown_run(descriptor: SourceDescriptor | None = None) -> bool:
    """Returns whether a backup was restored."""
    log.info("run_teardown_start")
    restored = False
    try:
        restored = Preprocessor(descriptor).restore_canonical()
    except Exception as exc:
        log.warning("run_teardown_restore_failed", error=str(exc))

    db.close_connection()
    DataProvider.reset_instance()
    log.info("run_teardown_complete", restored=restored)
    return restored
