"""
pytest_plugin.py — run the fixture pipeline around a pytest session.

Opt-in:
    pytest -p fixtureflow_pipeline.pytest_plugin --fixtureflow

Session start preprocesses the configured source (a failure aborts the
session); session finish restores the canonical file. xdist workers skip
both steps and rely on the controller having run them.

Fixtures:
    fixture_provider  the process-wide DataProvider
"""

from __future__ import annotations

import asyncio

import pytest

from fixtureflow_pipeline.pipelines.lifecycle import setup_run, teardown_run
from fixtureflow_pipeline.provider import DataProvider
from fixtureflow_pipeline.utils.logging import configure_logging

_ENABLED_OPTION = "fixtureflow"


def pytest_addoption(parser: pytest.Parser) -> None:
    group = parser.getgroup("fixtureflow")
    group.addoption(
        "--fixtureflow",
        action="store_true",
        dest=_ENABLED_OPTION,
        default=False,
        help="Preprocess test data at session start and restore it at session end.",
    )


def _active(config: pytest.Config) -> bool:
    if hasattr(config, "workerinput"):
        return False
    return bool(config.getoption(_ENABLED_OPTION, default=False))


def pytest_sessionstart(session: pytest.Session) -> None:
    if not _active(session.config):
        return
    configure_logging()
    try:
        asyncio.run(setup_run())
    except Exception as exc:
        raise pytest.UsageError(f"fixtureflow preprocessing failed: {exc}") from exc


def pytest_sessionfinish(session: pytest.Session, exitstatus: int) -> None:
    if not _active(session.config):
        return
    teardown_run()


@pytest.fixture(scope="session")
def fixture_provider() -> DataProvider:
    return DataProvider.get_instance()
