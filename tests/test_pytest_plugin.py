"""
tests/test_pytest_plugin.py — Tests for the session hooks in
fixtureflow_pipeline.pytest_plugin, driven with mocked pytest objects.
"""

from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from fixtureflow_shared.exceptions import SourceUnavailableError
from fixtureflow_pipeline import pytest_plugin


def _session(enabled: bool = True, worker: bool = False) -> SimpleNamespace:
    config = MagicMock(spec=["getoption"])
    config.getoption.return_value = enabled
    if worker:
        config.workerinput = {"workerid": "gw0"}
    return SimpleNamespace(config=config)


class TestActivation:
    def test_disabled_by_default(self):
        with patch.object(pytest_plugin, "setup_run", new=AsyncMock()) as setup:
            pytest_plugin.pytest_sessionstart(_session(enabled=False))
        setup.assert_not_called()

    def test_xdist_worker_skips(self):
        with patch.object(pytest_plugin, "setup_run", new=AsyncMock()) as setup, patch.object(
            pytest_plugin, "teardown_run"
        ) as teardown:
            session = _session(worker=True)
            pytest_plugin.pytest_sessionstart(session)
            pytest_plugin.pytest_sessionfinish(session, 0)
        setup.assert_not_called()
        teardown.assert_not_called()


class TestHooks:
    def test_session_start_runs_setup(self):
        with patch.object(pytest_plugin, "setup_run", new=AsyncMock()) as setup, patch.object(
            pytest_plugin, "configure_logging"
        ):
            pytest_plugin.pytest_sessionstart(_session())
        setup.assert_awaited_once()

    def test_setup_failure_aborts_session(self):
        failing = AsyncMock(side_effect=SourceUnavailableError("Data source file not found"))
        with patch.object(pytest_plugin, "setup_run", new=failing), patch.object(
            pytest_plugin, "configure_logging"
        ):
            with pytest.raises(pytest.UsageError, match="Data source file not found"):
                pytest_plugin.pytest_sessionstart(_session())

    def test_session_finish_runs_teardown(self):
        with patch.object(pytest_plugin, "teardown_run") as teardown:
            pytest_plugin.pytest_sessionfinish(_session(), 0)
        teardown.assert_called_once_with()
