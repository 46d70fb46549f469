"""
fixtureflow_pipeline — the test-data unification pipeline.

Architecture:
  transforms/  — TypeCoercionEngine and polars frame helpers
  readers/     — one reader per source kind (JSON, CSV, XLSX, DuckDB / remote SQL)
  pipelines/   — preprocess / restore, run lifecycle, relational seeding
  provider.py  — DataProvider façade used by tests
  utils/       — structlog configuration

Quick start:
    from fixtureflow_pipeline.provider import get_enabled_test_data
    import asyncio
    cases = asyncio.run(get_enabled_test_data())

CLI:
    fixtureflow preprocess
    fixtureflow show --enabled-only
    fixtureflow restore

Shared code from fixtureflow_shared:
    from fixtureflow_shared.config import settings
    from fixtureflow_shared.resolver import ConfigResolver
    from fixtureflow_shared.models import SourceDescriptor, SourceKind
    from fixtureflow_shared.db import execute_query, close_connection
"""

__version__ = "0.1.0"
