"""
exceptions.py — error taxonomy for the test-data pipeline.

Readers raise SourceUnavailableError / ParseFailureError / SchemaMismatchError
from read_all(); the resolver raises ConfigurationError. Everything derives
from FixtureDataError so callers (CLI, lifecycle hooks) can catch one type.
"""

from __future__ import annotations


class FixtureDataError(Exception):
    """Base exception for test-data pipeline errors."""

    def __init__(self, message: str, cause: BaseException | None = None) -> None:
        super().__init__(message)
        self.cause = cause
        if cause is not None:
            self.__cause__ = cause


class ConfigurationError(FixtureDataError):
    """Raised when a required setting is missing or invalid."""


class SourceUnavailableError(FixtureDataError):
    """Raised when a backing file or connection is missing or unreachable."""


class ParseFailureError(FixtureDataError):
    """Raised when delimited, spreadsheet, JSON or relational content is malformed."""


class SchemaMismatchError(FixtureDataError):
    """Raised when a requested section, sheet or table does not exist."""
