"""
constants.py — shared constants used by the readers, preprocessor and provider.

Column sets, file suffixes, environment flag names and the generator
identity stamped into canonical files are defined here so the pipeline,
the CLI and the tests agree on them.
"""

from __future__ import annotations

from typing import Final

# ---------------------------------------------------------------------------
# Fixed column sets used by TypeCoercionEngine
# ---------------------------------------------------------------------------
IDENTIFIER_COLUMNS: Final[frozenset[str]] = frozenset({"id"})

ARRAY_COLUMNS: Final[frozenset[str]] = frozenset({"tags"})

BOOLEAN_COLUMNS: Final[frozenset[str]] = frozenset(
    {"enabled", "shouldComplete", "completed", "active"}
)

NUMERIC_COLUMNS: Final[frozenset[str]] = frozenset(
    {"expectedCount", "count", "quantity", "price", "amount", "total"}
)

TRUE_STRINGS: Final[frozenset[str]] = frozenset({"true", "yes", "1"})
BOOLEAN_STRINGS: Final[frozenset[str]] = frozenset(
    {"true", "false", "yes", "no", "1", "0"}
)

DEFAULT_ARRAY_DELIMITER: Final[str] = "|"

# ---------------------------------------------------------------------------
# Canonical file
# ---------------------------------------------------------------------------
METADATA_KEY: Final[str] = "_metadata"
BACKUP_SUFFIX: Final[str] = ".preprocessing.bak"
GENERATOR_ID: Final[str] = "fixtureflow.Preprocessor"

# ---------------------------------------------------------------------------
# Process flag (set by the preprocessor, read by the data provider)
# ---------------------------------------------------------------------------
ENV_PREPROCESSED: Final[str] = "DATA_PREPROCESSED"
ENV_PREPROCESSED_SOURCE: Final[str] = "DATA_PREPROCESSED_SOURCE"

# ---------------------------------------------------------------------------
# Environment variable responsible for each source kind's backing path
# (keyed by SourceKind value; used in error messages)
# ---------------------------------------------------------------------------
PATH_VARIABLES: Final[dict[str, str]] = {
    "json": "DATA_FILE_PATH_JSON",
    "csv": "DATA_FILE_PATH_CSV",
    "excel": "DATA_FILE_PATH_EXCEL",
    "db": "DB_PATH",
}

# ---------------------------------------------------------------------------
# Relational
# ---------------------------------------------------------------------------
INSERT_BATCH_SIZE: Final[int] = 500
REMOTE_CATALOG: Final[str] = "remote_db"
