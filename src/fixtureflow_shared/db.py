"""
db.py — process-wide DuckDB connection for the relational test-data source.

RUN_MODE=local   opens the embedded DuckDB file at DB_PATH.
RUN_MODE=remote  opens an in-memory DuckDB engine and ATTACHes the remote
                 MySQL / PostgreSQL server through DuckDB's scanner extension,
                 then makes it the default catalog.

The connection is created lazily on first use, guarded by a lock, and must
be closed at shutdown with close_connection() (which logs, never raises).

Usage:
    from fixtureflow_shared.db import execute_query, get_table_names, close_connection

    rows = execute_query(descriptor, "SELECT * FROM runnerManager WHERE id = ?", ["TC001"])
    tables = get_table_names(descriptor)
    close_connection()
"""

from __future__ import annotations

import threading
from collections.abc import Iterable, Sequence
from pathlib import Path
from typing import Any, Optional

import duckdb
import structlog
from tenacity import Retrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from fixtureflow_shared.constants import PATH_VARIABLES, REMOTE_CATALOG
from fixtureflow_shared.exceptions import (
    ConfigurationError,
    FixtureDataError,
    ParseFailureError,
    SchemaMismatchError,
    SourceUnavailableError,
)
from fixtureflow_shared.models.descriptor import RelationalParams, SourceDescriptor

logger = structlog.get_logger(__name__)

_REMOTE_ATTACH_ATTEMPTS = 3

_lock = threading.Lock()
_conn: Optional[duckdb.DuckDBPyConnection] = None
_conn_key: Optional[tuple[Any, ...]] = None


def _connection_key(descriptor: SourceDescriptor) -> tuple[Any, ...]:
    p = descriptor.relational
    if p.is_remote:
        return ("remote", p.remote_type, p.host, p.port, p.schema_name, p.user)
    return ("local", str(descriptor.relational_path))


# ---------------------------------------------------------------------------
# Connection lifecycle
# ---------------------------------------------------------------------------

def get_connection(
    descriptor: SourceDescriptor, *, create: bool = False
) -> duckdb.DuckDBPyConnection:
    """
    Return the shared connection for `descriptor`, opening it if needed.

    A request for a different database than the open one closes the old
    connection first; there is only ever one per process.

    Args:
        descriptor: Resolved source descriptor (relational path / params).
        create:     Local mode only — create the database file if missing.

    Raises:
        SourceUnavailableError: database file missing or server unreachable.
        ConfigurationError:     remote mode without a host.
    """
    global _conn, _conn_key

    key = _connection_key(descriptor)
    with _lock:
        if _conn is not None and _conn_key == key:
            return _conn
        if _conn is not None:
            logger.info("duckdb_switching_database", previous=_conn_key[0] if _conn_key else None)
            _close_locked()

        if descriptor.relational.is_remote:
            _conn = _connect_remote(descriptor.relational)
        else:
            _conn = _connect_local(descriptor.relational_path, create=create)
        _conn_key = key
        return _conn


def _connect_local(db_path: Path, *, create: bool) -> duckdb.DuckDBPyConnection:
    if not db_path.exists() and not create:
        raise SourceUnavailableError(
            f"Database file not found: {db_path}. "
            f"Create it or update {PATH_VARIABLES['db']} in your env file."
        )
    db_path.parent.mkdir(parents=True, exist_ok=True)
    try:
        conn = duckdb.connect(str(db_path))
    except duckdb.Error as exc:
        raise SourceUnavailableError(
            f"Could not open database {db_path}: {exc}", cause=exc
        ) from exc
    logger.info("duckdb_connected", mode="local", path=str(db_path))
    return conn


def _remote_dsn(params: RelationalParams) -> str:
    db_key = "dbname" if params.remote_type == "postgres" else "database"
    parts = {
        "host": params.host,
        "port": params.port,
        db_key: params.schema_name,
        "user": params.user,
        "password": params.password,
    }
    return " ".join(f"{k}={v}" for k, v in parts.items() if v not in (None, ""))


def _connect_remote(params: RelationalParams) -> duckdb.DuckDBPyConnection:
    if not params.host:
        raise ConfigurationError(
            "RUN_MODE=remote requires DB_HOST or 'hostname' in DB_CONFIG_PATH"
        )

    conn = duckdb.connect()
    extension = params.remote_type
    dsn = _remote_dsn(params).replace("'", "''")
    try:
        conn.execute(f"INSTALL {extension}; LOAD {extension};")
        for attempt in Retrying(
            stop=stop_after_attempt(_REMOTE_ATTACH_ATTEMPTS),
            wait=wait_exponential(multiplier=1.0, max=10.0),
            retry=retry_if_exception_type(duckdb.IOException),
            reraise=True,
        ):
            with attempt:
                if attempt.retry_state.attempt_number > 1:
                    logger.warning(
                        "duckdb_attach_retry",
                        attempt=attempt.retry_state.attempt_number,
                        max_attempts=_REMOTE_ATTACH_ATTEMPTS,
                    )
                conn.execute(f"ATTACH '{dsn}' AS {REMOTE_CATALOG} (TYPE {extension})")
        conn.execute(f"USE {REMOTE_CATALOG}")
    except duckdb.Error as exc:
        conn.close()
        raise SourceUnavailableError(
            f"{extension} connection to {params.host}:{params.port} failed: {exc}",
            cause=exc,
        ) from exc

    logger.info(
        "duckdb_connected",
        mode="remote",
        engine=extension,
        host=params.host,
        port=params.port,
        schema=params.schema_name,
    )
    return conn


def _close_locked() -> None:
    global _conn, _conn_key
    if _conn is None:
        return
    try:
        _conn.close()
    except duckdb.Error as exc:
        logger.warning("duckdb_close_failed", error=str(exc))
    _conn = None
    _conn_key = None
    logger.info("duckdb_closed")


def close_connection() -> None:
    """Close the shared connection if open. Logs failures, never raises."""
    with _lock:
        _close_locked()


def reset_connection() -> None:
    """Reset the DuckDB singleton (useful in tests)."""
    close_connection()


def is_connected() -> bool:
    return _conn is not None


# ---------------------------------------------------------------------------
# Query helpers
# ---------------------------------------------------------------------------

def _translate(exc: duckdb.Error, sql: str) -> FixtureDataError:
    """Map a DuckDB error onto the pipeline's error taxonomy."""
    message = f"{exc} (query: {sql.strip()[:200]})"
    if isinstance(exc, duckdb.CatalogException):
        return SchemaMismatchError(message, cause=exc)
    if isinstance(exc, (duckdb.IOException, duckdb.ConnectionException)):
        return SourceUnavailableError(message, cause=exc)
    return ParseFailureError(message, cause=exc)


def execute_query(
    descriptor: SourceDescriptor,
    sql: str,
    params: Sequence[Any] | None = None,
) -> list[dict[str, Any]]:
    """Run `sql` and return every row as a column → value dict."""
    conn = get_connection(descriptor)
    with _lock:
        try:
            cursor = conn.execute(sql, list(params)) if params else conn.execute(sql)
            if cursor.description is None:
                return []
            columns = [d[0] for d in cursor.description]
            rows = cursor.fetchall()
        except duckdb.Error as exc:
            raise _translate(exc, sql) from exc
    return [dict(zip(columns, row)) for row in rows]


def execute_batches(
    descriptor: SourceDescriptor,
    sql: str,
    batches: Iterable[list[list[Any]]],
    *,
    transactional: bool,
) -> int:
    """
    executemany() each batch; wrap the whole run in one transaction when asked.

    Returns:
        Number of rows written.
    """
    conn = get_connection(descriptor, create=True)
    written = 0
    with _lock:
        try:
            if transactional:
                conn.begin()
            for batch in batches:
                if batch:
                    conn.executemany(sql, batch)
                    written += len(batch)
            if transactional:
                conn.commit()
        except duckdb.Error as exc:
            if transactional:
                try:
                    conn.rollback()
                except duckdb.Error as rollback_exc:
                    logger.warning("duckdb_rollback_failed", error=str(rollback_exc))
            raise _translate(exc, sql) from exc
    return written


def execute_script(descriptor: SourceDescriptor, script: str) -> int:
    """Run `;`-separated statements one by one. Returns the statement count."""
    statements = [s.strip() for s in script.split(";") if s.strip()]
    conn = get_connection(descriptor, create=True)
    with _lock:
        for statement in statements:
            try:
                conn.execute(statement)
            except duckdb.Error as exc:
                raise _translate(exc, statement) from exc
    return len(statements)


def get_table_names(descriptor: SourceDescriptor) -> list[str]:
    """Distinct table names of the current catalog."""
    return sorted({str(row["name"]) for row in execute_query(descriptor, "SHOW TABLES")})
