"""
resolver.py — ConfigResolver: environment + side-file → SourceDescriptor.

All four sources' locations are resolved on every call, so any reader can be
built on demand regardless of which source is active. The relational
side-file (DB_CONFIG_PATH, default data/DatabaseConfig.json) is optional:

    {
      "hostname": "db.internal", "port": 3306, "schema": "qa",
      "dbusername": "<base64>", "dbpassword": "<base64>"
    }

Its values override the DB_HOST / DB_PORT / DB_NAME / DB_USER / DB_PASSWORD
variables. Credentials are Base64 at rest in both places.

Usage:
    from fixtureflow_shared.resolver import ConfigResolver

    descriptor = ConfigResolver().resolve()
    print(descriptor.kind, descriptor.canonical_path)
"""

from __future__ import annotations

import base64
import binascii
import json
from pathlib import Path
from typing import Any

import structlog

from fixtureflow_shared.config import Settings, load_settings
from fixtureflow_shared.exceptions import ConfigurationError
from fixtureflow_shared.models.descriptor import RelationalParams, SourceDescriptor, SourceKind

log = structlog.get_logger(__name__)

# side-file key → accepted spellings (compared lower-case)
_SIDE_FILE_KEYS: dict[str, tuple[str, ...]] = {
    "hostname": ("hostname", "host", "db_host"),
    "port": ("port", "db_port"),
    "schema": ("schema", "database", "db_name"),
    "dbusername": ("dbusername", "username", "user", "db_user"),
    "dbpassword": ("dbpassword", "password", "db_password"),
}


def decode_base64(value: str, *, key: str) -> str:
    """Decode a Base64 UTF-8 credential, naming `key` on failure."""
    try:
        return base64.b64decode(value.strip(), validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError, ValueError) as exc:
        raise ConfigurationError(
            f"Credential '{key}' is not valid Base64-encoded UTF-8", cause=exc
        ) from exc


def load_side_file(path: Path) -> dict[str, str]:
    """Read the relational side-file. Missing file → {}; malformed → ConfigurationError."""
    if not path.is_file():
        log.debug("db_side_file_missing", path=str(path))
        return {}
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, OSError) as exc:
        raise ConfigurationError(f"Failed to parse {path}: {exc}", cause=exc) from exc
    if not isinstance(raw, dict):
        raise ConfigurationError(f"{path} must contain a JSON object")

    lowered = {str(k).strip().lower(): v for k, v in raw.items()}
    result: dict[str, str] = {}
    for canonical_key, spellings in _SIDE_FILE_KEYS.items():
        for spelling in spellings:
            if lowered.get(spelling) not in (None, ""):
                result[canonical_key] = str(lowered[spelling])
                break
    log.info("db_side_file_loaded", path=str(path), keys=sorted(result))
    return result


class ConfigResolver:
    """Builds the process's SourceDescriptor from settings and the side-file."""

    def __init__(self, settings: Settings | None = None) -> None:
        self._settings = settings

    def resolve(self) -> SourceDescriptor:
        s = self._settings or load_settings()
        root = s.root_dir

        try:
            kind = SourceKind.parse(s.test_data_source)
        except ConfigurationError as exc:
            raise ConfigurationError(
                f"Invalid TEST_DATA_SOURCE '{s.test_data_source}'. "
                "Expected json, csv, excel or db.",
                cause=exc,
            ) from exc

        queries_path = _absolute(root, s.sql_queries_path)
        descriptor = SourceDescriptor(
            kind=kind,
            section=s.data_sheet_name,
            canonical_path=_absolute(root, s.data_file_path_json),
            delimited_path=_absolute(root, s.data_file_path_csv),
            spreadsheet_path=_absolute(root, s.data_file_path_excel),
            relational_path=_absolute(root, s.db_path),
            queries_path=queries_path,
            relational=self._relational_params(s, _absolute(root, s.db_config_path)),
            array_delimiter=s.array_delimiter,
            csv_delimiter=s.csv_delimiter,
            csv_has_header=s.csv_has_header,
        )
        log.debug(
            "source_descriptor_resolved",
            kind=descriptor.kind.value,
            section=descriptor.section,
            canonical_path=str(descriptor.canonical_path),
            run_mode=descriptor.relational.run_mode,
        )
        return descriptor

    @staticmethod
    def _relational_params(s: Settings, side_file: Path) -> RelationalParams:
        if s.run_mode not in ("local", "remote"):
            raise ConfigurationError(
                f"Invalid RUN_MODE '{s.run_mode}'. Expected 'local' or 'remote'."
            )

        side = load_side_file(side_file)
        port: Any = side.get("port") or s.db_port
        try:
            port = int(port) if port not in (None, "") else None
        except (TypeError, ValueError) as exc:
            raise ConfigurationError(f"Invalid database port '{port}'", cause=exc) from exc

        user = side.get("dbusername") or s.db_user
        password = side.get("dbpassword") or s.db_password

        return RelationalParams(
            run_mode=s.run_mode,
            remote_type=s.db_remote_type,
            host=side.get("hostname") or s.db_host,
            port=port,
            schema_name=side.get("schema") or s.db_name,
            user=decode_base64(user, key="dbusername") if user else None,
            password=decode_base64(password, key="dbpassword") if password else None,
        )


def _absolute(root: Path, value: str) -> Path:
    path = Path(value).expanduser()
    if not path.is_absolute():
        path = root / path
    return path.absolute()


def resolve_descriptor() -> SourceDescriptor:
    """Shorthand for ConfigResolver().resolve()."""
    return ConfigResolver().resolve()
