"""
config.py — pydantic-settings Settings class.

Every environment variable understood by fixtureflow is declared here.
Relative paths are resolved against DATA_ROOT (default: the current working
directory) by fixtureflow_shared.resolver.ConfigResolver, not here.

Usage:
    from fixtureflow_shared.config import settings
    print(settings.test_data_source)

    # Re-read the environment (what ConfigResolver does on every resolve()):
    from fixtureflow_shared.config import Settings
    fresh = Settings()
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from fixtureflow_shared.exceptions import ConfigurationError


def _find_dotenv() -> Path | None:
    """Walk up from CWD to find the nearest .env file."""
    current = Path.cwd()
    for parent in [current, *current.parents]:
        candidate = parent / ".env"
        if candidate.is_file():
            return candidate
    return None


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=_find_dotenv() or ".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # -------------------------------------------------------------------------
    # Active source
    # -------------------------------------------------------------------------
    test_data_source: str = Field(default="json")
    data_sheet_name: str = Field(default="runnerManager")

    # -------------------------------------------------------------------------
    # File locations (relative to data_root unless absolute)
    # -------------------------------------------------------------------------
    data_root: str | None = Field(default=None)
    data_file_path_json: str = Field(default="data/runnerManager.json")
    data_file_path_csv: str = Field(default="data/runnerManager.csv")
    data_file_path_excel: str = Field(default="data/runnerManager.xlsx")
    db_path: str = Field(default="data/runnerManager.duckdb")
    db_config_path: str = Field(default="data/DatabaseConfig.json")
    sql_queries_path: str = Field(default="data/sqlQueries.json")

    # -------------------------------------------------------------------------
    # Parsing
    # -------------------------------------------------------------------------
    array_delimiter: str = Field(default="|")
    csv_delimiter: str = Field(default=",")
    csv_has_header: bool = Field(default=True)

    # -------------------------------------------------------------------------
    # Relational source
    # -------------------------------------------------------------------------
    run_mode: str = Field(default="local")
    db_remote_type: Literal["mysql", "postgres"] = Field(default="mysql")
    db_host: str | None = Field(default=None)
    db_port: int | None = Field(default=None)
    db_name: str | None = Field(default=None)
    db_user: str | None = Field(default=None)          # Base64
    db_password: str | None = Field(default=None)      # Base64

    # -------------------------------------------------------------------------
    # Logging
    # -------------------------------------------------------------------------
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO"
    )
    log_format: Literal["json", "console"] = Field(default="console")

    # -------------------------------------------------------------------------
    # Derived / computed
    # -------------------------------------------------------------------------
    @property
    def root_dir(self) -> Path:
        return Path(self.data_root) if self.data_root else Path.cwd()

    @field_validator("test_data_source", "run_mode", mode="before")
    @classmethod
    def normalize_keyword(cls, v: str) -> str:
        return v.strip().lower() if isinstance(v, str) else v

    @field_validator("log_level", mode="before")
    @classmethod
    def upper_log_level(cls, v: str) -> str:
        return v.strip().upper() if isinstance(v, str) else v


def load_settings() -> Settings:
    """Read Settings from the environment; invalid values raise ConfigurationError."""
    try:
        return Settings()
    except ValidationError as exc:
        problems: list[str] = []
        for err in exc.errors():
            variable = str(err["loc"][0]).upper() if err.get("loc") else "?"
            problems.append(f"{variable}: {err['msg']}")
        raise ConfigurationError(
            "Invalid configuration (" + "; ".join(problems) + ")", cause=exc
        ) from exc


# ---------------------------------------------------------------------------
# Module-level singleton read by logging and the CLI defaults
# ---------------------------------------------------------------------------
settings = load_settings()
