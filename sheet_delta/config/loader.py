from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

from ..models.config_models import DEFAULT_DATE_COLUMN, DEFAULT_RANGE, ComparisonFallback

"""Config loader.

Responsibilities:
- Load YAML config/sheet_delta.yml
- Validate against the bundled JSON schema (config_schema.json)
- Apply defaults (timezone=UTC, window 7 days, batches 3 / 5, fallback=yesterday)
- Resolve store connection settings with environment variables taking precedence
"""

SCHEMA_PATH = Path(__file__).with_name("config_schema.json")
DEFAULT_CONFIG_PATH = Path("config/sheet_delta.yml")


class ConfigError(Exception):
    pass


@dataclass(frozen=True)
class StoreConfig:
    """Document store settings. Environment variables override the postgres fields."""
    backend: str = "json"  # json | postgres
    path: str = "./data/store.json"
    dsn: str | None = None
    host: str | None = None
    port: int | None = None
    user: str | None = None
    password: str | None = None
    database: str | None = None

    def resolve_dsn(self) -> str:
        """DSN for psycopg2.

        Priority: DATABASE_URL / PGDSN, then ``dsn``, then PG* variables with
        the individual fields as fallback.
        """
        dsn_env = os.getenv("DATABASE_URL") or os.getenv("PGDSN") or self.dsn
        if dsn_env:
            return dsn_env
        host = os.getenv("PGHOST", self.host or "localhost")
        port = os.getenv("PGPORT", str(self.port) if self.port else "5432")
        user = os.getenv("PGUSER", self.user or "postgres")
        password = os.getenv("PGPASSWORD", self.password or "")
        database = os.getenv("PGDATABASE", self.database or "postgres")
        dsn = f"host={host} port={port} user={user} dbname={database}"
        if password:
            dsn += f" password={password}"
        return dsn


@dataclass(frozen=True)
class SheetsConfig:
    source: str = "google"  # google | workbook
    credentials_file: str = ""
    workbook_directory: str = "./data/workbooks"


@dataclass(frozen=True)
class AnalysisSettings:
    window_days: int = 7
    custom_date_fallback: ComparisonFallback = ComparisonFallback.YESTERDAY
    refresh_batch_size: int = 3
    import_batch_size: int = 5
    default_range: str = DEFAULT_RANGE
    default_date_column: str = DEFAULT_DATE_COLUMN


@dataclass(frozen=True)
class ExportConfig:
    directory: str = "./exports"
    delimiter: str = ","


@dataclass(frozen=True)
class AppConfig:
    store: StoreConfig
    timezone: str = "UTC"
    sheets: SheetsConfig = field(default_factory=SheetsConfig)
    analysis: AnalysisSettings = field(default_factory=AnalysisSettings)
    export: ExportConfig = field(default_factory=ExportConfig)


def _validate_config_schema(data: dict[str, Any]) -> None:
    """Validate config data against JSON schema.

    Raises:
        ConfigError: schema file missing / not JSON, or the data violates the schema
    """
    if not SCHEMA_PATH.exists():
        raise ConfigError(f"config schema not found: {SCHEMA_PATH}")
    try:
        schema = json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))
        jsonschema.validate(data, schema)
    except json.JSONDecodeError as e:
        raise ConfigError(f"invalid schema file: {e}") from e
    except ValidationError as e:
        raise ConfigError(f"config validation failed: {e.message}") from e


def load_config(path: Path = DEFAULT_CONFIG_PATH) -> AppConfig:
    if not path.exists():
        raise ConfigError(f"config file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError("config root must be a mapping")

    _validate_config_schema(data)

    tz = data.get("timezone", "UTC")
    try:
        ZoneInfo(tz)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise ConfigError(f"unknown timezone: {tz}") from e

    store_raw = data["store"]
    sheets_raw = data.get("sheets", {})
    analysis_raw = data.get("analysis", {})
    export_raw = data.get("export", {})

    store = StoreConfig(
        backend=store_raw["backend"],
        path=store_raw.get("path", StoreConfig.path),
        dsn=store_raw.get("dsn"),
        host=store_raw.get("host"),
        port=store_raw.get("port"),
        user=store_raw.get("user"),
        password=store_raw.get("password"),
        database=store_raw.get("database"),
    )
    sheets = SheetsConfig(
        source=sheets_raw.get("source", SheetsConfig.source),
        credentials_file=sheets_raw.get("credentials_file", ""),
        workbook_directory=sheets_raw.get("workbook_directory", SheetsConfig.workbook_directory),
    )
    analysis = AnalysisSettings(
        window_days=analysis_raw.get("window_days", AnalysisSettings.window_days),
        custom_date_fallback=ComparisonFallback(
            analysis_raw.get("custom_date_fallback", ComparisonFallback.YESTERDAY.value)
        ),
        refresh_batch_size=analysis_raw.get("refresh_batch_size", AnalysisSettings.refresh_batch_size),
        import_batch_size=analysis_raw.get("import_batch_size", AnalysisSettings.import_batch_size),
        default_range=analysis_raw.get("default_range", DEFAULT_RANGE),
        default_date_column=analysis_raw.get("default_date_column", DEFAULT_DATE_COLUMN),
    )
    export = ExportConfig(
        directory=export_raw.get("directory", ExportConfig.directory),
        delimiter=export_raw.get("delimiter", ExportConfig.delimiter),
    )
    return AppConfig(
        store=store,
        timezone=tz,
        sheets=sheets,
        analysis=analysis,
        export=export,
    )
