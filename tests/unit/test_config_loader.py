from __future__ import annotations

from pathlib import Path

import pytest

from sheet_delta.config.loader import ConfigError, StoreConfig, load_config
from sheet_delta.models.config_models import ComparisonFallback


def test_load_config_success(write_config: Path):
    cfg = load_config(write_config)
    assert cfg.timezone == "UTC"
    assert cfg.store.backend == "json"
    assert cfg.store.path == "./data/store.json"
    assert cfg.sheets.source == "workbook"
    assert cfg.analysis.window_days == 7
    assert cfg.analysis.refresh_batch_size == 3
    assert cfg.analysis.import_batch_size == 5
    assert cfg.analysis.custom_date_fallback is ComparisonFallback.YESTERDAY
    assert cfg.export.delimiter == ","


def test_defaults_applied(temp_workdir: Path):
    p = temp_workdir / "config" / "sheet_delta.yml"
    p.write_text("store:\n  backend: json\n", encoding="utf-8")
    cfg = load_config(p)
    assert cfg.timezone == "UTC"
    assert cfg.sheets.source == "google"
    assert cfg.analysis.default_range == "Sheet1!A2:Z1000"
    assert cfg.analysis.default_date_column == "1"


def test_missing_file(temp_workdir: Path):
    with pytest.raises(ConfigError):
        load_config(temp_workdir / "config" / "nope.yml")


def test_unknown_key_rejected(temp_workdir: Path):
    p = temp_workdir / "config" / "sheet_delta.yml"
    p.write_text("store:\n  backend: json\nsource_directory: ./data\n", encoding="utf-8")
    with pytest.raises(ConfigError) as exc:
        load_config(p)
    assert "validation failed" in str(exc.value)


def test_invalid_fallback_rejected(temp_workdir: Path):
    p = temp_workdir / "config" / "sheet_delta.yml"
    p.write_text("store:\n  backend: json\nanalysis:\n  custom_date_fallback: never\n", encoding="utf-8")
    with pytest.raises(ConfigError):
        load_config(p)


def test_unknown_timezone(temp_workdir: Path):
    p = temp_workdir / "config" / "sheet_delta.yml"
    p.write_text("timezone: Mars/Olympus\nstore:\n  backend: json\n", encoding="utf-8")
    with pytest.raises(ConfigError) as exc:
        load_config(p)
    assert "unknown timezone" in str(exc.value)


def test_invalid_yaml(temp_workdir: Path):
    p = temp_workdir / "config" / "sheet_delta.yml"
    p.write_text("store: [unclosed\n", encoding="utf-8")
    with pytest.raises(ConfigError):
        load_config(p)


def test_resolve_dsn_env_priority(monkeypatch):
    for key in ("DATABASE_URL", "PGDSN", "PGHOST", "PGPORT", "PGUSER", "PGPASSWORD", "PGDATABASE"):
        monkeypatch.delenv(key, raising=False)
    cfg = StoreConfig(backend="postgres", host="db", port=5433, user="app", database="sd")
    assert cfg.resolve_dsn() == "host=db port=5433 user=app dbname=sd"
    monkeypatch.setenv("PGHOST", "envhost")
    monkeypatch.setenv("PGPASSWORD", "pw")
    assert cfg.resolve_dsn() == "host=envhost port=5433 user=app dbname=sd password=pw"
    monkeypatch.setenv("DATABASE_URL", "postgresql://u@h/db")
    assert cfg.resolve_dsn() == "postgresql://u@h/db"
