# Shared pytest fixtures
from __future__ import annotations

import tempfile
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from sheet_delta.config.loader import AnalysisSettings
from sheet_delta.db.store import JsonFileStore
from sheet_delta.logging.init import reset_logging
from sheet_delta.models.config_models import Profile
from sheet_delta.sheets.client import SheetFetchError
from sheet_delta.sheets.range_spec import SheetRange


class FakeFetcher:
    """In-memory fetcher: spreadsheet id -> rows, or an exception to raise."""

    def __init__(self, sheets: dict[str, Any]) -> None:
        self.sheets = sheets
        self.calls: list[tuple[str, str]] = []

    def fetch_values(self, spreadsheet_id: str, sheet_range: SheetRange) -> list[Any]:
        self.calls.append((spreadsheet_id, sheet_range.text))
        data = self.sheets.get(spreadsheet_id)
        if isinstance(data, Exception):
            raise data
        if data is None:
            raise SheetFetchError("Spreadsheet not found. Please check the spreadsheet ID.")
        return data


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "data").mkdir()
        (p / "logs").mkdir()
        monkeypatch.chdir(p)
        yield p


@pytest.fixture(autouse=True)
def _clean_logging():
    reset_logging()
    yield
    reset_logging()


@pytest.fixture()
def sample_config_yaml() -> str:
    return """timezone: UTC
store:
  backend: json
  path: ./data/store.json
sheets:
  source: workbook
  workbook_directory: ./data/workbooks
analysis:
  window_days: 7
  custom_date_fallback: yesterday
  refresh_batch_size: 3
  import_batch_size: 5
export:
  directory: ./exports
  delimiter: ","
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "sheet_delta.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg


@pytest.fixture()
def settings() -> AnalysisSettings:
    return AnalysisSettings()


@pytest.fixture()
def json_store(tmp_path: Path) -> JsonFileStore:
    return JsonFileStore(tmp_path / "store.json")


@pytest.fixture()
def fake_fetcher_factory() -> Callable[[dict[str, Any]], FakeFetcher]:
    return FakeFetcher


@pytest.fixture()
def make_profile() -> Callable[..., Profile]:
    def _make(name: str, sheet_id: str | None = None, **kwargs: Any) -> Profile:
        return Profile(
            id=f"{name}-id" if sheet_id is None else sheet_id,
            range=kwargs.pop("range", "Sheet1!A2:Z1000"),
            name=name,
            **kwargs,
        )
    return _make
