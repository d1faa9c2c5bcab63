from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path
from typing import Any

import pandas as pd

from .client import SheetFetchError
from .range_spec import SheetRange

"""Local workbook fetcher (pandas).

Reads exported snapshots (.xlsx / .csv) from a base directory so profiles can
be analysed offline. The profile's spreadsheet id is the file path relative to
the base directory; the range's sheet name selects the worksheet (ignored for
CSV) and its A1 bounds select the cells.

Cells are read as text with pandas' NA conversion disabled so values such as
"NA" or "null" survive unchanged; rows are trimmed of trailing empty cells the
same way the Sheets API omits them.
"""

__all__ = [
    "WorkbookFetcher",
    "read_workbook_sheet",
]

SUPPORTED_SUFFIXES = {".xlsx", ".csv"}


def read_workbook_sheet(path: Path, sheet_name: str) -> pd.DataFrame:
    """Read one sheet of ``path`` without a header row, every cell as text."""
    if path.suffix == ".csv":
        try:
            return pd.read_csv(path, header=None, dtype=str, keep_default_na=False)
        except pd.errors.EmptyDataError:
            return pd.DataFrame()
    try:
        xls = pd.ExcelFile(path)
    except Exception as e:
        raise SheetFetchError(f"failed to open workbook {path.name}: {e}") from e
    if sheet_name not in xls.sheet_names:
        raise SheetFetchError(f"sheet '{sheet_name}' not found in {path.name}")
    return xls.parse(sheet_name, header=None, dtype=str, keep_default_na=False)


def _trim_row(cells: Iterable[Any]) -> list[str]:
    out = ["" if pd.isna(c) else str(c) for c in cells]
    while out and out[-1] == "":
        out.pop()
    return out


class WorkbookFetcher:
    def __init__(self, base_directory: Path) -> None:
        self.base_directory = Path(base_directory)

    def _resolve(self, spreadsheet_id: str) -> Path:
        path = (self.base_directory / spreadsheet_id).resolve()
        if not path.exists():
            raise SheetFetchError(f"Spreadsheet not found: {spreadsheet_id}")
        if path.suffix not in SUPPORTED_SUFFIXES:
            raise SheetFetchError(f"unsupported workbook type: {path.suffix}")
        return path

    def fetch_values(self, spreadsheet_id: str, sheet_range: SheetRange) -> list[Any]:
        path = self._resolve(spreadsheet_id)
        df = read_workbook_sheet(path, sheet_range.sheet_name)

        (start_col, start_row), (end_col, end_row) = sheet_range.bounds()
        row_slice = slice(start_row or 0, None if end_row is None else end_row + 1)
        col_slice = slice(start_col or 0, None if end_col is None else end_col + 1)
        window = df.iloc[row_slice, col_slice]

        rows = [_trim_row(r) for r in window.itertuples(index=False, name=None)]
        # 末尾の空行は API と同様に返さない
        while rows and not rows[-1]:
            rows.pop()
        return rows
