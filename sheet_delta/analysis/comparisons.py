from __future__ import annotations

import math
from collections.abc import Sequence
from typing import Any

from ..models.analytics import ColumnDifference, ComparisonResult
from ..models.row_data import ParsedRow
from .delta import percentage_change

"""Numeric comparison of adjacent rows.

For each pair (row i-1, row i) every positional value is read as a number
(non-numeric → 0) and only columns with a non-zero percentage change are kept.
Callers pass the filter-matching rows.
"""

__all__ = [
    "compare_rows",
    "parse_number",
]

_RADIX_PREFIXES = ("0x", "0o", "0b")


def parse_number(cell: Any) -> float:
    """Finite float value of ``cell``; blanks, text and non-finite values give 0.0.

    Text follows spreadsheet-style number parsing rather than Python literals:
    digit separators (``"1_000"``) are rejected, and unsigned ``0x`` / ``0o`` /
    ``0b`` prefixed integers are accepted (``"0x10"`` -> 16.0).
    """
    if cell is None:
        return 0.0
    if isinstance(cell, bool):
        return float(cell)
    if isinstance(cell, (int, float)):
        value = float(cell)
    else:
        text = str(cell).strip()
        if not text or "_" in text:
            return 0.0
        try:
            if text[:2].lower() in _RADIX_PREFIXES:
                value = float(int(text, 0))
            else:
                value = float(text)
        except (ValueError, OverflowError):
            return 0.0
    return value if math.isfinite(value) else 0.0


def _differences(previous: ParsedRow, current: ParsedRow) -> list[ColumnDifference]:
    diffs: list[ColumnDifference] = []
    for index, cell in enumerate(current.values):
        prev_cell = previous.values[index] if index < len(previous.values) else None
        prev_value = parse_number(prev_cell)
        curr_value = parse_number(cell)
        pct = percentage_change(curr_value, prev_value)
        if pct == 0:
            continue
        diffs.append(
            ColumnDifference(
                column=index + 1,
                column_name=f"Column {index + 1}",
                previous=prev_value,
                current=curr_value,
                percentage_change=pct,
            )
        )
    return diffs


def compare_rows(rows: Sequence[ParsedRow], sheet_name: str) -> list[ComparisonResult]:
    results: list[ComparisonResult] = []
    for i in range(1, len(rows)):
        previous, current = rows[i - 1], rows[i]
        diffs = _differences(previous, current)
        if diffs:
            results.append(
                ComparisonResult(
                    sheet_name=sheet_name,
                    date1=previous.date,
                    date2=current.date,
                    differences=tuple(diffs),
                )
            )
    return results
