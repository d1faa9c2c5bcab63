from __future__ import annotations

import logging
from collections.abc import Iterable

from ..models.analytics import ColumnChange
from ..models.row_data import ParsedRow
from .dates import date_key

"""Identifier reconciliation for one analysis column between two days.

Only filter-matching rows count. Cell values are trimmed and empty values
dropped; duplicates are preserved and the source row order is kept. Membership
is exact string equality after trimming.
"""

__all__ = [
    "current_entries",
    "day_entries",
    "reconcile",
]

logger = logging.getLogger(__name__)


def _rows_on(rows: Iterable[ParsedRow], day: str) -> list[ParsedRow]:
    return [r for r in rows if r.matches_filters and date_key(r.date) == day]


def _column_values(rows: Iterable[ParsedRow], column: int) -> list[str]:
    out: list[str] = []
    for row in rows:
        cell = row.value_at(column)
        if cell is None:
            continue
        cell = cell.strip()
        if cell:
            out.append(cell)
    return out


def day_entries(rows: Iterable[ParsedRow], column: int, day: str) -> list[str]:
    """Trimmed, non-empty ``values[column-1]`` of matching rows dated ``day``."""
    return _column_values(_rows_on(rows, day), column)


def current_entries(
    rows: Iterable[ParsedRow],
    column: int,
    day: str,
    extra_column: int | None = None,
) -> list[tuple[str, str]]:
    """``(entry, extra)`` pairs for ``day``, one per row with a non-empty entry.

    ``extra`` is the trimmed ``extra_column`` value of the same row, or ``""``
    when the column is not requested or the cell is blank.
    """
    pairs: list[tuple[str, str]] = []
    for row in _rows_on(rows, day):
        entry = (row.value_at(column) or "").strip()
        if not entry:
            continue
        extra = (row.value_at(extra_column) or "").strip() if extra_column else ""
        pairs.append((entry, extra))
    return pairs


def reconcile(rows: Iterable[ParsedRow], column: int, date1: str, date2: str) -> ColumnChange | None:
    """Entries added (on ``date2`` only) and removed (on ``date1`` only).

    Returns None when nothing was added or removed.
    """
    rows = list(rows)
    day1 = day_entries(rows, column, date1)
    day2 = day_entries(rows, column, date2)

    day1_set = set(day1)
    day2_set = set(day2)
    added = [e for e in day2 if e not in day1_set]
    removed = [e for e in day1 if e not in day2_set]

    logger.debug(
        f"column changes column={column} {date1}({len(day1)}) -> {date2}({len(day2)}) "
        f"added={len(added)} removed={len(removed)}"
    )
    if not added and not removed:
        return None
    return ColumnChange(
        added=tuple(added),
        removed=tuple(removed),
        column=column,
        date1=date1,
        date2=date2,
    )
