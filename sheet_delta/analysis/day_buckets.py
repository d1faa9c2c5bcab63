from __future__ import annotations

from collections.abc import Iterable
from datetime import date, timedelta

from ..models.analytics import EntryCount
from ..models.row_data import ParsedRow
from .dates import date_key, format_day, today_in

"""Trailing-window daily entry counts."""

__all__ = [
    "DEFAULT_WINDOW_DAYS",
    "count_per_day",
]

DEFAULT_WINDOW_DAYS = 7


def count_per_day(
    rows: Iterable[ParsedRow],
    sheet_name: str,
    window_days: int = DEFAULT_WINDOW_DAYS,
    reference_date: date | None = None,
) -> list[EntryCount]:
    """Count filter-matching rows per day for the ``window_days`` days ending at ``reference_date``.

    Always returns exactly ``window_days`` entries (zero-count days included),
    ordered from the most recent day to the oldest. Rows whose date portion is
    not a valid ISO date are left out of every bucket.
    """
    if reference_date is None:
        reference_date = today_in()

    per_day: dict[str, int] = {}
    for row in rows:
        if not row.matches_filters:
            continue
        key = date_key(row.date)
        if key is not None:
            per_day[key] = per_day.get(key, 0) + 1

    counts: list[EntryCount] = []
    for i in range(max(window_days, 0)):
        day = format_day(reference_date - timedelta(days=i))
        counts.append(EntryCount(date=day, count=per_day.get(day, 0), sheet_name=sheet_name))
    return counts
