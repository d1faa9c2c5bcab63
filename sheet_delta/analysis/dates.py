from __future__ import annotations

from datetime import date, datetime
from zoneinfo import ZoneInfo

"""Date helpers shared by the bucketing / reconciliation passes.

Row dates arrive as free text ("2025-01-27 02:08:57"). Only the part before the
first space is considered, and only when it is an ISO calendar date
(YYYY-MM-DD); anything else never falls into a day bucket.
"""

__all__ = [
    "DATE_FMT",
    "date_key",
    "format_day",
    "today_in",
]

DATE_FMT = "%Y-%m-%d"


def date_key(raw: str | None) -> str | None:
    """Return the ISO date portion of ``raw`` or None when it is not a valid date."""
    if not raw:
        return None
    portion = raw.strip().split(" ", 1)[0]
    if len(portion) != 10:
        return None
    try:
        date.fromisoformat(portion)
    except ValueError:
        return None
    return portion


def format_day(day: date) -> str:
    return day.strftime(DATE_FMT)


def today_in(timezone: str = "UTC") -> date:
    """Current calendar day in ``timezone``."""
    return datetime.now(ZoneInfo(timezone)).date()
