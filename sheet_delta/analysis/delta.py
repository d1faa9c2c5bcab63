from __future__ import annotations

from collections.abc import Iterable, Sequence

from ..models.analytics import DeltaChange, EntryCount
from ..models.config_models import ComparisonFallback

"""Day-over-day delta between "today" and a comparison day.

Entries are sorted by date descending; ISO dates compare correctly as strings.
The comparison day is the custom date when requested and present, otherwise
(policy YESTERDAY) the second most recent day. With policy ABSENT a requested
custom date that has no entry yields no delta.
"""

__all__ = [
    "delta",
    "percentage_change",
    "rank_profiles",
    "resolve_comparison",
]


def percentage_change(current: float, previous: float) -> float:
    """(current - previous) / previous * 100, or 0 when previous is 0."""
    if previous == 0:
        return 0.0
    return (current - previous) / previous * 100


def _sorted_for(counts: Iterable[EntryCount], sheet_name: str) -> list[EntryCount]:
    return sorted(
        (c for c in counts if c.sheet_name == sheet_name),
        key=lambda c: c.date,
        reverse=True,
    )


def resolve_comparison(
    counts: Iterable[EntryCount],
    sheet_name: str,
    custom_date: str | None = None,
    fallback: ComparisonFallback = ComparisonFallback.YESTERDAY,
) -> tuple[EntryCount, EntryCount] | None:
    """Return ``(today, comparison)`` entries or None when no comparison day exists."""
    entries = _sorted_for(counts, sheet_name)
    if not entries:
        return None
    today = entries[0]

    if custom_date:
        for entry in entries:
            if entry.date == custom_date:
                return today, entry
        if fallback is ComparisonFallback.ABSENT:
            return None

    if len(entries) >= 2:
        return today, entries[1]
    return None


def delta(
    counts: Iterable[EntryCount],
    sheet_name: str,
    custom_date: str | None = None,
    fallback: ComparisonFallback = ComparisonFallback.YESTERDAY,
) -> DeltaChange | None:
    """Compute the change for ``sheet_name``; None with fewer than two usable data points."""
    resolved = resolve_comparison(counts, sheet_name, custom_date, fallback)
    if resolved is None:
        return None
    today, comparison = resolved
    change = today.count - comparison.count
    return DeltaChange(
        today=today.count,
        yesterday=comparison.count,
        change=change,
        percentage_change=percentage_change(today.count, comparison.count),
        today_date=today.date,
        comparison_date=comparison.date,
    )


def rank_profiles(
    names: Sequence[str],
    counts: Sequence[EntryCount],
    sort_by: str = "magnitude",
    custom_date: str | None = None,
    fallback: ComparisonFallback = ComparisonFallback.YESTERDAY,
) -> list[str]:
    """Order profile names for display.

    ``magnitude``: largest absolute change first; when both changes are zero the
    profile with more entries today comes first. ``name``: case-insensitive.
    """
    if sort_by == "name":
        return sorted(names, key=lambda n: n.lower())
    if sort_by != "magnitude":
        raise ValueError(f"unknown sort order: {sort_by}")

    deltas = {n: delta(counts, n, custom_date, fallback) for n in names}

    def sort_key(name: str) -> tuple[int, int]:
        d = deltas[name]
        magnitude = abs(d.change) if d else 0
        today = d.today if d else 0
        # magnitude 0 同士は当日件数で比較
        return (-magnitude, -today if magnitude == 0 else 0)

    return sorted(names, key=sort_key)
