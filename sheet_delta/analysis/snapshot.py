from __future__ import annotations

from collections.abc import Iterable
from datetime import UTC, datetime

from ..models.analytics import AnalyticsSnapshot, ComparisonResult, EntryCount

"""Aggregate snapshot assembly.

The snapshot is an explicit value: callers merge one sheet's fresh results into
the previous snapshot and persist the returned value themselves.
"""

__all__ = [
    "empty_snapshot",
    "merge_snapshot",
    "utc_timestamp",
]


def utc_timestamp(now: datetime | None = None) -> str:
    """ISO8601 UTC timestamp with 'Z' suffix."""
    moment = now or datetime.now(UTC)
    return moment.astimezone(UTC).isoformat().replace("+00:00", "Z")


def empty_snapshot(now: datetime | None = None) -> AnalyticsSnapshot:
    return AnalyticsSnapshot(entry_counts=(), comparisons=(), last_updated=utc_timestamp(now))


def merge_snapshot(
    old: AnalyticsSnapshot | None,
    sheet_name: str,
    new_counts: Iterable[EntryCount],
    new_comparisons: Iterable[ComparisonResult],
    now: datetime | None = None,
) -> AnalyticsSnapshot:
    """Replace ``sheet_name``'s counts and comparisons, keep every other sheet's.

    Idempotent for identical inputs (apart from ``last_updated``).
    """
    base = old or AnalyticsSnapshot()
    counts = [c for c in base.entry_counts if c.sheet_name != sheet_name]
    counts.extend(new_counts)
    comparisons = [c for c in base.comparisons if c.sheet_name != sheet_name]
    comparisons.extend(new_comparisons)
    return AnalyticsSnapshot(
        entry_counts=tuple(counts),
        comparisons=tuple(comparisons),
        last_updated=utc_timestamp(now),
    )
