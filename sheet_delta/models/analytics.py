from __future__ import annotations

from dataclasses import dataclass
from typing import Any

"""Analytics result models: per-day counts, deltas, column changes, comparisons.

``AnalyticsSnapshot`` is the aggregate persisted to and reloaded from the
document store; it serializes with the camelCase keys of the stored document.
"""

__all__ = [
    "AnalyticsSnapshot",
    "ColumnChange",
    "ColumnDifference",
    "ComparisonResult",
    "DeltaChange",
    "EntryCount",
]


@dataclass(frozen=True)
class EntryCount:
    date: str  # YYYY-MM-DD
    count: int
    sheet_name: str

    @staticmethod
    def from_dict(data: dict[str, Any]) -> EntryCount:
        return EntryCount(
            date=str(data.get("date", "")),
            count=int(data.get("count", 0) or 0),
            sheet_name=str(data.get("sheetName", "")),
        )

    def to_dict(self) -> dict[str, Any]:
        return {"date": self.date, "count": self.count, "sheetName": self.sheet_name}


@dataclass(frozen=True)
class DeltaChange:
    """Change between today's count and the comparison day's count.

    ``yesterday`` is the comparison day count, which is a custom date when one
    was requested and found.
    """
    today: int
    yesterday: int
    change: int
    percentage_change: float
    today_date: str = ""
    comparison_date: str = ""


@dataclass(frozen=True)
class ColumnChange:
    """Identifiers added / removed in one column between two days."""
    added: tuple[str, ...]
    removed: tuple[str, ...]
    column: int
    date1: str
    date2: str


@dataclass(frozen=True)
class ColumnDifference:
    column: int  # 1-based against values
    column_name: str
    previous: float
    current: float
    percentage_change: float

    @staticmethod
    def from_dict(data: dict[str, Any]) -> ColumnDifference:
        return ColumnDifference(
            column=int(data.get("column", 0)),
            column_name=str(data.get("columnName", "")),
            previous=float(data.get("previous", 0) or 0),
            current=float(data.get("current", 0) or 0),
            percentage_change=float(data.get("percentageChange", 0) or 0),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "column": self.column,
            "columnName": self.column_name,
            "previous": self.previous,
            "current": self.current,
            "percentageChange": self.percentage_change,
        }


@dataclass(frozen=True)
class ComparisonResult:
    """Numeric differences between two adjacent rows of one sheet."""
    sheet_name: str
    date1: str
    date2: str
    differences: tuple[ColumnDifference, ...] = ()

    @staticmethod
    def from_dict(data: dict[str, Any]) -> ComparisonResult:
        return ComparisonResult(
            sheet_name=str(data.get("sheetName", "")),
            date1=str(data.get("date1", "")),
            date2=str(data.get("date2", "")),
            differences=tuple(ColumnDifference.from_dict(d) for d in data.get("differences") or []),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "sheetName": self.sheet_name,
            "date1": self.date1,
            "date2": self.date2,
            "differences": [d.to_dict() for d in self.differences],
        }


@dataclass(frozen=True)
class AnalyticsSnapshot:
    """Aggregate of all profiles' counts and comparisons (store document ``analytics/latest``)."""
    entry_counts: tuple[EntryCount, ...] = ()
    comparisons: tuple[ComparisonResult, ...] = ()
    last_updated: str = ""  # ISO-8601

    def counts_for(self, sheet_name: str) -> list[EntryCount]:
        return [c for c in self.entry_counts if c.sheet_name == sheet_name]

    def comparisons_for(self, sheet_name: str) -> list[ComparisonResult]:
        return [c for c in self.comparisons if c.sheet_name == sheet_name]

    @staticmethod
    def from_dict(data: dict[str, Any] | None) -> AnalyticsSnapshot:
        if not data:
            return AnalyticsSnapshot()
        return AnalyticsSnapshot(
            entry_counts=tuple(EntryCount.from_dict(c) for c in data.get("entryCounts") or []),
            comparisons=tuple(ComparisonResult.from_dict(c) for c in data.get("comparisons") or []),
            last_updated=str(data.get("lastUpdated", "")),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "entryCounts": [c.to_dict() for c in self.entry_counts],
            "comparisons": [c.to_dict() for c in self.comparisons],
            "lastUpdated": self.last_updated,
        }
