from __future__ import annotations

from dataclasses import dataclass

"""ParsedRow model for the sheet-delta analytics tool.

A ParsedRow is one raw spreadsheet row after the date column has been split off
and the profile's filter groups have been evaluated against the raw cells.
"""

__all__ = [
    "ParsedRow",
]


@dataclass(frozen=True)
class ParsedRow:
    """Logical representation of a single fetched row.

    ``values`` holds the raw cells minus the date column, so its length is the
    raw row length - 1 unless the date column was out of range (full row kept)
    or the row was malformed (empty, ``matches_filters`` False).
    """
    date: str  # raw date cell, may carry a time-of-day suffix ("2025-01-27 02:08:57")
    values: tuple[str, ...]
    row_index: int  # 1-based position in the fetched range
    matches_filters: bool = True

    @staticmethod
    def degraded(row_index: int) -> ParsedRow:
        """Placeholder for a row that was not a proper cell sequence."""
        return ParsedRow(date="", values=(), row_index=row_index, matches_filters=False)

    def value_at(self, column: int) -> str | None:
        """1-based cell lookup on ``values``; None when out of range."""
        if column < 1 or column > len(self.values):
            return None
        return self.values[column - 1]
