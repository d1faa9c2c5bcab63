from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from .row_data import ParsedRow

"""Per-profile fetch outcome and run status models.

A fetch either yields parsed rows or fails; the failure is carried as an
explicit variant instead of a sentinel object so display/export code can tell
"no rows" from "fetch failed" without inspecting shapes.
"""

__all__ = [
    "FetchFailed",
    "FetchOutcome",
    "FetchSucceeded",
    "ProfileRun",
    "RunStatus",
]


class RunStatus(Enum):
    """Final status of one profile within an analysis run (derived from its fetch outcome)."""
    SUCCESS = "success"
    FAILED = "failed"


@dataclass(frozen=True)
class FetchSucceeded:
    rows: tuple[ParsedRow, ...]

    @property
    def matching_rows(self) -> list[ParsedRow]:
        return [r for r in self.rows if r.matches_filters]


@dataclass(frozen=True)
class FetchFailed:
    error: str  # failure reason summary


FetchOutcome = FetchSucceeded | FetchFailed


@dataclass(frozen=True)
class ProfileRun:
    """Processing context for one profile in a run (used for stats and export)."""
    profile_name: str
    outcome: FetchOutcome
    start_time: datetime | None = None
    end_time: datetime | None = None

    @property
    def status(self) -> RunStatus:
        return RunStatus.SUCCESS if isinstance(self.outcome, FetchSucceeded) else RunStatus.FAILED

    @property
    def row_count(self) -> int:
        return len(self.outcome.rows) if isinstance(self.outcome, FetchSucceeded) else 0

    @property
    def elapsed_seconds(self) -> float:
        if self.start_time is None or self.end_time is None:
            return 0.0
        return (self.end_time - self.start_time).total_seconds()
