from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from .analytics import AnalyticsSnapshot
from .profile_run import FetchOutcome

"""Run result models for the sheet-delta analytics tool.

Aggregates the metrics needed for the SUMMARY output line and keeps every
profile's fetch outcome so the export step can reuse the fetched rows.
"""


@dataclass(frozen=True)
class ProfileStat:
    """Per-profile statistics (internal helper for RunResult)."""
    profile_name: str
    status: str  # success/failed
    parsed_rows: int
    matching_rows: int
    elapsed_seconds: float


@dataclass(frozen=True)
class RunResult:
    """Aggregated results of one analysis run."""
    success_profiles: int
    failed_profiles: int
    total_rows: int  # parsed rows across successful profiles
    start_time: datetime
    end_time: datetime
    elapsed_seconds: float
    snapshot: AnalyticsSnapshot
    outcomes: dict[str, FetchOutcome] = field(default_factory=dict)  # profile name -> outcome
    profile_stats: list[ProfileStat] | None = None

    @property
    def total_profiles(self) -> int:
        return self.success_profiles + self.failed_profiles


@dataclass(frozen=True)
class ImportResult:
    """Outcome of a bulk profile import."""
    imported: int
    skipped_lines: int
    failed: int
