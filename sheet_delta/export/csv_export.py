from __future__ import annotations

import csv
import io
import logging
from collections.abc import Iterable, Iterator, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import Any

from ..analysis.dates import format_day
from ..analysis.delta import resolve_comparison
from ..analysis.reconcile import current_entries, reconcile
from ..models.analytics import AnalyticsSnapshot, ColumnChange
from ..models.config_models import ComparisonFallback, Profile
from ..models.profile_run import FetchOutcome, FetchSucceeded
from ..models.row_data import ParsedRow

"""Delimited export of current / closed / new entries per profile.

Output layout (three labeled sections separated by a blank line)::

    Current Entries
    Profile,Entry ID,Extra Data,Source Date
    ...

    Closed Entries
    Profile,Entry ID,Removed Since,Compare Date
    ...

    New Entries
    Profile,Entry ID,Added Since,Compare Date
    ...

Quoting: a cell containing the delimiter, a quote or a line break is quoted
with internal quotes doubled; None renders as an empty cell.
"""

__all__ = [
    "ExportTables",
    "build_export_tables",
    "column_changes",
    "export_filename",
    "render_export",
    "to_delimited",
    "write_export",
]

logger = logging.getLogger(__name__)

CURRENT_HEADER = ("Profile", "Entry ID", "Extra Data", "Source Date")
CLOSED_HEADER = ("Profile", "Entry ID", "Removed Since", "Compare Date")
NEW_HEADER = ("Profile", "Entry ID", "Added Since", "Compare Date")


@dataclass
class ExportTables:
    current: list[list[str]] = field(default_factory=lambda: [list(CURRENT_HEADER)])
    closed: list[list[str]] = field(default_factory=lambda: [list(CLOSED_HEADER)])
    new: list[list[str]] = field(default_factory=lambda: [list(NEW_HEADER)])


def to_delimited(rows: Iterable[Sequence[Any]], delimiter: str = ",") -> str:
    """Render rows as delimited text (no trailing newline)."""
    buf = io.StringIO()
    writer = csv.writer(buf, delimiter=delimiter, quoting=csv.QUOTE_MINIMAL, lineterminator="\n")
    for row in rows:
        writer.writerow(["" if cell is None else cell for cell in row])
    return buf.getvalue().removesuffix("\n")


def _analysed(
    profiles: Iterable[Profile],
    outcomes: Mapping[str, FetchOutcome],
) -> Iterator[tuple[Profile, list[ParsedRow]]]:
    for profile in profiles:
        outcome = outcomes.get(profile.name)
        # 取得失敗 / 未取得 / 分析列なしはスキップ
        if isinstance(outcome, FetchSucceeded) and profile.analysis_column:
            yield profile, list(outcome.rows)


def column_changes(
    profiles: Iterable[Profile],
    outcomes: Mapping[str, FetchOutcome],
    snapshot: AnalyticsSnapshot,
    today: date,
    custom_date: str | None = None,
    fallback: ComparisonFallback = ComparisonFallback.YESTERDAY,
) -> dict[str, ColumnChange | None]:
    """Analysis-column changes from the resolved comparison day to ``today``.

    Only profiles with an analysis column, fetched rows and a comparison day
    are included; None means nothing was added or removed.
    """
    today_str = format_day(today)
    changes: dict[str, ColumnChange | None] = {}
    for profile, rows in _analysed(profiles, outcomes):
        resolved = resolve_comparison(snapshot.entry_counts, profile.name, custom_date, fallback)
        if resolved is None:
            continue
        compare_date = resolved[1].date
        logger.debug(f"column comparison for {profile.name}: {compare_date} vs {today_str}")
        changes[profile.name] = reconcile(rows, profile.analysis_column, compare_date, today_str)
    return changes


def build_export_tables(
    profiles: Iterable[Profile],
    outcomes: Mapping[str, FetchOutcome],
    snapshot: AnalyticsSnapshot,
    today: date,
    custom_date: str | None = None,
    fallback: ComparisonFallback = ComparisonFallback.YESTERDAY,
) -> ExportTables:
    """Collect export rows for every profile with an analysis column and fetched data."""
    tables = ExportTables()
    today_str = format_day(today)

    profiles = list(profiles)
    for profile, rows in _analysed(profiles, outcomes):
        for entry_id, extra in current_entries(rows, profile.analysis_column, today_str, profile.extra_column):
            tables.current.append([profile.name, entry_id, extra, today_str])

    changes = column_changes(profiles, outcomes, snapshot, today, custom_date, fallback)
    for name, change in changes.items():
        if change is None:
            continue
        for entry in change.removed:
            tables.closed.append([name, entry, change.date2, change.date1])
        for entry in change.added:
            tables.new.append([name, entry, change.date2, change.date1])
    return tables


def render_export(tables: ExportTables, delimiter: str = ",") -> str:
    return (
        "Current Entries\n"
        + to_delimited(tables.current, delimiter)
        + "\n\nClosed Entries\n"
        + to_delimited(tables.closed, delimiter)
        + "\n\nNew Entries\n"
        + to_delimited(tables.new, delimiter)
    )


def export_filename(today: date, compare_date: str | None = None, ext: str = "csv") -> str:
    """``profile-entries[-vs-<compareDate>]-<YYYY-MM-DD>.<ext>``"""
    compare_info = f"-vs-{compare_date}" if compare_date else ""
    return f"profile-entries{compare_info}-{format_day(today)}.{ext}"


def write_export(
    directory: Path,
    tables: ExportTables,
    today: date,
    compare_date: str | None = None,
    delimiter: str = ",",
) -> Path:
    """Write the rendered export into ``directory`` and return the file path."""
    directory.mkdir(parents=True, exist_ok=True)
    ext = "tsv" if delimiter == "\t" else "csv"
    path = directory / export_filename(today, compare_date, ext)
    path.write_text(render_export(tables, delimiter), encoding="utf-8")
    return path
