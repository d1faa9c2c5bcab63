from __future__ import annotations

from datetime import date
from pathlib import Path

from sheet_delta.export.csv_export import (
    build_export_tables,
    column_changes,
    export_filename,
    render_export,
    to_delimited,
    write_export,
)
from sheet_delta.models.analytics import AnalyticsSnapshot, EntryCount
from sheet_delta.models.config_models import ComparisonFallback, Profile
from sheet_delta.models.profile_run import FetchFailed, FetchSucceeded
from sheet_delta.models.row_data import ParsedRow

TODAY = date(2025, 1, 27)


def _row(d: str, *values: str) -> ParsedRow:
    return ParsedRow(date=d, values=tuple(values), row_index=1)


def _profile(name: str, **kwargs) -> Profile:
    return Profile(id=f"{name}-id", range="Sheet1!A2:Z1000", name=name, **kwargs)


def _snapshot(name: str) -> AnalyticsSnapshot:
    return AnalyticsSnapshot(
        entry_counts=(
            EntryCount("2025-01-27", 2, name),
            EntryCount("2025-01-26", 2, name),
            EntryCount("2025-01-25", 1, name),
        )
    )


def test_to_delimited_quotes_only_when_needed():
    text = to_delimited([["a", 'say "hi"', "x,y", None], ["line\nbreak", "plain", "", 3]])
    lines = text.split("\n", 1)
    assert lines[0] == 'a,"say ""hi""","x,y",'
    assert text.endswith('plain,,3')
    assert '"line\nbreak"' in text


def test_build_tables_current_closed_new():
    profile = _profile("P", analysis_column=1, extra_column=2)
    rows = (
        _row("2025-01-26", "a", "old"),
        _row("2025-01-26", "b", ""),
        _row("2025-01-27 08:00", "b", "kept"),
        _row("2025-01-27", "c", "fresh"),
    )
    tables = build_export_tables([profile], {"P": FetchSucceeded(rows)}, _snapshot("P"), TODAY)
    assert tables.current[1:] == [
        ["P", "b", "kept", "2025-01-27"],
        ["P", "c", "fresh", "2025-01-27"],
    ]
    assert tables.closed[1:] == [["P", "a", "2025-01-27", "2025-01-26"]]
    assert tables.new[1:] == [["P", "c", "2025-01-27", "2025-01-26"]]


def test_custom_compare_date():
    profile = _profile("P", analysis_column=1)
    rows = (_row("2025-01-25", "z"), _row("2025-01-27", "b"))
    tables = build_export_tables(
        [profile], {"P": FetchSucceeded(rows)}, _snapshot("P"), TODAY, custom_date="2025-01-25"
    )
    assert tables.closed[1:] == [["P", "z", "2025-01-27", "2025-01-25"]]
    assert tables.new[1:] == [["P", "b", "2025-01-27", "2025-01-25"]]


def test_missing_custom_date_with_absent_policy_skips_comparison():
    profile = _profile("P", analysis_column=1)
    rows = (_row("2025-01-27", "b"),)
    tables = build_export_tables(
        [profile],
        {"P": FetchSucceeded(rows)},
        _snapshot("P"),
        TODAY,
        custom_date="2024-12-01",
        fallback=ComparisonFallback.ABSENT,
    )
    assert len(tables.current) == 2
    assert len(tables.closed) == 1
    assert len(tables.new) == 1


def test_failed_or_unconfigured_profiles_are_skipped():
    failed = _profile("F", analysis_column=1)
    no_column = _profile("N")
    rows = (_row("2025-01-27", "b"),)
    tables = build_export_tables(
        [failed, no_column],
        {"F": FetchFailed("boom"), "N": FetchSucceeded(rows)},
        AnalyticsSnapshot(),
        TODAY,
    )
    assert len(tables.current) == 1
    assert len(tables.closed) == 1
    assert len(tables.new) == 1


def test_render_sections():
    profile = _profile("P", analysis_column=1)
    tables = build_export_tables(
        [profile], {"P": FetchSucceeded((_row("2025-01-27", "b"),))}, AnalyticsSnapshot(), TODAY
    )
    text = render_export(tables)
    assert text.startswith("Current Entries\nProfile,Entry ID,Extra Data,Source Date\nP,b,,2025-01-27")
    assert "\n\nClosed Entries\nProfile,Entry ID,Removed Since,Compare Date" in text
    assert "\n\nNew Entries\nProfile,Entry ID,Added Since,Compare Date" in text


def test_export_filename():
    assert export_filename(TODAY) == "profile-entries-2025-01-27.csv"
    assert export_filename(TODAY, "2025-01-20", "tsv") == "profile-entries-vs-2025-01-20-2025-01-27.tsv"


def test_write_export_tab_delimited(tmp_path: Path):
    path = write_export(tmp_path / "out", build_export_tables([], {}, AnalyticsSnapshot(), TODAY), TODAY, delimiter="\t")
    assert path.name == "profile-entries-2025-01-27.tsv"
    assert "Profile\tEntry ID\tExtra Data\tSource Date" in path.read_text(encoding="utf-8")


def test_column_changes_per_profile():
    changed = _profile("P", analysis_column=1)
    steady = _profile("Q", analysis_column=1)
    no_column = _profile("R")
    failed = _profile("S", analysis_column=1)
    outcomes = {
        "P": FetchSucceeded((_row("2025-01-26", "a"), _row("2025-01-27", "b"))),
        "Q": FetchSucceeded((_row("2025-01-26", "x"), _row("2025-01-27", "x"))),
        "R": FetchSucceeded((_row("2025-01-27", "r"),)),
        "S": FetchFailed("boom"),
    }
    snapshot = AnalyticsSnapshot(entry_counts=_snapshot("P").entry_counts + _snapshot("Q").entry_counts)
    changes = column_changes([changed, steady, no_column, failed], outcomes, snapshot, TODAY)
    assert list(changes) == ["P", "Q"]
    assert changes["P"].added == ("b",)
    assert changes["P"].removed == ("a",)
    assert (changes["P"].date1, changes["P"].date2) == ("2025-01-26", "2025-01-27")
    assert changes["Q"] is None


def test_extra_column_stays_with_its_entry():
    profile = _profile("P", analysis_column=1, extra_column=2)
    rows = (_row("2025-01-27", "id-1", ""), _row("2025-01-27", "id-2", "beta"))
    tables = build_export_tables([profile], {"P": FetchSucceeded(rows)}, AnalyticsSnapshot(), TODAY)
    assert tables.current[1:] == [
        ["P", "id-1", "", "2025-01-27"],
        ["P", "id-2", "beta", "2025-01-27"],
    ]
