from __future__ import annotations

import pytest

from sheet_delta.analysis.comparisons import compare_rows, parse_number
from sheet_delta.models.row_data import ParsedRow


def _row(d: str, *values: str) -> ParsedRow:
    return ParsedRow(date=d, values=tuple(values), row_index=1)


def test_parse_number():
    assert parse_number("12.5") == 12.5
    assert parse_number(" 3 ") == 3.0
    assert parse_number("abc") == 0.0
    assert parse_number("") == 0.0
    assert parse_number(None) == 0.0
    assert parse_number("nan") == 0.0
    assert parse_number("inf") == 0.0
    assert parse_number(7) == 7.0


@pytest.mark.parametrize(
    "text,expected",
    [
        ("1_000", 0.0),
        ("1e3", 1000.0),
        ("0x10", 16.0),
        ("0X1f", 31.0),
        ("0b101", 5.0),
        ("0o17", 15.0),
        ("-0x10", 0.0),
        ("0xzz", 0.0),
        ("0x" + "f" * 300, 0.0),
    ],
)
def test_parse_number_text_forms(text, expected):
    assert parse_number(text) == expected


def test_adjacent_rows_only_nonzero_changes():
    rows = [_row("2025-01-26", "10", "5", "x"), _row("2025-01-27", "15", "5", "y")]
    results = compare_rows(rows, "S")
    assert len(results) == 1
    res = results[0]
    assert (res.sheet_name, res.date1, res.date2) == ("S", "2025-01-26", "2025-01-27")
    assert len(res.differences) == 1
    diff = res.differences[0]
    assert diff.column == 1
    assert diff.column_name == "Column 1"
    assert (diff.previous, diff.current) == (10.0, 15.0)
    assert diff.percentage_change == pytest.approx(50.0)


def test_zero_previous_is_not_a_change():
    rows = [_row("d1", "0"), _row("d2", "9")]
    assert compare_rows(rows, "S") == []


def test_fewer_than_two_rows():
    assert compare_rows([], "S") == []
    assert compare_rows([_row("d1", "1")], "S") == []
