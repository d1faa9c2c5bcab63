from __future__ import annotations

import pytest

from sheet_delta.sheets.range_spec import RangeFormatError, parse_range


def test_parse_valid_range_strips_whitespace():
    r = parse_range(" Sheet1 ! A2 : Z1000 ")
    assert r.sheet_name == "Sheet1"
    assert r.cell_range == "A2:Z1000"
    assert r.text == "Sheet1!A2:Z1000"


@pytest.mark.parametrize(
    "text,fragment",
    [
        ("Sheet1A2:Z10", "missing '!'"),
        ("!A2:Z10", "could not parse sheet name"),
        ("Sheet1!", "could not parse sheet name"),
        ("Sheet1!A2Z10", "missing ':'"),
        ("", "empty"),
    ],
)
def test_invalid_ranges(text, fragment):
    with pytest.raises(RangeFormatError) as exc:
        parse_range(text)
    assert fragment in str(exc.value)


def test_bounds():
    assert parse_range("S!A2:Z1000").bounds() == ((0, 1), (25, 999))
    assert parse_range("S!B:C").bounds() == ((1, None), (2, None))
    assert parse_range("S!AA1:AB2").bounds() == ((26, 0), (27, 1))


def test_bounds_malformed_cell():
    with pytest.raises(RangeFormatError):
        parse_range("S!1A:B2").bounds()
