from __future__ import annotations

from pathlib import Path

import pandas as pd

from sheet_delta.analysis.dates import format_day, today_in
from sheet_delta.cli.__main__ import main as cli_main
from sheet_delta.db.store import JsonFileStore
from sheet_delta.models.config_models import Profile

"""End-to-end run over an .xlsx workbook, then a single-profile rerun and a report."""


def _make_book(path: Path, rows: list[list[object]]) -> None:
    with pd.ExcelWriter(path, engine="openpyxl") as writer:
        pd.DataFrame(rows).to_excel(writer, sheet_name="Data", header=False, index=False)


def test_run_then_single_profile_then_report(temp_workdir: Path, write_config, capsys):
    books = temp_workdir / "data" / "workbooks"
    books.mkdir(parents=True)
    today = format_day(today_in("UTC"))
    _make_book(books / "sales.xlsx", [["date", "id", "amount"], [today, "S-1", "10"], [today, "S-2", "15"]])
    _make_book(books / "leads.xlsx", [["date", "id"], [today, "L-1"]])

    store = JsonFileStore(temp_workdir / "data" / "store.json")
    store.add(Profile(id="sales.xlsx", range="Data!A2:C100", name="Sales"))
    store.add(Profile(id="leads.xlsx", range="Data!A2:B100", name="Leads"))

    assert cli_main(["run"]) == 0
    snap = store.get_analytics()
    assert {c.sheet_name for c in snap.entry_counts} == {"Sales", "Leads"}
    [comparison] = snap.comparisons_for("Sales")
    assert comparison.differences[0].percentage_change == 50.0

    _make_book(books / "leads.xlsx", [["date", "id"], [today, "L-1"], [today, "L-2"]])
    assert cli_main(["run", "--profile", "Leads"]) == 0
    snap = store.get_analytics()
    assert [c.count for c in snap.counts_for("Leads") if c.date == today] == [2]
    assert [c.count for c in snap.counts_for("Sales") if c.date == today] == [2]

    capsys.readouterr()
    assert cli_main(["report", "--sort", "name"]) == 0
    out = capsys.readouterr().out
    assert out.index("Leads:") < out.index("Sales:")
