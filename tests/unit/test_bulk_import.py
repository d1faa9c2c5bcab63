from __future__ import annotations

from sheet_delta.db.store import JsonFileStore, StoreError
from sheet_delta.services.orchestrator import bulk_import, parse_import_line


def test_parse_import_line_defaults(settings):
    p = parse_import_line(" Leads , abc123 ", settings)
    assert p is not None
    assert (p.name, p.id, p.range, p.date_column) == ("Leads", "abc123", "Sheet1!A2:Z1000", "1")
    assert parse_import_line("", settings) is None
    assert parse_import_line("OnlyName", settings) is None
    assert parse_import_line(",abc", settings) is None


def test_bulk_import_skips_partial_lines(json_store: JsonFileStore, settings):
    lines = ["A,id-a", "", "broken", "B,id-b", "C, id-c", " ,x", "D,id-d", "E,id-e", "F,id-f"]
    result = bulk_import(lines, json_store, settings)
    assert result.imported == 6
    assert result.skipped_lines == 2
    assert result.failed == 0
    names = sorted(p.name for p in json_store.get_all())
    assert names == ["A", "B", "C", "D", "E", "F"]
    assert all(p.created_at for p in json_store.get_all())


def test_bulk_import_counts_failures(tmp_path, settings):
    class FlakyStore(JsonFileStore):
        def add(self, profile):
            if profile.name == "bad":
                raise StoreError("quota exceeded")
            return super().add(profile)

    store = FlakyStore(tmp_path / "store.json")
    result = bulk_import(["ok,1", "bad,2", "fine,3"], store, settings)
    assert (result.imported, result.failed) == (2, 1)
