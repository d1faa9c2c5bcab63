from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

import pytest

from sheet_delta.analysis.snapshot import merge_snapshot
from sheet_delta.db.store import JsonFileStore, ProfileNotFoundError, StoreError
from sheet_delta.models.analytics import EntryCount
from sheet_delta.models.config_models import Profile


def _profile(name: str) -> Profile:
    return Profile(id=f"{name}-id", range="Sheet1!A2:Z1000", name=name)


def test_add_and_get_all(json_store: JsonFileStore):
    stored = json_store.add(_profile("A"))
    assert stored.doc_id
    assert stored.created_at and stored.created_at.endswith("Z")
    assert stored.updated_at == stored.created_at
    profiles = json_store.get_all()
    assert [p.name for p in profiles] == ["A"]
    assert profiles[0].doc_id == stored.doc_id


def test_update_stamps_updated_at(json_store: JsonFileStore):
    stored = json_store.add(_profile("A"))
    json_store.update(stored.doc_id, {"lastRun": "2025-01-27T00:00:00Z"})
    [p] = json_store.get_all()
    assert p.last_run == "2025-01-27T00:00:00Z"
    assert p.updated_at is not None


def test_update_and_delete_unknown_doc(json_store: JsonFileStore):
    with pytest.raises(ProfileNotFoundError):
        json_store.update("missing", {"lastRun": "x"})
    with pytest.raises(ProfileNotFoundError):
        json_store.delete("missing")


def test_delete(json_store: JsonFileStore):
    stored = json_store.add(_profile("A"))
    json_store.delete(stored.doc_id)
    assert json_store.get_all() == []


def test_analytics_round_trip(json_store: JsonFileStore):
    assert json_store.get_analytics() is None
    snap = merge_snapshot(None, "A", [EntryCount("2025-01-27", 3, "A")], [])
    saved = json_store.save_analytics(snap)
    assert saved.last_updated.endswith("Z")
    loaded = json_store.get_analytics()
    assert loaded == saved


def test_concurrent_adds_are_serialized(json_store: JsonFileStore):
    with ThreadPoolExecutor(max_workers=5) as pool:
        list(pool.map(json_store.add, [_profile(f"P{i}") for i in range(10)]))
    assert len(json_store.get_all()) == 10


def test_corrupt_file(tmp_path: Path):
    path = tmp_path / "store.json"
    path.write_text("{broken", encoding="utf-8")
    with pytest.raises(StoreError):
        JsonFileStore(path).get_all()
