from __future__ import annotations

import json
import threading
import uuid
from pathlib import Path
from typing import Any, Protocol

from ..analysis.snapshot import utc_timestamp
from ..models.analytics import AnalyticsSnapshot
from ..models.config_models import Profile

"""Profile / analytics document store interface and the JSON-file store.

Collections mirror the hosted document store: ``sheetProfiles`` (one document
per profile, keyed by docId) and ``analytics`` (single ``latest`` document
holding the AnalyticsSnapshot).
"""

__all__ = [
    "ANALYTICS_KEY",
    "JsonFileStore",
    "ProfileNotFoundError",
    "ProfileStore",
    "StoreError",
]

PROFILES_COLLECTION = "sheetProfiles"
ANALYTICS_COLLECTION = "analytics"
ANALYTICS_KEY = "latest"


class StoreError(Exception):
    pass


class ProfileNotFoundError(StoreError):
    pass


class ProfileStore(Protocol):
    def get_all(self) -> list[Profile]: ...

    def add(self, profile: Profile) -> Profile: ...

    def update(self, doc_id: str, updates: dict[str, Any]) -> None: ...

    def delete(self, doc_id: str) -> None: ...

    def save_analytics(self, snapshot: AnalyticsSnapshot) -> AnalyticsSnapshot: ...

    def get_analytics(self) -> AnalyticsSnapshot | None: ...


class JsonFileStore:
    """Document store kept in a single JSON file.

    Every operation is a lock-guarded read-modify-write of the whole file, so
    concurrent ``add`` calls from an import batch are serialized.
    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self._lock = threading.Lock()

    def _read(self) -> dict[str, Any]:
        if not self.path.exists():
            return {PROFILES_COLLECTION: {}, ANALYTICS_COLLECTION: {}}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8") or "{}")
        except json.JSONDecodeError as e:
            raise StoreError(f"store file is not valid JSON: {self.path}: {e}") from e
        data.setdefault(PROFILES_COLLECTION, {})
        data.setdefault(ANALYTICS_COLLECTION, {})
        return data

    def _write(self, data: dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp.write_text(json.dumps(data, ensure_ascii=False, indent=2), encoding="utf-8")
        tmp.replace(self.path)

    def get_all(self) -> list[Profile]:
        with self._lock:
            docs = self._read()[PROFILES_COLLECTION]
        return [Profile.from_dict(body, doc_id=doc_id) for doc_id, body in docs.items()]

    def add(self, profile: Profile) -> Profile:
        now = utc_timestamp()
        stored = profile.with_updates(doc_id=uuid.uuid4().hex, created_at=now, updated_at=now)
        with self._lock:
            data = self._read()
            data[PROFILES_COLLECTION][stored.doc_id] = stored.to_dict()
            self._write(data)
        return stored

    def update(self, doc_id: str, updates: dict[str, Any]) -> None:
        with self._lock:
            data = self._read()
            docs = data[PROFILES_COLLECTION]
            if doc_id not in docs:
                raise ProfileNotFoundError(f"Profile not found: {doc_id}")
            docs[doc_id] = {**docs[doc_id], **updates, "updatedAt": utc_timestamp()}
            self._write(data)

    def delete(self, doc_id: str) -> None:
        with self._lock:
            data = self._read()
            if doc_id not in data[PROFILES_COLLECTION]:
                raise ProfileNotFoundError(f"Profile not found: {doc_id}")
            del data[PROFILES_COLLECTION][doc_id]
            self._write(data)

    def save_analytics(self, snapshot: AnalyticsSnapshot) -> AnalyticsSnapshot:
        doc = {**snapshot.to_dict(), "lastUpdated": utc_timestamp()}
        with self._lock:
            data = self._read()
            data[ANALYTICS_COLLECTION][ANALYTICS_KEY] = doc
            self._write(data)
        return AnalyticsSnapshot.from_dict(doc)

    def get_analytics(self) -> AnalyticsSnapshot | None:
        with self._lock:
            doc = self._read()[ANALYTICS_COLLECTION].get(ANALYTICS_KEY)
        return AnalyticsSnapshot.from_dict(doc) if doc else None
