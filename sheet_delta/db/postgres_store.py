from __future__ import annotations

import threading
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import psycopg2
from psycopg2.extras import Json

from ..analysis.snapshot import utc_timestamp
from ..models.analytics import AnalyticsSnapshot
from ..models.config_models import Profile
from .store import ANALYTICS_KEY, ProfileNotFoundError, StoreError

"""PostgreSQL document store (psycopg2, JSONB documents).

Tables (created on first connect)::

    sheet_profiles(doc_id text primary key, data jsonb not null)
    analytics(key text primary key, data jsonb not null)

Each public call runs in its own transaction; failures roll back and surface
as StoreError.
"""

__all__ = [
    "PostgresStore",
]

_DDL = (
    "CREATE TABLE IF NOT EXISTS sheet_profiles (doc_id text PRIMARY KEY, data jsonb NOT NULL)",
    "CREATE TABLE IF NOT EXISTS analytics (key text PRIMARY KEY, data jsonb NOT NULL)",
)


class PostgresStore:
    def __init__(self, dsn: str, connection: Any = None) -> None:
        self.dsn = dsn
        self._conn = connection
        self._lock = threading.Lock()
        self._schema_ready = False

    def _connection(self) -> Any:
        if self._conn is None or getattr(self._conn, "closed", 0):
            try:
                self._conn = psycopg2.connect(self.dsn)
            except psycopg2.Error as e:
                raise StoreError(f"database connection failed: {e}") from e
            self._conn.autocommit = False
        return self._conn

    @contextmanager
    def _cursor(self) -> Iterator[Any]:
        """Serialized transaction scope: commit on success, rollback on error."""
        with self._lock:
            conn = self._connection()
            cur = conn.cursor()
            try:
                if not self._schema_ready:
                    for stmt in _DDL:
                        cur.execute(stmt)
                    self._schema_ready = True
                yield cur
                conn.commit()
            except StoreError:
                conn.rollback()
                raise
            except psycopg2.Error as e:
                conn.rollback()
                raise StoreError(str(e)) from e
            finally:
                cur.close()

    def close(self) -> None:
        if self._conn is not None and not getattr(self._conn, "closed", 0):
            self._conn.close()

    def get_all(self) -> list[Profile]:
        with self._cursor() as cur:
            cur.execute("SELECT doc_id, data FROM sheet_profiles ORDER BY doc_id")
            rows = cur.fetchall()
        return [Profile.from_dict(data, doc_id=doc_id) for doc_id, data in rows]

    def add(self, profile: Profile) -> Profile:
        now = utc_timestamp()
        stored = profile.with_updates(doc_id=uuid.uuid4().hex, created_at=now, updated_at=now)
        with self._cursor() as cur:
            cur.execute(
                "INSERT INTO sheet_profiles (doc_id, data) VALUES (%s, %s)",
                (stored.doc_id, Json(stored.to_dict())),
            )
        return stored

    def update(self, doc_id: str, updates: dict[str, Any]) -> None:
        body = {**updates, "updatedAt": utc_timestamp()}
        with self._cursor() as cur:
            cur.execute(
                "UPDATE sheet_profiles SET data = data || %s WHERE doc_id = %s",
                (Json(body), doc_id),
            )
            if cur.rowcount == 0:
                raise ProfileNotFoundError(f"Profile not found: {doc_id}")

    def delete(self, doc_id: str) -> None:
        with self._cursor() as cur:
            cur.execute("DELETE FROM sheet_profiles WHERE doc_id = %s", (doc_id,))
            if cur.rowcount == 0:
                raise ProfileNotFoundError(f"Profile not found: {doc_id}")

    def save_analytics(self, snapshot: AnalyticsSnapshot) -> AnalyticsSnapshot:
        doc = {**snapshot.to_dict(), "lastUpdated": utc_timestamp()}
        with self._cursor() as cur:
            cur.execute(
                "INSERT INTO analytics (key, data) VALUES (%s, %s) "
                "ON CONFLICT (key) DO UPDATE SET data = EXCLUDED.data",
                (ANALYTICS_KEY, Json(doc)),
            )
        return AnalyticsSnapshot.from_dict(doc)

    def get_analytics(self) -> AnalyticsSnapshot | None:
        with self._cursor() as cur:
            cur.execute("SELECT data FROM analytics WHERE key = %s", (ANALYTICS_KEY,))
            row = cur.fetchone()
        return AnalyticsSnapshot.from_dict(row[0]) if row else None
