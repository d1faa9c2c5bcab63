from __future__ import annotations

from pathlib import Path

from ..config.loader import StoreConfig
from .postgres_store import PostgresStore
from .store import JsonFileStore, ProfileStore

"""Store selection from configuration."""


def open_store(cfg: StoreConfig) -> ProfileStore:
    if cfg.backend == "postgres":
        return PostgresStore(cfg.resolve_dsn())
    return JsonFileStore(Path(cfg.path))
