"""Key-value slots persisting the override layer, metadata and active language."""

from __future__ import annotations

import json
import logging
import os
import sqlite3
from threading import Lock
from typing import Any, Protocol

from tinylocalize.backend.config.schema import StorageConfig

logger = logging.getLogger(__name__)

TRANSLATIONS_SLOT = "magic-translations"
METADATA_SLOT = "magic-translation-metadata"
LANGUAGE_SLOT = "magic-lang"


class KeyValueStorage(Protocol):
    """Minimal string slot interface, modelled after browser local storage."""

    def get_item(self, key: str) -> str | None: ...

    def set_item(self, key: str, value: str) -> None: ...

    def remove_item(self, key: str) -> None: ...


class InMemoryStorage:
    """Thread-safe process-local slot storage."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._items: dict[str, str] = dict(initial or {})
        self._lock = Lock()

    def get_item(self, key: str) -> str | None:
        with self._lock:
            return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        with self._lock:
            self._items[key] = value

    def remove_item(self, key: str) -> None:
        with self._lock:
            self._items.pop(key, None)


class SQLiteStorage:
    """SQLite-backed slot storage surviving process restarts."""

    def __init__(self, path: str | os.PathLike[str]) -> None:
        self._path = str(path)
        self._lock = Lock()
        self._initialise()

    def _connect(self) -> sqlite3.Connection:
        connection = sqlite3.connect(self._path, check_same_thread=False)
        connection.execute("PRAGMA journal_mode=WAL")
        connection.execute("PRAGMA synchronous=NORMAL")
        return connection

    def _initialise(self) -> None:
        with self._connect() as connection:
            connection.execute(
                """
                CREATE TABLE IF NOT EXISTS slots (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL
                )
                """
            )

    def get_item(self, key: str) -> str | None:
        with self._lock:
            with self._connect() as connection:
                row = connection.execute(
                    "SELECT value FROM slots WHERE key = ?", (key,)
                ).fetchone()
        return None if row is None else str(row[0])

    def set_item(self, key: str, value: str) -> None:
        with self._lock:
            with self._connect() as connection:
                connection.execute(
                    "INSERT INTO slots (key, value) VALUES (?, ?)"
                    " ON CONFLICT(key) DO UPDATE SET value = excluded.value",
                    (key, value),
                )

    def remove_item(self, key: str) -> None:
        with self._lock:
            with self._connect() as connection:
                connection.execute("DELETE FROM slots WHERE key = ?", (key,))


def read_json_slot(storage: KeyValueStorage, key: str) -> dict[str, Any]:
    """Decode a JSON object slot, treating absent or malformed data as empty."""

    raw = storage.get_item(key)
    if not raw:
        return {}
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError:
        logger.warning("Ignoring malformed JSON stored under %s", key)
        return {}
    if not isinstance(payload, dict):
        logger.warning("Ignoring non-object JSON stored under %s", key)
        return {}
    return payload


def write_json_slot(storage: KeyValueStorage, key: str, payload: Any) -> None:
    storage.set_item(key, json.dumps(payload, ensure_ascii=False))


def build_storage(config: StorageConfig) -> InMemoryStorage | SQLiteStorage:
    if config.kind == "sqlite" and config.path:
        return SQLiteStorage(config.path)
    return InMemoryStorage()


__all__ = [
    "InMemoryStorage",
    "KeyValueStorage",
    "LANGUAGE_SLOT",
    "METADATA_SLOT",
    "SQLiteStorage",
    "TRANSLATIONS_SLOT",
    "build_storage",
    "read_json_slot",
    "write_json_slot",
]
