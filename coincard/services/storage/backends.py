"""
Key-Value Substrate Implementations

DESIGN DECISION: Three interchangeable substrates:
- SQLiteKeyValueStore: the on-device default, one small table in coincard.db
- JsonFileKeyValueStore: one JSON file per key, handy for inspection
- InMemoryKeyValueStore: tests and throwaway sessions

Blocking file and database calls are moved off the event loop with
asyncio.to_thread so the store stays async end to end.
"""

import asyncio
import os
import re
import sqlite3
import tempfile
import threading
from pathlib import Path
from typing import Optional

import structlog

from coincard.config import StorageSettings
from coincard.services.storage.interface import (
    BackendError,
    KeyValueStoreInterface,
)

logger = structlog.get_logger(__name__)

_SAFE_KEY = re.compile(r"^[A-Za-z0-9_.-]+$")


class InMemoryKeyValueStore(KeyValueStoreInterface):
    """Dictionary-backed substrate. Data lives as long as the instance."""

    def __init__(self, initial: Optional[dict[str, str]] = None):
        self._data: dict[str, str] = dict(initial or {})

    async def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    async def set(self, key: str, value: str) -> None:
        self._data[key] = value

    async def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def snapshot(self) -> dict[str, str]:
        """Copy of the raw stored values."""
        return dict(self._data)


class JsonFileKeyValueStore(KeyValueStoreInterface):
    """
    One file per key inside a directory.

    Writes go to a temporary file in the same directory and are then
    renamed over the target, so a crash never leaves a half-written value.
    """

    def __init__(self, directory: str):
        self._directory = Path(directory)

    def _path_for(self, key: str) -> Path:
        if not _SAFE_KEY.match(key):
            raise ValueError(f"Invalid storage key: {key!r}")
        return self._directory / f"{key}.json"

    def _read(self, path: Path) -> Optional[str]:
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None

    def _write(self, path: Path, value: str) -> None:
        self._directory.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            dir=self._directory,
            prefix=f".{path.stem}.",
            suffix=".tmp",
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(value)
            os.replace(tmp_name, path)
        except OSError:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise

    def _remove(self, path: Path) -> None:
        try:
            path.unlink()
        except FileNotFoundError:
            pass

    async def get(self, key: str) -> Optional[str]:
        path = self._path_for(key)
        try:
            return await asyncio.to_thread(self._read, path)
        except OSError as e:
            raise BackendError(f"Failed to read {path}: {e}") from e

    async def set(self, key: str, value: str) -> None:
        path = self._path_for(key)
        try:
            await asyncio.to_thread(self._write, path, value)
        except OSError as e:
            raise BackendError(f"Failed to write {path}: {e}") from e

    async def delete(self, key: str) -> None:
        path = self._path_for(key)
        try:
            await asyncio.to_thread(self._remove, path)
        except OSError as e:
            raise BackendError(f"Failed to delete {path}: {e}") from e


class SQLiteKeyValueStore(KeyValueStoreInterface):
    """
    Key-value table in a SQLite database.

    A single connection is shared; a lock serializes access from the
    worker threads asyncio.to_thread runs us on.
    """

    def __init__(self, path: str):
        self._path = path
        self._connection: Optional[sqlite3.Connection] = None
        self._lock = threading.Lock()

    def _connect(self) -> sqlite3.Connection:
        if self._connection is None:
            if self._path != ":memory:":
                Path(self._path).parent.mkdir(parents=True, exist_ok=True)
            connection = sqlite3.connect(self._path, check_same_thread=False)
            with connection:
                connection.execute(
                    "CREATE TABLE IF NOT EXISTS kv_store ("
                    "key TEXT PRIMARY KEY, "
                    "value TEXT NOT NULL)"
                )
            self._connection = connection
            logger.debug("sqlite_store_opened", path=self._path)
        return self._connection

    def _read(self, key: str) -> Optional[str]:
        with self._lock:
            connection = self._connect()
            row = connection.execute(
                "SELECT value FROM kv_store WHERE key = ?", (key,)
            ).fetchone()
            return row[0] if row else None

    def _write(self, key: str, value: str) -> None:
        with self._lock:
            connection = self._connect()
            with connection:
                connection.execute(
                    "INSERT OR REPLACE INTO kv_store (key, value) VALUES (?, ?)",
                    (key, value),
                )

    def _remove(self, key: str) -> None:
        with self._lock:
            connection = self._connect()
            with connection:
                connection.execute("DELETE FROM kv_store WHERE key = ?", (key,))

    def _close(self) -> None:
        with self._lock:
            if self._connection is not None:
                self._connection.close()
                self._connection = None

    async def get(self, key: str) -> Optional[str]:
        try:
            return await asyncio.to_thread(self._read, key)
        except (sqlite3.Error, OSError) as e:
            raise BackendError(f"Failed to read '{key}': {e}") from e

    async def set(self, key: str, value: str) -> None:
        try:
            await asyncio.to_thread(self._write, key, value)
        except (sqlite3.Error, OSError) as e:
            raise BackendError(f"Failed to write '{key}': {e}") from e

    async def delete(self, key: str) -> None:
        try:
            await asyncio.to_thread(self._remove, key)
        except (sqlite3.Error, OSError) as e:
            raise BackendError(f"Failed to delete '{key}': {e}") from e

    async def close(self) -> None:
        await asyncio.to_thread(self._close)


def create_key_value_store(settings: StorageSettings) -> KeyValueStoreInterface:
    """Build the substrate selected in StorageSettings."""
    if settings.backend == "memory":
        return InMemoryKeyValueStore()
    if settings.backend == "file":
        return JsonFileKeyValueStore(settings.path)
    return SQLiteKeyValueStore(settings.path)
