"""Storage backends for per-user record collections.

A backend stores one opaque text payload per key. The record store decides
what goes in the payload; backends only read, overwrite and remove it.
"""
import sqlite3
from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path
from typing import Dict, Optional
from urllib.parse import quote

from financeai.utils.logger import get_logger
from financeai.utils.exceptions import StorageError

logger = get_logger()


class StorageBackend(ABC):
    """Key/value storage for serialized record collections."""

    @abstractmethod
    def read(self, key: str) -> Optional[str]:
        """Return the payload stored under key, or None when absent."""

    @abstractmethod
    def write(self, key: str, payload: str) -> None:
        """Overwrite the payload stored under key."""

    @abstractmethod
    def remove(self, key: str) -> None:
        """Remove key; absent keys are ignored."""


class MemoryBackend(StorageBackend):
    """Process-local backend, mainly for tests and throwaway sessions."""

    def __init__(self):
        self._data: Dict[str, str] = {}

    def read(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def write(self, key: str, payload: str) -> None:
        self._data[key] = payload

    def remove(self, key: str) -> None:
        self._data.pop(key, None)


class JsonFileBackend(StorageBackend):
    """One JSON file per key inside a directory."""

    def __init__(self, directory: Path):
        self.directory = Path(directory)
        self.directory.mkdir(parents=True, exist_ok=True)

    def read(self, key: str) -> Optional[str]:
        path = self._path(key)
        if not path.exists():
            return None

        try:
            return path.read_text(encoding="utf-8")
        except OSError as e:
            raise StorageError(f"Failed to read {path.name}: {e}")

    def write(self, key: str, payload: str) -> None:
        path = self._path(key)
        tmp_path = path.with_suffix(".tmp")

        try:
            tmp_path.write_text(payload, encoding="utf-8")
            tmp_path.replace(path)
        except OSError as e:
            raise StorageError(f"Failed to write {path.name}: {e}")

    def remove(self, key: str) -> None:
        try:
            self._path(key).unlink(missing_ok=True)
        except OSError as e:
            raise StorageError(f"Failed to remove {key}: {e}")

    def _path(self, key: str) -> Path:
        return self.directory / f"{self._sanitize_key(key)}.json"

    @staticmethod
    def _sanitize_key(key: str) -> str:
        """Percent-encode a key into a file name; distinct keys never share a file."""
        return quote(key, safe="")


class SqliteBackend(StorageBackend):
    """Payloads stored as rows of a local SQLite database."""

    def __init__(self, db_path: Path):
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    def _init_db(self):
        with sqlite3.connect(self.db_path) as conn:
            cursor = conn.cursor()
            cursor.execute("""
                CREATE TABLE IF NOT EXISTS record_collections (
                    key TEXT PRIMARY KEY,
                    payload TEXT NOT NULL,
                    updated_at TEXT
                )
            """)
            conn.commit()

    def read(self, key: str) -> Optional[str]:
        try:
            with sqlite3.connect(self.db_path) as conn:
                cursor = conn.cursor()
                cursor.execute("SELECT payload FROM record_collections WHERE key = ?", (key,))
                row = cursor.fetchone()
        except sqlite3.Error as e:
            raise StorageError(f"Failed to read {key}: {e}")

        return row[0] if row else None

    def write(self, key: str, payload: str) -> None:
        try:
            with sqlite3.connect(self.db_path) as conn:
                cursor = conn.cursor()
                cursor.execute("""
                    INSERT OR REPLACE INTO record_collections (key, payload, updated_at)
                    VALUES (?, ?, ?)
                """, (key, payload, datetime.now().isoformat()))
                conn.commit()
        except sqlite3.Error as e:
            raise StorageError(f"Failed to write {key}: {e}")

    def remove(self, key: str) -> None:
        try:
            with sqlite3.connect(self.db_path) as conn:
                cursor = conn.cursor()
                cursor.execute("DELETE FROM record_collections WHERE key = ?", (key,))
                conn.commit()
        except sqlite3.Error as e:
            raise StorageError(f"Failed to remove {key}: {e}")


def create_backend(kind: str, settings) -> StorageBackend:
    """Build the backend named in settings."""
    if kind == "json":
        return JsonFileBackend(settings.records_path)
    if kind == "sqlite":
        return SqliteBackend(settings.database_path)
    if kind == "memory":
        return MemoryBackend()
    raise StorageError(f"Unknown storage backend: {kind}")
