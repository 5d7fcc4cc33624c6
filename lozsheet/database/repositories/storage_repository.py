"""Repository for the local key/value store."""

import sqlite3
from typing import List, Optional

from lozsheet.errors import StorageQuotaError
from .base_repository import BaseRepository


class StorageRepository(BaseRepository):
    """
    String key -> string value store with an origin-style quota.

    The quota counts characters of keys plus values across the whole
    table. A write that would exceed it is refused with StorageQuotaError
    and leaves the previous value in place.
    """

    def __init__(self, connection: sqlite3.Connection, quota: int = 5_000_000):
        super().__init__(connection)
        self.quota = quota

    def create_table(self):
        self._execute(
            """CREATE TABLE IF NOT EXISTS storage (
                   key TEXT PRIMARY KEY,
                   value TEXT NOT NULL,
                   updated_at TEXT DEFAULT CURRENT_TIMESTAMP
               )"""
        )
        self._commit()

    def get_item(self, key: str) -> Optional[str]:
        """Return the stored string, or None when the key is absent."""
        return self._scalar("SELECT value FROM storage WHERE key = ?", (key,))

    def set_item(self, key: str, value: str):
        """Create or replace a value. Raises StorageQuotaError when full."""
        value = str(value)
        used_elsewhere = self.used_chars(exclude=key)
        needed = len(key) + len(value)
        if used_elsewhere + needed > self.quota:
            raise StorageQuotaError(
                f"Writing '{key}' needs {needed} chars; "
                f"{self.quota - used_elsewhere} of {self.quota} available"
            )
        try:
            self._execute(
                """INSERT INTO storage (key, value) VALUES (?, ?)
                   ON CONFLICT(key) DO UPDATE SET
                       value = excluded.value,
                       updated_at = CURRENT_TIMESTAMP""",
                (key, value),
            )
            self._commit()
        except sqlite3.OperationalError as e:
            if "full" in str(e).lower():
                raise StorageQuotaError(f"Storage full while writing '{key}': {e}") from e
            raise

    def remove_item(self, key: str):
        self._execute("DELETE FROM storage WHERE key = ?", (key,))
        self._commit()

    def keys(self) -> List[str]:
        rows = self._fetchall("SELECT key FROM storage ORDER BY key")
        return [row["key"] for row in rows]

    def used_chars(self, exclude: Optional[str] = None) -> int:
        """Characters currently used, optionally ignoring one key."""
        if exclude is None:
            return self._scalar(
                "SELECT COALESCE(SUM(LENGTH(key) + LENGTH(value)), 0) FROM storage", default=0
            )
        return self._scalar(
            "SELECT COALESCE(SUM(LENGTH(key) + LENGTH(value)), 0) FROM storage WHERE key != ?",
            (exclude,),
            default=0,
        )

    def clear(self):
        """Delete every key (use with caution!)."""
        self._execute("DELETE FROM storage")
        self._commit()
