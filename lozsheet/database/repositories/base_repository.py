"""Shared sqlite helpers for repositories."""

from abc import ABC, abstractmethod
import sqlite3
from typing import Any, List, Optional


class BaseRepository(ABC):
    """A repository owns its table(s) on a connection managed by DBManager."""

    def __init__(self, connection: sqlite3.Connection):
        self.conn = connection

    @abstractmethod
    def create_table(self):
        """Create the repository's table(s) if they do not exist yet."""

    def _execute(self, query: str, params: tuple = ()) -> sqlite3.Cursor:
        return self.conn.execute(query, params)

    def _fetchone(self, query: str, params: tuple = ()) -> Optional[sqlite3.Row]:
        return self._execute(query, params).fetchone()

    def _fetchall(self, query: str, params: tuple = ()) -> List[sqlite3.Row]:
        return self._execute(query, params).fetchall()

    def _scalar(self, query: str, params: tuple = (), default: Any = None) -> Any:
        """First column of the first row, or `default` when there is no row."""
        row = self._fetchone(query, params)
        return row[0] if row is not None else default

    def _commit(self):
        # Autocommit connections have nothing pending; harmless otherwise.
        if self.conn.in_transaction:
            self.conn.commit()
