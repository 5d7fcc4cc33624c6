import sqlite3
from typing import Optional
from lozsheet.database.repositories import StorageRepository


class DBManager:
    """
    Database connection manager with repository-based access.

    Usage:
        with DBManager("lozsheet.db") as db:
            raw = db.storage.get_item("lozrp.sheet.v1")
    """

    def __init__(self, db_path: str, storage_quota: int = 5_000_000):
        self.db_path = db_path
        self.storage_quota = storage_quota
        self.conn = None

        # Repositories (initialized in __enter__)
        self.storage: Optional[StorageRepository] = None

    def __enter__(self):
        return self.open()

    def open(self):
        # Autosave fires on a timer thread, so the connection is shared across threads.
        self.conn = sqlite3.connect(
            self.db_path, timeout=30.0, isolation_level=None, check_same_thread=False
        )
        self.conn.execute("PRAGMA journal_mode=WAL;")
        self.conn.row_factory = sqlite3.Row

        self.storage = StorageRepository(self.conn, quota=self.storage_quota)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def close(self):
        if self.conn:
            self.conn.close()
            self.conn = None

    def create_tables(self):
        """Initialize all database tables."""
        if not self.conn:
            with self as db:
                db._create_all_tables()
        else:
            self._create_all_tables()

    def _create_all_tables(self):
        for repo in (self.storage,):
            if repo:
                repo.create_table()
