"""Summary: SQLite storage implementation for opsdash.

Importance: Provides a local-first persistence layer for credentials and conversations.
Alternatives: Use a JSON file or an external database.
"""

from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from opsdash.storage.kv_store import KeyValueStore


class SqliteKeyValueStore(KeyValueStore):
    """Summary: SQLite-backed key-value store.

    Importance: Persists dashboard state across restarts with minimal dependencies.
    Alternatives: Use an encrypted store or a hosted database.
    """

    def __init__(self, db_path: str) -> None:
        """Summary: Initialize the storage with a database path.

        Importance: Allows configurable database location per environment.
        Alternatives: Hardcode a default path in the class.
        """

        self._db_path = Path(db_path)

    def initialize(self) -> None:
        """Summary: Create the key-value table if it does not exist.

        Importance: Ensures the database is ready before the first read.
        Alternatives: Run migrations using a dedicated migration tool.
        """

        with self._connection() as connection:
            cursor = connection.cursor()
            cursor.execute(
                """
                CREATE TABLE IF NOT EXISTS kv_entries (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL
                )
                """
            )
            connection.commit()

    def get(self, key: str) -> str | None:
        with self._connection() as connection:
            cursor = connection.cursor()
            cursor.execute("SELECT value FROM kv_entries WHERE key = ?", (key,))
            row = cursor.fetchone()
        return row[0] if row else None

    def set(self, key: str, value: str) -> None:
        with self._connection() as connection:
            cursor = connection.cursor()
            cursor.execute(
                """
                INSERT INTO kv_entries (key, value) VALUES (?, ?)
                ON CONFLICT(key) DO UPDATE SET value = excluded.value
                """,
                (key, value),
            )
            connection.commit()

    def remove(self, key: str) -> None:
        with self._connection() as connection:
            cursor = connection.cursor()
            cursor.execute("DELETE FROM kv_entries WHERE key = ?", (key,))
            connection.commit()

    @contextmanager
    def _connection(self) -> Iterator[sqlite3.Connection]:
        """Summary: Context manager for SQLite connections.

        Importance: Ensures connections are closed cleanly after use.
        Alternatives: Keep a single long-lived connection.
        """

        connection = sqlite3.connect(self._db_path)
        try:
            yield connection
        finally:
            connection.close()


def default_store_path() -> str:
    """Summary: Provide the default database path.

    Importance: Centralizes the default storage location.
    Alternatives: Compute the path based on OS user directories.
    """

    return "opsdash.db"
