"""
SQLite-based persistent key/value store.

Every store of the application (chat sessions, settings, sync config...)
is kept as one JSON document tagged with the schema version it was
written with.
"""

import json
import logging
import sqlite3
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterable, Iterator, Optional

from .models import StoredRecord

logger = logging.getLogger(__name__)


class StateStoreError(Exception):
    """Raised when state store operations fail."""
    pass


class StateStore:
    """
    SQLite-based persistent store of named JSON documents.

    Features:
    - Atomic updates with transactions
    - Multi-record writes in a single transaction
    - Automatic schema migration

    Usage:
        store = StateStore(Path("data/chatsync.db"))

        store.save("sync", {"provider": "webdav"}, version=1.2)
        record = store.get("sync")
        print(record.value, record.version)
    """

    SCHEMA_VERSION = 1

    CREATE_TABLE_SQL = """
        CREATE TABLE IF NOT EXISTS store (
            name TEXT PRIMARY KEY,
            value TEXT NOT NULL,
            version REAL NOT NULL DEFAULT 0,
            updated_at TEXT
        )
    """

    CREATE_METADATA_TABLE_SQL = """
        CREATE TABLE IF NOT EXISTS _metadata (
            key TEXT PRIMARY KEY,
            value TEXT
        )
    """

    UPSERT_SQL = """
        INSERT OR REPLACE INTO store (name, value, version, updated_at)
        VALUES (?, ?, ?, ?)
    """

    def __init__(self, database_path: Path):
        """
        Initialize state store.

        Args:
            database_path: Path to SQLite database file
        """
        self.database_path = Path(database_path)
        self.database_path.parent.mkdir(parents=True, exist_ok=True)

        self._initialize_database()

        logger.debug(f"State store initialized at {self.database_path}")

    def _initialize_database(self) -> None:
        """Create tables and record the schema version."""
        with self._get_connection() as conn:
            cursor = conn.cursor()

            cursor.execute(self.CREATE_METADATA_TABLE_SQL)

            cursor.execute("SELECT value FROM _metadata WHERE key = 'schema_version'")
            row = cursor.fetchone()
            current_version = int(row[0]) if row else 0

            if current_version < self.SCHEMA_VERSION:
                logger.info(f"Upgrading schema from v{current_version} to v{self.SCHEMA_VERSION}")
                cursor.execute(
                    "INSERT OR REPLACE INTO _metadata (key, value) VALUES (?, ?)",
                    ("schema_version", str(self.SCHEMA_VERSION)),
                )

            cursor.execute(self.CREATE_TABLE_SQL)
            conn.commit()

    @contextmanager
    def _get_connection(self) -> Iterator[sqlite3.Connection]:
        """
        Get a database connection with proper settings.

        Yields:
            SQLite connection with WAL mode enabled

        Raises:
            StateStoreError: If the database cannot be used
        """
        try:
            conn = sqlite3.connect(
                self.database_path,
                timeout=30.0,
                isolation_level="DEFERRED",
            )
        except sqlite3.Error as e:
            raise StateStoreError(f"Cannot open {self.database_path}: {e}") from e

        try:
            conn.execute("PRAGMA journal_mode=WAL")
            yield conn
        except sqlite3.Error as e:
            conn.rollback()
            raise StateStoreError(f"State store operation failed: {e}") from e
        finally:
            conn.close()

    def get(self, name: str) -> Optional[StoredRecord]:
        """
        Get a stored document.

        Args:
            name: Store name

        Returns:
            StoredRecord if found, None otherwise
        """
        with self._get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                "SELECT name, value, version, updated_at FROM store WHERE name = ?",
                (name,),
            )

            row = cursor.fetchone()
            if row:
                return StoredRecord.from_row(row)
            return None

    def save(self, name: str, value: Any, version: float = 0.0) -> StoredRecord:
        """
        Save or replace a document.

        Args:
            name: Store name
            value: JSON-serializable value
            version: Schema version of the value

        Returns:
            The saved record with its write timestamp
        """
        return self.save_many([StoredRecord(name=name, value=value, version=version)])[0]

    def save_many(self, records: Iterable[StoredRecord]) -> list[StoredRecord]:
        """
        Save several documents in one transaction.

        Either all records are written or none are.

        Args:
            records: Records to write; their updated_at is ignored

        Returns:
            The saved records with write timestamps
        """
        now = datetime.now(timezone.utc)
        saved = [
            StoredRecord(name=r.name, value=r.value, version=r.version, updated_at=now)
            for r in records
        ]

        rows = [
            (r.name, json.dumps(r.value, ensure_ascii=False), r.version, now.isoformat())
            for r in saved
        ]

        with self._get_connection() as conn:
            conn.executemany(self.UPSERT_SQL, rows)
            conn.commit()

        logger.debug(f"Saved {len(saved)} record(s): {[r.name for r in saved]}")
        return saved

    def names(self) -> list[str]:
        """Return the names of all stored documents, sorted."""
        with self._get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT name FROM store ORDER BY name")
            return [row[0] for row in cursor.fetchall()]

    def count(self) -> int:
        """Count stored documents."""
        with self._get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT COUNT(*) FROM store")
            return cursor.fetchone()[0]
