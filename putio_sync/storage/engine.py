"""
An ordered, transactional key-value engine with nested buckets, kept in a single
SQLite database file.

Buckets are named key spaces that may contain further buckets. Keys and values
are raw bytes and iterate in bytewise key order. The file is held under an
exclusive lock for as long as it is open, so only one process can use it at a
time.
"""

import logging
import sqlite3
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from putio_sync.exceptions import StorageUnavailableError

log = logging.getLogger(__name__)

DEFAULT_OPEN_TIMEOUT = 10.0

# Top-level buckets use this as their parent ID.
ROOT_BUCKET_ID = 0

_SCHEMA = (
    """
    CREATE TABLE IF NOT EXISTS buckets (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        parent_id INTEGER NOT NULL,
        name BLOB NOT NULL,
        UNIQUE (parent_id, name)
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS entries (
        bucket_id INTEGER NOT NULL,
        key BLOB NOT NULL,
        value BLOB NOT NULL,
        PRIMARY KEY (bucket_id, key)
    ) WITHOUT ROWID;
    """,
)


class Bucket:
    """A bucket handle, valid only inside the transaction that produced it."""

    def __init__(self, tx: "Transaction", bucket_id: int, name: bytes):
        self._tx = tx
        self.id = bucket_id
        self.name = name

    def bucket(self, name: bytes) -> "Bucket | None":
        """Returns the named child bucket, or None if it does not exist."""
        return self._tx._find_bucket(self.id, name)

    def create_bucket_if_not_exists(self, name: bytes) -> "Bucket":
        return self._tx._create_bucket(self.id, name)

    def bucket_names(self) -> list[bytes]:
        """Names of the direct child buckets, in bytewise order."""
        rows = self._tx._conn.execute(
            "SELECT name FROM buckets WHERE parent_id = ? ORDER BY name", (self.id,)
        )
        return [bytes(row[0]) for row in rows]

    def get(self, key: bytes) -> bytes | None:
        row = self._tx._conn.execute(
            "SELECT value FROM entries WHERE bucket_id = ? AND key = ?",
            (self.id, key),
        ).fetchone()
        return bytes(row[0]) if row else None

    def put(self, key: bytes, value: bytes) -> None:
        self._tx._check_writable()
        if not key:
            raise ValueError("key required")
        self._tx._conn.execute(
            "INSERT INTO entries (bucket_id, key, value) VALUES (?, ?, ?) "
            "ON CONFLICT (bucket_id, key) DO UPDATE SET value = excluded.value",
            (self.id, key, value),
        )

    def items(self) -> Iterator[tuple[bytes, bytes]]:
        """Iterates over the bucket's key/value pairs in ascending key order."""
        cursor = self._tx._conn.execute(
            "SELECT key, value FROM entries WHERE bucket_id = ? ORDER BY key",
            (self.id,),
        )
        for key, value in cursor:
            yield bytes(key), bytes(value)


class Transaction:
    """A read-only or read-write transaction on an open BucketDB."""

    def __init__(self, conn: sqlite3.Connection, writable: bool):
        self._conn = conn
        self.writable = writable

    def _check_writable(self) -> None:
        if not self.writable:
            raise sqlite3.OperationalError("transaction is read-only")

    def _find_bucket(self, parent_id: int, name: bytes) -> Bucket | None:
        row = self._conn.execute(
            "SELECT id FROM buckets WHERE parent_id = ? AND name = ?",
            (parent_id, name),
        ).fetchone()
        return Bucket(self, row[0], name) if row else None

    def _create_bucket(self, parent_id: int, name: bytes) -> Bucket:
        self._check_writable()
        if not name:
            raise ValueError("bucket name required")
        existing = self._find_bucket(parent_id, name)
        if existing is not None:
            return existing
        cursor = self._conn.execute(
            "INSERT INTO buckets (parent_id, name) VALUES (?, ?)", (parent_id, name)
        )
        return Bucket(self, cursor.lastrowid, name)

    def bucket(self, name: bytes) -> Bucket | None:
        """Returns the named top-level bucket, or None if it does not exist."""
        return self._find_bucket(ROOT_BUCKET_ID, name)

    def create_bucket_if_not_exists(self, name: bytes) -> Bucket:
        return self._create_bucket(ROOT_BUCKET_ID, name)


class BucketDB:
    """
    Owns the SQLite connection behind a bucket database.

    One connection serves every caller; transactions are serialized with a lock,
    so a single BucketDB may be shared between threads.
    Read-only transactions queue behind one another and behind writes, so a
    long read delays every other caller on the same handle.
    """

    def __init__(self, path: Path, timeout: float = DEFAULT_OPEN_TIMEOUT):
        self.path = Path(path)
        self.timeout = timeout
        self._conn: sqlite3.Connection | None = None
        self._lock = threading.Lock()

    def open(self) -> None:
        """
        Opens the file, creating it if needed, and takes the exclusive lock.

        Raises:
            StorageUnavailableError: If the file cannot be created or opened, or
            the lock is not acquired within the timeout.
        """
        if self._conn is not None:
            return

        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageUnavailableError(
                f"Cannot create directory for database '{self.path}': {e}"
            ) from e

        conn = None
        try:
            conn = sqlite3.connect(
                self.path,
                timeout=self.timeout,
                isolation_level=None,
                check_same_thread=False,
            )
            # Held from the first write until the connection closes.
            conn.execute("PRAGMA locking_mode=EXCLUSIVE;")
            conn.execute("PRAGMA temp_store=MEMORY;")
            conn.execute("BEGIN EXCLUSIVE")
            for statement in _SCHEMA:
                conn.execute(statement)
            conn.execute("COMMIT")
        except sqlite3.Error as e:
            if conn is not None:
                conn.close()
            log.error(f"Failed to open database '{self.path}': {e}")
            raise StorageUnavailableError(
                f"Database '{self.path}' is unavailable: {e}"
            ) from e

        self._conn = conn
        log.debug(f"Opened database '{self.path}'.")

    def close(self) -> None:
        with self._lock:
            if self._conn is None:
                return
            self._conn.close()
            self._conn = None
        log.debug(f"Closed database '{self.path}'.")

    @contextmanager
    def _transaction(self, writable: bool) -> Iterator[Transaction]:
        with self._lock:
            if self._conn is None:
                raise StorageUnavailableError(f"Database '{self.path}' is not open.")
            conn = self._conn
            conn.execute("BEGIN IMMEDIATE" if writable else "BEGIN")
            try:
                yield Transaction(conn, writable)
                conn.execute("COMMIT")
            except BaseException:
                if conn.in_transaction:
                    conn.execute("ROLLBACK")
                raise

    def view(self):
        """Context manager for a read-only transaction."""
        return self._transaction(writable=False)

    def update(self):
        """Context manager for a read-write transaction, committed on success."""
        return self._transaction(writable=True)
