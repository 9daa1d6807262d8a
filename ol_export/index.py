"""
Disk-backed author index.

Maps author identifiers to display names in a SQLite file living in a
private temporary directory. The index has two phases: it is written
during the first pass, committed once, and is read-only afterwards.
Keys are TEXT with the default BINARY collation, so iteration order is
byte-wise over the UTF-8 keys.
"""

import logging
import os
import sqlite3
import tempfile
from typing import Iterator, List, Optional, Tuple

from .config import INDEX_BATCH_SIZE, INDEX_DIR
from .constants import AUTHOR_TABLE
from .exceptions import IndexStateError, IndexStorageError

logger = logging.getLogger(__name__)


class AuthorIndex:
    """
    Ordered key/value store of ``author_id -> name``.

    Use it as a context manager; leaving the block closes the connection
    and deletes the backing directory whether or not an error occurred.
    """

    def __init__(self, index_dir: Optional[str] = None, batch_size: int = INDEX_BATCH_SIZE):
        self.index_dir = index_dir or INDEX_DIR
        self.batch_size = max(1, batch_size)
        self._tmpdir: Optional[tempfile.TemporaryDirectory] = None
        self._conn: Optional[sqlite3.Connection] = None
        self._pending: List[Tuple[str, str]] = []
        self._committed = False
        self.writes = 0

    @property
    def path(self) -> Optional[str]:
        if self._tmpdir is None:
            return None
        return os.path.join(self._tmpdir.name, "authors.sqlite3")

    @property
    def committed(self) -> bool:
        return self._committed

    def open(self) -> "AuthorIndex":
        if self._conn is not None:
            raise IndexStateError("Author index is already open")
        self._committed = False
        try:
            self._tmpdir = tempfile.TemporaryDirectory(prefix="ol-export-", dir=self.index_dir)
            # Autocommit connection; the only transaction is the explicit
            # BEGIN below and the COMMIT in commit().
            self._conn = sqlite3.connect(self.path, isolation_level=None)
            self._conn.execute("PRAGMA journal_mode=OFF")
            self._conn.execute("PRAGMA synchronous=OFF")
            self._conn.execute("PRAGMA locking_mode=EXCLUSIVE")
            self._conn.execute(
                f"CREATE TABLE {AUTHOR_TABLE} (id TEXT PRIMARY KEY, name TEXT NOT NULL) WITHOUT ROWID"
            )
            self._conn.execute("BEGIN")
        except (OSError, sqlite3.Error) as e:
            self.close()
            raise IndexStorageError(f"Failed to create the author index: {e}") from e
        logger.debug(f"Opened author index at {self.path}")
        return self

    def put(self, author_id: str, name: str) -> None:
        """Upsert an entry; a later put for the same id replaces the name."""
        self._require_writable()
        self._pending.append((author_id, name))
        self.writes += 1
        if len(self._pending) >= self.batch_size:
            self._flush_pending()

    def commit(self) -> None:
        """Make every put visible and switch the index to read-only."""
        self._require_writable()
        self._flush_pending()
        try:
            self._conn.execute("COMMIT")
        except sqlite3.Error as e:
            raise IndexStorageError(f"Failed to commit the author index: {e}") from e
        self._committed = True
        logger.debug(f"Committed author index after {self.writes} writes")

    def get(self, author_id: str) -> Optional[str]:
        """Return the name for ``author_id``, or None when the key is absent."""
        self._require_readable()
        try:
            row = self._conn.execute(
                f"SELECT name FROM {AUTHOR_TABLE} WHERE id = ?", (author_id,)
            ).fetchone()
        except sqlite3.Error as e:
            raise IndexStorageError(f"Failed to look up author {author_id!r}: {e}") from e
        return row[0] if row else None

    def items(self) -> Iterator[Tuple[str, str]]:
        """Yield every ``(author_id, name)`` pair in key order."""
        self._require_readable()
        try:
            cursor = self._conn.execute(f"SELECT id, name FROM {AUTHOR_TABLE} ORDER BY id")
            for author_id, name in cursor:
                yield author_id, name
        except sqlite3.Error as e:
            raise IndexStorageError(f"Failed to iterate the author index: {e}") from e

    def __len__(self) -> int:
        if self._conn is None:
            raise IndexStateError("Author index is not open")
        try:
            return self._conn.execute(f"SELECT COUNT(*) FROM {AUTHOR_TABLE}").fetchone()[0]
        except sqlite3.Error as e:
            raise IndexStorageError(f"Failed to count the author index: {e}") from e

    def close(self) -> None:
        """Close the connection and remove the backing directory."""
        if self._conn is not None:
            try:
                self._conn.close()
            except sqlite3.Error as e:
                logger.warning(f"Error closing the author index: {e}")
            self._conn = None
        if self._tmpdir is not None:
            self._tmpdir.cleanup()
            self._tmpdir = None
        self._pending = []

    def __enter__(self) -> "AuthorIndex":
        return self.open()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _flush_pending(self) -> None:
        if not self._pending:
            return
        try:
            self._conn.executemany(
                f"INSERT OR REPLACE INTO {AUTHOR_TABLE} (id, name) VALUES (?, ?)",
                self._pending,
            )
        except sqlite3.Error as e:
            raise IndexStorageError(f"Failed to write to the author index: {e}") from e
        self._pending = []

    def _require_writable(self) -> None:
        if self._conn is None:
            raise IndexStateError("Author index is not open")
        if self._committed:
            raise IndexStateError("Author index is committed and read-only")

    def _require_readable(self) -> None:
        if self._conn is None:
            raise IndexStateError("Author index is not open")
        if not self._committed:
            raise IndexStateError("Author index must be committed before it is read")
