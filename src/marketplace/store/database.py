"""SQLite connection wrapper with WAL mode and lock-guarded transactions.

Every service operation runs inside ``Database.transaction()`` so multi-row
updates (payment + escrow + application status) commit or roll back together.
The connection is shared across FastAPI's worker threads, hence the re-entrant
lock around each transaction.
"""

from __future__ import annotations

import sqlite3
import threading
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from pathlib import Path
from typing import Any

from marketplace.store.schema import init_marketplace_schema


class Database:
    """Own a SQLite connection and serialize transactions on it.

    Nested ``transaction()`` blocks join the outermost one: only the outermost
    block commits or rolls back.
    """

    def __init__(self, conn: sqlite3.Connection) -> None:
        self.conn = conn
        self._lock = threading.RLock()
        self._depth = 0

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        """Run the enclosed block as one atomic unit of work.

        Yields:
            The underlying connection.
        """
        with self._lock:
            self._depth += 1
            try:
                yield self.conn
            except BaseException:
                if self._depth == 1:
                    self.conn.rollback()
                raise
            else:
                if self._depth == 1:
                    self.conn.commit()
            finally:
                self._depth -= 1

    def ping(self) -> None:
        """Execute a trivial query; raises if the connection is unusable."""
        with self._lock:
            self.conn.execute("SELECT 1")

    def close(self) -> None:
        """Close the underlying connection."""
        self.conn.close()


def open_database(db_path: Path | str) -> Database:
    """Open (creating if needed) the marketplace database.

    Enables WAL mode and foreign keys, installs ``sqlite3.Row`` as the row
    factory, and creates all tables.

    Args:
        db_path: Filesystem path, or ``":memory:"`` for an ephemeral database.

    Returns:
        A ready-to-use :class:`Database`.
    """
    conn = sqlite3.connect(str(db_path), check_same_thread=False)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA journal_mode=WAL")
    conn.execute("PRAGMA foreign_keys=ON")
    init_marketplace_schema(conn)
    return Database(conn)


def insert_row(conn: sqlite3.Connection, table: str, values: Mapping[str, Any]) -> None:
    """Insert *values* into *table*.

    Table and column names come from code, never from request data; only the
    values are bound as parameters.
    """
    columns = ", ".join(values)
    placeholders = ", ".join("?" for _ in values)
    conn.execute(
        f"INSERT INTO {table} ({columns}) VALUES ({placeholders})",
        list(values.values()),
    )


def update_row(
    conn: sqlite3.Connection,
    table: str,
    key_column: str,
    key: str,
    values: Mapping[str, Any],
) -> int:
    """Update the row in *table* whose *key_column* equals *key*.

    Returns:
        The number of rows changed.
    """
    if not values:
        return 0
    assignments = ", ".join(f"{column} = ?" for column in values)
    cursor = conn.execute(
        f"UPDATE {table} SET {assignments} WHERE {key_column} = ?",
        [*values.values(), key],
    )
    return cursor.rowcount
