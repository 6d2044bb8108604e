"""The ``audit_log`` table: append-only rows describing every money or status change.

Lives in the marketplace database so audit rows commit atomically with the
writes they describe.
"""

from __future__ import annotations

import json
import sqlite3
from typing import Any

from marketplace.audit.models import AuditEntry
from marketplace.store.base import Filters
from marketplace.store.database import insert_row
from marketplace.timeutil import to_timestamp, utc_now

AUDIT_LOG_DDL = """
CREATE TABLE IF NOT EXISTS audit_log (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    timestamp TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%SZ', 'now')),
    event_type TEXT NOT NULL,
    actor_id TEXT,
    entity_type TEXT,
    entity_id TEXT,
    from_status TEXT,
    to_status TEXT,
    metadata TEXT
)
"""

# index name suffix -> indexed column
INDEXES = {"entity": "entity_id", "actor": "actor_id", "timestamp": "timestamp"}


def init_audit_table(conn: sqlite3.Connection) -> None:
    """Create ``audit_log`` and its lookup indexes if they do not exist yet."""
    conn.execute(AUDIT_LOG_DDL)
    for name, column in INDEXES.items():
        conn.execute(f"CREATE INDEX IF NOT EXISTS idx_audit_{name} ON audit_log ({column})")
    conn.commit()


def insert_audit_entry(conn: sqlite3.Connection, entry: AuditEntry) -> int:
    """Append *entry* and return its row id; the caller owns the transaction."""
    insert_row(
        conn,
        "audit_log",
        {
            "timestamp": to_timestamp(utc_now()),
            "event_type": entry.event_type.value,
            "actor_id": entry.actor_id,
            "entity_type": entry.entity_type,
            "entity_id": entry.entity_id,
            "from_status": entry.from_status,
            "to_status": entry.to_status,
            "metadata": (
                json.dumps(entry.metadata, default=str) if entry.metadata is not None else None
            ),
        },
    )
    return int(conn.execute("SELECT last_insert_rowid()").fetchone()[0])


def query_audit_trail(
    conn: sqlite3.Connection,
    *,
    entity_id: str | None = None,
    entity_type: str | None = None,
    actor_id: str | None = None,
    from_date: str | None = None,
    to_date: str | None = None,
    event_type: str | None = None,
    limit: int = 50,
) -> list[dict[str, Any]]:
    """Return matching audit rows newest first, with ``metadata`` decoded.

    Every filter is optional and they combine with AND.  ``from_date`` and
    ``to_date`` are inclusive bounds compared against the stored UTC
    timestamp text.
    """
    filters = (
        Filters()
        .equal("entity_id", entity_id)
        .equal("entity_type", entity_type)
        .equal("actor_id", actor_id)
        .equal("event_type", event_type)
    )
    if from_date is not None:
        filters.add("timestamp >= ?", from_date)
    if to_date is not None:
        filters.add("timestamp <= ?", to_date)

    rows = conn.execute(
        f"SELECT * FROM audit_log {filters.where} ORDER BY timestamp DESC, id DESC LIMIT ?",
        [*filters.params, limit],
    ).fetchall()
    return [_decode(dict(row)) for row in rows]


def _decode(row: dict[str, Any]) -> dict[str, Any]:
    if row.get("metadata") is not None:
        row["metadata"] = json.loads(row["metadata"])
    return row
