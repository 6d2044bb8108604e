"""CLI query interface for the marketplace audit trail.

Filters by entity, actor, event type, date range, and a shorthand ``--last``
duration.  Output formats: table (default) or JSON.

Usage::

    marketplace-audit --entity <application-id> --last 7d
    marketplace-audit --event-type escrow_released --format json
"""

from __future__ import annotations

import argparse
import json
import re
from datetime import timedelta
from pathlib import Path
from typing import Any

from marketplace.audit.models import EventType
from marketplace.audit.store import init_audit_table, query_audit_trail
from marketplace.store.database import open_database
from marketplace.timeutil import to_timestamp, utc_now

DURATION_UNITS = {"d": "days", "h": "hours"}
DURATION_RE = re.compile(r"^(\d+)([dh])$")

# (header, row key, column width)
TABLE_COLUMNS = [
    ("Timestamp", "timestamp", 20),
    ("Event", "event_type", 26),
    ("Actor", "actor_id", 12),
    ("Entity", "entity_type", 12),
    ("Entity ID", "entity_id", 12),
    ("From", "from_status", 18),
    ("To", "to_status", 18),
]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="marketplace-audit", description="Query the marketplace audit trail"
    )
    filters = parser.add_argument_group("filters")
    filters.add_argument("--entity", help="Entity ID, e.g. an application or escrow ID")
    filters.add_argument(
        "--entity-type", help="campaign, application, escrow, payout, submission, ..."
    )
    filters.add_argument("--actor", help="Acting user ID, or 'system' for the auto-release sweep")
    filters.add_argument(
        "--event-type", choices=[e.value for e in EventType], help="Exact event type"
    )
    filters.add_argument("--from-date", help="Inclusive lower bound (YYYY-MM-DD)")
    filters.add_argument("--to-date", help="Inclusive upper bound (YYYY-MM-DD)")
    filters.add_argument("--last", help="Relative lower bound such as 7d or 24h")

    parser.add_argument(
        "--format", choices=["table", "json"], default="table", dest="output_format"
    )
    parser.add_argument("--limit", type=int, default=50, help="Maximum rows (default: 50)")
    parser.add_argument("--db", default="data/marketplace.db", help="Marketplace database file")
    return parser


def parse_last_duration(last: str) -> str:
    """Turn ``7d`` or ``24h`` into the UTC timestamp that long ago.

    Raises:
        ValueError: For anything other than digits followed by ``d`` or ``h``.
    """
    match = DURATION_RE.match(last or "")
    if match is None:
        raise ValueError(f"Unrecognized duration {last!r}; use e.g. 7d or 24h")
    delta = timedelta(**{DURATION_UNITS[match.group(2)]: int(match.group(1))})
    return to_timestamp(utc_now() - delta)


def _cell(value: Any, width: int) -> str:
    text = "" if value is None else str(value)
    if len(text) > width:
        text = text[: width - 3] + "..."
    return text.ljust(width)


def format_table(results: list[dict[str, Any]]) -> str:
    """Render audit rows as fixed-width columns, truncating long cells."""
    if not results:
        return "No results found."
    header = "  ".join(title.ljust(width) for title, _, width in TABLE_COLUMNS)
    rows = [
        "  ".join(_cell(row.get(key), width) for _, key, width in TABLE_COLUMNS)
        for row in results
    ]
    return "\n".join([header, "-" * len(header), *rows])


def format_json(results: list[dict[str, Any]]) -> str:
    return json.dumps(results, indent=2)


def main(argv: list[str] | None = None) -> None:
    """Parse arguments, query the audit trail, and print results."""
    args = build_parser().parse_args(argv)

    from_date = args.from_date
    if args.last:
        from_date = parse_last_duration(args.last)

    db_path = Path(args.db)
    db_path.parent.mkdir(parents=True, exist_ok=True)
    db = open_database(db_path)

    try:
        init_audit_table(db.conn)
        results = query_audit_trail(
            db.conn,
            entity_id=args.entity,
            entity_type=args.entity_type,
            actor_id=args.actor,
            from_date=from_date,
            to_date=args.to_date,
            event_type=args.event_type,
            limit=args.limit,
        )
        output = format_json(results) if args.output_format == "json" else format_table(results)
        print(output)
    finally:
        db.close()


if __name__ == "__main__":
    main()
