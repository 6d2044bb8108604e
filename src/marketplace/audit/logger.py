"""Convenience class for inserting audit trail entries.

Each method builds a structured :class:`AuditEntry` and inserts it inside a
``Database.transaction()``, so calls made from a service operation join that
operation's transaction.
"""

from __future__ import annotations

from typing import Any

from marketplace.audit.models import AuditEntry, EventType
from marketplace.audit.store import init_audit_table, insert_audit_entry
from marketplace.store.database import Database

SYSTEM_ACTOR = "system"


class AuditLogger:
    """Typed convenience API for inserting audit entries.

    Creates the ``audit_log`` table on construction if it is missing.

    Args:
        db: The marketplace database.
    """

    def __init__(self, db: Database) -> None:
        self._db = db
        with db.transaction() as conn:
            init_audit_table(conn)

    def log(self, entry: AuditEntry) -> int:
        with self._db.transaction() as conn:
            return insert_audit_entry(conn, entry)

    def log_status_change(
        self,
        event_type: EventType,
        actor_id: str | None,
        entity_type: str,
        entity_id: str,
        from_status: str | None,
        to_status: str,
        metadata: dict[str, Any] | None = None,
    ) -> int:
        """Log a status change on a campaign, application, submission or payout.

        Args:
            event_type: One of the ``*_STATUS_CHANGED`` / ``SUBMISSION_REVIEWED`` types.
            actor_id: The user who caused the change.
            entity_type: Kind of row that changed.
            entity_id: ID of the row that changed.
            from_status: Status before the change.
            to_status: Status after the change.
            metadata: Additional key-value metadata (e.g. the triggering event).

        Returns:
            The row ID of the inserted audit entry.
        """
        return self.log(
            AuditEntry(
                event_type=event_type,
                actor_id=actor_id,
                entity_type=entity_type,
                entity_id=entity_id,
                from_status=from_status,
                to_status=to_status,
                metadata=metadata,
            )
        )

    def log_application_transitions(
        self,
        actor_id: str | None,
        application_id: str,
        history: list[tuple[Any, str, Any]],
    ) -> None:
        """Log each ``(from, event, to)`` step recorded by an application state machine."""
        for from_state, event, to_state in history:
            self.log_status_change(
                EventType.APPLICATION_STATUS_CHANGED,
                actor_id,
                "application",
                application_id,
                str(from_state),
                str(to_state),
                {"event": event},
            )

    def log_money_event(
        self,
        event_type: EventType,
        actor_id: str | None,
        entity_type: str,
        entity_id: str,
        amount: Any,
        currency: str,
        metadata: dict[str, Any] | None = None,
    ) -> int:
        """Log an escrow, payout or balance movement with its amount."""
        return self.log(
            AuditEntry(
                event_type=event_type,
                actor_id=actor_id,
                entity_type=entity_type,
                entity_id=entity_id,
                metadata={"amount": str(amount), "currency": currency, **(metadata or {})},
            )
        )

    def log_error(
        self,
        error_message: str,
        entity_type: str | None = None,
        entity_id: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> int:
        """Log an operational error, such as a failed auto-release."""
        return self.log(
            AuditEntry(
                event_type=EventType.ERROR,
                actor_id=SYSTEM_ACTOR,
                entity_type=entity_type,
                entity_id=entity_id,
                metadata={"error": error_message, **(metadata or {})},
            )
        )
