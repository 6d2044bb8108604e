"""Payment and escrow rows."""

from __future__ import annotations

from typing import ClassVar

from marketplace.domain.models import EscrowAccount, Payment
from marketplace.domain.types import ApplicationStatus, EscrowStatus
from marketplace.store.base import Repository


class PaymentRepository(Repository[Payment]):
    table: ClassVar[str] = "payments"
    model = Payment
    select_sql: ClassVar[str] = """
        SELECT p.*, a.influencer_id AS influencer_id, c.business_id AS business_id
        FROM payments p
        JOIN applications a ON a.id = p.application_id
        JOIN campaigns c ON c.id = a.campaign_id
    """

    def get_by_application(self, application_id: str) -> Payment | None:
        row = self._conn.execute(
            "SELECT * FROM payments WHERE application_id = ?", (application_id,)
        ).fetchone()
        return self._to_model(row)

    def reference_exists(self, reference: str) -> bool:
        row = self._conn.execute(
            "SELECT 1 FROM payments WHERE paystack_reference = ?", (reference,)
        ).fetchone()
        return row is not None


class EscrowRepository(Repository[EscrowAccount]):
    table: ClassVar[str] = "escrow_accounts"
    model = EscrowAccount
    select_sql: ClassVar[str] = """
        SELECT e.*, a.influencer_id AS influencer_id, c.business_id AS business_id
        FROM escrow_accounts e
        JOIN applications a ON a.id = e.application_id
        JOIN campaigns c ON c.id = a.campaign_id
    """

    def get_held(self, application_id: str) -> EscrowAccount | None:
        """Return the application's escrow still awaiting release or refund."""
        row = self._conn.execute(
            "SELECT * FROM escrow_accounts WHERE application_id = ? AND status = ?",
            (application_id, EscrowStatus.HELD.value),
        ).fetchone()
        return self._to_model(row)

    def due_for_release(self, now: str) -> list[EscrowAccount]:
        """Return held escrows past their release date whose work is awaiting review."""
        rows = self._conn.execute(
            """
            SELECT e.* FROM escrow_accounts e
            JOIN applications a ON a.id = e.application_id
            WHERE e.status = ? AND e.auto_release_date <= ? AND a.status = ?
            ORDER BY e.auto_release_date
            """,
            (EscrowStatus.HELD.value, now, ApplicationStatus.SUBMITTED.value),
        ).fetchall()
        return [self._to_model(row) for row in rows]  # type: ignore[misc]
