"""Influencer bank account rows."""

from __future__ import annotations

from typing import ClassVar

from marketplace.domain.models import BankDetails
from marketplace.store.base import Repository, to_column
from marketplace.timeutil import to_timestamp, utc_now


class BankDetailsRepository(Repository[BankDetails]):
    table: ClassVar[str] = "bank_details"
    model = BankDetails
    order_by: ClassVar[str] = "is_primary DESC, created_at DESC"

    def has_active(self, influencer_id: str) -> bool:
        row = self._conn.execute(
            "SELECT 1 FROM bank_details WHERE influencer_id = ? AND is_active = 1",
            (influencer_id,),
        ).fetchone()
        return row is not None

    def clear_primary(self, influencer_id: str, *, except_id: str | None = None) -> None:
        """Unset the primary flag on every account of *influencer_id* but *except_id*."""
        self._conn.execute(
            """
            UPDATE bank_details SET is_primary = 0, updated_at = ?
            WHERE influencer_id = ? AND is_primary = 1 AND id != ?
            """,
            (to_column(to_timestamp(utc_now())), influencer_id, except_id or ""),
        )

    def oldest_active(
        self, influencer_id: str, *, except_id: str | None = None
    ) -> BankDetails | None:
        row = self._conn.execute(
            """
            SELECT * FROM bank_details
            WHERE influencer_id = ? AND is_active = 1 AND id != ?
            ORDER BY created_at, rowid
            LIMIT 1
            """,
            (influencer_id, except_id or ""),
        ).fetchone()
        return self._to_model(row)
