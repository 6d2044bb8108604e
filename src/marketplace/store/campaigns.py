"""Campaign rows, listed with a live application count."""

from __future__ import annotations

from typing import ClassVar

from marketplace.domain.models import Campaign
from marketplace.domain.types import ENGAGED_APPLICATION_STATUSES, EscrowStatus
from marketplace.store.base import Repository


class CampaignRepository(Repository[Campaign]):
    table: ClassVar[str] = "campaigns"
    model = Campaign
    select_sql: ClassVar[str] = """
        SELECT c.*,
               (SELECT COUNT(*) FROM applications a WHERE a.campaign_id = c.id)
                   AS application_count
        FROM campaigns c
    """

    def has_active_engagements(self, campaign_id: str) -> bool:
        """Return True if any application is engaged or any escrow is still held."""
        statuses = sorted(s.value for s in ENGAGED_APPLICATION_STATUSES)
        placeholders = ", ".join("?" for _ in statuses)
        row = self._conn.execute(
            f"""
            SELECT
                EXISTS (
                    SELECT 1 FROM applications
                    WHERE campaign_id = ? AND status IN ({placeholders})
                )
                OR EXISTS (
                    SELECT 1 FROM escrow_accounts e
                    JOIN applications a ON a.id = e.application_id
                    WHERE a.campaign_id = ? AND e.status = ?
                )
            """,
            (campaign_id, *statuses, campaign_id, EscrowStatus.HELD.value),
        ).fetchone()
        return bool(row[0])
