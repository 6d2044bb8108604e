"""Influencer balance and payout request rows."""

from __future__ import annotations

from decimal import Decimal
from typing import ClassVar

from marketplace.domain.models import InfluencerBalance, PayoutRequest
from marketplace.store.base import Repository


class BalanceRepository(Repository[InfluencerBalance]):
    table: ClassVar[str] = "influencer_balances"
    model = InfluencerBalance
    key_column: ClassVar[str] = "influencer_id"
    order_by: ClassVar[str] = "updated_at DESC"

    def get_or_create(self, influencer_id: str, currency: str) -> InfluencerBalance:
        """Return the influencer's balance, creating a zeroed row on first use."""
        self._conn.execute(
            "INSERT OR IGNORE INTO influencer_balances (influencer_id, currency) VALUES (?, ?)",
            (influencer_id, currency),
        )
        return self.get_required(influencer_id)

    def apply_delta(
        self,
        influencer_id: str,
        *,
        available: Decimal = Decimal("0"),
        pending: Decimal = Decimal("0"),
        earned: Decimal = Decimal("0"),
    ) -> InfluencerBalance:
        """Add the given deltas to the stored figures; pending never goes below zero."""
        balance = self.get_required(influencer_id)
        return self.update_required(
            influencer_id,
            {
                "available_balance": balance.available_balance + available,
                "pending_balance": max(balance.pending_balance + pending, Decimal("0")),
                "total_earned": balance.total_earned + earned,
            },
        )

    def credit(self, influencer_id: str, amount: Decimal, currency: str) -> InfluencerBalance:
        """Add released escrow funds to the influencer's available and lifetime totals."""
        self.get_or_create(influencer_id, currency)
        return self.apply_delta(influencer_id, available=amount, earned=amount)


class PayoutRepository(Repository[PayoutRequest]):
    table: ClassVar[str] = "payout_requests"
    model = PayoutRequest
