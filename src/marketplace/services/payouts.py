"""Influencer balances and payout requests.

Requesting a payout moves the amount from available to pending in the same
transaction as the insert.  Admins then drive the request through
:class:`PayoutStateMachine`; completion clears it from pending and failure or
cancellation returns it to available.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

import structlog

from marketplace.audit import AuditEntry, AuditLogger, EventType
from marketplace.domain.errors import (
    InsufficientBalanceError,
    NotFoundError,
    PermissionDeniedError,
    ValidationFailedError,
)
from marketplace.domain.models import InfluencerBalance, PayoutRequest, Profile
from marketplace.domain.types import PayoutStatus, UserRole
from marketplace.observability.metrics import PAYOUTS_REQUESTED
from marketplace.services.common import (
    new_id,
    now_timestamp,
    page_window,
    pagination,
    require_found,
    require_role,
)
from marketplace.services.notifications import Notifier
from marketplace.slack import SlackNotifier, build_payout_alert_blocks
from marketplace.state_machine import PayoutStateMachine
from marketplace.store import Repositories
from marketplace.store.base import Filters

logger = structlog.get_logger()

CENT = Decimal("0.01")
PLATFORM_FEE_SETTING = "platform_fee_percentage"
BALANCE_FIELDS = ("available_balance", "pending_balance", "total_earned")


def calculate_platform_fee(amount: Decimal, percentage: Decimal) -> tuple[Decimal, Decimal]:
    """Return ``(fee, net)`` for a payout, the fee rounded half-up to cents."""
    fee = (amount * percentage / Decimal("100")).quantize(CENT, rounding=ROUND_HALF_UP)
    return fee, amount - fee


class PayoutService:
    """Balance lookups, payout requests, and admin payout processing."""

    def __init__(
        self,
        repos: Repositories,
        audit: AuditLogger,
        notifier: Notifier,
        slack: SlackNotifier | None,
        *,
        currency: str,
        default_fee_percentage: int,
    ) -> None:
        self._repos = repos
        self._audit = audit
        self._notifier = notifier
        self._slack = slack
        self._currency = currency
        self._default_fee_percentage = Decimal(default_fee_percentage)

    # ------------------------------------------------------------------
    # Balances
    # ------------------------------------------------------------------

    def get_balance(self, actor: Profile) -> InfluencerBalance:
        require_role(actor, [UserRole.INFLUENCER], "Only influencers have a balance")
        with self._repos.db.transaction():
            return self._repos.balances.get_or_create(actor.id, self._currency)

    def adjust_balance(
        self, actor: Profile, influencer_id: str, values: dict[str, Decimal]
    ) -> InfluencerBalance:
        """Overwrite balance figures manually (admins only)."""
        require_role(actor, [UserRole.ADMIN], "Only admins can adjust balances")
        changes = {k: v for k, v in values.items() if k in BALANCE_FIELDS and v is not None}
        if not changes:
            raise ValidationFailedError("No valid fields to update")
        if any(v < 0 for v in changes.values()):
            raise ValidationFailedError("Balances cannot be negative")

        with self._repos.db.transaction():
            influencer = require_found(self._repos.profiles.get(influencer_id), "User not found")
            if influencer.role != UserRole.INFLUENCER:
                raise ValidationFailedError("Only influencers have a balance")
            before = self._repos.balances.get_or_create(influencer_id, self._currency)
            updated = self._repos.balances.update_required(influencer_id, changes)
            self._audit.log(_balance_entry(actor.id, influencer_id, before, changes))
        return updated

    # ------------------------------------------------------------------
    # Payout requests
    # ------------------------------------------------------------------

    def fee_percentage(self) -> Decimal:
        """Current platform fee percentage, falling back to the configured default."""
        raw = self._repos.settings.get_value(PLATFORM_FEE_SETTING)
        if raw is None:
            return self._default_fee_percentage
        try:
            value = Decimal(raw)
        except InvalidOperation:
            logger.warning("platform_fee_unparsable", value=raw)
            return self._default_fee_percentage
        if not value.is_finite() or value < 0 or value > 100:
            logger.warning("platform_fee_out_of_range", value=raw)
            return self._default_fee_percentage
        return value

    def request_payout(self, actor: Profile, amount: Decimal, payment_method: str) -> PayoutRequest:
        """Create a pending payout and reserve its amount from the available balance.

        Raises:
            PermissionDeniedError: If the caller is not an influencer.
            ValidationFailedError: If the amount is not positive.
            NotFoundError: If the influencer has no balance yet.
            InsufficientBalanceError: If the amount exceeds the available balance.
        """
        require_role(actor, [UserRole.INFLUENCER], "Only influencers can request payouts")
        if amount <= 0:
            raise ValidationFailedError("Amount must be greater than zero")

        with self._repos.db.transaction():
            balance = self._repos.balances.get(actor.id)
            if balance is None:
                raise NotFoundError("No balance found")
            if amount > balance.available_balance:
                raise InsufficientBalanceError()

            fee, net = calculate_platform_fee(amount, self.fee_percentage())
            now = now_timestamp()
            payout = self._repos.payouts.insert(
                {
                    "id": new_id(),
                    "influencer_id": actor.id,
                    "amount": amount,
                    "platform_fee": fee,
                    "net_amount": net,
                    "currency": balance.currency,
                    "status": PayoutStatus.PENDING,
                    "payment_method": payment_method,
                    "created_at": now,
                    "updated_at": now,
                }
            )
            self._repos.balances.apply_delta(actor.id, available=-amount, pending=amount)
            self._audit.log_money_event(
                EventType.PAYOUT_REQUESTED,
                actor.id,
                "payout",
                payout.id,
                amount,
                balance.currency,
                {"platform_fee": str(fee), "net_amount": str(net)},
            )

        PAYOUTS_REQUESTED.inc()
        logger.info("payout_requested", payout_id=payout.id, amount=str(amount), fee=str(fee))
        self._alert_ops(actor, payout)
        return payout

    def list_payouts(
        self,
        actor: Profile,
        *,
        status: PayoutStatus | None = None,
        influencer_id: str | None = None,
        page: int = 1,
        limit: int = 10,
    ) -> dict[str, Any]:
        if actor.role == UserRole.BUSINESS:
            raise PermissionDeniedError("Businesses do not have payouts")
        page, limit = page_window(page, limit)
        if actor.role == UserRole.INFLUENCER:
            influencer_id = actor.id
        filters = Filters().equal("influencer_id", influencer_id).equal("status", status)
        items, total = self._repos.payouts.page(filters, page, limit)
        return {"payouts": items, "pagination": pagination(page, limit, total)}

    def update_payout(
        self,
        actor: Profile,
        payout_id: str,
        status: str,
        paystack_transfer_id: str | None = None,
    ) -> PayoutRequest:
        """Move a payout to *status* and settle the influencer's balance.

        Raises:
            PermissionDeniedError: If the caller is not an admin.
            NotFoundError: If the payout does not exist.
            InvalidTransitionError: If the status change is not allowed.
        """
        require_role(actor, [UserRole.ADMIN], "Only admins can update payouts")
        with self._repos.db.transaction():
            payout = require_found(self._repos.payouts.get(payout_id), "Payout not found")
            machine = PayoutStateMachine(payout.status)
            new_status = machine.trigger(status)

            changes: dict[str, Any] = {"status": new_status}
            if new_status == PayoutStatus.COMPLETED:
                changes["processed_at"] = now_timestamp()
                if paystack_transfer_id:
                    changes["paystack_transfer_id"] = paystack_transfer_id
            updated = self._repos.payouts.update_required(payout_id, changes)

            self._repos.balances.get_or_create(payout.influencer_id, payout.currency)
            if new_status == PayoutStatus.COMPLETED:
                self._repos.balances.apply_delta(payout.influencer_id, pending=-payout.amount)
            elif new_status in (PayoutStatus.FAILED, PayoutStatus.CANCELLED):
                self._repos.balances.apply_delta(
                    payout.influencer_id, available=payout.amount, pending=-payout.amount
                )

            self._audit.log_status_change(
                EventType.PAYOUT_STATUS_CHANGED,
                actor.id,
                "payout",
                payout_id,
                str(payout.status),
                str(new_status),
                {"amount": str(payout.amount), "paystack_transfer_id": paystack_transfer_id},
            )
            self._notifier.payout_updated(
                payout.influencer_id,
                payout.id,
                str(new_status),
                payout.net_amount,
                payout.currency,
            )
        logger.info("payout_updated", payout_id=payout_id, status=str(new_status))
        return updated

    def _alert_ops(self, actor: Profile, payout: PayoutRequest) -> None:
        if self._slack is None:
            return
        try:
            self._slack.post_alert(
                blocks=build_payout_alert_blocks(
                    actor.display_name,
                    payout.amount,
                    payout.net_amount,
                    payout.currency,
                    payout.id,
                ),
                fallback_text=f"New payout request from {actor.display_name}",
            )
        except Exception:
            logger.exception("payout_alert_failed", payout_id=payout.id)


def _balance_entry(
    actor_id: str,
    influencer_id: str,
    before: InfluencerBalance,
    changes: dict[str, Decimal],
) -> AuditEntry:
    return AuditEntry(
        event_type=EventType.BALANCE_ADJUSTED,
        actor_id=actor_id,
        entity_type="balance",
        entity_id=influencer_id,
        metadata={
            field: {"from": str(getattr(before, field)), "to": str(value)}
            for field, value in changes.items()
        },
    )
