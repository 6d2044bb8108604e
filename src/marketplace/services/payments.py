"""Payment verification, escrow funding, and escrow release or refund.

Funding verifies the transaction with Paystack, then records the payment,
opens a held escrow account and approves a pending application in a single
transaction.  The gateway holds the money; an escrow row only tracks it.
"""

from __future__ import annotations

from datetime import timedelta
from decimal import Decimal
from typing import Any

import structlog

from marketplace.audit import AuditLogger, EventType
from marketplace.domain.errors import (
    ConflictError,
    NotFoundError,
    PaymentVerificationError,
    PermissionDeniedError,
    ValidationFailedError,
)
from marketplace.domain.models import Application, EscrowAccount, Profile
from marketplace.domain.types import (
    ApplicationStatus,
    EscrowAction,
    EscrowStatus,
    PaymentStatus,
    UserRole,
)
from marketplace.observability.metrics import ESCROWS_FUNDED, ESCROWS_RELEASED
from marketplace.paystack import PaystackClient, from_minor_units
from marketplace.services.applications import ApplicationService
from marketplace.services.campaigns import CampaignService
from marketplace.services.common import (
    new_id,
    now_timestamp,
    page_window,
    pagination,
    require_found,
)
from marketplace.services.notifications import Notifier
from marketplace.state_machine import ApplicationEvent
from marketplace.store import Repositories
from marketplace.store.base import Filters
from marketplace.timeutil import to_timestamp, utc_now

logger = structlog.get_logger()

# Largest accepted difference between the verified and expected amount.
AMOUNT_TOLERANCE = Decimal("0.01")

FUNDABLE_STATUSES = frozenset({ApplicationStatus.PENDING, ApplicationStatus.APPROVED})


class PaymentService:
    """Escrow lifecycle for application payments."""

    def __init__(
        self,
        repos: Repositories,
        audit: AuditLogger,
        notifier: Notifier,
        paystack: PaystackClient,
        applications: ApplicationService,
        campaigns: CampaignService,
        *,
        currency: str,
        escrow_hold_days: int,
    ) -> None:
        self._repos = repos
        self._audit = audit
        self._notifier = notifier
        self._paystack = paystack
        self._applications = applications
        self._campaigns = campaigns
        self._currency = currency
        self._escrow_hold_days = escrow_hold_days

    # ------------------------------------------------------------------
    # Funding
    # ------------------------------------------------------------------

    def fund_escrow(
        self,
        actor: Profile,
        application_id: str,
        amount: Decimal,
        paystack_reference: str,
        total_amount: Decimal | None = None,
    ) -> dict[str, Any]:
        """Verify a Paystack payment and hold it in escrow for *application_id*.

        Args:
            actor: The campaign owner paying for the work.
            application_id: The application being paid for.
            amount: Amount credited to the influencer on release.
            paystack_reference: Reference of the completed Paystack transaction.
            total_amount: Amount charged by Paystack, including any fees;
                defaults to *amount*.

        Returns:
            ``{"payment": Payment, "escrow": EscrowAccount}``.

        Raises:
            NotFoundError: If the application does not exist.
            PermissionDeniedError: If the caller does not own the campaign.
            ConflictError: If the reference was already recorded.
            PaymentVerificationError: If Paystack does not confirm the
                payment or the amounts differ.
        """
        application = require_found(
            self._repos.applications.get(application_id), "Application not found"
        )
        campaign = self._campaigns.get(application.campaign_id)
        if actor.id != campaign.business_id:
            raise PermissionDeniedError("Only the campaign owner can pay for this application")
        if application.status not in FUNDABLE_STATUSES:
            raise ValidationFailedError("Application is not awaiting payment")
        if self._repos.payments.reference_exists(paystack_reference):
            raise ConflictError("Payment reference already recorded")

        transaction = self._paystack.verify_transaction(paystack_reference)
        if not transaction.succeeded:
            raise PaymentVerificationError("Payment not successful")
        expected = total_amount if total_amount is not None else amount
        if abs(transaction.amount - expected) > AMOUNT_TOLERANCE:
            logger.warning(
                "payment_amount_mismatch",
                reference=paystack_reference,
                expected=str(expected),
                verified=str(transaction.amount),
            )
            raise PaymentVerificationError("Payment amount mismatch")

        return self._record_funding(actor, application, amount, paystack_reference)

    def handle_webhook_event(self, event: dict[str, Any]) -> str:
        """Process a signature-verified Paystack webhook payload.

        Only ``charge.success`` events carrying ``metadata.application_id`` are
        acted on.  Deliveries for references already recorded are ignored, so
        Paystack's retries are safe.

        Returns:
            A short outcome label for logging and the response body.
        """
        if event.get("event") != "charge.success":
            logger.info("paystack_webhook_ignored", event_type=event.get("event"))
            return "ignored"

        data = event.get("data") or {}
        reference = data.get("reference")
        application_id = (data.get("metadata") or {}).get("application_id")
        if not reference or not application_id:
            logger.warning("paystack_webhook_incomplete", reference=reference)
            return "ignored"
        if self._repos.payments.reference_exists(reference):
            logger.info("paystack_webhook_duplicate", reference=reference)
            return "duplicate"

        application = self._repos.applications.get(application_id)
        if application is None or application.status not in FUNDABLE_STATUSES:
            logger.warning(
                "paystack_webhook_unfundable",
                reference=reference,
                application_id=application_id,
            )
            return "ignored"

        campaign = self._campaigns.get(application.campaign_id)
        business = require_found(self._repos.profiles.get(campaign.business_id), "User not found")
        if data.get("status", "success") != "success":
            return "ignored"
        amount = from_minor_units(data.get("amount", 0))
        self._record_funding(business, application, amount, reference)
        return "processed"

    def _record_funding(
        self,
        actor: Profile,
        application: Application,
        amount: Decimal,
        reference: str,
    ) -> dict[str, Any]:
        now = utc_now()
        paid_at = to_timestamp(now)
        with self._repos.db.transaction():
            # the Paystack round trip ran outside this transaction
            application = require_found(
                self._repos.applications.get(application.id), "Application not found"
            )
            if application.status not in FUNDABLE_STATUSES:
                raise ConflictError("Application is no longer awaiting payment")
            existing = self._repos.payments.get_by_application(application.id)
            payment_fields = {
                "amount": amount,
                "currency": self._currency,
                "status": PaymentStatus.IN_ESCROW,
                "paystack_reference": reference,
                "paid_at": paid_at,
            }
            if existing is not None:
                payment = self._repos.payments.update(existing.id, payment_fields)
            else:
                payment = self._repos.payments.insert(
                    {
                        **payment_fields,
                        "id": new_id(),
                        "application_id": application.id,
                        "created_at": paid_at,
                        "updated_at": paid_at,
                    }
                )

            if self._repos.escrows.get_held(application.id) is not None:
                raise ConflictError("Escrow already funded for this application")
            escrow = self._repos.escrows.insert(
                {
                    "id": new_id(),
                    "application_id": application.id,
                    "payment_id": payment.id,
                    "amount": amount,
                    "currency": self._currency,
                    "status": EscrowStatus.HELD,
                    "auto_release_date": to_timestamp(
                        now + timedelta(days=self._escrow_hold_days)
                    ),
                    "created_at": paid_at,
                    "updated_at": paid_at,
                }
            )
            self._audit.log_money_event(
                EventType.ESCROW_FUNDED,
                actor.id,
                "escrow",
                escrow.id,
                amount,
                self._currency,
                {"application_id": application.id, "reference": reference},
            )

            if application.status == ApplicationStatus.PENDING:
                self._applications.approve(application, actor)

            campaign = self._campaigns.get(application.campaign_id)
            self._notifier.payment_received(
                application.influencer_id,
                amount,
                self._currency,
                campaign.title,
                payment.id,
                in_escrow=True,
            )

        ESCROWS_FUNDED.inc()
        logger.info(
            "escrow_funded",
            application_id=application.id,
            escrow_id=escrow.id,
            amount=str(amount),
        )
        return {"payment": payment, "escrow": escrow}

    # ------------------------------------------------------------------
    # Release / refund
    # ------------------------------------------------------------------

    def process_escrow_action(
        self,
        actor: Profile,
        application_id: str,
        action: str,
        reason: str | None = None,
    ) -> EscrowAccount:
        """Release or refund the held escrow for *application_id*.

        Raises:
            NotFoundError: If there is no held escrow or no application.
            PermissionDeniedError: If the caller does not own the campaign.
            ValidationFailedError: On an unknown action.
            InvalidTransitionError: If the application cannot take the event.
        """
        with self._repos.db.transaction():
            escrow = self._repos.escrows.get_held(application_id)
            if escrow is None:
                raise NotFoundError("Escrow account not found or already processed")
            application = require_found(
                self._repos.applications.get(application_id), "Application not found"
            )
            campaign = self._campaigns.get(application.campaign_id)

            if action == EscrowAction.RELEASE:
                if actor.id != campaign.business_id:
                    raise PermissionDeniedError("Only campaign owner can release escrow")
                released = self.release_held_escrow(application, escrow, actor.id)
                ESCROWS_RELEASED.labels(trigger="manual").inc()
                return released
            if action == EscrowAction.REFUND:
                if actor.id != campaign.business_id:
                    raise PermissionDeniedError("Only campaign owner can request refund")
                return self._refund(application, escrow, actor.id, reason)
        raise ValidationFailedError("Invalid action")

    def release_held_escrow(
        self,
        application: Application,
        escrow: EscrowAccount,
        actor_id: str,
    ) -> EscrowAccount:
        """Release *escrow* to the influencer and credit their balance.

        A submitted application is completed via ``release_funds``; an
        already-completed one is left as is.  Must be called inside a
        transaction.
        """
        if application.status != ApplicationStatus.COMPLETED:
            self._applications.transition(application, ApplicationEvent.RELEASE_FUNDS, actor_id)

        now = now_timestamp()
        released = self._repos.escrows.update(
            escrow.id, {"status": EscrowStatus.RELEASED, "released_at": now}
        )
        self._repos.payments.update(escrow.payment_id, {"status": PaymentStatus.COMPLETED})
        self._repos.balances.credit(application.influencer_id, escrow.amount, escrow.currency)
        self._audit.log_money_event(
            EventType.ESCROW_RELEASED,
            actor_id,
            "escrow",
            escrow.id,
            escrow.amount,
            escrow.currency,
            {"application_id": application.id},
        )
        logger.info(
            "escrow_released",
            escrow_id=escrow.id,
            application_id=application.id,
            amount=str(escrow.amount),
        )
        return released

    def _refund(
        self,
        application: Application,
        escrow: EscrowAccount,
        actor_id: str,
        reason: str | None,
    ) -> EscrowAccount:
        self._applications.transition(application, ApplicationEvent.REFUND, actor_id)
        refunded = self._repos.escrows.update(escrow.id, {"status": EscrowStatus.REFUNDED})
        self._repos.payments.update(escrow.payment_id, {"status": PaymentStatus.REFUNDED})
        self._audit.log_money_event(
            EventType.ESCROW_REFUNDED,
            actor_id,
            "escrow",
            escrow.id,
            escrow.amount,
            escrow.currency,
            {"application_id": application.id, "reason": reason},
        )
        logger.info("escrow_refunded", escrow_id=escrow.id, application_id=application.id)
        return refunded

    # ------------------------------------------------------------------
    # Listing
    # ------------------------------------------------------------------

    def list_payments(
        self,
        actor: Profile,
        *,
        application_id: str | None = None,
        status: PaymentStatus | None = None,
        page: int = 1,
        limit: int = 10,
    ) -> dict[str, Any]:
        page, limit = page_window(page, limit)
        filters = self._scoped(actor).equal("application_id", application_id)
        filters.equal("status", status)
        items, total = self._repos.payments.page(filters, page, limit)
        return {"payments": items, "pagination": pagination(page, limit, total)}

    def list_escrows(
        self,
        actor: Profile,
        *,
        application_id: str | None = None,
        status: EscrowStatus | None = None,
    ) -> list[EscrowAccount]:
        filters = self._scoped(actor).equal("application_id", application_id)
        filters.equal("status", status)
        return self._repos.escrows.find(filters)

    @staticmethod
    def _scoped(actor: Profile) -> Filters:
        if actor.role == UserRole.BUSINESS:
            return Filters().equal("business_id", actor.id)
        if actor.role == UserRole.INFLUENCER:
            return Filters().equal("influencer_id", actor.id)
        return Filters()
