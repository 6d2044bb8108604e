"""Tests for escrow funding, release, refund and the Paystack webhook handler."""

from __future__ import annotations

from decimal import Decimal
from typing import Any

import pytest

from marketplace.audit.store import query_audit_trail
from marketplace.domain.errors import (
    ConflictError,
    InvalidTransitionError,
    NotFoundError,
    PaymentVerificationError,
    PermissionDeniedError,
    ValidationFailedError,
)
from marketplace.domain.models import Application, Profile
from marketplace.domain.types import (
    ApplicationStatus,
    EscrowStatus,
    PaymentStatus,
    UserRole,
)
from marketplace.paystack import PaystackTransaction
from marketplace.store.base import Filters


def _charge_event(application_id: str, reference: str = "ref_hook", kobo: int = 800000) -> dict:
    return {
        "event": "charge.success",
        "data": {
            "reference": reference,
            "status": "success",
            "amount": kobo,
            "metadata": {"application_id": application_id},
        },
    }


class TestFundEscrow:
    def test_funding_approves_and_holds(
        self,
        services: dict[str, Any],
        application: Application,
        influencer: Profile,
        fund: Any,
        paystack: Any,
        db: Any,
    ) -> None:
        result = fund(application.id)

        payment, escrow = result["payment"], result["escrow"]
        assert payment.status == PaymentStatus.IN_ESCROW
        assert payment.paystack_reference == "ref_1"
        assert payment.paid_at is not None
        assert escrow.status == EscrowStatus.HELD
        assert escrow.amount == Decimal("8000")
        assert escrow.payment_id == payment.id
        assert escrow.auto_release_date > escrow.created_at
        paystack.verify_transaction.assert_called_once_with("ref_1")

        refreshed = services["repos"].applications.get(application.id)
        assert refreshed.status == ApplicationStatus.APPROVED

        titles = [
            n.title
            for n in services["repos"].notifications.find(
                Filters().equal("user_id", influencer.id)
            )
        ]
        assert "Payment Received!" in titles
        assert query_audit_trail(db.conn, event_type="escrow_funded")[0]["entity_id"] == escrow.id

    def test_single_payment_row_after_approval(
        self,
        services: dict[str, Any],
        application: Application,
        business: Profile,
        fund: Any,
    ) -> None:
        services["applications"].update(business, application.id, {"status": "approved"})
        fund(application.id)

        payments = services["repos"].payments.find(
            Filters().equal("application_id", application.id)
        )
        assert len(payments) == 1
        assert payments[0].status == PaymentStatus.IN_ESCROW

    def test_total_amount_compared_against_gateway(
        self,
        services: dict[str, Any],
        application: Application,
        business: Profile,
        verified_payment: Any,
    ) -> None:
        verified_payment("8120")
        result = services["payments"].fund_escrow(
            business, application.id, Decimal("8000"), "ref_1", total_amount=Decimal("8120")
        )
        assert result["escrow"].amount == Decimal("8000")

    def test_amount_mismatch(
        self,
        services: dict[str, Any],
        application: Application,
        business: Profile,
        verified_payment: Any,
    ) -> None:
        verified_payment("7000")
        with pytest.raises(PaymentVerificationError, match="amount mismatch"):
            services["payments"].fund_escrow(business, application.id, Decimal("8000"), "ref_1")
        assert services["repos"].escrows.get_held(application.id) is None

    def test_unsuccessful_payment(
        self,
        services: dict[str, Any],
        application: Application,
        business: Profile,
        verified_payment: Any,
    ) -> None:
        verified_payment("8000", status="failed")
        with pytest.raises(PaymentVerificationError, match="not successful"):
            services["payments"].fund_escrow(business, application.id, Decimal("8000"), "ref_1")

    def test_duplicate_reference(self, application: Application, fund: Any) -> None:
        fund(application.id)
        with pytest.raises(ConflictError, match="reference already recorded"):
            fund(application.id)

    def test_second_escrow_rejected(
        self, services: dict[str, Any], application: Application, fund: Any
    ) -> None:
        fund(application.id)
        with pytest.raises(ConflictError, match="Escrow already funded"):
            fund(application.id, reference="ref_2")
        assert not services["repos"].payments.reference_exists("ref_2")

    def test_only_campaign_owner_pays(
        self, services: dict[str, Any], application: Application, make_user: Any
    ) -> None:
        other, _ = make_user(UserRole.BUSINESS)
        with pytest.raises(PermissionDeniedError):
            services["payments"].fund_escrow(other, application.id, Decimal("8000"), "ref_1")

    def test_withdrawn_application_cannot_be_funded(
        self,
        services: dict[str, Any],
        application: Application,
        influencer: Profile,
        fund: Any,
    ) -> None:
        services["applications"].update(influencer, application.id, {"status": "withdrawn"})
        with pytest.raises(ValidationFailedError, match="not awaiting payment"):
            fund(application.id)

    def test_withdrawal_during_verification_blocks_funding(
        self,
        services: dict[str, Any],
        application: Application,
        influencer: Profile,
        business: Profile,
        paystack: Any,
    ) -> None:
        def withdraw_then_confirm(reference: str) -> PaystackTransaction:
            services["applications"].update(influencer, application.id, {"status": "withdrawn"})
            return PaystackTransaction(
                reference=reference, status="success", amount=Decimal("8000")
            )

        paystack.verify_transaction.side_effect = withdraw_then_confirm

        with pytest.raises(ConflictError, match="no longer awaiting payment"):
            services["payments"].fund_escrow(business, application.id, Decimal("8000"), "ref_1")

        assert services["repos"].applications.get(application.id).status == (
            ApplicationStatus.WITHDRAWN
        )
        assert services["repos"].escrows.get_held(application.id) is None
        assert not services["repos"].payments.reference_exists("ref_1")

    def test_unknown_application(self, services: dict[str, Any], business: Profile) -> None:
        with pytest.raises(NotFoundError):
            services["payments"].fund_escrow(business, "missing", Decimal("1"), "ref_1")


class TestEscrowActions:
    def _submit(self, services: dict[str, Any], influencer: Profile, application_id: str) -> None:
        services["submissions"].submit(influencer, application_id, {"title": "Reel"})

    def test_release_credits_influencer(
        self,
        services: dict[str, Any],
        application: Application,
        business: Profile,
        influencer: Profile,
        fund: Any,
    ) -> None:
        fund(application.id)
        self._submit(services, influencer, application.id)

        escrow = services["payments"].process_escrow_action(business, application.id, "release")

        assert escrow.status == EscrowStatus.RELEASED
        assert escrow.released_at is not None
        balance = services["repos"].balances.get(influencer.id)
        assert balance.available_balance == Decimal("8000")
        assert balance.total_earned == Decimal("8000")
        assert services["repos"].applications.get(application.id).status == (
            ApplicationStatus.COMPLETED
        )
        assert services["repos"].payments.get_by_application(application.id).status == (
            PaymentStatus.COMPLETED
        )

    def test_release_requires_submitted_work(
        self,
        services: dict[str, Any],
        application: Application,
        business: Profile,
        fund: Any,
    ) -> None:
        fund(application.id)
        with pytest.raises(InvalidTransitionError):
            services["payments"].process_escrow_action(business, application.id, "release")
        assert services["repos"].escrows.get_held(application.id) is not None

    def test_refund(
        self,
        services: dict[str, Any],
        application: Application,
        business: Profile,
        fund: Any,
        db: Any,
    ) -> None:
        fund(application.id)

        escrow = services["payments"].process_escrow_action(
            business, application.id, "refund", "Brief cancelled"
        )

        assert escrow.status == EscrowStatus.REFUNDED
        assert services["repos"].applications.get(application.id).status == (
            ApplicationStatus.REJECTED
        )
        assert services["repos"].payments.get_by_application(application.id).status == (
            PaymentStatus.REFUNDED
        )
        entry = query_audit_trail(db.conn, event_type="escrow_refunded")[0]
        assert entry["metadata"]["reason"] == "Brief cancelled"

    def test_influencer_cannot_release(
        self,
        services: dict[str, Any],
        application: Application,
        influencer: Profile,
        fund: Any,
    ) -> None:
        fund(application.id)
        with pytest.raises(PermissionDeniedError):
            services["payments"].process_escrow_action(influencer, application.id, "release")

    def test_unknown_action(
        self,
        services: dict[str, Any],
        application: Application,
        business: Profile,
        fund: Any,
    ) -> None:
        fund(application.id)
        with pytest.raises(ValidationFailedError, match="Invalid action"):
            services["payments"].process_escrow_action(business, application.id, "freeze")

    def test_no_held_escrow(
        self, services: dict[str, Any], application: Application, business: Profile
    ) -> None:
        with pytest.raises(NotFoundError, match="already processed"):
            services["payments"].process_escrow_action(business, application.id, "refund")


class TestWebhook:
    def test_charge_success_funds_escrow(
        self, services: dict[str, Any], application: Application
    ) -> None:
        outcome = services["payments"].handle_webhook_event(_charge_event(application.id))

        assert outcome == "processed"
        escrow = services["repos"].escrows.get_held(application.id)
        assert escrow.amount == Decimal("8000")
        assert services["repos"].applications.get(application.id).status == (
            ApplicationStatus.APPROVED
        )

    def test_redelivery_is_duplicate(
        self, services: dict[str, Any], application: Application
    ) -> None:
        event = _charge_event(application.id)
        services["payments"].handle_webhook_event(event)
        assert services["payments"].handle_webhook_event(event) == "duplicate"

    @pytest.mark.parametrize(
        "event",
        [
            {"event": "transfer.success", "data": {}},
            {"event": "charge.success", "data": {"reference": "ref_x"}},
            {
                "event": "charge.success",
                "data": {"reference": "ref_x", "metadata": {"application_id": "missing"}},
            },
        ],
    )
    def test_ignored_events(self, services: dict[str, Any], event: dict) -> None:
        assert services["payments"].handle_webhook_event(event) == "ignored"


class TestListing:
    def test_payments_scoped_by_role(
        self,
        services: dict[str, Any],
        application: Application,
        business: Profile,
        influencer: Profile,
        admin: Profile,
        make_user: Any,
        fund: Any,
    ) -> None:
        fund(application.id)
        stranger, _ = make_user(UserRole.BUSINESS)

        assert services["payments"].list_payments(business)["pagination"]["total"] == 1
        assert services["payments"].list_payments(influencer)["pagination"]["total"] == 1
        assert services["payments"].list_payments(admin)["pagination"]["total"] == 1
        assert services["payments"].list_payments(stranger)["payments"] == []

    def test_escrows_filtered_by_status(
        self,
        services: dict[str, Any],
        application: Application,
        business: Profile,
        fund: Any,
    ) -> None:
        fund(application.id)
        held = services["payments"].list_escrows(business, status=EscrowStatus.HELD)
        assert len(held) == 1
        assert services["payments"].list_escrows(business, status=EscrowStatus.RELEASED) == []
