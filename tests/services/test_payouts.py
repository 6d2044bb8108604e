"""Tests for influencer balances, payout requests and platform fees."""

from __future__ import annotations

from decimal import Decimal
from typing import Any

import pytest

from marketplace.audit.store import query_audit_trail
from marketplace.domain.errors import (
    InsufficientBalanceError,
    InvalidTransitionError,
    NotFoundError,
    PermissionDeniedError,
    ValidationFailedError,
)
from marketplace.domain.models import Profile
from marketplace.domain.types import PayoutStatus, UserRole
from marketplace.services.payouts import calculate_platform_fee


@pytest.fixture
def earning(services: dict[str, Any], db: Any, influencer: Profile) -> Profile:
    """The influencer with NGN 5000 released to their balance."""
    with db.transaction():
        services["repos"].balances.credit(influencer.id, Decimal("5000"), "NGN")
    return influencer


class TestPlatformFee:
    @pytest.mark.parametrize(
        ("amount", "percentage", "fee", "net"),
        [
            ("1000", "10", "100.00", "900.00"),
            ("333.33", "10", "33.33", "300.00"),
            ("0.05", "10", "0.01", "0.04"),
            ("250", "0", "0.00", "250.00"),
            ("99.99", "2.5", "2.50", "97.49"),
        ],
    )
    def test_fee_rounds_half_up(self, amount: str, percentage: str, fee: str, net: str) -> None:
        assert calculate_platform_fee(Decimal(amount), Decimal(percentage)) == (
            Decimal(fee),
            Decimal(net),
        )

    def test_seeded_percentage(self, services: dict[str, Any]) -> None:
        assert services["payouts"].fee_percentage() == Decimal("10")

    @pytest.mark.parametrize("raw", ["abc", "-1", "150", "NaN"])
    def test_unusable_setting_falls_back(
        self, services: dict[str, Any], admin: Profile, raw: str
    ) -> None:
        services["platform_settings"].update(
            admin, "platform_fee_percentage", {"setting_value": raw}
        )
        assert services["payouts"].fee_percentage() == Decimal("10")

    def test_updated_setting_is_used(self, services: dict[str, Any], admin: Profile) -> None:
        services["platform_settings"].update(
            admin, "platform_fee_percentage", {"setting_value": "15"}
        )
        assert services["payouts"].fee_percentage() == Decimal("15")


class TestRequestPayout:
    def test_reserves_amount_and_alerts(
        self, services: dict[str, Any], earning: Profile, slack: Any, db: Any
    ) -> None:
        payout = services["payouts"].request_payout(earning, Decimal("1000"), "bank_transfer")

        assert payout.status == PayoutStatus.PENDING
        assert payout.platform_fee == Decimal("100.00")
        assert payout.net_amount == Decimal("900.00")
        balance = services["payouts"].get_balance(earning)
        assert balance.available_balance == Decimal("4000")
        assert balance.pending_balance == Decimal("1000")
        assert balance.total_earned == Decimal("5000")

        slack.post_alert.assert_called_once()
        assert "Ada Creator" in slack.post_alert.call_args.kwargs["fallback_text"]
        entry = query_audit_trail(db.conn, event_type="payout_requested")[0]
        assert entry["entity_id"] == payout.id

    def test_alert_failure_does_not_fail_request(
        self, services: dict[str, Any], earning: Profile, slack: Any
    ) -> None:
        slack.post_alert.side_effect = RuntimeError("slack down")
        payout = services["payouts"].request_payout(earning, Decimal("10"), "bank_transfer")
        assert services["repos"].payouts.get(payout.id) is not None

    def test_whole_balance_allowed(self, services: dict[str, Any], earning: Profile) -> None:
        services["payouts"].request_payout(earning, Decimal("5000"), "bank_transfer")
        assert services["payouts"].get_balance(earning).available_balance == Decimal("0")

    def test_insufficient_balance(self, services: dict[str, Any], earning: Profile) -> None:
        with pytest.raises(InsufficientBalanceError):
            services["payouts"].request_payout(earning, Decimal("5000.01"), "bank_transfer")
        assert services["repos"].payouts.count() == 0

    def test_no_balance_row(self, services: dict[str, Any], influencer: Profile) -> None:
        with pytest.raises(NotFoundError, match="No balance found"):
            services["payouts"].request_payout(influencer, Decimal("1"), "bank_transfer")

    @pytest.mark.parametrize("amount", ["0", "-5"])
    def test_amount_must_be_positive(
        self, services: dict[str, Any], earning: Profile, amount: str
    ) -> None:
        with pytest.raises(ValidationFailedError):
            services["payouts"].request_payout(earning, Decimal(amount), "bank_transfer")

    def test_business_cannot_request(self, services: dict[str, Any], business: Profile) -> None:
        with pytest.raises(PermissionDeniedError):
            services["payouts"].request_payout(business, Decimal("1"), "bank_transfer")


class TestProcessPayout:
    @pytest.fixture
    def payout(self, services: dict[str, Any], earning: Profile) -> Any:
        return services["payouts"].request_payout(earning, Decimal("1000"), "bank_transfer")

    def test_completed_clears_pending(
        self, services: dict[str, Any], payout: Any, admin: Profile, earning: Profile
    ) -> None:
        updated = services["payouts"].update_payout(admin, payout.id, "completed", "TRF_1")

        assert updated.status == PayoutStatus.COMPLETED
        assert updated.processed_at is not None
        assert updated.paystack_transfer_id == "TRF_1"
        balance = services["repos"].balances.get(earning.id)
        assert balance.pending_balance == Decimal("0")
        assert balance.available_balance == Decimal("4000")

    def test_failed_returns_funds(
        self, services: dict[str, Any], payout: Any, admin: Profile, earning: Profile
    ) -> None:
        services["payouts"].update_payout(admin, payout.id, "processing")
        services["payouts"].update_payout(admin, payout.id, "failed")

        balance = services["repos"].balances.get(earning.id)
        assert balance.available_balance == Decimal("5000")
        assert balance.pending_balance == Decimal("0")

    def test_terminal_payout_cannot_change(
        self, services: dict[str, Any], payout: Any, admin: Profile
    ) -> None:
        services["payouts"].update_payout(admin, payout.id, "cancelled")
        with pytest.raises(InvalidTransitionError):
            services["payouts"].update_payout(admin, payout.id, "completed")

    def test_influencer_notified(
        self, services: dict[str, Any], payout: Any, admin: Profile, earning: Profile
    ) -> None:
        services["payouts"].update_payout(admin, payout.id, "processing")
        inbox = services["notifications"].list(earning)["notifications"]
        assert inbox[0]["title"] == "Payout Update"
        assert inbox[0]["data"]["status"] == "processing"

    def test_admin_only(self, services: dict[str, Any], payout: Any, earning: Profile) -> None:
        with pytest.raises(PermissionDeniedError):
            services["payouts"].update_payout(earning, payout.id, "completed")

    def test_listing_scope(
        self,
        services: dict[str, Any],
        payout: Any,
        admin: Profile,
        business: Profile,
        make_user: Any,
    ) -> None:
        other, _ = make_user(UserRole.INFLUENCER)
        assert services["payouts"].list_payouts(admin)["pagination"]["total"] == 1
        assert services["payouts"].list_payouts(other)["payouts"] == []
        with pytest.raises(PermissionDeniedError):
            services["payouts"].list_payouts(business)


class TestAdjustBalance:
    def test_admin_overwrites_figures(
        self, services: dict[str, Any], admin: Profile, influencer: Profile, db: Any
    ) -> None:
        balance = services["payouts"].adjust_balance(
            admin, influencer.id, {"available_balance": Decimal("250")}
        )

        assert balance.available_balance == Decimal("250")
        entry = query_audit_trail(db.conn, event_type="balance_adjusted")[0]
        assert entry["metadata"]["available_balance"] == {"from": "0", "to": "250"}

    def test_negative_rejected(
        self, services: dict[str, Any], admin: Profile, influencer: Profile
    ) -> None:
        with pytest.raises(ValidationFailedError, match="negative"):
            services["payouts"].adjust_balance(
                admin, influencer.id, {"pending_balance": Decimal("-1")}
            )

    def test_business_has_no_balance(
        self, services: dict[str, Any], admin: Profile, business: Profile
    ) -> None:
        with pytest.raises(ValidationFailedError):
            services["payouts"].adjust_balance(
                admin, business.id, {"available_balance": Decimal("1")}
            )

    def test_non_admin_rejected(self, services: dict[str, Any], influencer: Profile) -> None:
        with pytest.raises(PermissionDeniedError):
            services["payouts"].adjust_balance(
                influencer, influencer.id, {"available_balance": Decimal("1")}
            )
