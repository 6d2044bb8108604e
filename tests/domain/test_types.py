"""Tests for domain enumerations and error classes."""

import pytest

from marketplace.domain.errors import (
    AuthenticationError,
    ConflictError,
    InsufficientBalanceError,
    InvalidTransitionError,
    MarketplaceError,
    NotFoundError,
    PaymentVerificationError,
    PermissionDeniedError,
    ValidationFailedError,
)
from marketplace.domain.types import (
    ENGAGED_APPLICATION_STATUSES,
    ApplicationStatus,
    CampaignStatus,
    EscrowStatus,
    UserRole,
)


class TestEnums:
    def test_string_values(self):
        assert str(UserRole.BUSINESS) == "business"
        assert CampaignStatus.IN_PROGRESS == "in-progress"
        assert f"{EscrowStatus.RELEASED}" == "released"

    def test_lookup_by_value(self):
        assert ApplicationStatus("revision_requested") is ApplicationStatus.REVISION_REQUESTED

    def test_unknown_value_rejected(self):
        with pytest.raises(ValueError):
            UserRole("superuser")

    def test_engaged_statuses(self):
        assert ENGAGED_APPLICATION_STATUSES == {
            ApplicationStatus.APPROVED,
            ApplicationStatus.SUBMITTED,
            ApplicationStatus.REVISION_REQUESTED,
        }


class TestErrors:
    @pytest.mark.parametrize(
        "error_cls, status_code",
        [
            (AuthenticationError, 401),
            (PermissionDeniedError, 403),
            (NotFoundError, 404),
            (ValidationFailedError, 400),
            (ConflictError, 409),
            (PaymentVerificationError, 400),
        ],
    )
    def test_status_codes(self, error_cls, status_code):
        error = error_cls("boom")
        assert error.status_code == status_code
        assert error.message == "boom"
        assert isinstance(error, MarketplaceError)

    def test_insufficient_balance_message(self):
        error = InsufficientBalanceError()
        assert error.message == "Insufficient balance"
        assert error.status_code == 400

    def test_invalid_transition_keeps_context(self):
        error = InvalidTransitionError(ApplicationStatus.WITHDRAWN, "approve")

        assert error.current_state == ApplicationStatus.WITHDRAWN
        assert error.event == "approve"
        assert str(error) == "Cannot apply event 'approve' in state 'withdrawn'"
