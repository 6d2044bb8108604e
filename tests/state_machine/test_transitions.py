"""Tests for the application, payout and campaign transition maps."""

import pytest

from marketplace.domain.types import ApplicationStatus, CampaignStatus, PayoutStatus
from marketplace.state_machine.transitions import (
    APPLICATION_TERMINAL_STATES,
    APPLICATION_TRANSITIONS,
    CAMPAIGN_TRANSITIONS,
    PAYOUT_TERMINAL_STATES,
    PAYOUT_TRANSITIONS,
    ApplicationEvent,
    can_change_campaign_status,
)


class TestApplicationTransitionMap:
    def test_has_twelve_transitions(self) -> None:
        assert len(APPLICATION_TRANSITIONS) == 12

    def test_terminal_states_have_no_outgoing_transitions(self) -> None:
        for state, _event in APPLICATION_TRANSITIONS:
            assert state not in APPLICATION_TERMINAL_STATES

    def test_every_event_is_used(self) -> None:
        used = {event for _, event in APPLICATION_TRANSITIONS}
        assert used == set(ApplicationEvent)

    def test_withdraw_only_from_pending(self) -> None:
        sources = {s for s, e in APPLICATION_TRANSITIONS if e == ApplicationEvent.WITHDRAW}
        assert sources == {ApplicationStatus.PENDING}

    def test_release_funds_only_from_submitted(self) -> None:
        sources = {s for s, e in APPLICATION_TRANSITIONS if e == ApplicationEvent.RELEASE_FUNDS}
        assert sources == {ApplicationStatus.SUBMITTED}


class TestPayoutTransitionMap:
    def test_terminal_states(self) -> None:
        assert PAYOUT_TERMINAL_STATES == {
            PayoutStatus.COMPLETED,
            PayoutStatus.FAILED,
            PayoutStatus.CANCELLED,
        }

    def test_processing_cannot_be_cancelled(self) -> None:
        assert (PayoutStatus.PROCESSING, "cancelled") not in PAYOUT_TRANSITIONS


class TestCampaignStatusChanges:
    @pytest.mark.parametrize(
        ("current", "target"),
        [
            (CampaignStatus.DRAFT, CampaignStatus.ACTIVE),
            (CampaignStatus.DRAFT, CampaignStatus.CANCELLED),
            (CampaignStatus.ACTIVE, CampaignStatus.PAUSED),
            (CampaignStatus.PAUSED, CampaignStatus.ACTIVE),
            (CampaignStatus.IN_PROGRESS, CampaignStatus.COMPLETED),
        ],
    )
    def test_allowed(self, current: CampaignStatus, target: CampaignStatus) -> None:
        assert can_change_campaign_status(current, target) is True

    @pytest.mark.parametrize(
        ("current", "target"),
        [
            (CampaignStatus.COMPLETED, CampaignStatus.ACTIVE),
            (CampaignStatus.CANCELLED, CampaignStatus.ACTIVE),
            (CampaignStatus.IN_PROGRESS, CampaignStatus.ACTIVE),
            (CampaignStatus.DRAFT, CampaignStatus.COMPLETED),
        ],
    )
    def test_refused(self, current: CampaignStatus, target: CampaignStatus) -> None:
        assert can_change_campaign_status(current, target) is False

    def test_every_status_has_an_entry(self) -> None:
        assert set(CAMPAIGN_TRANSITIONS) == set(CampaignStatus)
