"""Transition maps defining all valid (state, event) -> state mappings."""

from enum import StrEnum

from marketplace.domain.types import ApplicationStatus, CampaignStatus, PayoutStatus


class ApplicationEvent(StrEnum):
    """Events that can move an application between statuses."""

    APPROVE = "approve"
    REJECT = "reject"
    WITHDRAW = "withdraw"
    SUBMIT_WORK = "submit_work"
    APPROVE_SUBMISSION = "approve_submission"
    REJECT_SUBMISSION = "reject_submission"
    REQUEST_REVISION = "request_revision"
    RELEASE_FUNDS = "release_funds"
    REFUND = "refund"


# All valid (current_state, event_string) -> next_state mappings.
# Any pair not in this dict is an invalid transition.
APPLICATION_TRANSITIONS: dict[tuple[ApplicationStatus, str], ApplicationStatus] = {
    # From PENDING
    (ApplicationStatus.PENDING, ApplicationEvent.APPROVE): ApplicationStatus.APPROVED,
    (ApplicationStatus.PENDING, ApplicationEvent.REJECT): ApplicationStatus.REJECTED,
    (ApplicationStatus.PENDING, ApplicationEvent.WITHDRAW): ApplicationStatus.WITHDRAWN,
    # From APPROVED
    (ApplicationStatus.APPROVED, ApplicationEvent.SUBMIT_WORK): ApplicationStatus.SUBMITTED,
    (ApplicationStatus.APPROVED, ApplicationEvent.REFUND): ApplicationStatus.REJECTED,
    # From SUBMITTED
    (ApplicationStatus.SUBMITTED, ApplicationEvent.APPROVE_SUBMISSION): (
        ApplicationStatus.COMPLETED
    ),
    (ApplicationStatus.SUBMITTED, ApplicationEvent.REJECT_SUBMISSION): (
        ApplicationStatus.REJECTED
    ),
    (ApplicationStatus.SUBMITTED, ApplicationEvent.REQUEST_REVISION): (
        ApplicationStatus.REVISION_REQUESTED
    ),
    (ApplicationStatus.SUBMITTED, ApplicationEvent.RELEASE_FUNDS): ApplicationStatus.COMPLETED,
    (ApplicationStatus.SUBMITTED, ApplicationEvent.REFUND): ApplicationStatus.REJECTED,
    # From REVISION_REQUESTED
    (ApplicationStatus.REVISION_REQUESTED, ApplicationEvent.SUBMIT_WORK): (
        ApplicationStatus.SUBMITTED
    ),
    (ApplicationStatus.REVISION_REQUESTED, ApplicationEvent.REFUND): ApplicationStatus.REJECTED,
}

# States that reject all events -- no outgoing transitions allowed.
APPLICATION_TERMINAL_STATES: frozenset[ApplicationStatus] = frozenset(
    {
        ApplicationStatus.REJECTED,
        ApplicationStatus.WITHDRAWN,
        ApplicationStatus.COMPLETED,
    }
)


class PayoutEvent(StrEnum):
    """Events an admin applies to a payout request (named after the target status)."""

    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


PAYOUT_TRANSITIONS: dict[tuple[PayoutStatus, str], PayoutStatus] = {
    (PayoutStatus.PENDING, PayoutEvent.PROCESSING): PayoutStatus.PROCESSING,
    (PayoutStatus.PENDING, PayoutEvent.COMPLETED): PayoutStatus.COMPLETED,
    (PayoutStatus.PENDING, PayoutEvent.FAILED): PayoutStatus.FAILED,
    (PayoutStatus.PENDING, PayoutEvent.CANCELLED): PayoutStatus.CANCELLED,
    (PayoutStatus.PROCESSING, PayoutEvent.COMPLETED): PayoutStatus.COMPLETED,
    (PayoutStatus.PROCESSING, PayoutEvent.FAILED): PayoutStatus.FAILED,
}

PAYOUT_TERMINAL_STATES: frozenset[PayoutStatus] = frozenset(
    {PayoutStatus.COMPLETED, PayoutStatus.FAILED, PayoutStatus.CANCELLED}
)


# Campaign status changes a business owner may make directly.
CAMPAIGN_TRANSITIONS: dict[CampaignStatus, frozenset[CampaignStatus]] = {
    CampaignStatus.DRAFT: frozenset({CampaignStatus.ACTIVE, CampaignStatus.CANCELLED}),
    CampaignStatus.ACTIVE: frozenset(
        {
            CampaignStatus.PAUSED,
            CampaignStatus.IN_PROGRESS,
            CampaignStatus.COMPLETED,
            CampaignStatus.CANCELLED,
        }
    ),
    CampaignStatus.PAUSED: frozenset({CampaignStatus.ACTIVE, CampaignStatus.CANCELLED}),
    CampaignStatus.IN_PROGRESS: frozenset({CampaignStatus.COMPLETED, CampaignStatus.CANCELLED}),
    CampaignStatus.COMPLETED: frozenset(),
    CampaignStatus.CANCELLED: frozenset(),
}


def can_change_campaign_status(current: CampaignStatus, target: CampaignStatus) -> bool:
    """Return True if a campaign may move from *current* to *target*."""
    return target in CAMPAIGN_TRANSITIONS.get(current, frozenset())
