"""Domain enumerations for the influencer marketplace."""

from enum import StrEnum


class UserRole(StrEnum):
    """Roles a marketplace profile can hold."""

    BUSINESS = "business"
    INFLUENCER = "influencer"
    ADMIN = "admin"


class CampaignStatus(StrEnum):
    """Lifecycle states of a campaign brief."""

    DRAFT = "draft"
    ACTIVE = "active"
    PAUSED = "paused"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class ApplicationStatus(StrEnum):
    """States of an influencer's application against a campaign."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    WITHDRAWN = "withdrawn"
    SUBMITTED = "submitted"
    COMPLETED = "completed"
    REVISION_REQUESTED = "revision_requested"


class PaymentStatus(StrEnum):
    """States of a payment row tied to an application."""

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"
    REFUNDED = "refunded"
    IN_ESCROW = "in_escrow"


class EscrowStatus(StrEnum):
    """States of an escrow account row."""

    HELD = "held"
    RELEASED = "released"
    REFUNDED = "refunded"


class SubmissionStatus(StrEnum):
    """Review states of submitted work."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    REVISION_REQUESTED = "revision_requested"


class PayoutStatus(StrEnum):
    """States of an influencer payout request."""

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


class NotificationType(StrEnum):
    """Categories of in-app notifications."""

    CAMPAIGN = "campaign"
    APPLICATION = "application"
    PAYMENT = "payment"
    MESSAGE = "message"
    SYSTEM = "system"
    SUBMISSION_REVIEW = "submission_review"


class AccountType(StrEnum):
    """Bank account types accepted for payouts."""

    CHECKING = "checking"
    SAVINGS = "savings"
    BUSINESS = "business"


class EscrowAction(StrEnum):
    """Actions a campaign owner can take on a held escrow."""

    RELEASE = "release"
    REFUND = "refund"


# Application states in which the influencer is actively engaged on the campaign.
ENGAGED_APPLICATION_STATUSES: frozenset[ApplicationStatus] = frozenset(
    {
        ApplicationStatus.APPROVED,
        ApplicationStatus.SUBMITTED,
        ApplicationStatus.REVISION_REQUESTED,
    }
)
