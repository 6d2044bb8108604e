"""Domain types, models, and errors for the influencer marketplace."""

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
from marketplace.domain.models import (
    Application,
    BankDetails,
    Campaign,
    EscrowAccount,
    InfluencerBalance,
    InfluencerReview,
    Notification,
    Payment,
    PayoutRequest,
    PlatformSetting,
    Profile,
    Submission,
)
from marketplace.domain.types import (
    AccountType,
    ApplicationStatus,
    CampaignStatus,
    EscrowAction,
    EscrowStatus,
    NotificationType,
    PaymentStatus,
    PayoutStatus,
    SubmissionStatus,
    UserRole,
)

__all__ = [
    "AccountType",
    "Application",
    "ApplicationStatus",
    "AuthenticationError",
    "BankDetails",
    "Campaign",
    "CampaignStatus",
    "ConflictError",
    "EscrowAccount",
    "EscrowAction",
    "EscrowStatus",
    "InfluencerBalance",
    "InfluencerReview",
    "InsufficientBalanceError",
    "InvalidTransitionError",
    "MarketplaceError",
    "NotFoundError",
    "Notification",
    "NotificationType",
    "Payment",
    "PaymentStatus",
    "PaymentVerificationError",
    "PayoutRequest",
    "PayoutStatus",
    "PermissionDeniedError",
    "PlatformSetting",
    "Profile",
    "Submission",
    "SubmissionStatus",
    "UserRole",
    "ValidationFailedError",
]
