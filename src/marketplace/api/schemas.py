"""Request bodies accepted by the HTTP API.

Only shape and type are checked here; business rules live in the services.
Models dump with ``exclude_unset`` so partial updates only carry the fields
the client actually sent.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from marketplace.domain.types import AccountType, UserRole


class _Body(BaseModel):
    model_config = ConfigDict(extra="ignore")

    def fields(self) -> dict[str, Any]:
        return self.model_dump(exclude_unset=True)


class RegisterUser(_Body):
    email: str = Field(min_length=3, pattern=r"^[^@\s]+@[^@\s]+$")
    role: UserRole
    display_name: str = Field(min_length=1)
    company_name: str | None = None
    instagram_handle: str | None = None
    tiktok_handle: str | None = None
    youtube_handle: str | None = None
    follower_count: int | None = Field(default=None, ge=0)


class UpdateProfile(_Body):
    display_name: str | None = Field(default=None, min_length=1)
    company_name: str | None = None
    instagram_handle: str | None = None
    tiktok_handle: str | None = None
    youtube_handle: str | None = None
    follower_count: int | None = Field(default=None, ge=0)


class CreateCampaign(_Body):
    title: str
    description: str
    requirements: str | None = None
    budget_min: Decimal | None = None
    budget_max: Decimal | None = None
    deliverables: list[str] = []
    platforms: list[str] = []
    target_audience: str | None = None
    start_date: str | None = None
    end_date: str | None = None
    application_deadline: str | None = None
    required_influencers: int = Field(default=1, ge=1)


class UpdateCampaign(_Body):
    title: str | None = None
    description: str | None = None
    requirements: str | None = None
    budget_min: Decimal | None = None
    budget_max: Decimal | None = None
    deliverables: list[str] | None = None
    platforms: list[str] | None = None
    target_audience: str | None = None
    start_date: str | None = None
    end_date: str | None = None
    application_deadline: str | None = None
    required_influencers: int | None = Field(default=None, ge=1)
    status: str | None = None


class ApplicationProposal(_Body):
    proposal: str | None = None
    proposed_rate: Decimal | None = Field(default=None, ge=0)
    estimated_reach: int | None = Field(default=None, ge=0)
    portfolio_links: list[str] = []


class CreateApplication(ApplicationProposal):
    campaign_id: str


class UpdateApplication(_Body):
    proposal: str | None = None
    proposed_rate: Decimal | None = Field(default=None, ge=0)
    estimated_reach: int | None = Field(default=None, ge=0)
    portfolio_links: list[str] | None = None
    status: str | None = None
    review_notes: str | None = None


class CreatePayment(_Body):
    application_id: str
    amount: Decimal = Field(gt=0)
    total_amount: Decimal | None = Field(default=None, gt=0)
    paystack_reference: str = Field(min_length=1)


class EscrowActionRequest(_Body):
    action: str
    application_id: str
    reason: str | None = None


class CreateSubmission(_Body):
    application_id: str
    title: str | None = None
    description: str | None = None
    notes: str | None = None
    images: list[str] = []
    videos: list[str] = []
    links: list[str] = []
    documents: list[str] = []


class ReviewSubmission(_Body):
    status: str
    notes: str | None = None


class AdjustBalance(_Body):
    available_balance: Decimal | None = None
    pending_balance: Decimal | None = None
    total_earned: Decimal | None = None


class CreatePayout(_Body):
    amount: Decimal
    payment_method: str = "bank_transfer"


class UpdatePayout(_Body):
    status: str
    paystack_transfer_id: str | None = None


class MarkNotifications(_Body):
    notification_id: str | None = None
    mark_all_as_read: bool = False


class CreateNotification(_Body):
    user_id: str
    title: str = Field(min_length=1)
    message: str = Field(min_length=1)
    data: dict[str, Any] = {}


class CreateSetting(_Body):
    setting_key: str
    setting_value: str
    description: str | None = None


class UpdateSetting(_Body):
    setting_key: str
    setting_value: str | None = None
    description: str | None = None


class CreateBankDetails(_Body):
    bank_name: str
    account_holder_name: str
    account_number: str
    routing_number: str | None = None
    swift_code: str | None = None
    currency: str | None = None
    account_type: AccountType = AccountType.CHECKING
    is_primary: bool = False


class UpdateBankDetails(_Body):
    bank_name: str | None = None
    account_holder_name: str | None = None
    account_number: str | None = None
    routing_number: str | None = None
    swift_code: str | None = None
    currency: str | None = None
    account_type: AccountType | None = None
    is_primary: bool | None = None
    is_active: bool | None = None
    is_verified: bool | None = None
    verification_method: str | None = None


class CreateReview(_Body):
    campaign_id: str
    influencer_id: str
    application_id: str
    overall_rating: int
    title: str | None = None
    review_text: str | None = None
    communication_rating: int | None = None
    content_quality_rating: int | None = None
    professionalism_rating: int | None = None
    timeliness_rating: int | None = None
    would_work_again: bool = False
    is_public: bool = True


class UpdateReview(_Body):
    overall_rating: int | None = None
    title: str | None = None
    review_text: str | None = None
    communication_rating: int | None = None
    content_quality_rating: int | None = None
    professionalism_rating: int | None = None
    timeliness_rating: int | None = None
    would_work_again: bool | None = None
    is_public: bool | None = None
