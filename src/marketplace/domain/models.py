"""Pydantic v2 models for rows persisted by the marketplace.

Monetary fields use Decimal for exact arithmetic -- float inputs are rejected.
List-valued columns are stored as JSON text and decoded on the way in.
"""

from __future__ import annotations

import json
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator

from marketplace.domain.types import (
    AccountType,
    ApplicationStatus,
    CampaignStatus,
    EscrowStatus,
    NotificationType,
    PaymentStatus,
    PayoutStatus,
    SubmissionStatus,
    UserRole,
)


def _reject_float(v: object) -> object:
    if isinstance(v, float):
        raise ValueError("Use Decimal or string, not float, for monetary values")
    return v


def _decode_json(v: object) -> object:
    if isinstance(v, str):
        return json.loads(v)
    return v


class Profile(BaseModel):
    """A registered marketplace user."""

    model_config = ConfigDict(frozen=True)

    id: str
    email: str
    role: UserRole
    display_name: str
    company_name: str | None = None
    instagram_handle: str | None = None
    tiktok_handle: str | None = None
    youtube_handle: str | None = None
    follower_count: int | None = None
    created_at: str
    updated_at: str


class Campaign(BaseModel):
    """A business-authored marketing brief."""

    model_config = ConfigDict(frozen=True)

    id: str
    business_id: str
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
    required_influencers: int = 1
    status: CampaignStatus
    application_count: int = 0
    created_at: str
    updated_at: str

    @field_validator("budget_min", "budget_max", mode="before")
    @classmethod
    def reject_float_inputs(cls, v: object) -> object:
        """Reject float inputs for monetary fields to prevent precision errors."""
        return _reject_float(v)

    @field_validator("deliverables", "platforms", mode="before")
    @classmethod
    def decode_json_lists(cls, v: object) -> object:
        """Decode list columns stored as JSON text."""
        return _decode_json(v)


class Application(BaseModel):
    """An influencer's proposal against a campaign."""

    model_config = ConfigDict(frozen=True)

    id: str
    campaign_id: str
    influencer_id: str
    proposal: str | None = None
    proposed_rate: Decimal | None = None
    estimated_reach: int | None = None
    portfolio_links: list[str] = []
    status: ApplicationStatus
    review_notes: str | None = None
    submitted_at: str
    reviewed_at: str | None = None
    work_submitted_at: str | None = None
    created_at: str
    updated_at: str

    @field_validator("proposed_rate", mode="before")
    @classmethod
    def reject_float_inputs(cls, v: object) -> object:
        """Reject float inputs for monetary fields to prevent precision errors."""
        return _reject_float(v)

    @field_validator("portfolio_links", mode="before")
    @classmethod
    def decode_json_lists(cls, v: object) -> object:
        """Decode list columns stored as JSON text."""
        return _decode_json(v)


class Payment(BaseModel):
    """The payment row recorded for an approved application."""

    model_config = ConfigDict(frozen=True)

    id: str
    application_id: str
    amount: Decimal
    currency: str
    status: PaymentStatus
    paystack_reference: str | None = None
    paid_at: str | None = None
    created_at: str
    updated_at: str

    @field_validator("amount", mode="before")
    @classmethod
    def reject_float_inputs(cls, v: object) -> object:
        """Reject float inputs for monetary fields to prevent precision errors."""
        return _reject_float(v)


class EscrowAccount(BaseModel):
    """Funds held against an application until release or refund."""

    model_config = ConfigDict(frozen=True)

    id: str
    application_id: str
    payment_id: str
    amount: Decimal
    currency: str
    status: EscrowStatus
    auto_release_date: str
    released_at: str | None = None
    created_at: str
    updated_at: str

    @field_validator("amount", mode="before")
    @classmethod
    def reject_float_inputs(cls, v: object) -> object:
        """Reject float inputs for monetary fields to prevent precision errors."""
        return _reject_float(v)


class Submission(BaseModel):
    """Work an influencer uploads for business review."""

    model_config = ConfigDict(frozen=True)

    id: str
    application_id: str
    influencer_id: str
    campaign_id: str
    business_id: str
    title: str | None = None
    description: str | None = None
    notes: str | None = None
    images: list[str] = []
    videos: list[str] = []
    links: list[str] = []
    documents: list[str] = []
    status: SubmissionStatus
    review_notes: str | None = None
    auto_approve_date: str
    submitted_at: str
    reviewed_at: str | None = None
    created_at: str
    updated_at: str

    @field_validator("images", "videos", "links", "documents", mode="before")
    @classmethod
    def decode_json_lists(cls, v: object) -> object:
        """Decode list columns stored as JSON text."""
        return _decode_json(v)


class InfluencerBalance(BaseModel):
    """An influencer's accrued earnings."""

    model_config = ConfigDict(frozen=True)

    influencer_id: str
    available_balance: Decimal
    pending_balance: Decimal
    total_earned: Decimal
    currency: str
    updated_at: str

    @field_validator("available_balance", "pending_balance", "total_earned", mode="before")
    @classmethod
    def reject_float_inputs(cls, v: object) -> object:
        """Reject float inputs for monetary fields to prevent precision errors."""
        return _reject_float(v)


class PayoutRequest(BaseModel):
    """An influencer-initiated withdrawal against their balance."""

    model_config = ConfigDict(frozen=True)

    id: str
    influencer_id: str
    amount: Decimal
    platform_fee: Decimal
    net_amount: Decimal
    currency: str
    status: PayoutStatus
    payment_method: str
    paystack_transfer_id: str | None = None
    processed_at: str | None = None
    created_at: str
    updated_at: str

    @field_validator("amount", "platform_fee", "net_amount", mode="before")
    @classmethod
    def reject_float_inputs(cls, v: object) -> object:
        """Reject float inputs for monetary fields to prevent precision errors."""
        return _reject_float(v)


class Notification(BaseModel):
    """An in-app notification addressed to one user."""

    model_config = ConfigDict(frozen=True)

    id: str
    user_id: str
    type: NotificationType
    title: str
    message: str
    data: dict[str, Any] = {}
    is_read: bool = False
    created_at: str

    @field_validator("data", mode="before")
    @classmethod
    def decode_json_data(cls, v: object) -> object:
        """Decode the payload column stored as JSON text."""
        return _decode_json(v)


class PlatformSetting(BaseModel):
    """A key/value platform configuration entry managed by admins."""

    model_config = ConfigDict(frozen=True)

    setting_key: str
    setting_value: str
    description: str | None = None
    created_at: str
    updated_at: str


class BankDetails(BaseModel):
    """A payout bank account registered by an influencer."""

    model_config = ConfigDict(frozen=True)

    id: str
    influencer_id: str
    bank_name: str
    account_holder_name: str
    account_number: str
    routing_number: str | None = None
    swift_code: str | None = None
    currency: str
    account_type: AccountType
    is_primary: bool
    is_active: bool
    is_verified: bool
    verification_method: str | None = None
    verified_at: str | None = None
    created_at: str
    updated_at: str

    def masked(self) -> BankDetails:
        """Return a copy with account and routing numbers masked to the last four chars."""
        return self.model_copy(
            update={
                "account_number": mask_account_number(self.account_number),
                "routing_number": mask_account_number(self.routing_number)
                if self.routing_number
                else None,
            }
        )


class InfluencerReview(BaseModel):
    """A business's rating of an influencer after working together."""

    model_config = ConfigDict(frozen=True)

    id: str
    campaign_id: str
    business_id: str
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
    created_at: str
    updated_at: str


def mask_account_number(value: str) -> str:
    """Replace every character except the last four with ``*``."""
    if len(value) <= 4:
        return value
    return "*" * (len(value) - 4) + value[-4:]
