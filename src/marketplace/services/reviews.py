"""Business reviews of influencers they have worked with."""

from __future__ import annotations

from typing import Any

from marketplace.domain.errors import (
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    ValidationFailedError,
)
from marketplace.domain.models import InfluencerReview, Profile
from marketplace.domain.types import ApplicationStatus, UserRole
from marketplace.services.common import new_id, now_timestamp, require_found, require_role
from marketplace.store import Repositories
from marketplace.store.base import Filters

RATING_FIELDS = (
    "overall_rating",
    "communication_rating",
    "content_quality_rating",
    "professionalism_rating",
    "timeliness_rating",
)
EDITABLE_REVIEW_FIELDS = frozenset(
    {*RATING_FIELDS, "title", "review_text", "would_work_again", "is_public"}
)
REVIEWABLE_STATUSES = frozenset(
    {ApplicationStatus.APPROVED, ApplicationStatus.SUBMITTED, ApplicationStatus.COMPLETED}
)


def validate_ratings(data: dict[str, Any]) -> None:
    """Raise ValidationFailedError unless every given rating is an integer 1-5."""
    for field in RATING_FIELDS:
        value = data.get(field)
        if value is not None and (isinstance(value, bool) or value not in range(1, 6)):
            raise ValidationFailedError("Rating must be between 1 and 5")


class ReviewService:
    def __init__(self, repos: Repositories) -> None:
        self._repos = repos

    def list(
        self,
        *,
        influencer_id: str | None = None,
        business_id: str | None = None,
        campaign_id: str | None = None,
        is_public: bool | None = None,
    ) -> list[InfluencerReview]:
        filters = (
            Filters()
            .equal("influencer_id", influencer_id)
            .equal("business_id", business_id)
            .equal("campaign_id", campaign_id)
            .equal("is_public", is_public)
        )
        return self._repos.reviews.find(filters)

    def summary(self, influencer_id: str) -> dict[str, Any]:
        return self._repos.reviews.summary(influencer_id)

    def create(self, actor: Profile, data: dict[str, Any]) -> InfluencerReview:
        """Record a business's review of the influencer on one of its applications.

        Raises:
            PermissionDeniedError: If the caller is not a business.
            NotFoundError: If the campaign is not the caller's or the application
                does not belong to it.
            ValidationFailedError: On bad ratings or an application not yet approved.
            ConflictError: If this campaign/influencer pair was already reviewed.
        """
        require_role(actor, [UserRole.BUSINESS], "Only businesses can create reviews")
        if data.get("overall_rating") is None:
            raise ValidationFailedError("overall_rating is required")
        validate_ratings(data)

        with self._repos.db.transaction():
            campaign = self._repos.campaigns.get(data["campaign_id"])
            if campaign is None or campaign.business_id != actor.id:
                raise NotFoundError("Campaign not found or unauthorized")
            application = self._repos.applications.get(data["application_id"])
            if (
                application is None
                or application.campaign_id != campaign.id
                or application.influencer_id != data["influencer_id"]
            ):
                raise NotFoundError("Application not found")
            if application.status not in REVIEWABLE_STATUSES:
                raise ValidationFailedError("Can only review approved applications")
            if self._repos.reviews.exists_for(campaign.id, actor.id, application.influencer_id):
                raise ConflictError("Review already exists for this campaign and influencer")

            now = now_timestamp()
            return self._repos.reviews.insert(
                {
                    **{k: v for k, v in data.items() if k in EDITABLE_REVIEW_FIELDS},
                    "id": new_id(),
                    "campaign_id": campaign.id,
                    "business_id": actor.id,
                    "influencer_id": application.influencer_id,
                    "application_id": application.id,
                    "created_at": now,
                    "updated_at": now,
                }
            )

    def update(self, actor: Profile, review_id: str, data: dict[str, Any]) -> InfluencerReview:
        changes = {k: v for k, v in data.items() if k in EDITABLE_REVIEW_FIELDS and v is not None}
        if not changes:
            raise ValidationFailedError("No valid fields to update")
        validate_ratings(changes)
        with self._repos.db.transaction():
            self._authored(actor, review_id, "Unauthorized to update this review")
            return self._repos.reviews.update(review_id, changes)

    def delete(self, actor: Profile, review_id: str) -> None:
        with self._repos.db.transaction():
            self._authored(actor, review_id, "Unauthorized to delete this review")
            self._repos.reviews.delete(review_id)

    def _authored(self, actor: Profile, review_id: str, message: str) -> InfluencerReview:
        review = require_found(self._repos.reviews.get(review_id), "Review not found")
        if actor.role != UserRole.ADMIN and review.business_id != actor.id:
            raise PermissionDeniedError(message)
        return review
