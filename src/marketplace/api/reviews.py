"""Business reviews of influencers."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Response

from marketplace.api.deps import CurrentUser, Services
from marketplace.api.schemas import CreateReview, UpdateReview

router = APIRouter(prefix="/influencer-reviews", tags=["influencer-reviews"])


@router.get("")
def list_reviews(
    user: CurrentUser,
    services: Services,
    influencer_id: str | None = None,
    business_id: str | None = None,
    campaign_id: str | None = None,
    is_public: bool | None = None,
) -> dict[str, Any]:
    reviews = services["reviews"].list(
        influencer_id=influencer_id,
        business_id=business_id,
        campaign_id=campaign_id,
        is_public=is_public,
    )
    return {"reviews": reviews}


@router.get("/summary/{influencer_id}")
def review_summary(influencer_id: str, user: CurrentUser, services: Services) -> dict[str, Any]:
    return {"summary": services["reviews"].summary(influencer_id)}


@router.post("", status_code=201)
def create_review(body: CreateReview, user: CurrentUser, services: Services) -> dict[str, Any]:
    return {"review": services["reviews"].create(user, body.fields())}


@router.patch("/{review_id}")
def update_review(
    review_id: str, body: UpdateReview, user: CurrentUser, services: Services
) -> dict[str, Any]:
    return {"review": services["reviews"].update(user, review_id, body.fields())}


@router.delete("/{review_id}", status_code=204)
def delete_review(review_id: str, user: CurrentUser, services: Services) -> Response:
    services["reviews"].delete(user, review_id)
    return Response(status_code=204)
