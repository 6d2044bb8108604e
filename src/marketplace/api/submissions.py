"""Work submissions and their review by the business."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter

from marketplace.api.deps import CurrentUser, Services
from marketplace.api.schemas import CreateSubmission, ReviewSubmission

router = APIRouter(prefix="/submissions", tags=["submissions"])


@router.post("", status_code=201)
def create_submission(
    body: CreateSubmission, user: CurrentUser, services: Services
) -> dict[str, Any]:
    data = body.fields()
    application_id = data.pop("application_id")
    return services["submissions"].submit(user, application_id, data)


@router.get("")
def list_submissions(
    user: CurrentUser,
    services: Services,
    application_id: str | None = None,
    campaign_id: str | None = None,
    influencer_id: str | None = None,
    business_id: str | None = None,
) -> dict[str, Any]:
    submissions = services["submissions"].list(
        user,
        application_id=application_id,
        campaign_id=campaign_id,
        influencer_id=influencer_id,
        business_id=business_id,
    )
    return {"submissions": submissions}


@router.get("/{submission_id}")
def get_submission(submission_id: str, user: CurrentUser, services: Services) -> dict[str, Any]:
    return {"submission": services["submissions"].get(user, submission_id)}


@router.patch("/{submission_id}/review")
def review_submission(
    submission_id: str, body: ReviewSubmission, user: CurrentUser, services: Services
) -> dict[str, Any]:
    return services["submissions"].review(user, submission_id, body.status, body.notes)
