"""Campaign CRUD and the apply-to-campaign shortcut."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Response

from marketplace.api.deps import CurrentUser, Services
from marketplace.api.schemas import ApplicationProposal, CreateCampaign, UpdateCampaign
from marketplace.domain.types import CampaignStatus

router = APIRouter(prefix="/campaigns", tags=["campaigns"])


@router.post("", status_code=201)
def create_campaign(body: CreateCampaign, user: CurrentUser, services: Services) -> dict[str, Any]:
    return {"campaign": services["campaigns"].create(user, body.fields())}


@router.get("")
def list_campaigns(
    user: CurrentUser,
    services: Services,
    status: CampaignStatus | None = None,
    business_id: str | None = None,
    page: int = 1,
    limit: int = 10,
) -> dict[str, Any]:
    return services["campaigns"].list(
        status=status, business_id=business_id, page=page, limit=limit
    )


@router.get("/{campaign_id}")
def get_campaign(campaign_id: str, user: CurrentUser, services: Services) -> dict[str, Any]:
    return {"campaign": services["campaigns"].get(campaign_id)}


@router.patch("/{campaign_id}")
def update_campaign(
    campaign_id: str, body: UpdateCampaign, user: CurrentUser, services: Services
) -> dict[str, Any]:
    return {"campaign": services["campaigns"].update(user, campaign_id, body.fields())}


@router.delete("/{campaign_id}", status_code=204)
def delete_campaign(campaign_id: str, user: CurrentUser, services: Services) -> Response:
    services["campaigns"].delete(user, campaign_id)
    return Response(status_code=204)


@router.post("/{campaign_id}/apply", status_code=201)
def apply_to_campaign(
    campaign_id: str, body: ApplicationProposal, user: CurrentUser, services: Services
) -> dict[str, Any]:
    application = services["applications"].apply(
        user, campaign_id, body.fields(), require_proposal=False
    )
    return {"application": application}
