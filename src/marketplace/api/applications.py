"""Influencer applications to campaigns."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Response

from marketplace.api.deps import CurrentUser, Services
from marketplace.api.schemas import CreateApplication, UpdateApplication
from marketplace.domain.types import ApplicationStatus

router = APIRouter(prefix="/applications", tags=["applications"])


@router.post("", status_code=201)
def create_application(
    body: CreateApplication, user: CurrentUser, services: Services
) -> dict[str, Any]:
    data = body.fields()
    campaign_id = data.pop("campaign_id")
    return {"application": services["applications"].apply(user, campaign_id, data)}


@router.get("")
def list_applications(
    user: CurrentUser,
    services: Services,
    campaign_id: str | None = None,
    influencer_id: str | None = None,
    business_id: str | None = None,
    status: ApplicationStatus | None = None,
    page: int = 1,
    limit: int = 10,
) -> dict[str, Any]:
    return services["applications"].list(
        user,
        campaign_id=campaign_id,
        influencer_id=influencer_id,
        business_id=business_id,
        status=status,
        page=page,
        limit=limit,
    )


@router.get("/{application_id}")
def get_application(application_id: str, user: CurrentUser, services: Services) -> dict[str, Any]:
    return {"application": services["applications"].get(user, application_id)}


@router.patch("/{application_id}")
def update_application(
    application_id: str, body: UpdateApplication, user: CurrentUser, services: Services
) -> dict[str, Any]:
    return {"application": services["applications"].update(user, application_id, body.fields())}


@router.delete("/{application_id}", status_code=204)
def delete_application(application_id: str, user: CurrentUser, services: Services) -> Response:
    services["applications"].delete(user, application_id)
    return Response(status_code=204)
