"""Influencer bank accounts for payouts."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Response

from marketplace.api.deps import CurrentUser, Services
from marketplace.api.schemas import CreateBankDetails, UpdateBankDetails

router = APIRouter(prefix="/bank-details", tags=["bank-details"])


@router.get("")
def list_bank_details(
    user: CurrentUser,
    services: Services,
    influencer_id: str | None = None,
    is_primary: bool | None = None,
) -> dict[str, Any]:
    details = services["bank_details"].list(
        user, influencer_id=influencer_id, is_primary=is_primary
    )
    return {"bank_details": details}


@router.post("", status_code=201)
def create_bank_details(
    body: CreateBankDetails, user: CurrentUser, services: Services
) -> dict[str, Any]:
    return {"bank_details": services["bank_details"].create(user, body.fields())}


@router.patch("/{bank_details_id}")
def update_bank_details(
    bank_details_id: str, body: UpdateBankDetails, user: CurrentUser, services: Services
) -> dict[str, Any]:
    updated = services["bank_details"].update(user, bank_details_id, body.fields())
    return {"bank_details": updated}


@router.delete("/{bank_details_id}", status_code=204)
def delete_bank_details(bank_details_id: str, user: CurrentUser, services: Services) -> Response:
    services["bank_details"].delete(user, bank_details_id)
    return Response(status_code=204)
