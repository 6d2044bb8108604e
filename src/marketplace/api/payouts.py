"""Influencer balances and payout requests."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter

from marketplace.api.deps import CurrentUser, Services
from marketplace.api.schemas import AdjustBalance, CreatePayout, UpdatePayout
from marketplace.domain.types import PayoutStatus

router = APIRouter(tags=["payouts"])


@router.get("/balance")
def get_balance(user: CurrentUser, services: Services) -> dict[str, Any]:
    return {"balance": services["payouts"].get_balance(user)}


@router.patch("/balance/{influencer_id}")
def adjust_balance(
    influencer_id: str, body: AdjustBalance, user: CurrentUser, services: Services
) -> dict[str, Any]:
    return {"balance": services["payouts"].adjust_balance(user, influencer_id, body.fields())}


@router.post("/payouts", status_code=201)
def request_payout(body: CreatePayout, user: CurrentUser, services: Services) -> dict[str, Any]:
    payout = services["payouts"].request_payout(user, body.amount, body.payment_method)
    return {"payout": payout}


@router.get("/payouts")
def list_payouts(
    user: CurrentUser,
    services: Services,
    status: PayoutStatus | None = None,
    influencer_id: str | None = None,
    page: int = 1,
    limit: int = 10,
) -> dict[str, Any]:
    return services["payouts"].list_payouts(
        user, status=status, influencer_id=influencer_id, page=page, limit=limit
    )


@router.patch("/payouts/{payout_id}")
def update_payout(
    payout_id: str, body: UpdatePayout, user: CurrentUser, services: Services
) -> dict[str, Any]:
    payout = services["payouts"].update_payout(
        user, payout_id, body.status, body.paystack_transfer_id
    )
    return {"payout": payout}
