"""Escrow funding, the Paystack webhook, and escrow release or refund.

The webhook verifies the HMAC-SHA512 signature against the raw request body
bytes before any JSON parsing, so the digest matches exactly what Paystack
sent.
"""

from __future__ import annotations

import asyncio
import json
from typing import Any

import structlog
from fastapi import APIRouter, Request

from marketplace.api.deps import CurrentUser, Services, get_services
from marketplace.api.schemas import CreatePayment, EscrowActionRequest
from marketplace.domain.errors import AuthenticationError, ValidationFailedError
from marketplace.domain.types import EscrowStatus, PaymentStatus
from marketplace.paystack import verify_webhook_signature

logger = structlog.get_logger()

router = APIRouter(tags=["payments"])

SIGNATURE_HEADER = "x-paystack-signature"


@router.post("/payments", status_code=201)
def create_payment(body: CreatePayment, user: CurrentUser, services: Services) -> dict[str, Any]:
    return services["payments"].fund_escrow(
        user,
        body.application_id,
        body.amount,
        body.paystack_reference,
        body.total_amount,
    )


@router.get("/payments")
def list_payments(
    user: CurrentUser,
    services: Services,
    application_id: str | None = None,
    status: PaymentStatus | None = None,
    page: int = 1,
    limit: int = 10,
) -> dict[str, Any]:
    return services["payments"].list_payments(
        user, application_id=application_id, status=status, page=page, limit=limit
    )


@router.post("/webhooks/paystack")
async def paystack_webhook(request: Request) -> dict[str, str]:
    """Receive Paystack events; only ``charge.success`` funds escrow.

    Raises:
        AuthenticationError: 401 if the signature is missing or invalid.
        ValidationFailedError: 400 if the verified body is not JSON.
    """
    raw_body = await request.body()
    secret = request.app.state.settings.paystack_secret_key.get_secret_value()
    signature = request.headers.get(SIGNATURE_HEADER, "")
    if not verify_webhook_signature(raw_body, signature, secret):
        logger.warning("paystack_webhook_bad_signature", has_signature=bool(signature))
        raise AuthenticationError("Invalid signature")

    try:
        event: dict[str, Any] = json.loads(raw_body)
    except ValueError as exc:
        raise ValidationFailedError("Invalid JSON payload") from exc

    services = get_services(request)
    outcome = await asyncio.to_thread(services["payments"].handle_webhook_event, event)
    logger.info("paystack_webhook_handled", event_type=event.get("event"), outcome=outcome)
    return {"status": outcome}


@router.get("/escrow")
def list_escrows(
    user: CurrentUser,
    services: Services,
    application_id: str | None = None,
    status: EscrowStatus | None = None,
) -> dict[str, Any]:
    escrows = services["payments"].list_escrows(user, application_id=application_id, status=status)
    return {"escrow_accounts": escrows}


@router.post("/escrow")
def escrow_action(
    body: EscrowActionRequest, user: CurrentUser, services: Services
) -> dict[str, Any]:
    escrow = services["payments"].process_escrow_action(
        user, body.application_id, body.action, body.reason
    )
    return {"escrow": escrow, "message": f"Escrow {escrow.status} successfully"}
