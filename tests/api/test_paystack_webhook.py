"""HTTP tests for the signed Paystack webhook."""

from __future__ import annotations

import hashlib
import hmac
import json
from decimal import Decimal
from typing import Any

from fastapi.testclient import TestClient

PAYSTACK_SECRET = "sk_test_secret"


def _post(client: TestClient, event: dict[str, Any], *, signature: str | None = None) -> Any:
    body = json.dumps(event).encode()
    if signature is None:
        signature = hmac.new(PAYSTACK_SECRET.encode(), body, hashlib.sha512).hexdigest()
    return client.post(
        "/webhooks/paystack",
        content=body,
        headers={"x-paystack-signature": signature, "Content-Type": "application/json"},
    )


def _charge(application_id: str, reference: str = "ref_hook", kobo: int = 800000) -> dict:
    return {
        "event": "charge.success",
        "data": {
            "reference": reference,
            "status": "success",
            "amount": kobo,
            "metadata": {"application_id": application_id},
        },
    }


class TestPaystackWebhook:
    def test_bad_signature_rejected(self, client: TestClient, application: Any) -> None:
        resp = _post(client, _charge(application.id), signature="0" * 128)

        assert resp.status_code == 401
        assert resp.json() == {"error": "Invalid signature"}

    def test_missing_signature_rejected(self, client: TestClient, application: Any) -> None:
        resp = client.post("/webhooks/paystack", json=_charge(application.id))

        assert resp.status_code == 401

    def test_charge_success_funds_escrow(
        self, client: TestClient, services: dict[str, Any], application: Any
    ) -> None:
        resp = _post(client, _charge(application.id))

        assert resp.status_code == 200
        assert resp.json() == {"status": "processed"}
        escrow = services["repos"].escrows.get_held(application.id)
        assert escrow is not None
        assert escrow.amount == Decimal("8000")
        assert services["repos"].applications.get(application.id).status == "approved"

    def test_redelivery_is_duplicate(self, client: TestClient, application: Any) -> None:
        _post(client, _charge(application.id))

        resp = _post(client, _charge(application.id))

        assert resp.json() == {"status": "duplicate"}

    def test_other_events_ignored(self, client: TestClient) -> None:
        resp = _post(client, {"event": "transfer.success", "data": {}})

        assert resp.json() == {"status": "ignored"}

    def test_signed_garbage_is_400(self, client: TestClient) -> None:
        body = b"not json"
        signature = hmac.new(PAYSTACK_SECRET.encode(), body, hashlib.sha512).hexdigest()

        resp = client.post(
            "/webhooks/paystack", content=body, headers={"x-paystack-signature": signature}
        )

        assert resp.status_code == 400
        assert resp.json() == {"error": "Invalid JSON payload"}
