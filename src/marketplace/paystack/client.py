"""Paystack REST client for transaction verification and webhook signatures.

Paystack reports amounts in the currency's minor unit (kobo for NGN), so
amounts are divided by 100 before they reach the rest of the marketplace.
"""

from __future__ import annotations

import hashlib
import hmac
from decimal import Decimal
from typing import Any

import httpx
import structlog
from pydantic import BaseModel
from tenacity import retry_if_exception_type

from marketplace.domain.errors import PaymentVerificationError
from marketplace.resilience.retry import resilient_api_call

logger = structlog.get_logger()

MINOR_UNITS_PER_MAJOR = Decimal("100")


class PaystackTransaction(BaseModel):
    """The fields of a verified transaction the marketplace relies on."""

    reference: str
    status: str
    amount: Decimal
    currency: str | None = None
    paid_at: str | None = None
    metadata: dict[str, Any] = {}

    @property
    def succeeded(self) -> bool:
        return self.status == "success"


def from_minor_units(amount: int | str) -> Decimal:
    """Convert a Paystack minor-unit amount (e.g. kobo) to major units."""
    return Decimal(str(amount)) / MINOR_UNITS_PER_MAJOR


def verify_webhook_signature(body: bytes, signature: str | None, secret: str) -> bool:
    """Verify the ``x-paystack-signature`` header of a webhook delivery.

    Must be called with the raw body bytes before any JSON parsing.

    Args:
        body: The raw request body bytes.
        signature: The HMAC-SHA512 hex digest from the header, if present.
        secret: The Paystack secret key.

    Returns:
        True if the computed signature matches the provided one.
    """
    if not signature or not secret:
        return False
    computed = hmac.new(secret.encode(), body, hashlib.sha512).hexdigest()
    return hmac.compare_digest(computed, signature)


class PaystackClient:
    """Thin wrapper over the Paystack REST API.

    Args:
        secret_key: Paystack secret key, sent as a bearer token.
        base_url: API root, ``https://api.paystack.co`` in production.
        http_client: Optional preconfigured ``httpx.Client`` (tests pass one
            with a ``MockTransport``).
    """

    def __init__(
        self,
        secret_key: str,
        base_url: str = "https://api.paystack.co",
        http_client: httpx.Client | None = None,
    ) -> None:
        self._secret_key = secret_key
        self._client = http_client or httpx.Client(base_url=base_url, timeout=15.0)

    @property
    def secret_key(self) -> str:
        return self._secret_key

    @resilient_api_call("paystack", retry_if=retry_if_exception_type(httpx.TransportError))
    def _get(self, path: str) -> httpx.Response:
        return self._client.get(
            path,
            headers={"Authorization": f"Bearer {self._secret_key}"},
        )

    def verify_transaction(self, reference: str) -> PaystackTransaction:
        """Look up a transaction by reference.

        Args:
            reference: The Paystack transaction reference.

        Returns:
            The verified transaction with ``amount`` in major units.

        Raises:
            PaymentVerificationError: If Paystack rejects the request or does
                not return transaction data.
        """
        response = self._get(f"/transaction/verify/{reference}")
        try:
            payload = response.json()
        except ValueError:
            payload = {}

        if response.is_error or not payload.get("status"):
            logger.warning(
                "paystack_verification_failed",
                reference=reference,
                http_status=response.status_code,
                message=payload.get("message"),
            )
            raise PaymentVerificationError("Payment verification failed")

        data = payload.get("data") or {}
        transaction = PaystackTransaction(
            reference=data.get("reference") or reference,
            status=data.get("status", ""),
            amount=from_minor_units(data.get("amount", 0)),
            currency=data.get("currency"),
            paid_at=data.get("paid_at") or data.get("paidAt"),
            metadata=data.get("metadata") or {},
        )
        logger.info(
            "paystack_transaction_verified",
            reference=reference,
            status=transaction.status,
            amount=str(transaction.amount),
        )
        return transaction

    def close(self) -> None:
        self._client.close()
