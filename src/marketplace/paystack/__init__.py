"""Paystack payment gateway integration."""

from marketplace.paystack.client import (
    PaystackClient,
    PaystackTransaction,
    from_minor_units,
    verify_webhook_signature,
)

__all__ = [
    "PaystackClient",
    "PaystackTransaction",
    "from_minor_units",
    "verify_webhook_signature",
]
